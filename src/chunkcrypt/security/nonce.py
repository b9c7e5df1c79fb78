"""Random nonce generation.

Nonces are drawn from the OS CSPRNG for every seal; they are never derived
from counters. If the OS cannot provide randomness the caller gets
:class:`RandomSourceExhaustedError` and nothing is encrypted.
"""

import os

from chunkcrypt.core.exceptions import RandomSourceExhaustedError


def new_nonce(size: int) -> bytes:
    """Return ``size`` cryptographically secure random bytes."""
    if size <= 0:
        raise ValueError("nonce size must be > 0")
    try:
        nonce = os.urandom(size)
    except (NotImplementedError, OSError) as exc:
        raise RandomSourceExhaustedError("secure random source unavailable") from exc

    if len(nonce) != size:
        raise RandomSourceExhaustedError(
            f"secure random source returned {len(nonce)} of {size} bytes"
        )
    return nonce
