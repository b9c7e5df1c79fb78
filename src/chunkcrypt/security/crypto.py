"""Whole-buffer AES-256-GCM encryption.

Output layout: ``nonce(12) || ciphertext(N) || tag(16)``, ``N + 28`` bytes in
total for ``N`` bytes of plaintext. Each call draws a fresh random nonce.
"""

from __future__ import annotations

from chunkcrypt.core.exceptions import MalformedInputError
from .aead import AEAD, as_aead
from .nonce import new_nonce


def encrypt(plaintext: bytes, key: bytes | AEAD) -> bytes:
    """Encrypt ``plaintext`` and return ``nonce || ciphertext || tag``."""
    aead = as_aead(key)
    nonce = new_nonce(aead.nonce_size)
    return nonce + aead.seal(nonce, plaintext)


def decrypt(ciphertext: bytes, key: bytes | AEAD) -> bytes:
    """Decrypt a blob produced by :func:`encrypt`.

    The key is validated first, then the blob must at least hold a nonce.
    A blob that fails verification raises
    :class:`~chunkcrypt.core.exceptions.AuthenticationFailureError`.
    """
    aead = as_aead(key)
    if len(ciphertext) < aead.nonce_size:
        raise MalformedInputError(
            f"ciphertext too short to contain nonce ({len(ciphertext)} < {aead.nonce_size})"
        )
    nonce, body = ciphertext[: aead.nonce_size], ciphertext[aead.nonce_size :]
    return aead.open(bytes(nonce), bytes(body))
