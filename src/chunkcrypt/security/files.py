"""File-to-file helpers on top of the chunked stream codec.

Encrypted files are the bare frame stream from :mod:`chunkcrypt.security.stream`:
no magic, no header, nothing that records the chunk size. Pass the same
``chunk_size`` on both sides, or leave it as ``None`` on both sides to use the
configured value (``CHUNKCRYPT_CHUNK_SIZE``, default 1024).
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from chunkcrypt.core.config import load_settings
from .aead import AEAD, as_aead
from .stream import decrypt_stream, encrypt_stream

logger = logging.getLogger(__name__)


def _current_umask() -> int:
    # the umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _resolve_chunk_size(chunk_size: Optional[int]) -> int:
    if chunk_size is None:
        return load_settings().chunk_size
    return chunk_size


def encrypt_file_stream(
    in_path: str | Path,
    out_path: str | Path,
    key: bytes | AEAD,
    chunk_size: Optional[int] = None,
) -> int:
    """Encrypt ``in_path`` into ``out_path``; returns plaintext bytes read."""
    aead = as_aead(key)
    chunk_size = _resolve_chunk_size(chunk_size)
    with open(in_path, "rb") as inf, open(out_path, "wb") as outf:
        total = encrypt_stream(inf, outf, aead, chunk_size=chunk_size)
    logger.debug("encrypted %s -> %s (%d bytes, chunk_size=%d)", in_path, out_path, total, chunk_size)
    return total


def decrypt_file_stream(
    in_path: str | Path,
    out_path: str | Path,
    key: bytes | AEAD,
    chunk_size: Optional[int] = None,
) -> int:
    """
    Decrypt ``in_path`` into ``out_path``; returns plaintext bytes written.

    Plaintext goes to a temporary file next to ``out_path`` and is moved into
    place only once every frame has verified, so a failed decrypt never
    leaves partial or unauthenticated output at ``out_path``.
    """
    aead = as_aead(key)
    chunk_size = _resolve_chunk_size(chunk_size)
    out_path = Path(out_path)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{out_path.name}.", suffix=".part", dir=out_path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as outf, open(in_path, "rb") as inf:
            total = decrypt_stream(inf, outf, aead, chunk_size=chunk_size)
        # mkstemp creates 0600 files; give the result the mode open() would
        os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, out_path)
    finally:
        tmp_path.unlink(missing_ok=True)
    logger.debug("decrypted %s -> %s (%d bytes, chunk_size=%d)", in_path, out_path, total, chunk_size)
    return total
