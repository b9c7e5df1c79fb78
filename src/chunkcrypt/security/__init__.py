"""Security primitives for chunkcrypt: AES-256-GCM whole-buffer and chunked stream codecs.

This package provides:
- an AEAD factory and random nonce generation
- whole-buffer encrypt/decrypt (``nonce || ciphertext || tag``)
- streaming writers/readers that seal data in fixed-size chunks, one frame per chunk
- file helpers built on the streaming codec
"""

from .aead import AEAD, KEY_SIZE, NONCE_SIZE, TAG_SIZE, OVERHEAD, new_aead
from .nonce import new_nonce
from .crypto import encrypt, decrypt
from .stream import (
    StreamState,
    StreamWriter,
    StreamReader,
    open_writer,
    open_reader,
    encrypt_stream,
    decrypt_stream,
)
from .files import encrypt_file_stream, decrypt_file_stream

__all__ = [
    "AEAD",
    "KEY_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
    "OVERHEAD",
    "new_aead",
    "new_nonce",
    "encrypt",
    "decrypt",
    "StreamState",
    "StreamWriter",
    "StreamReader",
    "open_writer",
    "open_reader",
    "encrypt_stream",
    "decrypt_stream",
    "encrypt_file_stream",
    "decrypt_file_stream",
]
