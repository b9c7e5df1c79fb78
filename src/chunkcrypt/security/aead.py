"""AES-256-GCM AEAD factory.

The :class:`AEAD` object is built once per key and is immutable afterwards,
so a single instance can be shared by any number of whole-buffer calls and
stream readers/writers, including across threads.
"""

from __future__ import annotations

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from chunkcrypt.core.exceptions import AuthenticationFailureError, InvalidKeyError

KEY_SIZE = 32  # 256-bit key
NONCE_SIZE = 12  # 96-bit nonce (GCM standard)
TAG_SIZE = 16  # 128-bit tag
OVERHEAD = NONCE_SIZE + TAG_SIZE


class AEAD:
    """Seal/open wrapper around :class:`AESGCM` with typed failures."""

    __slots__ = ("_aesgcm",)

    nonce_size = NONCE_SIZE
    tag_size = TAG_SIZE

    def __init__(self, aesgcm: AESGCM):
        self._aesgcm = aesgcm

    @property
    def overhead(self) -> int:
        return self.nonce_size + self.tag_size

    def seal(self, nonce: bytes, plaintext: bytes) -> bytes:
        """Encrypt and authenticate; returns ``ciphertext || tag``."""
        if len(nonce) != self.nonce_size:
            raise ValueError(f"nonce must be {self.nonce_size} bytes")
        return self._aesgcm.encrypt(nonce, plaintext, None)

    def open(self, nonce: bytes, ciphertext: bytes) -> bytes:
        """Verify and decrypt ``ciphertext || tag``.

        Raises :class:`AuthenticationFailureError` if the tag does not verify;
        no plaintext is produced in that case.
        """
        if len(nonce) != self.nonce_size:
            raise ValueError(f"nonce must be {self.nonce_size} bytes")
        try:
            return self._aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise AuthenticationFailureError(
                "authentication failed: data was tampered with, corrupted, or the key is wrong"
            ) from None


def new_aead(key: bytes) -> AEAD:
    """Build an :class:`AEAD` from a 32-byte key.

    Raises :class:`InvalidKeyError` for anything that is not exactly 32 bytes
    of binary key material. AES-128/192 keys are refused.
    """
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise InvalidKeyError(f"key must be bytes, got {type(key).__name__}")
    key = bytes(key)
    if len(key) != KEY_SIZE:
        raise InvalidKeyError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
    try:
        aesgcm = AESGCM(key)
    except (TypeError, ValueError) as exc:
        raise InvalidKeyError(f"key rejected by AES-GCM: {exc}") from exc
    return AEAD(aesgcm)


def as_aead(key: bytes | AEAD) -> AEAD:
    # Codecs accept either raw key bytes or a prebuilt instance.
    if isinstance(key, AEAD):
        return key
    return new_aead(key)
