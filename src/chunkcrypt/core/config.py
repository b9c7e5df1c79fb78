"""Runtime settings for chunkcrypt, read from the environment.

Only two knobs exist:

- ``CHUNKCRYPT_CHUNK_SIZE``: plaintext chunk size used by the file helpers
  when the caller does not pass one explicitly. The reader must use the same
  value the writer used, so set it consistently on both ends.
- ``CHUNKCRYPT_LOG_LEVEL``: level handed to :func:`configure_logging` by the
  bundled scripts.

Unset variables fall back to the library defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_CHUNK_SIZE = 1024
DEFAULT_LOG_LEVEL = "WARNING"

CHUNK_SIZE_ENV = "CHUNKCRYPT_CHUNK_SIZE"
LOG_LEVEL_ENV = "CHUNKCRYPT_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    """Resolved configuration values."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    log_level: str = DEFAULT_LOG_LEVEL


def validate_chunk_size(chunk_size: Optional[int]) -> int:
    """Return ``chunk_size`` or the default when it is None; reject anything not > 0."""
    if chunk_size is None:
        return DEFAULT_CHUNK_SIZE
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int):
        raise ValueError(f"chunk_size must be an integer, got {type(chunk_size).__name__}")
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
    return chunk_size


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    if environ is None:
        environ = os.environ

    raw_chunk = environ.get(CHUNK_SIZE_ENV)
    chunk_size = DEFAULT_CHUNK_SIZE
    if raw_chunk:
        try:
            chunk_size = int(raw_chunk)
        except ValueError:
            raise ValueError(f"{CHUNK_SIZE_ENV} must be an integer, got {raw_chunk!r}") from None
        validate_chunk_size(chunk_size)

    log_level = (environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()

    return Settings(chunk_size=chunk_size, log_level=log_level)
