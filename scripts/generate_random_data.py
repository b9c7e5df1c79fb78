"""
Write a file full of random bytes, for exercising the codecs on large inputs.

    uv run scripts/generate_random_data.py testdata/rand100MB 100

The data comes from ``os.urandom`` in 1 KiB blocks.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from chunkcrypt.core.config import load_settings
from chunkcrypt.core.logging_config import configure_logging

logger = logging.getLogger(__name__)

BLOCK_SIZE = 1024


def generate_random_file(path: str | Path, size_mb: int) -> int:
    """
    Write ``size_mb`` MiB of random data to ``path`` and return the byte count.

    ``size_mb`` may be 0, which creates an empty file.
    """
    if size_mb < 0:
        raise ValueError("size_mb must be >= 0")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    blocks = size_mb * 1024
    with open(path, "wb") as f:
        for _ in range(blocks):
            f.write(os.urandom(BLOCK_SIZE))
    total = blocks * BLOCK_SIZE
    logger.info("wrote %d random bytes to %s", total, path)
    return total


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a file of random bytes.")
    parser.add_argument("path", type=Path, help="File to create or overwrite")
    parser.add_argument("size_mb", type=int, help="Size of the file in MiB")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(load_settings().log_level)
    try:
        total = generate_random_file(args.path, args.size_mb)
    except ValueError as exc:
        parser.error(str(exc))

    print(f"Wrote {total} bytes to {args.path}.")


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
