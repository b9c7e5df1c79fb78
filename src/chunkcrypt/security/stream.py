"""Chunked streaming AES-256-GCM encryption.

Stream layout: a plain concatenation of frames, no header and no trailer.

- every frame is ``nonce(12) || ciphertext(n) || tag(16)``
- ``n == chunk_size`` for every frame except possibly the last one,
  which carries the remaining ``0 < n <= chunk_size`` bytes
- an empty input produces an empty stream (zero frames)

The chunk size is not recorded anywhere in the stream, so the reader must be
opened with the same ``chunk_size`` the writer used.

Each frame is sealed with its own random nonce. Frames are independent, which
means the format authenticates every chunk but not the order or the number of
chunks; a stream cut exactly on a frame boundary reads as a shorter, valid
stream.

Writers and readers are single-owner objects: they keep their buffers
private, must not be shared between threads without external locking, and
become unusable (``StreamState.FAILED``) after the first error.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import BinaryIO, Iterator, Optional

from chunkcrypt.core.config import validate_chunk_size
from chunkcrypt.core.exceptions import (
    AuthenticationFailureError,
    DestinationTooSmallError,
    SinkWriteError,
    SourceReadError,
    StreamClosedError,
    TruncatedFrameError,
)
from .aead import AEAD, as_aead
from .nonce import new_nonce

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 64 * 1024  # 64KB


class StreamState(Enum):
    OPEN = "open"
    ACTIVE = "active"
    FINALIZING = "finalizing"
    CLOSED = "closed"
    FAILED = "failed"


def _write_all(sink: BinaryIO, data: bytes, frame_index: int) -> None:
    # A sink returning None is taken to have consumed everything.
    try:
        written = sink.write(data)
    except Exception as exc:
        raise SinkWriteError(f"sink failed while writing {len(data)} bytes", frame_index) from exc
    if written is not None and written != len(data):
        raise SinkWriteError(f"sink accepted {written} of {len(data)} bytes", frame_index)


class StreamWriter:
    """
    Buffers plaintext into ``chunk_size`` chunks and writes one sealed frame
    per chunk to ``sink``.

    :meth:`finish` (or :meth:`close`, or leaving a ``with`` block normally)
    must be called once all data is written; otherwise the trailing partial
    chunk is never emitted.
    """

    def __init__(self, sink: BinaryIO, key: bytes | AEAD, chunk_size: Optional[int] = None):
        self._chunk_size = validate_chunk_size(chunk_size)
        self._aead = as_aead(key)
        self._sink = sink
        self._buf = bytearray(self._chunk_size)
        self._filled = 0
        self._frames = 0
        self._bytes_in = 0
        self._state = StreamState.OPEN
        logger.debug("stream writer opened (chunk_size=%d)", self._chunk_size)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def frames_written(self) -> int:
        return self._frames

    @property
    def closed(self) -> bool:
        return self._state in (StreamState.CLOSED, StreamState.FAILED)

    def _require_writable(self) -> None:
        if self._state is StreamState.FAILED:
            raise StreamClosedError("stream writer failed earlier and cannot be used")
        if self._state in (StreamState.FINALIZING, StreamState.CLOSED):
            raise StreamClosedError("stream writer is already finished")

    def _fail(self) -> None:
        self._state = StreamState.FAILED
        self._wipe()

    def _wipe(self) -> None:
        self._buf[:] = bytes(len(self._buf))
        self._filled = 0

    def _flush(self) -> None:
        plaintext = bytes(self._buf[: self._filled])
        nonce = new_nonce(self._aead.nonce_size)
        frame = nonce + self._aead.seal(nonce, plaintext)
        _write_all(self._sink, frame, self._frames)
        self._frames += 1
        self._filled = 0

    def write(self, data: bytes) -> int:
        """
        Accept all of ``data``, emitting a frame each time the buffer fills.

        Returns ``len(data)``. Errors from nonce generation or the sink
        leave the writer in ``FAILED`` state.
        """
        self._require_writable()
        view = memoryview(data).cast("B")
        total = len(view)
        self._state = StreamState.ACTIVE
        try:
            while view:
                take = min(len(view), self._chunk_size - self._filled)
                self._buf[self._filled : self._filled + take] = view[:take]
                self._filled += take
                view = view[take:]
                if self._filled == self._chunk_size:
                    self._flush()
        except BaseException:
            self._fail()
            raise
        self._bytes_in += total
        return total

    def finish(self) -> None:
        """Seal and emit the buffered partial chunk, then close the writer."""
        self._require_writable()
        self._state = StreamState.FINALIZING
        try:
            if self._filled:
                self._flush()
        except BaseException:
            self._fail()
            raise
        self._state = StreamState.CLOSED
        self._wipe()
        logger.debug(
            "stream writer finished: %d bytes in %d frames", self._bytes_in, self._frames
        )

    def close(self) -> None:
        # Idempotent; a failed writer stays failed.
        if self._state in (StreamState.OPEN, StreamState.ACTIVE):
            self.finish()

    def __enter__(self) -> "StreamWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        elif not self.closed:
            # Do not seal a trailing chunk of a write that blew up half way.
            self._fail()


class StreamReader:
    """
    Reads sealed frames from ``source`` and hands back decrypted chunks.

    ``source`` only needs a ``read(n)`` method; short reads are fine, the
    reader keeps reading until a whole frame is in hand or the source
    returns ``b""``.
    """

    def __init__(self, source: BinaryIO, key: bytes | AEAD, chunk_size: Optional[int] = None):
        self._chunk_size = validate_chunk_size(chunk_size)
        self._aead = as_aead(key)
        self._source = source
        self._frame_size = self._chunk_size + self._aead.overhead
        self._min_frame_size = 1 + self._aead.overhead
        self._frames = 0
        self._bytes_out = 0
        self._state = StreamState.OPEN

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def frame_size(self) -> int:
        return self._frame_size

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def frames_read(self) -> int:
        return self._frames

    @property
    def closed(self) -> bool:
        return self._state in (StreamState.CLOSED, StreamState.FAILED)

    def _read_frame(self) -> bytes:
        frame = bytearray()
        while len(frame) < self._frame_size:
            wanted = self._frame_size - len(frame)
            try:
                piece = self._source.read(wanted)
            except Exception as exc:
                raise SourceReadError("source failed while reading frame", self._frames) from exc
            if piece is None:
                raise SourceReadError("source has no data available (non-blocking?)", self._frames)
            if not piece:
                break
            if len(piece) > wanted:
                raise SourceReadError(
                    f"source returned {len(piece)} bytes when {wanted} were requested", self._frames
                )
            frame += piece
        return bytes(frame)

    def _next_plaintext(self) -> bytes:
        if self._state is StreamState.FAILED:
            raise StreamClosedError("stream reader failed earlier and cannot be used")
        if self._state in (StreamState.FINALIZING, StreamState.CLOSED):
            self._state = StreamState.CLOSED
            return b""

        self._state = StreamState.ACTIVE
        frame = self._read_frame()
        if not frame:
            self._state = StreamState.CLOSED
            logger.debug(
                "stream reader reached end: %d bytes from %d frames", self._bytes_out, self._frames
            )
            return b""

        if len(frame) < self._min_frame_size:
            raise TruncatedFrameError(
                f"stream ends mid-frame: {len(frame)} trailing bytes after frame {self._frames}"
            )

        nonce, body = frame[: self._aead.nonce_size], frame[self._aead.nonce_size :]
        if len(frame) == self._frame_size:
            plaintext = self._aead.open(nonce, body)
        else:
            # Short frames are only valid as the last one, and a cut stream
            # looks exactly like a short frame that fails to verify.
            try:
                plaintext = self._aead.open(nonce, body)
            except AuthenticationFailureError:
                raise TruncatedFrameError(
                    f"final frame {self._frames} ({len(frame)} bytes) does not verify: "
                    "stream is truncated or corrupted"
                ) from None
            self._state = StreamState.FINALIZING

        self._frames += 1
        self._bytes_out += len(plaintext)
        return plaintext

    def readinto(self, destination) -> int:
        """
        Decrypt the next frame into ``destination``.

        Returns the number of bytes written, or 0 at a clean end of stream.
        ``destination`` must be a writable buffer at least as large as the
        chunk, otherwise :class:`DestinationTooSmallError` is raised and the
        buffer is left untouched.
        """
        view = memoryview(destination).cast("B")
        if view.readonly:
            raise TypeError("destination must be a writable buffer")
        try:
            plaintext = self._next_plaintext()
            if len(view) < len(plaintext):
                raise DestinationTooSmallError(
                    f"destination holds {len(view)} bytes, chunk needs {len(plaintext)}"
                )
        except BaseException:
            self._state = StreamState.FAILED
            raise
        n = len(plaintext)
        view[:n] = plaintext
        return n

    def read_chunk(self) -> bytes:
        """Return the next decrypted chunk, or ``b""`` at end of stream."""
        try:
            return self._next_plaintext()
        except BaseException:
            self._state = StreamState.FAILED
            raise

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read_chunk()
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        if self._state is not StreamState.FAILED:
            self._state = StreamState.CLOSED

    def __enter__(self) -> "StreamReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_writer(sink: BinaryIO, key: bytes | AEAD, chunk_size: Optional[int] = None) -> StreamWriter:
    return StreamWriter(sink, key, chunk_size)


def open_reader(source: BinaryIO, key: bytes | AEAD, chunk_size: Optional[int] = None) -> StreamReader:
    return StreamReader(source, key, chunk_size)


def encrypt_stream(
    source: BinaryIO,
    sink: BinaryIO,
    key: bytes | AEAD,
    chunk_size: Optional[int] = None,
    buffer_size: int = COPY_BUFFER_SIZE,
) -> int:
    """Encrypt everything readable from ``source`` into ``sink``.

    The writer is finished on success. Returns the number of plaintext
    bytes consumed.
    """
    total = 0
    with StreamWriter(sink, key, chunk_size) as writer:
        while True:
            try:
                block = source.read(buffer_size)
            except Exception as exc:
                raise SourceReadError("plaintext source failed", writer.frames_written) from exc
            if block is None:
                raise SourceReadError("plaintext source has no data available", writer.frames_written)
            if not block:
                break
            total += writer.write(block)
    return total


def decrypt_stream(
    source: BinaryIO,
    sink: BinaryIO,
    key: bytes | AEAD,
    chunk_size: Optional[int] = None,
) -> int:
    """Decrypt a frame stream from ``source`` into ``sink``.

    Chunks are written as soon as they verify, so on failure ``sink`` may
    already hold the plaintext of earlier, authentic chunks. Returns the
    number of plaintext bytes produced.
    """
    total = 0
    with StreamReader(source, key, chunk_size) as reader:
        for chunk in reader:
            _write_all(sink, chunk, reader.frames_read - 1)
            total += len(chunk)
    return total
