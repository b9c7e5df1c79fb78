"""
Exceptions for the chunkcrypt codecs
Everything derives from ChunkCryptError so callers have one general error catcher
"""


class ChunkCryptError(Exception):
    # general container for errors
    pass


class InvalidKeyError(ChunkCryptError):
    # raised when key material cannot build the AEAD cipher
    pass


class RandomSourceExhaustedError(ChunkCryptError):
    # raised when the OS CSPRNG cannot supply a nonce; there is no fallback
    pass


class MalformedInputError(ChunkCryptError):
    # raised when input is shorter than the smallest valid unit
    pass


class AuthenticationFailureError(ChunkCryptError):
    # raised on tag mismatch (tampering, corruption or wrong key)
    pass


class TruncatedFrameError(MalformedInputError, AuthenticationFailureError):
    # raised when a stream ends mid-frame, or its short final frame does not verify
    pass


class DestinationTooSmallError(ChunkCryptError):
    # raised when the caller's buffer cannot hold a decrypted chunk
    pass


class StreamClosedError(ChunkCryptError):
    # raised when a finished or failed stream is used again
    pass


class StreamIOError(ChunkCryptError):
    """Underlying sink/source failure, tagged with the frame that was in flight."""

    def __init__(self, message: str, frame_index: int):
        super().__init__(f"{message} (frame {frame_index})")
        self.frame_index = frame_index


class SinkWriteError(StreamIOError):
    # raised when the sink fails or accepts only part of a frame
    pass


class SourceReadError(StreamIOError):
    # raised when reading from the source fails
    pass
