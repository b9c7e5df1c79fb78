"""
Unit tests for the file helpers in chunkcrypt.security.files.
"""

import os
import stat

import pytest

from chunkcrypt.core.config import CHUNK_SIZE_ENV
from chunkcrypt.core.exceptions import AuthenticationFailureError, InvalidKeyError, TruncatedFrameError
from chunkcrypt.security.files import decrypt_file_stream, encrypt_file_stream


@pytest.fixture
def key():
    return os.urandom(32)


@pytest.fixture
def plain_file(tmp_path):
    path = tmp_path / "input.bin"
    path.write_bytes(os.urandom(250_000))
    return path


def test_encrypt_decrypt_roundtrip(tmp_path, key, plain_file):
    enc_file = tmp_path / "input.bin.enc"
    dec_file = tmp_path / "input.dec"

    assert encrypt_file_stream(plain_file, enc_file, key) == 250_000
    assert decrypt_file_stream(enc_file, dec_file, key) == 250_000
    assert dec_file.read_bytes() == plain_file.read_bytes()


def test_default_chunk_size_in_file_layout(tmp_path, key):
    in_file = tmp_path / "in.bin"
    in_file.write_bytes(b"x" * 2048)
    enc_file = tmp_path / "in.enc"
    encrypt_file_stream(str(in_file), str(enc_file), key)
    assert enc_file.stat().st_size == 2048 + 2 * 28


def test_chunk_size_from_environment(tmp_path, key, plain_file, monkeypatch):
    monkeypatch.setenv(CHUNK_SIZE_ENV, "4096")
    enc_file = tmp_path / "env.enc"
    dec_file = tmp_path / "env.dec"
    encrypt_file_stream(plain_file, enc_file, key)
    # 250_000 / 4096 -> 62 frames
    assert enc_file.stat().st_size == 250_000 + 62 * 28
    decrypt_file_stream(enc_file, dec_file, key)
    assert dec_file.read_bytes() == plain_file.read_bytes()

    # an explicit chunk size that disagrees with the writer must not decode
    with pytest.raises(AuthenticationFailureError):
        decrypt_file_stream(enc_file, tmp_path / "mismatch.dec", key, chunk_size=1024)


def test_empty_file(tmp_path, key):
    in_file = tmp_path / "empty"
    in_file.write_bytes(b"")
    enc_file = tmp_path / "empty.enc"
    dec_file = tmp_path / "empty.dec"
    encrypt_file_stream(in_file, enc_file, key)
    assert enc_file.read_bytes() == b""
    assert decrypt_file_stream(enc_file, dec_file, key) == 0
    assert dec_file.read_bytes() == b""


def test_encrypted_file_differs_from_plain(tmp_path, key, plain_file):
    enc_file = tmp_path / "input.enc"
    encrypt_file_stream(plain_file, enc_file, key)
    assert plain_file.read_bytes()[:1024] not in enc_file.read_bytes()


def test_failed_decrypt_leaves_no_output(tmp_path, key, plain_file):
    enc_file = tmp_path / "input.enc"
    dec_file = tmp_path / "input.dec"
    encrypt_file_stream(plain_file, enc_file, key)

    # tamper: flip a byte near the end so earlier chunks still verify
    content = bytearray(enc_file.read_bytes())
    content[-40] ^= 0x01
    enc_file.write_bytes(bytes(content))

    with pytest.raises(AuthenticationFailureError):
        decrypt_file_stream(enc_file, dec_file, key)
    assert not dec_file.exists()
    assert not list(tmp_path.glob("*.part"))


def test_failed_decrypt_keeps_existing_output(tmp_path, key, plain_file):
    enc_file = tmp_path / "input.enc"
    dec_file = tmp_path / "input.dec"
    dec_file.write_bytes(b"previous contents")
    encrypt_file_stream(plain_file, enc_file, key)

    with open(enc_file, "r+b") as f:
        f.seek(0, os.SEEK_END)
        f.truncate(f.tell() - 10)

    with pytest.raises(TruncatedFrameError):
        decrypt_file_stream(enc_file, dec_file, key)
    assert dec_file.read_bytes() == b"previous contents"


def test_wrong_key(tmp_path, key, plain_file):
    enc_file = tmp_path / "input.enc"
    encrypt_file_stream(plain_file, enc_file, key)
    with pytest.raises(AuthenticationFailureError):
        decrypt_file_stream(enc_file, tmp_path / "out", os.urandom(32))


def test_invalid_key_before_touching_files(tmp_path):
    with pytest.raises(InvalidKeyError):
        encrypt_file_stream(tmp_path / "missing", tmp_path / "out", b"bad")
    assert not (tmp_path / "out").exists()


def test_missing_input_cleans_up_temp_file(tmp_path, key):
    with pytest.raises(FileNotFoundError):
        decrypt_file_stream(tmp_path / "missing.enc", tmp_path / "out", key)
    assert list(tmp_path.iterdir()) == []


@pytest.mark.skipif(os.name != "posix", reason="permission bits are POSIX-only")
def test_decrypted_file_mode_follows_umask(tmp_path, key, plain_file):
    enc_file = tmp_path / "input.enc"
    dec_file = tmp_path / "input.dec"
    old_mask = os.umask(0o022)
    try:
        encrypt_file_stream(plain_file, enc_file, key)
        decrypt_file_stream(enc_file, dec_file, key)
    finally:
        os.umask(old_mask)
    assert stat.S_IMODE(dec_file.stat().st_mode) == 0o644
    assert stat.S_IMODE(dec_file.stat().st_mode) == stat.S_IMODE(enc_file.stat().st_mode)
