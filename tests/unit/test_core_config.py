"""
Unit tests for configuration loading and logging setup.
"""

import logging
from unittest.mock import patch

import pytest

from chunkcrypt.core.config import (
    CHUNK_SIZE_ENV,
    DEFAULT_CHUNK_SIZE,
    LOG_LEVEL_ENV,
    Settings,
    load_settings,
    validate_chunk_size,
)
from chunkcrypt.core.logging_config import configure_logging


# ==============================================================================
# Tests: settings
# ==============================================================================

def test_defaults_when_environment_is_empty():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.chunk_size == DEFAULT_CHUNK_SIZE == 1024
    assert settings.log_level == "WARNING"


def test_values_from_environment():
    settings = load_settings({CHUNK_SIZE_ENV: "65536", LOG_LEVEL_ENV: "debug"})
    assert settings.chunk_size == 65536
    assert settings.log_level == "DEBUG"


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv(CHUNK_SIZE_ENV, "32")
    assert load_settings().chunk_size == 32


def test_empty_value_falls_back_to_default():
    assert load_settings({CHUNK_SIZE_ENV: ""}).chunk_size == DEFAULT_CHUNK_SIZE


@pytest.mark.parametrize("raw", ["abc", "1.5", "0", "-4"])
def test_invalid_chunk_size_in_environment(raw):
    with pytest.raises(ValueError):
        load_settings({CHUNK_SIZE_ENV: raw})


def test_validate_chunk_size():
    assert validate_chunk_size(None) == 1024
    assert validate_chunk_size(1) == 1
    with pytest.raises(ValueError, match="> 0"):
        validate_chunk_size(0)
    with pytest.raises(ValueError, match="integer"):
        validate_chunk_size(16.0)


# ==============================================================================
# Tests: logging
# ==============================================================================

def test_configure_logging_passes_level():
    with patch("chunkcrypt.core.logging_config.logging.basicConfig") as basic:
        configure_logging(logging.DEBUG)
    assert basic.call_args.kwargs["level"] == logging.DEBUG


def test_configure_logging_accepts_level_names():
    with patch("chunkcrypt.core.logging_config.logging.basicConfig") as basic:
        configure_logging("warning")
    assert basic.call_args.kwargs["level"] == logging.WARNING


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("chatty")
