"""Unit tests for hashing and logging helpers."""

import pytest

from irlift.utils import combine_hashes, compute_content_hash, get_logger, setup_logging


class TestHashing:
    """Test content hashing."""

    def test_dict_key_order_irrelevant(self):
        """Test dict hashing is independent of key order."""
        assert compute_content_hash({"a": 1, "b": 2}) == compute_content_hash({"b": 2, "a": 1})

    def test_str_and_bytes_agree(self):
        """Test strings hash as their UTF-8 bytes."""
        assert compute_content_hash("bvadd") == compute_content_hash(b"bvadd")

    def test_unsupported_type(self):
        """Test unsupported content types are rejected."""
        with pytest.raises(TypeError):
            compute_content_hash(42)

    def test_combine_is_ordered(self):
        """Test combined hashes depend on child order."""
        h1 = compute_content_hash("a")
        h2 = compute_content_hash("b")

        assert combine_hashes([h1, h2]) != combine_hashes([h2, h1])


class TestLogging:
    """Test logging setup."""

    def test_log_file(self, tmp_path):
        """Test log records reach the configured file."""
        log_file = tmp_path / "logs" / "irlift.log"
        setup_logging(level="DEBUG", log_file=log_file)

        get_logger("test").info("lifted function f")

        setup_logging(level="WARNING")
        assert "lifted function f" in log_file.read_text()
