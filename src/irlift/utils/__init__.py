"""Utility functions shared across IRLIFT."""

from irlift.utils.logging import setup_logging, get_logger
from irlift.utils.hashing import compute_content_hash, combine_hashes

__all__ = [
    "setup_logging",
    "get_logger",
    "compute_content_hash",
    "combine_hashes",
]
