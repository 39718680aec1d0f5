"""Content hashing for lifted expression trees.

Fingerprints let callers compare trees produced by separate conversions
(or separate contexts, where node identity does not carry over) without
walking both trees side by side.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Union


def compute_content_hash(
    content: Union[bytes, str, dict[str, Any], list[Any]],
    algorithm: str = "sha256",
) -> str:
    """Compute a content hash for arbitrary data.

    Args:
        content: Data to hash (bytes, string, or JSON-serializable dict/list)
        algorithm: Hash algorithm (sha256, sha1, md5)

    Returns:
        Hexadecimal hash string
    """
    hasher = hashlib.new(algorithm)

    if isinstance(content, bytes):
        hasher.update(content)
    elif isinstance(content, str):
        hasher.update(content.encode("utf-8"))
    elif isinstance(content, (dict, list)):
        # Deterministic JSON serialization
        serialized = json.dumps(content, sort_keys=True, separators=(",", ":"))
        hasher.update(serialized.encode("utf-8"))
    else:
        raise TypeError(f"Unsupported content type: {type(content)}")

    return hasher.hexdigest()


def combine_hashes(hashes: list[str], algorithm: str = "sha256") -> str:
    """Hash an ordered sequence of child hashes into one digest."""
    hasher = hashlib.new(algorithm)
    for h in hashes:
        hasher.update(h.encode("ascii"))
    return hasher.hexdigest()
