"""JSON serialization for snapshot artifacts.

Two forms are used:
- ``snapshot_dumps``: the on-disk form (2-space indent, UTF-8, trailing
  newline, keys in the order the pipeline built them).
- ``canonical_dumps``: sorted keys and compact separators, only used to
  compute the content digest of a snapshot.
"""

import hashlib
import json
from typing import Any, Iterable, Tuple


def canonical_dumps(obj: Any) -> str:
    """
    Canonical JSON serialization for byte-stable digests.

    Rules:
    - UTF-8 encoding
    - Sorted keys
    - Stable separators (",", ":")
    - List ordering is preserved (lists must already be ordered)

    Args:
        obj: Python object to serialize

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )


def snapshot_dumps(obj: Any) -> str:
    """Serialize one artifact the way it is written to disk."""
    return json.dumps(obj, indent=2, ensure_ascii=False) + "\n"


def snapshot_digest(documents: Iterable[Tuple[str, Any]]) -> str:
    """SHA-256 over (relative path, canonical document) pairs in path order.

    Timestamps must be excluded by the caller for the digest to be
    stable across runs.
    """
    hasher = hashlib.sha256()
    for relative_path, document in sorted(documents, key=lambda item: item[0]):
        hasher.update(relative_path.encode("utf-8"))
        hasher.update(b"\x00")
        hasher.update(canonical_dumps(document).encode("utf-8"))
        hasher.update(b"\x00")
    return hasher.hexdigest()
