"""Content hashing for job opening documents.

The content hash is the link between a stored JSON document and the vector
records derived from it: chunk ids are ``<hash>-<index>`` and every vector's
metadata carries ``source_hash``.  It must therefore be stable across
processes and key ordering, which is why it is computed over canonical JSON.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any


def canonical_json(payload: Mapping[str, Any]) -> str:
    """Serialize *payload* with sorted keys and no insignificant whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def content_hash(payload: Mapping[str, Any]) -> str:
    """Return the SHA-256 hex digest of the canonical JSON form of *payload*."""
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
