"""Content hashing utilities using stdlib hashlib (SHA-256)."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel


class Hasher:
    """SHA-256 hashing for strings and ledger records."""

    @staticmethod
    def hash_string(text: str) -> str:
        """Return the SHA-256 hex digest of *text*."""
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    @staticmethod
    def hash_record(record: BaseModel | dict[str, Any] | None) -> str:
        """Return a digest of *record*'s canonical JSON form.

        Keys are sorted so equal records always hash equally.  ``None``
        (an absent record) hashes to the empty string.
        """
        if record is None:
            return ""
        if isinstance(record, BaseModel):
            record = record.model_dump(mode="json", by_alias=True)
        canonical = json.dumps(record, sort_keys=True, separators=(",", ":"))
        return Hasher.hash_string(canonical)
