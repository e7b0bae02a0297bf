"""Deterministic fingerprints for secret snapshots."""
from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping


class InvalidInputError(ValueError):
    pass


def canonical_json(data: Mapping[str, Any]) -> str:
    """
    Serialize a snapshot so that key order never affects the output.

    Keys are sorted at every nesting level. NaN and Infinity are rejected
    because they have no stable JSON token.

    Raises:
        InvalidInputError: data is None or holds a value JSON can't express
    """
    if data is None:
        raise InvalidInputError("vault data cannot be None")

    try:
        return json.dumps(
            data,
            sort_keys=True,
            ensure_ascii=True,
            separators=(",", ":"),
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"vault data is not serializable: {e}") from e


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def calculate_hash(data: Mapping[str, Any]) -> str:
    """SHA-256 of the canonical serialization, as 64 lowercase hex chars."""
    return sha256_text(canonical_json(data))
