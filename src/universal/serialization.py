"""Canonical byte form and content hashes.

Two holders serializing the same tree get the same bytes: keys are sorted,
separators are fixed, decimals are written as strings and dates as ISO text.
Loading the bytes back yields a tree that elects identically to the original.
"""

import hashlib
import json
from typing import Any

from pydantic import TypeAdapter

from . import ast
from .fixings import Fixings

ARRANGEMENT = TypeAdapter(ast.Arrangement)


def _canonical(data: Any) -> bytes:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def to_bytes(tree: ast.Arrangement) -> bytes:
    return _canonical(ARRANGEMENT.dump_python(tree, mode="json"))


def from_bytes(data: bytes | str) -> ast.Arrangement:
    return ARRANGEMENT.validate_json(data)


def hash_bytes(data: bytes) -> str:
    """SHA-256 of canonical bytes, hex encoded."""
    return hashlib.sha256(data).hexdigest()


def content_hash(tree: ast.Arrangement) -> str:
    return hash_bytes(to_bytes(tree))


def fixings_to_bytes(fixings: Fixings) -> bytes:
    return _canonical(fixings.model_dump(mode="json"))


def fixings_from_bytes(data: bytes | str) -> Fixings:
    return Fixings.model_validate_json(data)
