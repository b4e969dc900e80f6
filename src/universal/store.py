"""Content-addressed arrangement store and the fetch-by-hash request handler.

Naming a contract by its hash is enough to request it; there are no access
lists. Unknown hashes are answered with None rather than an error so that a
peer asking for several contracts still gets the ones that exist.
"""

import threading

from pydantic import BaseModel

from . import ast
from .logging import get_logger
from .serialization import from_bytes, hash_bytes, to_bytes

logger = get_logger(__name__)


class ArrangementStore:
    """In-memory store of canonical arrangement bytes keyed by SHA-256."""

    def __init__(self):
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, tree: ast.Arrangement) -> str:
        data = to_bytes(tree)
        key = hash_bytes(data)
        with self._lock:
            self._blobs.setdefault(key, data)
        return key

    def raw(self, key: str) -> bytes | None:
        with self._lock:
            return self._blobs.get(key)

    def get(self, key: str) -> ast.Arrangement | None:
        data = self.raw(key)
        return None if data is None else from_bytes(data)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)


class FetchRequest(BaseModel):
    hashes: list[str]
    session_id: int


class FetchResponse(BaseModel):
    session_id: int
    answers: list[bytes | None]


def handle_fetch(store: ArrangementStore, request: FetchRequest) -> FetchResponse:
    """Answer each requested hash with its canonical bytes, or None if unknown."""
    if not request.hashes:
        raise ValueError("fetch request must name at least one hash")

    answers: list[bytes | None] = []
    for key in request.hashes:
        data = store.raw(key)
        if data is None:
            logger.info("unknown_arrangement_requested", hash=key, session_id=request.session_id)
        answers.append(data)
    return FetchResponse(session_id=request.session_id, answers=answers)
