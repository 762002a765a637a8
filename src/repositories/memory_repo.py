import copy
import threading
import uuid
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from repositories.base import DocumentStore


def _matches(doc: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    return all(doc.get(field) == value for field, value in filters.items())


def _sort_key(value: Any) -> Tuple[int, Any, str]:
    # ISO text without a fraction does not sort by instant
    if isinstance(value, str) and value:
        try:
            ts = pd.Timestamp(value)
        except ValueError:
            ts = None
        if ts is not None and not pd.isna(ts):
            if ts.tzinfo is None:
                ts = ts.tz_localize("UTC")
            return (0, ts, value)
    return (1, "" if value is None else str(value), "")


class InMemoryDocumentStore(DocumentStore):
    """Process-local store; a lock serialises access, last write wins."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            docs = [
                copy.deepcopy(d)
                for d in self._collections.get(collection, {}).values()
                if _matches(d, filters or {})
            ]

        if order_by:
            docs.sort(key=lambda d: _sort_key(d.get(order_by)), reverse=descending)
        else:
            docs.sort(key=lambda d: d["id"])

        return docs[:limit] if limit is not None else docs

    def upsert(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = True) -> str:
        with self._lock:
            docs = self._collections.setdefault(collection, {})
            body = dict(docs[doc_id]) if merge and doc_id in docs else {}
            body.update(copy.deepcopy(data))
            body["id"] = doc_id
            docs[doc_id] = body
        return doc_id

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        return self.upsert(collection, uuid.uuid4().hex, data, merge=False)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._collections.get(collection, {}).pop(doc_id, None)
