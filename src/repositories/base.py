from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class PersistenceError(Exception):
    """
    A write or read against the document store failed.

    The unsaved document travels with the error so a computed result is
    never lost; saving again is left to the caller.
    """

    def __init__(self, collection: str, doc_id: Optional[str], document: Any = None, cause: Optional[Exception] = None):
        self.collection = collection
        self.doc_id = doc_id
        self.document = document
        self.cause = cause
        super().__init__(f"Could not persist {collection}/{doc_id or '<new>'}: {cause}")


class DocumentStore(ABC):
    """
    Opaque key-value document store: JSON-like dicts grouped by collection.

    Reads filter on top-level field equality. Without `order_by`, documents
    come back ordered by id.
    """

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def upsert(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = True) -> str:
        pass

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str:
        pass

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        pass
