import json
import logging
import re
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import duckdb

from repositories.base import DocumentStore, PersistenceError

logger = logging.getLogger(__name__)

FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _field(name: str) -> str:
    # field names end up inside a JSON path, never user values
    if not FIELD_NAME.match(name):
        raise ValueError(f"Invalid field name: {name!r}")
    return f"$.{name}"


class DuckDBDocumentStore(DocumentStore):
    """
    Documents as JSON text in a single DuckDB table
    One row = collection-document
    """

    def __init__(self, path: str = ":memory:"):
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        self.path = path
        self.con = duckdb.connect(path)
        self._lock = threading.Lock()
        self.con.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                collection VARCHAR NOT NULL,
                doc_id     VARCHAR NOT NULL,
                body       VARCHAR NOT NULL,
                PRIMARY KEY (collection, doc_id)
            )
            """
        )
        logger.info("DuckDB document store opened at %s", path)

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            with self._lock:
                row = self.con.execute(
                    "SELECT body FROM documents WHERE collection = ? AND doc_id = ?",
                    [collection, doc_id],
                ).fetchone()
        except duckdb.Error as e:
            raise PersistenceError(collection, doc_id, cause=e) from e
        return json.loads(row[0]) if row else None

    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        sql = "SELECT body FROM documents WHERE collection = ?"
        params: List[Any] = [collection]

        for name, value in (filters or {}).items():
            sql += f" AND json_extract_string(body, '{_field(name)}') = ?"
            params.append(str(value))

        if order_by:
            field = f"json_extract_string(body, '{_field(order_by)}')"
            direction = "DESC NULLS FIRST" if descending else "ASC NULLS LAST"
            # timestamps order by instant, anything else falls back to text
            sql += f" ORDER BY TRY_CAST({field} AS TIMESTAMP) {direction}, {field} {direction}"
        else:
            sql += " ORDER BY doc_id"

        if limit is not None:
            sql += f" LIMIT {int(limit)}"

        try:
            with self._lock:
                rows = self.con.execute(sql, params).fetchall()
        except duckdb.Error as e:
            raise PersistenceError(collection, None, cause=e) from e

        return [json.loads(r[0]) for r in rows]

    def upsert(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = True) -> str:
        try:
            with self._lock:
                body: Dict[str, Any] = {}
                if merge:
                    row = self.con.execute(
                        "SELECT body FROM documents WHERE collection = ? AND doc_id = ?",
                        [collection, doc_id],
                    ).fetchone()
                    if row:
                        body = json.loads(row[0])

                body.update(data)
                body["id"] = doc_id

                self.con.execute(
                    "INSERT OR REPLACE INTO documents VALUES (?, ?, ?)",
                    [collection, doc_id, json.dumps(body)],
                )
        except duckdb.Error as e:
            raise PersistenceError(collection, doc_id, document=data, cause=e) from e
        return doc_id

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        return self.upsert(collection, uuid.uuid4().hex, data, merge=False)

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            with self._lock:
                self.con.execute(
                    "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                    [collection, doc_id],
                )
        except duckdb.Error as e:
            raise PersistenceError(collection, doc_id, cause=e) from e

    def close(self) -> None:
        self.con.close()
