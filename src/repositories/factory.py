import os

from repositories.base import DocumentStore
from repositories.memory_repo import InMemoryDocumentStore
from repositories.planning_repo import PlanningRepository

DATA_BACKEND = os.getenv("DATA_BACKEND", "memory")
DUCKDB_PATH = os.getenv("DUCKDB_PATH", "data/planning.duckdb")


def get_document_store(backend: str = DATA_BACKEND) -> DocumentStore:
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "duckdb":
        from repositories.duckdb_repo import DuckDBDocumentStore
        return DuckDBDocumentStore(DUCKDB_PATH)
    raise NotImplementedError(f"Data backend '{backend}' not implemented")


def get_planning_repository(backend: str = DATA_BACKEND) -> PlanningRepository:
    return PlanningRepository(get_document_store(backend))
