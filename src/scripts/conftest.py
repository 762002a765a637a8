import pytest
from fastapi.testclient import TestClient

from repositories.memory_repo import InMemoryDocumentStore
from repositories.planning_repo import PlanningRepository
from scripts.create_sample_plan import seed_sample_data


@pytest.fixture
def repo():
    return PlanningRepository(InMemoryDocumentStore())


@pytest.fixture
def seeded_repo(repo):
    seed_sample_data(repo)
    return repo


@pytest.fixture
def client(seeded_repo):
    from apps.backend.main import app

    with TestClient(app) as c:
        app.state.repo = seeded_repo
        yield c
