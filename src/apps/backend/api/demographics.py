from typing import Optional

from fastapi import APIRouter

from apps.backend.dependencies import PolicyDep, RepoDep
from apps.backend.schemas.requests import ProjectionUpdate
from planning_agents.demographics_agent import DemographicsAgent

router = APIRouter()


@router.get("/{country_id}")
def get_country(country_id: str, repo: RepoDep, policy: PolicyDep):
    agent = DemographicsAgent(repo, policy)
    country = agent.load(country_id)
    return {
        "country": country,
        "target_group_populations": agent.projector.target_group_table(country),
    }


@router.post("/{country_id}/projections/seed")
def seed_projections(country_id: str, repo: RepoDep, policy: PolicyDep, start_year: Optional[int] = None):
    return DemographicsAgent(repo, policy).seed(country_id, start_year)


@router.put("/{country_id}/projections/{year}")
def set_projection(country_id: str, year: int, update: ProjectionUpdate, repo: RepoDep, policy: PolicyDep):
    return DemographicsAgent(repo, policy).set_projection(country_id, year, update.population)
