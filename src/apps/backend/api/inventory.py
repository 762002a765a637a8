from fastapi import APIRouter

from apps.backend.dependencies import PolicyDep, RepoDep
from apps.backend.schemas.requests import ShipmentsRequest
from planning_agents.inventory_agent import InventoryPlanAgent
from planning_agents.validation_agent import ValidationAgent

router = APIRouter()


@router.get("/{country_id}/{year}")
def list_schedules(country_id: str, year: int, repo: RepoDep, policy: PolicyDep):
    return InventoryPlanAgent(repo, policy).compute_all(country_id, year)


@router.get("/{country_id}/{year}/{item_id}")
def get_schedule(country_id: str, year: int, item_id: str, repo: RepoDep, policy: PolicyDep):
    return InventoryPlanAgent(repo, policy).compute(country_id, item_id, year)


@router.put("/{country_id}/{year}/{item_id}")
def save_shipments(
    country_id: str,
    year: int,
    item_id: str,
    request: ShipmentsRequest,
    repo: RepoDep,
    policy: PolicyDep,
):
    agent = InventoryPlanAgent(repo, policy)
    schedule = agent.compute(country_id, item_id, year, request.shipments)
    return {
        "schedule": schedule,
        "plan": agent.save(country_id, schedule),
        "warnings": ValidationAgent().check_schedule(schedule),
    }
