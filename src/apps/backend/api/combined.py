from fastapi import APIRouter, HTTPException

from apps.backend.dependencies import PolicyDep, RepoDep
from apps.backend.schemas.requests import CombinedRequest
from planning_agents.combined_agent import CombinedForecastAgent
from planning_agents.validation_agent import ValidationAgent

router = APIRouter()


@router.post("/{country_id}")
def run_combined(country_id: str, request: CombinedRequest, repo: RepoDep, policy: PolicyDep):
    agent = CombinedForecastAgent(repo, policy)
    forecast = agent.compute(country_id, request.inputs, request.years, request.scenario_name)
    return {
        "forecast": agent.save(forecast, request.new_scenario),
        "warnings": ValidationAgent().check_weights(forecast.inputs),
    }


@router.get("/{country_id}")
def latest_combined(country_id: str, repo: RepoDep):
    forecast = repo.latest_combined(country_id)
    if forecast is None:
        raise HTTPException(status_code=404, detail=f"No combined forecast saved for {country_id}")
    return forecast
