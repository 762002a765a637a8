from fastapi import APIRouter, HTTPException

from apps.backend.dependencies import RepoDep
from apps.backend.schemas.requests import EquipmentRequest
from planning_agents.equipment_agent import EquipmentForecastAgent
from vaccine_core.equipment import display_quantity

router = APIRouter()


@router.post("/{country_id}")
def run_equipment_forecast(country_id: str, request: EquipmentRequest, repo: RepoDep):
    agent = EquipmentForecastAgent(repo)
    forecast = agent.compute(country_id, request.scenario_name)
    return agent.save(forecast, request.new_scenario)


@router.get("/{country_id}")
def latest_equipment_forecast(country_id: str, repo: RepoDep):
    forecast = repo.latest_equipment_forecast(country_id)
    if forecast is None:
        raise HTTPException(status_code=404, detail=f"No equipment forecast saved for {country_id}")
    return forecast


@router.get("/{country_id}/totals")
def equipment_totals(country_id: str, repo: RepoDep):
    """Grand totals across programs, rounded up for display."""
    totals = EquipmentForecastAgent(repo).totals(country_id)
    return [
        {
            "equipment_id": item.equipment_id,
            "equipment_name": item.equipment_name,
            "yearly_quantities": {year: display_quantity(qty) for year, qty in item.yearly_quantities.items()},
        }
        for item in totals.values()
    ]
