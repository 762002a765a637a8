from fastapi import APIRouter, HTTPException

from apps.backend.dependencies import PolicyDep, RepoDep
from apps.backend.schemas.requests import FinancialPlanRequest
from planning_agents.financial_agent import FinancialPlanAgent
from planning_agents.validation_agent import ValidationAgent

router = APIRouter()


@router.post("/{country_id}/{year}")
def run_financial_plan(country_id: str, year: int, request: FinancialPlanRequest, repo: RepoDep, policy: PolicyDep):
    agent = FinancialPlanAgent(repo, policy)
    plan = agent.compute(
        country_id,
        year,
        vaccine_inputs=request.vaccine_inputs,
        equipment_inputs=request.equipment_inputs,
        vaccine_wastage_rates=request.vaccine_wastage_rates,
        funders=request.funders,
        proposed_procurement=request.proposed_procurement,
        inventory_as_of_date=request.inventory_as_of_date,
    )
    return {
        "plan": agent.save(plan),
        "warnings": ValidationAgent().check_financial_plan(plan),
    }


@router.get("/{country_id}/{year}")
def get_financial_plan(country_id: str, year: int, repo: RepoDep):
    plan = repo.get_financial_plan(country_id, year)
    if plan is None:
        raise HTTPException(status_code=404, detail=f"No financial plan saved for {country_id} {year}")
    return plan
