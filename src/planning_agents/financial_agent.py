# src/planning_agents/financial_agent.py

import logging
from datetime import date
from typing import Dict, List, Optional

from data_contracts.models import FinancialPlan, FinancialPlanFunder, FinancialPlanInventoryInput
from repositories.planning_repo import PlanningRepository
from vaccine_core.errors import MissingPrerequisiteError
from vaccine_core.financial import FinancialPlanner
from vaccine_core.policy import PlanningPolicy, default_policy, planning_year

logger = logging.getLogger(__name__)


class FinancialPlanAgent:
    """
    Builds the financial plan of one planning year from the latest combined
    and equipment forecasts. Inputs that are not given are taken from the
    plan already saved for that year, if any.
    """

    def __init__(self, repo: PlanningRepository, policy: Optional[PlanningPolicy] = None):
        self.repo = repo
        self.policy = policy or default_policy()

    def compute(
        self,
        country_id: str,
        year: Optional[int] = None,
        vaccine_inputs: Optional[Dict[str, FinancialPlanInventoryInput]] = None,
        equipment_inputs: Optional[Dict[str, FinancialPlanInventoryInput]] = None,
        vaccine_wastage_rates: Optional[Dict[str, float]] = None,
        funders: Optional[List[FinancialPlanFunder]] = None,
        proposed_procurement: Optional[Dict[str, float]] = None,
        inventory_as_of_date: Optional[date] = None,
    ) -> FinancialPlan:
        year = year or planning_year()

        combined = self.repo.latest_combined(country_id)
        if combined is None:
            raise MissingPrerequisiteError("combined forecast", stage="financial plan")
        equipment_forecast = self.repo.latest_equipment_forecast(country_id)
        if equipment_forecast is None:
            raise MissingPrerequisiteError("equipment forecast", stage="financial plan")

        saved = self.repo.get_financial_plan(country_id, year)

        def pick(given, field):
            if given is not None:
                return given
            return getattr(saved, field) if saved is not None else None

        planner = FinancialPlanner(self.repo.list_vaccines(), self.repo.list_equipment(), self.policy)
        plan = planner.plan(
            country_id,
            year,
            combined,
            equipment_forecast,
            vaccine_inputs=pick(vaccine_inputs, "vaccine_inputs"),
            equipment_inputs=pick(equipment_inputs, "equipment_inputs"),
            vaccine_wastage_rates=pick(vaccine_wastage_rates, "vaccine_wastage_rates"),
            funders=pick(funders, "funders"),
            proposed_procurement=pick(proposed_procurement, "proposed_procurement"),
            inventory_as_of_date=pick(inventory_as_of_date, "inventory_as_of_date"),
        )
        logger.info(
            "Financial plan %s: net funding ask %.2f, funding %.1f%%",
            plan.id, plan.funding_summary.net_funding_ask,
            plan.constrained_forecast.funding_percentage * 100,
        )
        return plan

    def save(self, plan: FinancialPlan) -> FinancialPlan:
        return self.repo.save_financial_plan(plan)
