# src/planning_agents/inventory_agent.py

import logging
from typing import Dict, List, Optional

from data_contracts.models import (
    FinancialPlan,
    InventoryPlan,
    InventorySchedule,
    ItemKind,
)
from repositories.planning_repo import PlanningRepository
from vaccine_core.errors import MissingPrerequisiteError, NotFoundError
from vaccine_core.financial import NO_INPUTS, boy_inventory, resolve_usage
from vaccine_core.inventory.scheduler import InventoryScheduler, monthly_demand
from vaccine_core.policy import PlanningPolicy, default_policy

logger = logging.getLogger(__name__)


class InventoryPlanAgent:
    """
    Monthly shipment schedules for the planning year, driven by the
    funding-constrained forecast of the saved financial plan.
    """

    def __init__(self, repo: PlanningRepository, policy: Optional[PlanningPolicy] = None):
        self.repo = repo
        self.policy = policy or default_policy()
        self.scheduler = InventoryScheduler(self.policy)

    def _financial_plan(self, country_id: str, year: int) -> FinancialPlan:
        plan = self.repo.get_financial_plan(country_id, year)
        if plan is None:
            raise MissingPrerequisiteError(f"financial plan {year}", stage="inventory plan")
        return plan

    def compute_all(
        self,
        country_id: str,
        year: int,
        shipments: Optional[Dict[str, Dict[str, float]]] = None,
    ) -> List[InventorySchedule]:
        """
        One schedule per vaccine and equipment item. Shipments are looked up
        per item, falling back to the saved inventory plan.
        """
        plan = self._financial_plan(country_id, year)
        vaccines = self.repo.list_vaccines()
        equipment = self.repo.list_equipment()
        demand = monthly_demand(plan.constrained_forecast, vaccines, equipment, self.policy.months_per_year)
        zero = [0.0] * self.policy.months_per_year
        shipments = shipments or {}

        schedules = []
        for v in vaccines:
            inputs = plan.vaccine_inputs.get(v.id, NO_INPUTS)
            schedules.append(self.scheduler.schedule(
                item_id=v.id,
                item_name=v.vaccine_name,
                item_kind=ItemKind.vaccine,
                year=year,
                boy_inventory=boy_inventory(inputs, resolve_usage(None, inputs.exp_usage)),
                demand=demand.get(v.id, zero),
                min_mos=v.min_inventory,
                max_mos=v.max_inventory,
                shipments=self._shipments(country_id, year, v.id, shipments),
                procurement_limit=plan.proposed_procurement.get(v.id, 0.0),
            ))

        for e in equipment:
            inputs = plan.equipment_inputs.get(e.id, NO_INPUTS)
            usage = resolve_usage(plan.calculated_equipment_usage.get(e.id), inputs.exp_usage)
            schedules.append(self.scheduler.schedule(
                item_id=e.id,
                item_name=e.equipment_name,
                item_kind=ItemKind.equipment,
                year=year,
                boy_inventory=boy_inventory(inputs, usage),
                demand=demand.get(e.id, zero),
                shipments=self._shipments(country_id, year, e.id, shipments),
                procurement_limit=plan.proposed_procurement.get(e.id, 0.0),
            ))

        return schedules

    def compute(
        self,
        country_id: str,
        item_id: str,
        year: int,
        shipments: Optional[Dict[str, float]] = None,
    ) -> InventorySchedule:
        overrides = {item_id: shipments} if shipments is not None else None
        for schedule in self.compute_all(country_id, year, overrides):
            if schedule.item_id == item_id:
                return schedule
        raise NotFoundError("item", item_id)

    def _shipments(
        self, country_id: str, year: int, item_id: str, given: Dict[str, Dict[str, float]]
    ) -> Dict[str, float]:
        if item_id in given:
            return given[item_id]
        saved = self.repo.get_inventory_plan(country_id, year, item_id)
        return saved.shipments if saved else {}

    def save(self, country_id: str, schedule: InventorySchedule) -> InventoryPlan:
        plan = InventoryPlan(
            country=country_id,
            item_id=schedule.item_id,
            year=schedule.year,
            shipments={m.month_key: m.shipment for m in schedule.months if m.shipment_overridden},
            recommendation=self.scheduler.recommendation(schedule),
        )
        saved = self.repo.save_inventory_plan(plan)
        if schedule.over_budget:
            logger.warning(
                "Inventory plan %s: planned shipments %.0f exceed procurement limit %.0f",
                saved.id, schedule.total_planned_shipments, schedule.procurement_limit,
            )
        return saved
