# src/planning_agents/validation_agent.py

import logging
from typing import List

from data_contracts.models import (
    FinancialPlan,
    FinancialPlanFunder,
    InventorySchedule,
    PlanWarning,
    Stratum,
)
from vaccine_core.combined import INPUTS_ADAPTER, CombinedInputs
from vaccine_core.forecasting.stratified import strata_totals

logger = logging.getLogger(__name__)

TOLERANCE = 1e-6


class ValidationAgent:
    """
    Advisory checks on analyst inputs and plan outputs.
    Findings are returned and logged, never raised.
    """

    def _warn(self, warnings: List[PlanWarning], code: str, message: str, **context) -> None:
        logger.warning("%s: %s", code, message)
        warnings.append(PlanWarning(code=code, message=message, context=context))

    def check_weights(self, inputs: CombinedInputs) -> List[PlanWarning]:
        warnings: List[PlanWarning] = []
        inputs = INPUTS_ADAPTER.validate_python(inputs)
        for vaccine_id, by_year in inputs.items():
            for year, by_method in by_year.items():
                total = sum(entry.weight for entry in by_method.values())
                if abs(total - 1.0) > TOLERANCE:
                    self._warn(
                        warnings, "weights_not_100",
                        f"Weights for {vaccine_id} in {year} add up to {total * 100:.1f}%",
                        vaccine_id=vaccine_id, year=year, total_weight=total,
                    )
        return warnings

    def check_strata(self, strata: List[Stratum], years: List[int]) -> List[PlanWarning]:
        warnings: List[PlanWarning] = []
        for year, total in strata_totals(strata, years).items():
            if total > 100 + TOLERANCE:
                self._warn(
                    warnings, "strata_over_100",
                    f"Strata shares for {year} add up to {total:.1f}%",
                    year=year, total_percentage=total,
                )
        return warnings

    def check_funders(self, funders: List[FinancialPlanFunder]) -> List[PlanWarning]:
        warnings: List[PlanWarning] = []
        total = sum(f.allocation for f in funders)
        if abs(total - 100) > TOLERANCE:
            self._warn(
                warnings, "funder_allocation_not_100",
                f"Funder allocations add up to {total:.1f}%",
                total_allocation=total,
            )
        return warnings

    def check_financial_plan(self, plan: FinancialPlan) -> List[PlanWarning]:
        warnings = self.check_funders(plan.funders)
        for row in plan.procurement_data:
            if row.boy_inventory < 0:
                self._warn(
                    warnings, "negative_boy_inventory",
                    f"{row.name}: beginning-of-year inventory is {row.boy_inventory:.0f}",
                    item_id=row.id, boy_inventory=row.boy_inventory,
                )
        return warnings

    def check_schedule(self, schedule: InventorySchedule) -> List[PlanWarning]:
        warnings: List[PlanWarning] = []
        if schedule.over_budget:
            self._warn(
                warnings, "over_procurement_limit",
                f"{schedule.item_name}: planned shipments {schedule.total_planned_shipments:.0f} "
                f"exceed the procurement limit {schedule.procurement_limit:.0f}",
                item_id=schedule.item_id,
                total_planned_shipments=schedule.total_planned_shipments,
                procurement_limit=schedule.procurement_limit,
            )
        return warnings
