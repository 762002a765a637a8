from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from data_contracts.models import (
    CombinedForecast,
    ConstrainedForecast,
    ConstrainedForecastItem,
    DoseFigures,
    Equipment,
    EquipmentForecast,
    FinancialPlan,
    FinancialPlanFunder,
    FinancialPlanInventoryInput,
    FundingSummary,
    ItemKind,
    ProcurementDataItem,
    Vaccine,
)
from vaccine_core.doses import lookup
from vaccine_core.equipment import EquipmentDerivationEngine, equipment_total
from vaccine_core.policy import PlanningPolicy, default_policy

NO_INPUTS = FinancialPlanInventoryInput()


# =========================
# USAGE PRECEDENCE
# =========================

class UsageSource(str, Enum):
    derived = "derived"
    manual = "manual"


@dataclass(frozen=True)
class Usage:
    source: UsageSource
    value: float


def resolve_usage(derived: Optional[float], manual: float) -> Usage:
    """A computed usage always wins; the analyst's figure is the fallback."""
    if derived is not None:
        return Usage(UsageSource.derived, float(derived))
    return Usage(UsageSource.manual, float(manual or 0.0))


def boy_inventory(inputs: FinancialPlanInventoryInput, usage: Usage) -> float:
    return inputs.on_hand + inputs.exp_shipments - usage.value


def funding_percentage(net_funding_ask: float, total_committed: float) -> float:
    if net_funding_ask <= 0 or total_committed <= 0:
        return 0.0
    return min(1.0, total_committed / net_funding_ask)


def default_funders(policy: Optional[PlanningPolicy] = None) -> List[FinancialPlanFunder]:
    policy = policy or default_policy()
    return [
        FinancialPlanFunder(
            id="default",
            name=policy.default_funder_name,
            allocation=policy.default_funder_allocation,
            committed=0.0,
        )
    ]


class FinancialPlanner:
    """
    Procurement budget for one planning year, net of the inventory
    expected at the beginning of that year, and the funding-constrained
    forecast that follows from the committed funds.
    """

    def __init__(
        self,
        vaccines: List[Vaccine],
        equipment: List[Equipment],
        policy: Optional[PlanningPolicy] = None,
    ):
        self.vaccines = vaccines
        self.equipment = equipment
        self.policy = policy or default_policy()
        self.engine = EquipmentDerivationEngine(vaccines, equipment)

    # ---------------------------------
    # Derived equipment quantities
    # ---------------------------------

    def calculated_equipment_usage(
        self,
        vaccine_inputs: Dict[str, FinancialPlanInventoryInput],
    ) -> Dict[str, float]:
        doses = [
            (v.id, DoseFigures(doses_administered=usage, doses_with_wastage=usage))
            for v in self.vaccines
            for usage in [vaccine_inputs.get(v.id, NO_INPUTS).exp_usage]
        ]
        return self.engine.derive(doses, round_vials=True, sparse=True)

    def vaccine_forecast(self, combined: Optional[CombinedForecast], vaccine_id: str, year: int) -> float:
        if combined is None:
            return 0.0
        return float(lookup(combined.results, (vaccine_id, year, "final_with_wastage")))

    def vaccine_buffer(self, vaccine: Vaccine, forecast: float) -> float:
        return (vaccine.buffer_stock or 0.0) * (forecast / self.policy.months_per_year)

    def equipment_buffer(
        self,
        combined: Optional[CombinedForecast],
        year: int,
        wastage_rates: Dict[str, float],
    ) -> Dict[str, float]:
        doses = []
        for v in self.vaccines:
            buffer_doses = self.vaccine_buffer(v, self.vaccine_forecast(combined, v.id, year))
            doses.append((
                v.id,
                DoseFigures(
                    doses_administered=buffer_doses * (1 - wastage_rates.get(v.id, 0.0)),
                    doses_with_wastage=buffer_doses,
                ),
            ))
        return self.engine.derive(doses, round_vials=True, sparse=True)

    def equipment_usage(
        self,
        equipment_id: str,
        equipment_inputs: Dict[str, FinancialPlanInventoryInput],
        calculated_usage: Dict[str, float],
    ) -> Usage:
        return resolve_usage(
            calculated_usage.get(equipment_id),
            equipment_inputs.get(equipment_id, NO_INPUTS).exp_usage,
        )

    # ---------------------------------
    # Procurement table
    # ---------------------------------

    def procurement_table(
        self,
        year: int,
        combined: Optional[CombinedForecast],
        equipment_forecast: Optional[EquipmentForecast],
        vaccine_inputs: Dict[str, FinancialPlanInventoryInput],
        equipment_inputs: Dict[str, FinancialPlanInventoryInput],
        calculated_usage: Dict[str, float],
        buffers: Dict[str, float],
        proposed: Dict[str, float],
    ) -> pd.DataFrame:
        rows = []

        for v in self.vaccines:
            inputs = vaccine_inputs.get(v.id, NO_INPUTS)
            forecast = self.vaccine_forecast(combined, v.id, year)
            rows.append({
                "id": v.id,
                "name": v.vaccine_name,
                "item_kind": ItemKind.vaccine,
                "unit_price": v.price_per_dose,
                "forecast": forecast,
                "buffer": self.vaccine_buffer(v, forecast),
                "boy_inventory": boy_inventory(inputs, resolve_usage(None, inputs.exp_usage)),
            })

        for e in self.equipment:
            inputs = equipment_inputs.get(e.id, NO_INPUTS)
            usage = self.equipment_usage(e.id, equipment_inputs, calculated_usage)
            rows.append({
                "id": e.id,
                "name": e.equipment_name,
                "item_kind": ItemKind.equipment,
                "unit_price": e.equipment_cost,
                "forecast": equipment_total(equipment_forecast, e.id, year),
                "buffer": buffers.get(e.id, 0.0),
                "boy_inventory": boy_inventory(inputs, usage),
            })

        df = pd.DataFrame(
            rows,
            columns=["id", "name", "item_kind", "unit_price", "forecast", "buffer", "boy_inventory"],
        )
        df["recommended_procurement"] = np.maximum(0.0, df["forecast"] + df["buffer"] - df["boy_inventory"])
        df["cost_of_recommended"] = df["recommended_procurement"] * df["unit_price"]
        df["proposed_value"] = df["id"].map(lambda item_id: float(proposed.get(item_id, 0.0) or 0.0))
        df["cost_of_proposed"] = df["proposed_value"] * df["unit_price"]
        return df

    # ---------------------------------
    # Budget & funding
    # ---------------------------------

    def total_inventory_value(self, table: pd.DataFrame) -> float:
        if table.empty:
            return 0.0
        return float((table["boy_inventory"] * table["unit_price"]).sum())

    def vaccine_costs(self, combined: Optional[CombinedForecast], year: int) -> float:
        return sum(self.vaccine_forecast(combined, v.id, year) * v.price_per_dose for v in self.vaccines)

    def equipment_costs(self, equipment_forecast: Optional[EquipmentForecast], year: int) -> float:
        return sum(equipment_total(equipment_forecast, e.id, year) * e.equipment_cost for e in self.equipment)

    def funding_summary(
        self,
        year: int,
        combined: Optional[CombinedForecast],
        equipment_forecast: Optional[EquipmentForecast],
        table: pd.DataFrame,
        funders: List[FinancialPlanFunder],
    ) -> FundingSummary:
        inventory_value = self.total_inventory_value(table)
        proposed_cost = float(table["cost_of_proposed"].sum()) if not table.empty else 0.0
        net_ask = proposed_cost - inventory_value
        total_committed = sum(f.committed or 0.0 for f in funders)

        return FundingSummary(
            vaccine_costs=self.vaccine_costs(combined, year),
            equipment_costs=self.equipment_costs(equipment_forecast, year),
            total_inventory_value=inventory_value,
            total_proposed_cost=proposed_cost,
            net_funding_ask=net_ask,
            total_allocation=sum(f.allocation or 0.0 for f in funders),
            total_committed=total_committed,
            funding_gap=net_ask - total_committed,
            funder_amounts={f.id: net_ask * (f.allocation / 100) for f in funders},
        )

    def constrained_forecast(
        self,
        year: int,
        combined: Optional[CombinedForecast],
        equipment_forecast: Optional[EquipmentForecast],
        summary: FundingSummary,
    ) -> ConstrainedForecast:
        if combined is None or equipment_forecast is None:
            return ConstrainedForecast()

        pct = funding_percentage(summary.net_funding_ask, summary.total_committed)
        if pct <= 0:
            return ConstrainedForecast()

        forecasts = []
        for v in self.vaccines:
            original = self.vaccine_forecast(combined, v.id, year)
            administered = float(lookup(combined.results, (v.id, year, "final_administered")))
            forecasts.append(ConstrainedForecastItem(
                id=v.id,
                name=v.vaccine_name,
                item_kind=ItemKind.vaccine,
                original=original,
                constrained=original * pct,
                constrained_admin=administered * pct,
            ))

        for e in self.equipment:
            original = equipment_total(equipment_forecast, e.id, year)
            forecasts.append(ConstrainedForecastItem(
                id=e.id,
                name=e.equipment_name,
                item_kind=ItemKind.equipment,
                original=original,
                constrained=original * pct,
                # equipment has no wastage
                constrained_admin=original * pct,
            ))

        return ConstrainedForecast(funding_percentage=pct, forecasts=forecasts)

    def plan(
        self,
        country: str,
        year: int,
        combined: Optional[CombinedForecast],
        equipment_forecast: Optional[EquipmentForecast] = None,
        vaccine_inputs: Optional[Dict[str, FinancialPlanInventoryInput]] = None,
        equipment_inputs: Optional[Dict[str, FinancialPlanInventoryInput]] = None,
        vaccine_wastage_rates: Optional[Dict[str, float]] = None,
        funders: Optional[List[FinancialPlanFunder]] = None,
        proposed_procurement: Optional[Dict[str, float]] = None,
        inventory_as_of_date: Optional[date] = None,
    ) -> FinancialPlan:
        vaccine_inputs = vaccine_inputs or {}
        equipment_inputs = equipment_inputs or {}
        wastage_rates = vaccine_wastage_rates or {}
        funders = funders or default_funders(self.policy)
        proposed = proposed_procurement or {}

        usage = self.calculated_equipment_usage(vaccine_inputs)
        buffers = self.equipment_buffer(combined, year, wastage_rates)
        table = self.procurement_table(
            year, combined, equipment_forecast,
            vaccine_inputs, equipment_inputs, usage, buffers, proposed,
        )
        summary = self.funding_summary(year, combined, equipment_forecast, table, funders)

        return FinancialPlan(
            id=f"{country}_{year}",
            country=country,
            year=year,
            inventory_as_of_date=inventory_as_of_date,
            vaccine_inputs=vaccine_inputs,
            equipment_inputs=equipment_inputs,
            vaccine_wastage_rates=wastage_rates,
            funders=funders,
            proposed_procurement=proposed,
            calculated_equipment_usage=usage,
            equipment_buffer=buffers,
            procurement_data=[ProcurementDataItem(**r) for r in table.to_dict(orient="records")],
            funding_summary=summary,
            constrained_forecast=self.constrained_forecast(year, combined, equipment_forecast, summary),
        )
