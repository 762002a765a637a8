# src/vaccine_core/inventory/scheduler.py

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from data_contracts.models import (
    ConstrainedForecast,
    DoseFigures,
    Equipment,
    InventoryMonth,
    InventorySchedule,
    ItemKind,
    Vaccine,
)
from vaccine_core.equipment import EquipmentDerivationEngine
from vaccine_core.policy import PlanningPolicy, default_policy

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def month_keys(year: int, months: int = 12) -> List[str]:
    return [month_key(year, m) for m in range(1, months + 1)]


def monthly_demand(
    constrained: ConstrainedForecast,
    vaccines: List[Vaccine],
    equipment: List[Equipment],
    months: int = 12,
) -> Dict[str, List[float]]:
    """
    Flat monthly demand for every item of the constrained forecast.

    Vaccines spread their constrained doses evenly over the year. Syringes and
    safety boxes are derived month by month from the constrained vaccine
    figures; other equipment has no monthly demand.
    """
    demand: Dict[str, List[float]] = {}
    vaccine_doses = []

    for item in constrained.forecasts:
        if item.item_kind != ItemKind.vaccine:
            continue
        demand[item.id] = [item.constrained / months] * months
        vaccine_doses.append((
            item.id,
            DoseFigures(
                doses_administered=item.constrained_admin / months,
                doses_with_wastage=item.constrained / months,
            ),
        ))

    # every month carries the same doses, so one derivation serves all twelve
    engine = EquipmentDerivationEngine(vaccines, equipment)
    for eq_id, qty in engine.derive(vaccine_doses).items():
        demand[eq_id] = [qty] * months

    return demand


class InventoryScheduler:
    """
    Month-by-month stock roll-forward for one item over the planning year.

    Per month:
      - projected end = beginning - demand
      - if projected end falls below min (demand x min MOS), order up to
        max (demand x max MOS), rounded up to whole units
      - a user shipment for the month replaces the recommendation
      - ending = beginning + shipment - demand, carried into next month
    """

    def __init__(self, policy: Optional[PlanningPolicy] = None):
        self.policy = policy or default_policy()

    @staticmethod
    def recommended_order(projected_end: float, min_level: float, max_level: float) -> float:
        if projected_end >= min_level:
            return 0.0
        return float(np.ceil(max(0.0, max_level - projected_end)))

    def simulate(
        self,
        year: int,
        boy_inventory: float,
        demand: Sequence[float],
        min_mos: float,
        max_mos: float,
        shipments: Optional[Dict[str, float]] = None,
    ) -> pd.DataFrame:
        months = self.policy.months_per_year
        if len(demand) != months:
            raise ValueError(f"demand must have {months} monthly values, got {len(demand)}")

        shipments = shipments or {}
        running = float(boy_inventory)
        rows = []

        for i in range(months):
            key = month_key(year, i + 1)
            d = float(demand[i])
            min_level = d * min_mos
            max_level = d * max_mos

            beginning = running
            projected_end = beginning - d
            recommended = self.recommended_order(projected_end, min_level, max_level)

            overridden = shipments.get(key) is not None
            shipment = float(shipments[key]) if overridden else recommended
            ending = beginning + shipment - d

            rows.append({
                "month_key": key,
                "month": MONTH_NAMES[i % 12],
                "beginning_inv": beginning,
                "demand": d,
                "min_level": min_level,
                "max_level": max_level,
                "projected_end_inv": projected_end,
                "recommended_order": recommended,
                "shipment": shipment,
                "shipment_overridden": overridden,
                "ending_inv": ending,
            })

            running = ending

        return pd.DataFrame(rows)

    def schedule(
        self,
        item_id: str,
        item_name: str,
        item_kind: ItemKind,
        year: int,
        boy_inventory: float,
        demand: Sequence[float],
        min_mos: Optional[float] = None,
        max_mos: Optional[float] = None,
        shipments: Optional[Dict[str, float]] = None,
        procurement_limit: float = 0.0,
    ) -> InventorySchedule:
        min_mos = min_mos or self.policy.default_min_mos
        max_mos = max_mos or self.policy.default_max_mos

        df = self.simulate(year, boy_inventory, demand, min_mos, max_mos, shipments)
        total_shipments = float(df["shipment"].sum())

        return InventorySchedule(
            item_id=item_id,
            item_name=item_name,
            item_kind=item_kind,
            year=year,
            boy_inventory=float(boy_inventory),
            min_inventory_mos=min_mos,
            max_inventory_mos=max_mos,
            procurement_limit=procurement_limit,
            total_planned_shipments=total_shipments,
            # advisory only, shipments are never clamped
            over_budget=procurement_limit > 0 and total_shipments > procurement_limit,
            months=[InventoryMonth(**r) for r in df.to_dict(orient="records")],
        )

    @staticmethod
    def recommendation(schedule: InventorySchedule) -> Dict[str, float]:
        return {m.month_key: m.recommended_order for m in schedule.months if m.recommended_order > 0}
