"""
Equipment requirements derived from vaccine dose figures.

Pass 1, per vaccine:
    administration syringes += doses administered (one per dose)
    dilution syringes       += doses with wastage / doses per vial (one per vial)

Pass 2, once all syringes of the scope (program/year, plan, month) are known:
    safety boxes = total syringes / (disposal capacity x (1 + safety factor / 100))
"""

import math
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from data_contracts.models import (
    CombinedForecast,
    DoseFigures,
    Equipment,
    EquipmentForecast,
    EquipmentForecastItem,
    EquipmentForecastProgram,
    EquipmentType,
    Program,
    Vaccine,
)

VaccineDoses = Iterable[Tuple[str, DoseFigures]]


def display_quantity(quantity: float) -> int:
    """Equipment is only rounded (up) when shown."""
    return int(math.ceil(quantity - 1e-9)) if quantity > 0 else 0


class EquipmentDerivationEngine:

    def __init__(self, vaccines: List[Vaccine], equipment: List[Equipment]):
        self.vaccines = {v.id: v for v in vaccines}
        self.equipment = {e.id: e for e in equipment}
        self.safety_box = next(
            (e for e in equipment if e.equipment_type == EquipmentType.safety_box),
            None,
        )

    @property
    def box_divisor(self) -> float:
        capacity = self.safety_box.disposal_capacity or 1
        safety_factor = self.safety_box.safety_factor or 0
        return capacity * (1 + safety_factor / 100)

    def syringe_quantities(
        self,
        doses: VaccineDoses,
        round_vials: bool = False,
        sparse: bool = False,
    ) -> Dict[str, float]:
        quantities: Dict[str, float] = {}

        for vaccine_id, figures in doses:
            vaccine = self.vaccines.get(vaccine_id)
            if vaccine is None:
                continue
            if sparse and figures.doses_administered <= 0 and figures.doses_with_wastage <= 0:
                continue

            if vaccine.administration_syringe_id:
                eq_id = vaccine.administration_syringe_id
                quantities[eq_id] = quantities.get(eq_id, 0.0) + figures.doses_administered

            if vaccine.dilution_syringe_id and vaccine.doses_per_vial > 0:
                eq_id = vaccine.dilution_syringe_id
                vials = figures.doses_with_wastage / vaccine.doses_per_vial
                if round_vials:
                    vials = float(math.ceil(vials))
                quantities[eq_id] = quantities.get(eq_id, 0.0) + vials

        return quantities

    def safety_boxes(self, syringe_quantities: Dict[str, float]) -> Optional[float]:
        if self.safety_box is None:
            return None
        total_syringes = sum(
            qty for eq_id, qty in syringe_quantities.items()
            if eq_id != self.safety_box.id
        )
        return total_syringes / self.box_divisor

    def derive(
        self,
        doses: VaccineDoses,
        round_vials: bool = False,
        sparse: bool = False,
    ) -> Dict[str, float]:
        """
        Both passes for one scope. With `sparse`, vaccines without doses
        and a box count of zero leave no entry at all.
        """
        quantities = self.syringe_quantities(doses, round_vials=round_vials, sparse=sparse)
        boxes = self.safety_boxes(quantities)
        if boxes is not None and not (sparse and boxes <= 0):
            quantities[self.safety_box.id] = boxes
        return quantities

    # ---------------------------------
    # Forecast-level derivation
    # ---------------------------------

    def derive_program(
        self,
        program: Program,
        combined: CombinedForecast,
        years: List[int],
    ) -> EquipmentForecastProgram:
        yearly: Dict[str, Dict[int, float]] = {}

        for year in years:
            doses = [
                (
                    pv.vaccine_id,
                    DoseFigures(
                        doses_administered=result.final_administered,
                        doses_with_wastage=result.final_with_wastage,
                    ),
                )
                for pv in program.vaccines
                for result in [combined.results.get(pv.vaccine_id, {}).get(year)]
                if result is not None
            ]
            for eq_id, qty in self.derive(doses).items():
                yearly.setdefault(eq_id, {})[year] = qty

        # boxes are listed after the syringes they were derived from
        order = sorted(yearly, key=lambda eq_id: self.safety_box is not None and eq_id == self.safety_box.id)

        return EquipmentForecastProgram(
            program_id=program.id,
            program_name=program.program_name,
            program_category=program.program_category,
            equipment=[
                EquipmentForecastItem(
                    equipment_id=eq_id,
                    equipment_name=self.equipment[eq_id].equipment_name if eq_id in self.equipment else "Unknown",
                    yearly_quantities=yearly[eq_id],
                )
                for eq_id in order
            ],
        )

    def run(
        self,
        combined: CombinedForecast,
        programs: List[Program],
        scenario_name: str = "",
    ) -> EquipmentForecast:
        years = list(combined.forecast_years)
        return EquipmentForecast(
            country=combined.country,
            scenario_name=scenario_name or f"Equipment Forecast for {combined.scenario_name}".strip(),
            combined_forecast_id=combined.id,
            forecast_years=years,
            results=[self.derive_program(program, combined, years) for program in programs],
        )


def equipment_rows(forecast: EquipmentForecast) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "program_id": program.program_id,
                "equipment_id": item.equipment_id,
                "equipment_name": item.equipment_name,
                "year": year,
                "quantity": qty,
            }
            for program in forecast.results
            for item in program.equipment
            for year, qty in item.yearly_quantities.items()
        ],
        columns=["program_id", "equipment_id", "equipment_name", "year", "quantity"],
    )


def grand_totals(forecast: EquipmentForecast) -> Dict[str, EquipmentForecastItem]:
    """Same equipment item summed across programs, per year."""
    df = equipment_rows(forecast)
    if df.empty:
        return {}

    totals = df.groupby(["equipment_id", "year"], sort=False)["quantity"].sum()
    names = df.groupby("equipment_id", sort=False)["equipment_name"].first()

    return {
        eq_id: EquipmentForecastItem(
            equipment_id=eq_id,
            equipment_name=names[eq_id],
            yearly_quantities={int(year): float(qty) for (_, year), qty in totals.loc[[eq_id]].items()},
        )
        for eq_id in names.index
    }


def equipment_total(forecast: Optional[EquipmentForecast], equipment_id: str, year: int) -> float:
    if forecast is None:
        return 0.0
    return sum(
        item.yearly_quantities.get(year, 0.0)
        for program in forecast.results
        for item in program.equipment
        if item.equipment_id == equipment_id
    )
