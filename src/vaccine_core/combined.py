"""
Weighted blend of the single-method forecasts.

For each vaccine and forecast year:

    final_administered = sum(method.doses_administered * weight)
    final_with_wastage = sum(method.doses_with_wastage * weight)

Weights are analyst supplied and are not normalised. A method with no
figures for a vaccine/year contributes nothing whatever its weight.
"""

from typing import Dict, Iterable, List, Optional

from pydantic import TypeAdapter

from data_contracts.models import (
    CombinedForecast,
    CombinedForecastInput,
    CombinedForecastResult,
    ConsumptionForecast,
    DoseFigures,
    ForecastMethod,
    ManualForecast,
    StratifiedForecast,
    UnstratifiedForecast,
    Vaccine,
)
from vaccine_core.doses import lookup
from vaccine_core.errors import ReentrancyError
from vaccine_core.forecasting.aggregation import fold_contributions

MethodFigures = Dict[str, Dict[int, DoseFigures]]
CombinedInputs = Dict[str, Dict[int, Dict[ForecastMethod, CombinedForecastInput]]]

INPUTS_ADAPTER = TypeAdapter(CombinedInputs)

SOURCE_METHODS = [
    ForecastMethod.unstratified,
    ForecastMethod.stratified,
    ForecastMethod.consumption_hc,
    ForecastMethod.consumption_sc,
    ForecastMethod.manual,
]

WEIGHTED_METHODS = SOURCE_METHODS + [ForecastMethod.previous_combined]


def _vaccine_year_figures(rows: Iterable[dict]) -> MethodFigures:
    folded = fold_contributions(rows, keys=["vaccine_id", "year"])
    figures: MethodFigures = {}
    for r in folded.itertuples(index=False):
        figures.setdefault(r.vaccine_id, {})[int(r.year)] = DoseFigures(
            doses_administered=r.doses_administered,
            doses_with_wastage=r.doses_with_wastage,
        )
    return figures


def unstratified_figures(snapshot: Optional[UnstratifiedForecast]) -> MethodFigures:
    if snapshot is None:
        return {}
    return _vaccine_year_figures(
        {"vaccine_id": vaccine_id, "year": year, **figures.model_dump(include={"doses_administered", "doses_with_wastage"})}
        for vaccine_id, result in snapshot.results.items()
        for tg in result.target_groups.values()
        for year, figures in tg.years.items()
    )


def stratified_figures(snapshot: Optional[StratifiedForecast]) -> MethodFigures:
    if snapshot is None:
        return {}
    return _vaccine_year_figures(
        {"vaccine_id": vaccine_id, "year": year, **figures.model_dump()}
        for by_vaccine in snapshot.results.values()
        for vaccine_id, result in by_vaccine.items()
        for stratum in result.strata.values()
        for tg in stratum.target_groups.values()
        for year, figures in tg.years.items()
    )


def consumption_figures(snapshot: Optional[ConsumptionForecast]) -> MethodFigures:
    if snapshot is None:
        return {}
    return {
        vaccine_id: {
            year: DoseFigures(
                doses_administered=y.doses_administered,
                doses_with_wastage=y.doses_with_wastage,
            )
            for year, y in result.years.items()
        }
        for vaccine_id, result in snapshot.results.items()
    }


def manual_figures(forecasts: Iterable[ManualForecast]) -> MethodFigures:
    return {f.vaccine_id: dict(f.years) for f in forecasts}


def combined_figures(snapshot: Optional[CombinedForecast]) -> MethodFigures:
    if snapshot is None:
        return {}
    return {
        vaccine_id: {
            year: DoseFigures(
                doses_administered=r.final_administered,
                doses_with_wastage=r.final_with_wastage,
            )
            for year, r in by_year.items()
        }
        for vaccine_id, by_year in snapshot.results.items()
    }


def collect_method_figures(
    unstratified: Optional[UnstratifiedForecast] = None,
    stratified: Optional[StratifiedForecast] = None,
    consumption_hc: Optional[ConsumptionForecast] = None,
    consumption_sc: Optional[ConsumptionForecast] = None,
    manual: Iterable[ManualForecast] = (),
    previous_combined: Optional[CombinedForecast] = None,
) -> Dict[ForecastMethod, MethodFigures]:
    return {
        ForecastMethod.unstratified: unstratified_figures(unstratified),
        ForecastMethod.stratified: stratified_figures(stratified),
        ForecastMethod.consumption_hc: consumption_figures(consumption_hc),
        ForecastMethod.consumption_sc: consumption_figures(consumption_sc),
        ForecastMethod.manual: manual_figures(manual),
        ForecastMethod.previous_combined: combined_figures(previous_combined),
    }


class CombinedForecastAggregator:

    def __init__(self, max_reentrancy_depth: int = 1):
        self.max_reentrancy_depth = max_reentrancy_depth

    @staticmethod
    def weight(inputs: CombinedInputs, vaccine_id: str, year: int, method: ForecastMethod) -> float:
        return float(lookup(inputs, (vaccine_id, year, method, "weight"), 0.0))

    def aggregate(
        self,
        vaccines: List[Vaccine],
        years: List[int],
        inputs: CombinedInputs,
        method_figures: Dict[ForecastMethod, MethodFigures],
    ) -> Dict[str, Dict[int, CombinedForecastResult]]:
        inputs = INPUTS_ADAPTER.validate_python(inputs)
        results: Dict[str, Dict[int, CombinedForecastResult]] = {}

        for vaccine in vaccines:
            by_year = {}
            for year in years:
                total_weight = 0.0
                final_administered = 0.0
                final_with_wastage = 0.0

                for method in WEIGHTED_METHODS:
                    weight = self.weight(inputs, vaccine.id, year, method)
                    total_weight += weight

                    figures = lookup(method_figures, (method, vaccine.id, year), None)
                    if figures is None:
                        continue
                    final_administered += figures.doses_administered * weight
                    final_with_wastage += figures.doses_with_wastage * weight

                by_year[year] = CombinedForecastResult(
                    final_administered=final_administered,
                    final_with_wastage=final_with_wastage,
                    total_weight=total_weight,
                )
            results[vaccine.id] = by_year

        return results

    def reentrancy_depth(
        self,
        inputs: CombinedInputs,
        previous: Optional[CombinedForecast],
    ) -> int:
        uses_previous = any(
            entry.weight != 0
            for by_year in inputs.values()
            for by_method in by_year.values()
            for method, entry in by_method.items()
            if method == ForecastMethod.previous_combined
        )
        if not uses_previous or previous is None:
            return 0

        depth = previous.reentrancy_depth + 1
        if depth > self.max_reentrancy_depth:
            raise ReentrancyError(depth, self.max_reentrancy_depth)
        return depth

    def run(
        self,
        country: str,
        vaccines: List[Vaccine],
        years: List[int],
        inputs: CombinedInputs,
        method_figures: Dict[ForecastMethod, MethodFigures],
        previous: Optional[CombinedForecast] = None,
        scenario_name: str = "",
    ) -> CombinedForecast:
        inputs = INPUTS_ADAPTER.validate_python(inputs)
        depth = self.reentrancy_depth(inputs, previous)
        return CombinedForecast(
            country=country,
            scenario_name=scenario_name,
            forecast_years=years,
            inputs=inputs,
            results=self.aggregate(vaccines, years, inputs, method_figures),
            reentrancy_depth=depth,
        )
