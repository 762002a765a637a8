# src/planning_agents/combined_agent.py

import logging
from typing import List, Optional

from data_contracts.models import CombinedForecast, ConsumptionSource, ForecastMethod
from repositories.planning_repo import FORECASTS_COMBINED, PlanningRepository
from vaccine_core.combined import (
    INPUTS_ADAPTER,
    CombinedForecastAggregator,
    CombinedInputs,
    collect_method_figures,
)
from vaccine_core.errors import MissingPrerequisiteError
from vaccine_core.policy import PlanningPolicy, default_policy, forecast_years

logger = logging.getLogger(__name__)


class CombinedForecastAgent:
    """
    Weighs the latest saved snapshot of every method into one forecast.
    The latest combined forecast itself is available as `previousCombined`.
    """

    def __init__(self, repo: PlanningRepository, policy: Optional[PlanningPolicy] = None):
        self.repo = repo
        self.policy = policy or default_policy()
        self.aggregator = CombinedForecastAggregator(self.policy.max_reentrancy_depth)

    def compute(
        self,
        country_id: str,
        inputs: CombinedInputs,
        years: Optional[List[int]] = None,
        scenario_name: str = "",
    ) -> CombinedForecast:
        inputs = INPUTS_ADAPTER.validate_python(inputs)

        snapshots = {
            "unstratified": self.repo.latest_unstratified(country_id),
            "stratified": self.repo.latest_stratified(country_id),
            "consumption_hc": self.repo.latest_consumption(country_id, ConsumptionSource.health_center),
            "consumption_sc": self.repo.latest_consumption(country_id, ConsumptionSource.supply_chain),
        }
        manual = self.repo.list_manual_forecasts(country_id)
        previous = self.repo.latest_combined(country_id)
        method_figures = collect_method_figures(**snapshots, manual=manual, previous_combined=previous)

        if not years:
            # the horizon the source methods actually ran over
            years = sorted({y for s in snapshots.values() if s is not None for y in s.forecast_years})
            years = years or forecast_years(horizon=self.policy.horizon_years)

        available = [m.value for m, figures in method_figures.items() if figures]
        sources = [m for m in available if m != ForecastMethod.previous_combined.value]
        if not sources:
            raise MissingPrerequisiteError("at least one single-method forecast", stage="combined forecast")

        forecast = self.aggregator.run(
            country_id,
            self.repo.list_vaccines(),
            years,
            inputs,
            method_figures,
            previous=previous,
            scenario_name=scenario_name,
        )
        logger.info(
            "Combined forecast for country=%s from %s (reentrancy depth %d)",
            country_id, ", ".join(available), forecast.reentrancy_depth,
        )
        return forecast

    def save(self, forecast: CombinedForecast, new_scenario: bool = False) -> CombinedForecast:
        return self.repo.save_snapshot(FORECASTS_COMBINED, forecast, new_scenario)
