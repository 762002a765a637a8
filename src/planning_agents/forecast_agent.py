# src/planning_agents/forecast_agent.py

import logging
from typing import Dict, List, Optional

from data_contracts.models import (
    ConsumptionForecast,
    ConsumptionSource,
    CountryDemographics,
    DoseFigures,
    ManualForecast,
    StratifiedForecast,
    Stratum,
    StratumProgramParameter,
    UnstratifiedForecast,
    VaccineConsumptionData,
)
from repositories.csv_repo import ConsumptionCSV, CSVSource, ManualForecastCSV
from repositories.planning_repo import (
    CONSUMPTION_COLLECTIONS,
    FORECASTS_STRATIFIED,
    FORECASTS_UNSTRATIFIED,
    PlanningRepository,
)
from vaccine_core.errors import MissingPrerequisiteError, NotFoundError
from vaccine_core.forecasting.consumption import ConsumptionCalculator, apply_wastage_override
from vaccine_core.forecasting.manual import ManualForecastMethod
from vaccine_core.forecasting.stratified import StratifiedCalculator
from vaccine_core.forecasting.unstratified import UnstratifiedCalculator
from vaccine_core.policy import PlanningPolicy, default_policy

logger = logging.getLogger(__name__)


class ForecastAgent:
    """
    Runs the single-method forecasts for a country.

    Every compute_* call is pure: it reads the inputs it needs and returns a
    snapshot. Nothing is written until the matching save_* call.
    """

    def __init__(self, repo: PlanningRepository, policy: Optional[PlanningPolicy] = None):
        self.repo = repo
        self.policy = policy or default_policy()
        self.unstratified = UnstratifiedCalculator()
        self.stratified = StratifiedCalculator()
        self.consumption = ConsumptionCalculator()
        self.manual = ManualForecastMethod()

    def _country(self, country_id: str, stage: str) -> CountryDemographics:
        country = self.repo.get_country(country_id)
        if country is None:
            raise MissingPrerequisiteError("country demographics", stage=stage)
        return country

    # ---------------------------------
    # Demographic methods
    # ---------------------------------

    def compute_unstratified(
        self,
        country_id: str,
        start_year: Optional[int] = None,
        scenario_name: str = "",
    ) -> UnstratifiedForecast:
        country = self._country(country_id, "unstratified forecast")
        if not country.projections:
            raise MissingPrerequisiteError("population projections", stage="unstratified forecast")

        forecast = self.unstratified.run(
            self.repo.list_programs(country_id),
            country,
            self.repo.list_vaccines(),
            start_year=start_year,
            horizon=self.policy.horizon_years,
            scenario_name=scenario_name,
        )
        logger.info("Unstratified forecast for country=%s: %d vaccines", country_id, len(forecast.results))
        return forecast

    def save_unstratified(self, forecast: UnstratifiedForecast, new_scenario: bool = False) -> UnstratifiedForecast:
        return self.repo.save_snapshot(FORECASTS_UNSTRATIFIED, forecast, new_scenario)

    def compute_stratified(
        self,
        country_id: str,
        strata: List[Stratum],
        strata_parameters: Dict[str, Dict[str, StratumProgramParameter]],
        start_year: Optional[int] = None,
        scenario_name: str = "",
    ) -> StratifiedForecast:
        country = self._country(country_id, "stratified forecast")
        if not country.projections:
            raise MissingPrerequisiteError("population projections", stage="stratified forecast")

        forecast = self.stratified.run(
            self.repo.list_programs(country_id),
            country,
            self.repo.list_vaccines(),
            strata,
            strata_parameters,
            start_year=start_year,
            horizon=self.policy.horizon_years,
            scenario_name=scenario_name,
        )
        logger.info(
            "Stratified forecast for country=%s: %d categories, %d strata",
            country_id, len(forecast.results), len(strata),
        )
        return forecast

    def save_stratified(self, forecast: StratifiedForecast, new_scenario: bool = False) -> StratifiedForecast:
        return self.repo.save_snapshot(FORECASTS_STRATIFIED, forecast, new_scenario)

    # ---------------------------------
    # Consumption methods
    # ---------------------------------

    def compute_consumption(
        self,
        country_id: str,
        source: ConsumptionSource,
        historical_data: Dict[str, VaccineConsumptionData],
        start_year: Optional[int] = None,
        scenario_name: str = "",
    ) -> ConsumptionForecast:
        country = self._country(country_id, f"consumption forecast ({source.value})")
        forecast = self.consumption.run(
            historical_data,
            country,
            self.repo.list_vaccines(),
            source=source,
            start_year=start_year,
            horizon=self.policy.horizon_years,
            scenario_name=scenario_name,
        )
        logger.info(
            "Consumption forecast (%s) for country=%s: %d vaccines",
            source.value, country_id, len(forecast.results),
        )
        return forecast

    def save_consumption(self, forecast: ConsumptionForecast, new_scenario: bool = False) -> ConsumptionForecast:
        return self.repo.save_snapshot(CONSUMPTION_COLLECTIONS[forecast.source], forecast, new_scenario)

    def override_consumption_wastage(
        self,
        country_id: str,
        source: ConsumptionSource,
        vaccine_id: str,
        year: int,
        wastage_rate: float,
    ) -> ConsumptionForecast:
        forecast = self.repo.latest_consumption(country_id, source)
        if forecast is None:
            raise MissingPrerequisiteError(f"consumption forecast ({source.value})", stage="wastage override")
        return self.save_consumption(apply_wastage_override(forecast, vaccine_id, year, wastage_rate))

    def import_consumption_csv(self, country_id: str, source: ConsumptionSource, csv: CSVSource):
        """Parse a consumption CSV on top of the latest stored history (not saved)."""
        latest = self.repo.latest_consumption(country_id, source)
        existing = latest.historical_data if latest else {}
        return ConsumptionCSV().parse(csv, existing)

    # ---------------------------------
    # Manual method
    # ---------------------------------

    def save_manual(
        self,
        country_id: str,
        vaccine_id: str,
        years: Dict[int, DoseFigures],
        description: str = "",
    ) -> ManualForecast:
        vaccine = next((v for v in self.repo.list_vaccines() if v.id == vaccine_id), None)
        if vaccine is None:
            raise NotFoundError("vaccine", vaccine_id)

        forecast = self.manual.build(
            country_id,
            vaccine,
            years,
            description=description,
            existing=self.repo.get_manual_forecast(country_id, vaccine_id),
        )
        return self.repo.save_manual_forecast(forecast)

    def import_manual_csv(self, country_id: str, csv: CSVSource):
        existing = {f.vaccine_id: f for f in self.repo.list_manual_forecasts(country_id)}
        forecasts, skipped = ManualForecastCSV().parse(csv, country_id, self.repo.list_vaccines(), existing)
        return [self.repo.save_manual_forecast(f) for f in forecasts], skipped
