# src/planning_agents/equipment_agent.py

import logging
from typing import Dict, Optional

from data_contracts.models import EquipmentForecast, EquipmentForecastItem
from repositories.planning_repo import FORECASTS_EQUIPMENT, PlanningRepository
from vaccine_core.equipment import EquipmentDerivationEngine, grand_totals
from vaccine_core.errors import MissingPrerequisiteError

logger = logging.getLogger(__name__)


class EquipmentForecastAgent:

    def __init__(self, repo: PlanningRepository):
        self.repo = repo

    def compute(self, country_id: str, scenario_name: str = "") -> EquipmentForecast:
        combined = self.repo.latest_combined(country_id)
        if combined is None:
            raise MissingPrerequisiteError("combined forecast", stage="equipment forecast")

        engine = EquipmentDerivationEngine(self.repo.list_vaccines(), self.repo.list_equipment())
        if engine.safety_box is None:
            logger.warning("No safety box in equipment master data, boxes are not derived")

        forecast = engine.run(combined, self.repo.list_programs(country_id), scenario_name)
        logger.info(
            "Equipment forecast for country=%s: %d programs from combined=%s",
            country_id, len(forecast.results), combined.id,
        )
        return forecast

    def save(self, forecast: EquipmentForecast, new_scenario: bool = False) -> EquipmentForecast:
        return self.repo.save_snapshot(FORECASTS_EQUIPMENT, forecast, new_scenario)

    def totals(self, country_id: str) -> Dict[str, EquipmentForecastItem]:
        forecast = self.repo.latest_equipment_forecast(country_id)
        if forecast is None:
            raise MissingPrerequisiteError("equipment forecast", stage="equipment totals")
        return grand_totals(forecast)
