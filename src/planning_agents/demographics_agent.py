# src/planning_agents/demographics_agent.py

import logging
from typing import Optional

from data_contracts.models import CountryDemographics
from repositories.planning_repo import PlanningRepository
from vaccine_core.demographics import DemographicProjector
from vaccine_core.errors import MissingPrerequisiteError
from vaccine_core.policy import PlanningPolicy, default_policy

logger = logging.getLogger(__name__)


class DemographicsAgent:

    def __init__(self, repo: PlanningRepository, policy: Optional[PlanningPolicy] = None):
        self.repo = repo
        self.policy = policy or default_policy()
        self.projector = DemographicProjector(horizon_years=self.policy.horizon_years)

    def load(self, country_id: str) -> CountryDemographics:
        country = self.repo.get_country(country_id)
        if country is None:
            raise MissingPrerequisiteError("country demographics", stage="population projections")
        return country

    def seed(self, country_id: str, start_year: Optional[int] = None) -> CountryDemographics:
        country = self.load(country_id)
        seeded = self.projector.seed_projections(country, start_year)
        if seeded is country:
            return country

        logger.info("Seeded %d projections for country=%s", len(seeded.projections), country_id)
        return self.repo.save_country(seeded)

    def set_projection(self, country_id: str, year: int, population: int) -> CountryDemographics:
        country = self.projector.set_projection(self.load(country_id), year, population)
        return self.repo.save_country(country)
