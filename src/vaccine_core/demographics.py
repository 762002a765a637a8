from typing import Dict, List, Optional

from data_contracts.models import CountryDemographics, Projection, TargetGroup
from vaccine_core.policy import forecast_years


class DemographicProjector:
    """
    Seeds yearly population projections from a base population and
    growth rate, and splits them into target-group populations.

    Projections are generated once: as soon as a country has any,
    they belong to the analyst and are never recomputed.
    """

    def __init__(self, horizon_years: int = 5):
        self.horizon_years = horizon_years

    def project(
        self,
        base_population: int,
        annual_growth_rate: float,
        start_year: Optional[int] = None,
    ) -> List[Projection]:
        if base_population < 0:
            raise ValueError("base_population must be >= 0")

        projections = []
        current = float(base_population)
        for year in forecast_years(start_year, self.horizon_years):
            current = current * (1 + annual_growth_rate)
            projections.append(Projection(year=year, population=max(0, round(current))))
        return projections

    def seed_projections(
        self,
        country: CountryDemographics,
        start_year: Optional[int] = None,
    ) -> CountryDemographics:
        if country.projections or country.population <= 0:
            return country

        projections = self.project(country.population, country.annual_growth_rate, start_year)
        return country.model_copy(update={"projections": projections})

    def set_projection(self, country: CountryDemographics, year: int, population: int) -> CountryDemographics:
        if population < 0:
            raise ValueError("population must be >= 0")

        updated = [p for p in country.projections if p.year != year]
        updated.append(Projection(year=year, population=population))
        updated.sort(key=lambda p: p.year)
        return country.model_copy(update={"projections": updated})

    @staticmethod
    def population_for_year(country: CountryDemographics, year: int) -> Optional[int]:
        for p in country.projections:
            if p.year == year:
                return p.population
        return None

    @staticmethod
    def target_group_population(population: float, target_group: TargetGroup) -> float:
        return population * (target_group.percentage / 100)

    def target_group_table(self, country: CountryDemographics) -> Dict[str, Dict[int, float]]:
        """target_group_id -> year -> population"""
        return {
            tg.id: {
                p.year: self.target_group_population(p.population, tg)
                for p in country.projections
            }
            for tg in country.target_groups
        }
