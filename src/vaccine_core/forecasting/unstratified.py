from typing import Dict, Iterator, List, Optional

from data_contracts.models import (
    CountryDemographics,
    Program,
    UnstratifiedForecast,
    UnstratifiedTargetGroup,
    UnstratifiedVaccineResult,
    UnstratifiedYear,
    Vaccine,
)
from vaccine_core.doses import doses_with_wastage
from vaccine_core.forecasting.aggregation import fold_contributions
from vaccine_core.policy import forecast_years

KEYS = ["vaccine_id", "target_group_id", "year"]


class UnstratifiedCalculator:
    """
    Population x coverage for every program -> vaccine -> dose -> year.

    Doses from several programs or dose numbers that hit the same
    (vaccine, target group, year) add up in one bucket.
    """

    def contributions(
        self,
        programs: List[Program],
        country: CountryDemographics,
        vaccines: List[Vaccine],
        years: List[int],
    ) -> Iterator[dict]:
        vaccine_ids = {v.id for v in vaccines}
        target_groups = {tg.id: tg for tg in country.target_groups}
        population = {p.year: p.population for p in country.projections}

        for program in programs:
            for pv in program.vaccines:
                if pv.vaccine_id not in vaccine_ids:
                    continue

                for _, assignment in sorted(pv.dose_assignments.items()):
                    tg = target_groups.get(assignment.target_group_id)
                    if tg is None:
                        continue

                    for year in years:
                        if year not in population:
                            continue

                        target_pop = population[year] * (tg.percentage / 100)
                        administered = target_pop * assignment.coverage_rate

                        yield {
                            "vaccine_id": pv.vaccine_id,
                            "target_group_id": tg.id,
                            "year": year,
                            "doses_administered": administered,
                            "doses_with_wastage": doses_with_wastage(administered, assignment.wastage_rate),
                            "coverage_rate": assignment.coverage_rate,
                            "wastage_rate": assignment.wastage_rate,
                        }

    def calculate(
        self,
        programs: List[Program],
        country: CountryDemographics,
        vaccines: List[Vaccine],
        years: List[int],
    ) -> Dict[str, UnstratifiedVaccineResult]:
        folded = fold_contributions(
            self.contributions(programs, country, vaccines, years),
            keys=KEYS,
            first_cols=("coverage_rate", "wastage_rate"),
        )
        if folded.empty:
            return {}

        names = {v.id: v.vaccine_name for v in vaccines}
        tg_names = {tg.id: tg.name for tg in country.target_groups}

        return {
            vaccine_id: UnstratifiedVaccineResult(
                vaccine_name=names[vaccine_id],
                target_groups={
                    tg_id: UnstratifiedTargetGroup(
                        target_group_id=tg_id,
                        target_group_name=tg_names[tg_id],
                        years={
                            int(r.year): UnstratifiedYear(
                                coverage_rate=r.coverage_rate,
                                wastage_rate=r.wastage_rate,
                                doses_administered=r.doses_administered,
                                doses_with_wastage=r.doses_with_wastage,
                            )
                            for r in tg_rows.itertuples(index=False)
                        },
                    )
                    for tg_id, tg_rows in vaccine_rows.groupby("target_group_id", sort=False)
                },
            )
            for vaccine_id, vaccine_rows in folded.groupby("vaccine_id", sort=False)
        }

    def run(
        self,
        programs: List[Program],
        country: CountryDemographics,
        vaccines: List[Vaccine],
        start_year: Optional[int] = None,
        horizon: int = 5,
        scenario_name: str = "",
    ) -> UnstratifiedForecast:
        years = forecast_years(start_year, horizon)
        return UnstratifiedForecast(
            country=country.country_id,
            scenario_name=scenario_name,
            forecast_years=years,
            results=self.calculate(programs, country, vaccines, years),
        )
