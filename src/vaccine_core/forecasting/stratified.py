from typing import Dict, Iterator, List, Optional

from data_contracts.models import (
    CountryDemographics,
    DoseFigures,
    Program,
    StratifiedForecast,
    StratifiedStratum,
    StratifiedTargetGroup,
    StratifiedVaccine,
    Stratum,
    StratumProgramParameter,
    Vaccine,
)
from vaccine_core.doses import doses_with_wastage, lookup
from vaccine_core.forecasting.aggregation import fold_contributions
from vaccine_core.policy import forecast_years

KEYS = ["program_category", "vaccine_id", "stratum_id", "target_group_id", "year"]

StrataParameters = Dict[str, Dict[str, StratumProgramParameter]]

UNSET_PARAMETER = StratumProgramParameter()


class StratifiedCalculator:
    """
    Unstratified target populations split further by strata (urban,
    rural, refugee, ...). Each stratum carries a yearly share of the
    target group and its own coverage/wastage per program.

    Shares across strata may add up to more than 100%; that models
    overlapping or transient populations and is not corrected here.
    """

    def contributions(
        self,
        programs: List[Program],
        country: CountryDemographics,
        vaccines: List[Vaccine],
        strata: List[Stratum],
        strata_parameters: StrataParameters,
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

                    for stratum in strata:
                        params = lookup(strata_parameters, (stratum.id, program.id), UNSET_PARAMETER)

                        for year in years:
                            target_pop = population.get(year, 0) * (tg.percentage / 100)
                            share = stratum.percentages.get(year, 0) / 100
                            administered = target_pop * share * params.coverage_rate

                            yield {
                                "program_category": program.program_category.value,
                                "vaccine_id": pv.vaccine_id,
                                "stratum_id": stratum.id,
                                "target_group_id": tg.id,
                                "year": year,
                                "doses_administered": administered,
                                "doses_with_wastage": doses_with_wastage(administered, params.wastage_rate),
                            }

    def calculate(
        self,
        programs: List[Program],
        country: CountryDemographics,
        vaccines: List[Vaccine],
        strata: List[Stratum],
        strata_parameters: StrataParameters,
        years: List[int],
    ) -> Dict[str, Dict[str, StratifiedVaccine]]:
        folded = fold_contributions(
            self.contributions(programs, country, vaccines, strata, strata_parameters, years),
            keys=KEYS,
        )
        if folded.empty:
            return {}

        vaccine_names = {v.id: v.vaccine_name for v in vaccines}
        stratum_names = {s.id: s.name for s in strata}
        tg_names = {tg.id: tg.name for tg in country.target_groups}

        def years_of(rows) -> Dict[int, DoseFigures]:
            return {
                int(r.year): DoseFigures(
                    doses_administered=r.doses_administered,
                    doses_with_wastage=r.doses_with_wastage,
                )
                for r in rows.itertuples(index=False)
            }

        return {
            category: {
                vaccine_id: StratifiedVaccine(
                    vaccine_name=vaccine_names[vaccine_id],
                    strata={
                        stratum_id: StratifiedStratum(
                            stratum_name=stratum_names[stratum_id],
                            target_groups={
                                tg_id: StratifiedTargetGroup(
                                    target_group_name=tg_names[tg_id],
                                    years=years_of(tg_rows),
                                )
                                for tg_id, tg_rows in stratum_rows.groupby("target_group_id", sort=False)
                            },
                        )
                        for stratum_id, stratum_rows in vaccine_rows.groupby("stratum_id", sort=False)
                    },
                )
                for vaccine_id, vaccine_rows in category_rows.groupby("vaccine_id", sort=False)
            }
            for category, category_rows in folded.groupby("program_category", sort=False)
        }

    def run(
        self,
        programs: List[Program],
        country: CountryDemographics,
        vaccines: List[Vaccine],
        strata: List[Stratum],
        strata_parameters: StrataParameters,
        start_year: Optional[int] = None,
        horizon: int = 5,
        scenario_name: str = "",
    ) -> StratifiedForecast:
        years = forecast_years(start_year, horizon)
        return StratifiedForecast(
            country=country.country_id,
            scenario_name=scenario_name,
            forecast_years=years,
            strata_definitions=strata,
            strata_parameters=strata_parameters,
            results=self.calculate(programs, country, vaccines, strata, strata_parameters, years),
        )


def strata_totals(strata: List[Stratum], years: List[int]) -> Dict[int, float]:
    """Sum of stratum shares per year, in percent."""
    return {year: sum(s.percentages.get(year, 0) for s in strata) for year in years}
