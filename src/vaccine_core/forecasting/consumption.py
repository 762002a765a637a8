from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from data_contracts.models import (
    ConsumptionForecast,
    ConsumptionSource,
    ConsumptionVaccineResult,
    ConsumptionYear,
    CountryDemographics,
    Vaccine,
    VaccineConsumptionData,
)
from vaccine_core.doses import doses_with_wastage
from vaccine_core.policy import forecast_years


class ConsumptionCalculator:
    """
    Extrapolates reported consumption into annual demand.

    Monthly consumption is adjusted for reporting completeness
    (consumption / reporting_rate); months with no consumption or no
    reporting are left out of the average instead of counting as zero.
    The annualised base is the first forecast year, later years compound
    at the country growth rate.
    """

    @staticmethod
    def monthly_frame(data: VaccineConsumptionData) -> pd.DataFrame:
        df = pd.DataFrame(
            [
                {"month": key, "consumption": m.consumption, "reporting_rate": m.reporting_rate}
                for key, m in data.monthly_data.items()
            ],
            columns=["month", "consumption", "reporting_rate"],
        )
        return df.sort_values("month").reset_index(drop=True)

    def average_monthly_consumption(self, data: VaccineConsumptionData) -> Optional[float]:
        df = self.monthly_frame(data)
        valid = df[(df["consumption"] > 0) & (df["reporting_rate"] > 0)]
        if valid.empty:
            return None
        return float((valid["consumption"] / valid["reporting_rate"]).mean())

    def calculate(
        self,
        historical_data: Dict[str, VaccineConsumptionData],
        vaccines: List[Vaccine],
        growth_rate: float,
        years: List[int],
    ) -> Dict[str, ConsumptionVaccineResult]:
        results = {}

        for vaccine in vaccines:
            data = historical_data.get(vaccine.id)
            if data is None:
                continue

            avg_monthly = self.average_monthly_consumption(data)
            if avg_monthly is None:
                continue

            growth = np.power(1 + growth_rate, np.arange(len(years)))
            annual = avg_monthly * 12 * growth

            results[vaccine.id] = ConsumptionVaccineResult(
                vaccine_name=vaccine.vaccine_name,
                years={
                    year: ConsumptionYear(
                        doses_administered=float(administered),
                        wastage_rate=data.avg_wastage_rate,
                        doses_with_wastage=doses_with_wastage(float(administered), data.avg_wastage_rate),
                    )
                    for year, administered in zip(years, annual)
                },
            )

        return results

    def run(
        self,
        historical_data: Dict[str, VaccineConsumptionData],
        country: CountryDemographics,
        vaccines: List[Vaccine],
        source: ConsumptionSource = ConsumptionSource.health_center,
        start_year: Optional[int] = None,
        horizon: int = 5,
        scenario_name: str = "",
    ) -> ConsumptionForecast:
        years = forecast_years(start_year, horizon)
        return ConsumptionForecast(
            country=country.country_id,
            scenario_name=scenario_name,
            source=source,
            forecast_years=years,
            historical_data=historical_data,
            results=self.calculate(historical_data, vaccines, country.annual_growth_rate, years),
        )


def apply_wastage_override(
    forecast: ConsumptionForecast,
    vaccine_id: str,
    year: int,
    wastage_rate: float,
) -> ConsumptionForecast:
    """Analyst edit of one year's wastage rate after the forecast has run."""
    vaccine_result = forecast.results.get(vaccine_id)
    if vaccine_result is None or year not in vaccine_result.years:
        raise ValueError(f"No consumption result for vaccine={vaccine_id} year={year}")

    current = vaccine_result.years[year]
    updated_year = current.model_copy(update={
        "wastage_rate": wastage_rate,
        "doses_with_wastage": doses_with_wastage(current.doses_administered, wastage_rate),
    })
    updated_vaccine = vaccine_result.model_copy(update={
        "years": {**vaccine_result.years, year: updated_year},
    })
    return forecast.model_copy(update={
        "results": {**forecast.results, vaccine_id: updated_vaccine},
    })
