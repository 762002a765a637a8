from typing import Dict, Optional

from data_contracts.models import DoseFigures, ManualForecast, Vaccine


class ManualForecastMethod:
    """
    Externally supplied yearly figures. No arithmetic, only shaping so the
    combined aggregator can weight them like any computed method.
    """

    def build(
        self,
        country: str,
        vaccine: Vaccine,
        years: Dict[int, DoseFigures],
        description: str = "",
        existing: Optional[ManualForecast] = None,
    ) -> ManualForecast:
        for year, figures in years.items():
            if figures.doses_administered < 0 or figures.doses_with_wastage < 0:
                raise ValueError(f"Negative manual forecast for {vaccine.id} in {year}")

        merged_years = dict(existing.years) if existing else {}
        merged_years.update(years)

        return ManualForecast(
            id=existing.id if existing else None,
            country=country,
            vaccine_id=vaccine.id,
            vaccine_name=vaccine.vaccine_name,
            description=description or (existing.description if existing else ""),
            years=merged_years,
        )
