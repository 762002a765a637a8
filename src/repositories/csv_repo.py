import io
import logging
from datetime import date
from typing import Dict, IO, List, Optional, Tuple, Union

import pandas as pd

from data_contracts.models import (
    DoseFigures,
    ManualForecast,
    MonthlyConsumption,
    Vaccine,
    VaccineConsumptionData,
)
from data_contracts.specs import CONSUMPTION_COLUMNS, MANUAL_FORECAST_COLUMNS
from data_contracts.validate import validate_df
from vaccine_core.forecasting.manual import ManualForecastMethod

logger = logging.getLogger(__name__)

CSVSource = Union[str, IO]

MONTH_FORMAT = "%Y-%m"


def past_months(reference: Optional[date] = None, count: int = 24) -> List[str]:
    """`count` month keys ending with the reference month, newest first."""
    reference = reference or date.today()
    end = pd.Period(reference.strftime(MONTH_FORMAT), freq="M")
    return [(end - i).strftime(MONTH_FORMAT) for i in range(count)]


def _read(source: CSVSource, dataset_name: str) -> pd.DataFrame:
    df = pd.read_csv(source, dtype=str, skip_blank_lines=True)
    df.columns = [c.strip() for c in df.columns]
    validate_df(df, dataset_name)
    return df.fillna("")


def _to_csv(df: pd.DataFrame) -> str:
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue()


class ConsumptionCSV:
    """Monthly consumption history, one row per vaccine and month."""

    COLUMNS = CONSUMPTION_COLUMNS

    def template(self, vaccines: List[Vaccine], reference: Optional[date] = None) -> str:
        c = self.COLUMNS
        rows = [
            {
                c["vaccine_id"]: v.id,
                c["vaccine_name"]: v.vaccine_name,
                c["month"]: month,
                c["consumption"]: "",
                c["reporting_rate"]: "",
            }
            for v in vaccines
            for month in past_months(reference)
        ]
        return _to_csv(pd.DataFrame(rows, columns=list(c.values())))

    def parse(
        self,
        source: CSVSource,
        existing: Optional[Dict[str, VaccineConsumptionData]] = None,
    ) -> Tuple[Dict[str, VaccineConsumptionData], int]:
        """
        Best-effort import: unparseable rows are skipped and counted.
        Imported vaccines replace their monthly history but keep the stored
        average wastage rate; other vaccines are left untouched.
        """
        existing = existing or {}
        c = self.COLUMNS
        df = _read(source, "consumption")

        imported: Dict[str, VaccineConsumptionData] = {}
        skipped = 0

        for i, row in enumerate(df.to_dict(orient="records"), start=2):
            vaccine_id = row[c["vaccine_id"]].strip()
            month = row[c["month"]].strip()
            try:
                if not vaccine_id or not month:
                    raise ValueError("missing vaccine id or month")
                month = pd.Period(month, freq="M").strftime(MONTH_FORMAT)
                consumption = float(row[c["consumption"]] or 0)
                reporting_rate = float(row[c["reporting_rate"]] or 0) / 100
            except ValueError as e:
                logger.warning("consumption CSV line %d skipped: %s", i, e)
                skipped += 1
                continue

            if vaccine_id not in imported:
                previous = existing.get(vaccine_id)
                imported[vaccine_id] = VaccineConsumptionData(
                    avg_wastage_rate=previous.avg_wastage_rate if previous else 0.0,
                )
            imported[vaccine_id].monthly_data[month] = MonthlyConsumption(
                consumption=consumption,
                reporting_rate=reporting_rate,
            )

        logger.info("consumption CSV: %d vaccines imported, %d rows skipped", len(imported), skipped)
        return {**existing, **imported}, skipped


class ManualForecastCSV:
    """Yearly manual figures, one row per vaccine and year."""

    COLUMNS = MANUAL_FORECAST_COLUMNS

    def __init__(self):
        self.method = ManualForecastMethod()

    def template(self, vaccines: List[Vaccine], years: List[int]) -> str:
        c = self.COLUMNS
        rows = [
            {
                c["vaccine_id"]: v.id,
                c["vaccine_name"]: v.vaccine_name,
                c["description"]: "",
                c["year"]: year,
                c["doses_administered"]: "",
                c["doses_with_wastage"]: "",
            }
            for v in vaccines
            for year in years
        ]
        return _to_csv(pd.DataFrame(rows, columns=list(c.values())))

    def parse(
        self,
        source: CSVSource,
        country: str,
        vaccines: List[Vaccine],
        existing: Optional[Dict[str, ManualForecast]] = None,
    ) -> Tuple[List[ManualForecast], int]:
        existing = existing or {}
        known = {v.id: v for v in vaccines}
        c = self.COLUMNS
        df = _read(source, "manual_forecast")

        years: Dict[str, Dict[int, DoseFigures]] = {}
        descriptions: Dict[str, str] = {}
        skipped = 0

        for i, row in enumerate(df.to_dict(orient="records"), start=2):
            vaccine_id = row[c["vaccine_id"]].strip()
            try:
                if vaccine_id not in known:
                    raise ValueError(f"unknown vaccine '{vaccine_id}'")
                year = int(row[c["year"]])
                figures = DoseFigures(
                    doses_administered=float(row[c["doses_administered"]] or 0),
                    doses_with_wastage=float(row[c["doses_with_wastage"]] or 0),
                )
                if figures.doses_administered < 0 or figures.doses_with_wastage < 0:
                    raise ValueError("negative doses")
            except ValueError as e:
                logger.warning("manual forecast CSV line %d skipped: %s", i, e)
                skipped += 1
                continue

            years.setdefault(vaccine_id, {})[year] = figures
            descriptions.setdefault(vaccine_id, row.get(c["description"], "").strip())

        forecasts = [
            self.method.build(
                country,
                known[vaccine_id],
                by_year,
                description=descriptions.get(vaccine_id, ""),
                existing=existing.get(vaccine_id),
            )
            for vaccine_id, by_year in years.items()
        ]
        logger.info("manual forecast CSV: %d vaccines imported, %d rows skipped", len(forecasts), skipped)
        return forecasts, skipped
