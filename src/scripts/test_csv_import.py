import io
from datetime import date

import pandas as pd
import pytest

from data_contracts.models import DoseFigures, ManualForecast, Vaccine, VaccineConsumptionData
from repositories.csv_repo import ConsumptionCSV, ManualForecastCSV, past_months

VACCINES = [
    Vaccine(id="bcg", vaccine_name="BCG"),
    Vaccine(id="mr", vaccine_name="Measles-Rubella"),
]


def test_past_months_newest_first():
    months = past_months(date(2026, 3, 15), count=4)
    assert months == ["2026-03", "2026-02", "2026-01", "2025-12"]


def test_consumption_template_has_a_row_per_vaccine_and_month():
    df = pd.read_csv(io.StringIO(ConsumptionCSV().template(VACCINES, reference=date(2026, 3, 1))))

    assert list(df.columns) == ["VaccineId", "VaccineName", "Month (YYYY-MM)", "Consumption", "ReportingRate(%)"]
    assert len(df) == 48
    assert df.iloc[0]["Month (YYYY-MM)"] == "2026-03"


def test_consumption_import_skips_bad_rows_and_keeps_wastage():
    csv = (
        "VaccineId,VaccineName,Month (YYYY-MM),Consumption,ReportingRate(%)\n"
        "bcg,BCG,2026-01,900,90\n"
        "bcg,BCG,2026-02,abc,90\n"
        "mr,MR,not-a-month,100,100\n"
        ",,2026-01,5,5\n"
    )
    existing = {
        "bcg": VaccineConsumptionData(avg_wastage_rate=0.3),
        "hpv": VaccineConsumptionData(avg_wastage_rate=0.1),
    }

    data, skipped = ConsumptionCSV().parse(io.StringIO(csv), existing=existing)

    assert skipped == 3
    assert data["bcg"].avg_wastage_rate == 0.3
    assert data["bcg"].monthly_data["2026-01"].consumption == 900
    assert data["bcg"].monthly_data["2026-01"].reporting_rate == pytest.approx(0.9)
    assert "hpv" in data
    assert "mr" not in data


def test_consumption_import_requires_columns():
    with pytest.raises(ValueError):
        ConsumptionCSV().parse(io.StringIO("VaccineId,Consumption\nbcg,10\n"))


def test_manual_template_has_a_row_per_vaccine_and_year():
    df = pd.read_csv(io.StringIO(ManualForecastCSV().template(VACCINES, [2027, 2028])))
    assert len(df) == 4
    assert set(df["Year"]) == {2027, 2028}


def test_manual_import_merges_into_existing_forecasts():
    csv = (
        "VaccineId,VaccineName,Description,Year,DosesAdministered,DosesWithWastage\n"
        "mr,MR,survey,2028,2000,2200\n"
        "mr,MR,,2029,-1,0\n"
        "yf,YF,,2028,10,10\n"
    )
    existing = {
        "mr": ManualForecast(
            id="ZM_mr",
            country="ZM",
            vaccine_id="mr",
            years={2027: DoseFigures(doses_administered=1000, doses_with_wastage=1100)},
        )
    }

    forecasts, skipped = ManualForecastCSV().parse(io.StringIO(csv), "ZM", VACCINES, existing=existing)

    assert skipped == 2
    assert len(forecasts) == 1
    mr = forecasts[0]
    assert mr.id == "ZM_mr"
    assert mr.description == "survey"
    assert set(mr.years) == {2027, 2028}
    assert mr.years[2028].doses_with_wastage == 2200
