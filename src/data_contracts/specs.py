from typing import Dict, List

# Column headers as they appear in the downloadable CSV templates.
CONSUMPTION_COLUMNS = {
    "vaccine_id": "VaccineId",
    "vaccine_name": "VaccineName",
    "month": "Month (YYYY-MM)",
    "consumption": "Consumption",
    "reporting_rate": "ReportingRate(%)",
}

MANUAL_FORECAST_COLUMNS = {
    "vaccine_id": "VaccineId",
    "vaccine_name": "VaccineName",
    "description": "Description",
    "year": "Year",
    "doses_administered": "DosesAdministered",
    "doses_with_wastage": "DosesWithWastage",
}

DATASET_SPECS: Dict[str, List[str]] = {

    "consumption": [
        CONSUMPTION_COLUMNS["vaccine_id"],
        CONSUMPTION_COLUMNS["month"],
        CONSUMPTION_COLUMNS["consumption"],
        CONSUMPTION_COLUMNS["reporting_rate"],
    ],

    "manual_forecast": [
        MANUAL_FORECAST_COLUMNS["vaccine_id"],
        MANUAL_FORECAST_COLUMNS["year"],
        MANUAL_FORECAST_COLUMNS["doses_administered"],
        MANUAL_FORECAST_COLUMNS["doses_with_wastage"],
    ],
}
