# src/apps/backend/api/forecast.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response

from apps.backend.dependencies import PolicyDep, RepoDep
from apps.backend.schemas.requests import (
    ConsumptionRequest,
    ManualForecastRequest,
    SnapshotRequest,
    StratifiedRequest,
    WastageOverride,
)
from data_contracts.models import ConsumptionSource
from planning_agents.forecast_agent import ForecastAgent
from planning_agents.validation_agent import ValidationAgent
from repositories.csv_repo import ConsumptionCSV, ManualForecastCSV
from vaccine_core.policy import forecast_years

router = APIRouter()


def _csv(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _not_found(what: str, country_id: str):
    raise HTTPException(status_code=404, detail=f"No {what} saved for {country_id}")


# --------------------------------------------------
# Templates
# --------------------------------------------------

@router.get("/templates/consumption")
def consumption_template(repo: RepoDep, reference: Optional[date] = None):
    return _csv(ConsumptionCSV().template(repo.list_vaccines(), reference), "consumption_template.csv")


@router.get("/templates/manual")
def manual_template(repo: RepoDep, policy: PolicyDep, start_year: Optional[int] = None):
    years = forecast_years(start_year, policy.horizon_years)
    return _csv(ManualForecastCSV().template(repo.list_vaccines(), years), "manual_forecast_template.csv")


# --------------------------------------------------
# Unstratified / stratified
# --------------------------------------------------

@router.post("/{country_id}/unstratified")
def run_unstratified(country_id: str, request: SnapshotRequest, repo: RepoDep, policy: PolicyDep):
    agent = ForecastAgent(repo, policy)
    forecast = agent.compute_unstratified(country_id, request.start_year, request.scenario_name)
    return agent.save_unstratified(forecast, request.new_scenario)


@router.get("/{country_id}/unstratified")
def latest_unstratified(country_id: str, repo: RepoDep):
    return repo.latest_unstratified(country_id) or _not_found("unstratified forecast", country_id)


@router.post("/{country_id}/stratified")
def run_stratified(country_id: str, request: StratifiedRequest, repo: RepoDep, policy: PolicyDep):
    agent = ForecastAgent(repo, policy)
    forecast = agent.compute_stratified(
        country_id,
        request.strata,
        request.strata_parameters,
        request.start_year,
        request.scenario_name,
    )
    warnings = ValidationAgent().check_strata(request.strata, forecast.forecast_years)
    return {
        "forecast": agent.save_stratified(forecast, request.new_scenario),
        "warnings": warnings,
    }


@router.get("/{country_id}/stratified")
def latest_stratified(country_id: str, repo: RepoDep):
    return repo.latest_stratified(country_id) or _not_found("stratified forecast", country_id)


# --------------------------------------------------
# Consumption (health center / supply chain)
# --------------------------------------------------

@router.post("/{country_id}/consumption/{source}")
def run_consumption(
    country_id: str,
    source: ConsumptionSource,
    request: ConsumptionRequest,
    repo: RepoDep,
    policy: PolicyDep,
):
    agent = ForecastAgent(repo, policy)
    forecast = agent.compute_consumption(
        country_id,
        source,
        request.historical_data,
        request.start_year,
        request.scenario_name,
    )
    return agent.save_consumption(forecast, request.new_scenario)


@router.get("/{country_id}/consumption/{source}")
def latest_consumption(country_id: str, source: ConsumptionSource, repo: RepoDep):
    return repo.latest_consumption(country_id, source) or _not_found(f"consumption forecast ({source.value})", country_id)


@router.put("/{country_id}/consumption/{source}/wastage")
def override_wastage(
    country_id: str,
    source: ConsumptionSource,
    override: WastageOverride,
    repo: RepoDep,
    policy: PolicyDep,
):
    return ForecastAgent(repo, policy).override_consumption_wastage(
        country_id, source, override.vaccine_id, override.year, override.wastage_rate,
    )


@router.post("/{country_id}/consumption/{source}/import")
def import_consumption(
    country_id: str,
    source: ConsumptionSource,
    repo: RepoDep,
    policy: PolicyDep,
    file: UploadFile = File(...),
):
    """Parsed history for review; run the forecast to keep it."""
    historical_data, skipped = ForecastAgent(repo, policy).import_consumption_csv(country_id, source, file.file)
    return {"historical_data": historical_data, "skipped_rows": skipped}


# --------------------------------------------------
# Manual
# --------------------------------------------------

@router.get("/{country_id}/manual")
def list_manual(country_id: str, repo: RepoDep):
    return repo.list_manual_forecasts(country_id)


@router.put("/{country_id}/manual/{vaccine_id}")
def save_manual(country_id: str, vaccine_id: str, request: ManualForecastRequest, repo: RepoDep, policy: PolicyDep):
    return ForecastAgent(repo, policy).save_manual(country_id, vaccine_id, request.years, request.description)


@router.post("/{country_id}/manual/import")
def import_manual(country_id: str, repo: RepoDep, policy: PolicyDep, file: UploadFile = File(...)):
    forecasts, skipped = ForecastAgent(repo, policy).import_manual_csv(country_id, file.file)
    return {"forecasts": forecasts, "skipped_rows": skipped}
