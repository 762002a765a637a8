import pytest

from data_contracts.models import (
    ConsumptionSource,
    CountryDemographics,
    DoseAssignment,
    DoseFigures,
    ManualForecast,
    MonthlyConsumption,
    Program,
    ProgramCategory,
    ProgramVaccine,
    Projection,
    Stratum,
    StratumProgramParameter,
    TargetGroup,
    Vaccine,
    VaccineConsumptionData,
)
from vaccine_core.forecasting.consumption import ConsumptionCalculator, apply_wastage_override
from vaccine_core.forecasting.manual import ManualForecastMethod
from vaccine_core.forecasting.stratified import StratifiedCalculator, strata_totals
from vaccine_core.forecasting.unstratified import UnstratifiedCalculator

VACCINES = [Vaccine(id="mr", vaccine_name="Measles-Rubella", doses_per_vial=10)]

COUNTRY = CountryDemographics(
    country_id="ZM",
    population=1_000_000,
    annual_growth_rate=0.1,
    projections=[Projection(year=2027, population=1_000_000)],
    target_groups=[TargetGroup(id="infants", name="Infants", percentage=4)],
)


def _program(program_id="routine", doses=None):
    doses = doses or {
        1: DoseAssignment(target_group_id="infants", coverage_rate=0.9, wastage_rate=0.1),
        2: DoseAssignment(target_group_id="infants", coverage_rate=0.8, wastage_rate=0.1),
    }
    return Program(
        id=program_id,
        country="ZM",
        program_category=ProgramCategory.routine,
        program_name=program_id,
        vaccines=[ProgramVaccine(vaccine_id="mr", dose_assignments=doses)],
    )


# -----------------------------
# Unstratified
# -----------------------------

def test_unstratified_doses_add_up_per_target_group_and_year():
    forecast = UnstratifiedCalculator().run([_program()], COUNTRY, VACCINES, start_year=2027, horizon=2)

    year = forecast.results["mr"].target_groups["infants"].years[2027]
    assert year.doses_administered == pytest.approx(40_000 * 1.7)
    assert year.doses_with_wastage == pytest.approx(40_000 * 1.7 / 0.9)
    # first contributing assignment is kept for display
    assert year.coverage_rate == 0.9


def test_unstratified_years_without_projection_are_absent():
    forecast = UnstratifiedCalculator().run([_program()], COUNTRY, VACCINES, start_year=2027, horizon=2)

    assert forecast.forecast_years == [2027, 2028]
    assert 2028 not in forecast.results["mr"].target_groups["infants"].years


def test_unstratified_programs_contribute_to_same_bucket():
    single = {1: DoseAssignment(target_group_id="infants", coverage_rate=0.5, wastage_rate=0.0)}
    programs = [_program("a", single), _program("b", single)]

    forecast = UnstratifiedCalculator().run(programs, COUNTRY, VACCINES, start_year=2027, horizon=1)

    assert forecast.results["mr"].target_groups["infants"].years[2027].doses_administered == pytest.approx(40_000)


def test_unstratified_ignores_unknown_target_groups():
    doses = {1: DoseAssignment(target_group_id="nobody", coverage_rate=1.0)}
    forecast = UnstratifiedCalculator().run([_program(doses=doses)], COUNTRY, VACCINES, start_year=2027, horizon=1)
    assert forecast.results == {}


# -----------------------------
# Stratified
# -----------------------------

STRATA = [
    Stratum(id="urban", name="Urban", percentages={2027: 60}),
    Stratum(id="refugee", name="Refugee", percentages={2027: 50}),
]


def test_stratified_splits_target_population_by_stratum():
    params = {"urban": {"routine": StratumProgramParameter(coverage_rate=0.9, wastage_rate=0.1)}}
    single = {1: DoseAssignment(target_group_id="infants")}

    forecast = StratifiedCalculator().run(
        [_program(doses=single)], COUNTRY, VACCINES, STRATA, params, start_year=2027, horizon=1,
    )

    strata = forecast.results["Routine"]["mr"].strata
    urban = strata["urban"].target_groups["infants"].years[2027]
    assert urban.doses_administered == pytest.approx(40_000 * 0.6 * 0.9)
    assert urban.doses_with_wastage == pytest.approx(40_000 * 0.6 * 0.9 / 0.9)

    # no parameters for refugee x routine: touched, but zero
    refugee = strata["refugee"].target_groups["infants"].years[2027]
    assert refugee.doses_administered == 0


def test_strata_may_exceed_100_percent():
    assert strata_totals(STRATA, [2027, 2028]) == {2027: 110, 2028: 0}


def test_both_methods_skip_vaccines_missing_from_master_data():
    program = _program()
    program = program.model_copy(update={
        "vaccines": program.vaccines + [
            ProgramVaccine(
                vaccine_id="yf",
                dose_assignments={1: DoseAssignment(target_group_id="infants", coverage_rate=1.0)},
            ),
        ],
    })
    params = {"urban": {"routine": StratumProgramParameter(coverage_rate=1.0)}}

    stratified = StratifiedCalculator().run([program], COUNTRY, VACCINES, STRATA, params, start_year=2027, horizon=1)
    unstratified = UnstratifiedCalculator().run([program], COUNTRY, VACCINES, start_year=2027, horizon=1)

    assert list(stratified.results["Routine"]) == ["mr"]
    assert list(unstratified.results) == ["mr"]


# -----------------------------
# Consumption
# -----------------------------

def _history(**months):
    return VaccineConsumptionData(
        avg_wastage_rate=0.2,
        monthly_data={k: MonthlyConsumption(consumption=c, reporting_rate=r) for k, (c, r) in months.items()},
    )


def test_consumption_average_skips_empty_months():
    data = _history(**{"2026-01": (900, 0.9), "2026-02": (1800, 0.9), "2026-03": (0, 0.9), "2026-04": (500, 0)})
    assert ConsumptionCalculator().average_monthly_consumption(data) == pytest.approx(1500)


def test_consumption_extrapolates_and_compounds():
    historical = {"mr": _history(**{"2026-01": (900, 0.9)})}

    forecast = ConsumptionCalculator().run(
        historical, COUNTRY, VACCINES, source=ConsumptionSource.supply_chain, start_year=2027, horizon=3,
    )

    years = forecast.results["mr"].years
    assert years[2027].doses_administered == pytest.approx(12_000)
    assert years[2028].doses_administered == pytest.approx(13_200)
    assert years[2029].doses_administered == pytest.approx(14_520)
    assert years[2027].doses_with_wastage == pytest.approx(15_000)
    assert forecast.source == ConsumptionSource.supply_chain


def test_consumption_without_valid_months_has_no_result():
    historical = {"mr": _history(**{"2026-01": (0, 0)})}
    forecast = ConsumptionCalculator().run(historical, COUNTRY, VACCINES, start_year=2027)
    assert forecast.results == {}


def test_wastage_override_recomputes_one_year():
    historical = {"mr": _history(**{"2026-01": (900, 0.9)})}
    forecast = ConsumptionCalculator().run(historical, COUNTRY, VACCINES, start_year=2027, horizon=2)

    updated = apply_wastage_override(forecast, "mr", 2028, 0.5)

    assert updated.results["mr"].years[2028].doses_with_wastage == pytest.approx(26_400)
    assert updated.results["mr"].years[2027].doses_with_wastage == pytest.approx(15_000)

    with pytest.raises(ValueError):
        apply_wastage_override(forecast, "mr", 2040, 0.5)


# -----------------------------
# Manual
# -----------------------------

def test_manual_forecast_merges_years_into_existing():
    existing = ManualForecast(
        id="ZM_mr",
        country="ZM",
        vaccine_id="mr",
        description="ministry estimate",
        years={2027: DoseFigures(doses_administered=100, doses_with_wastage=110)},
    )

    forecast = ManualForecastMethod().build(
        "ZM", VACCINES[0], {2028: DoseFigures(doses_administered=200, doses_with_wastage=220)}, existing=existing,
    )

    assert set(forecast.years) == {2027, 2028}
    assert forecast.description == "ministry estimate"
    assert forecast.id == "ZM_mr"


def test_manual_forecast_rejects_negative_doses():
    with pytest.raises(ValueError):
        ManualForecastMethod().build("ZM", VACCINES[0], {2027: DoseFigures(doses_administered=-1)})
