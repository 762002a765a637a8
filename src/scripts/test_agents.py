import pytest

from data_contracts.models import (
    ConsumptionSource,
    DoseFigures,
    FinancialPlanFunder,
    FinancialPlanInventoryInput,
    InventoryPlan,
    MonthlyConsumption,
    VaccineConsumptionData,
)
from planning_agents.combined_agent import CombinedForecastAgent
from planning_agents.demographics_agent import DemographicsAgent
from planning_agents.equipment_agent import EquipmentForecastAgent
from planning_agents.financial_agent import FinancialPlanAgent
from planning_agents.forecast_agent import ForecastAgent
from planning_agents.inventory_agent import InventoryPlanAgent
from planning_agents.validation_agent import ValidationAgent
from vaccine_core.errors import MissingPrerequisiteError, NotFoundError

COUNTRY = "ZM"
YEAR = 2027
UNSTRATIFIED_ONLY = {v: {YEAR: {"unstratified": {"weight": 1.0}}} for v in ("bcg", "mr", "hpv")}


def _forecasts(repo):
    DemographicsAgent(repo).seed(COUNTRY, start_year=YEAR)
    agent = ForecastAgent(repo)
    agent.save_unstratified(agent.compute_unstratified(COUNTRY, start_year=YEAR))

    combined = CombinedForecastAgent(repo)
    combined.save(combined.compute(COUNTRY, UNSTRATIFIED_ONLY, years=[YEAR]))

    equipment = EquipmentForecastAgent(repo)
    equipment.save(equipment.compute(COUNTRY))


def _financial_plan(repo):
    agent = FinancialPlanAgent(repo)
    return agent.save(agent.compute(
        COUNTRY,
        YEAR,
        proposed_procurement={"bcg": 80_000},
        funders=[FinancialPlanFunder(id="govt", name="Government", allocation=100, committed=4_800)],
    ))


# -----------------------------
# Prerequisites
# -----------------------------

def test_unstratified_needs_projections(seeded_repo):
    with pytest.raises(MissingPrerequisiteError) as exc:
        ForecastAgent(seeded_repo).compute_unstratified(COUNTRY, start_year=YEAR)
    assert exc.value.prerequisite == "population projections"


def test_unknown_country(seeded_repo):
    with pytest.raises(MissingPrerequisiteError):
        DemographicsAgent(seeded_repo).load("XX")


def test_combined_needs_a_source_forecast(seeded_repo):
    with pytest.raises(MissingPrerequisiteError):
        CombinedForecastAgent(seeded_repo).compute(COUNTRY, UNSTRATIFIED_ONLY, years=[YEAR])


def test_equipment_needs_combined(seeded_repo):
    with pytest.raises(MissingPrerequisiteError) as exc:
        EquipmentForecastAgent(seeded_repo).compute(COUNTRY)
    assert exc.value.prerequisite == "combined forecast"


def test_financial_plan_needs_equipment_forecast(seeded_repo):
    DemographicsAgent(seeded_repo).seed(COUNTRY, start_year=YEAR)
    agent = ForecastAgent(seeded_repo)
    agent.save_unstratified(agent.compute_unstratified(COUNTRY, start_year=YEAR))
    combined = CombinedForecastAgent(seeded_repo)
    combined.save(combined.compute(COUNTRY, UNSTRATIFIED_ONLY, years=[YEAR]))

    with pytest.raises(MissingPrerequisiteError) as exc:
        FinancialPlanAgent(seeded_repo).compute(COUNTRY, YEAR)
    assert exc.value.prerequisite == "equipment forecast"


def test_inventory_needs_financial_plan(seeded_repo):
    with pytest.raises(MissingPrerequisiteError):
        InventoryPlanAgent(seeded_repo).compute_all(COUNTRY, YEAR)


# -----------------------------
# Forecast stages
# -----------------------------

def test_projections_are_seeded_once(seeded_repo):
    agent = DemographicsAgent(seeded_repo)
    agent.seed(COUNTRY, start_year=YEAR)
    agent.set_projection(COUNTRY, YEAR, 2_000_000)

    country = agent.seed(COUNTRY, start_year=YEAR)

    assert len(country.projections) == 5
    assert country.projections[0].population == 2_000_000


def test_pipeline_figures(seeded_repo):
    _forecasts(seeded_repo)

    unstratified = seeded_repo.latest_unstratified(COUNTRY)
    bcg = unstratified.results["bcg"].target_groups["tg_infants"].years[YEAR]
    assert bcg.doses_administered == pytest.approx(39_140)
    assert bcg.doses_with_wastage == pytest.approx(78_280)

    combined = seeded_repo.latest_combined(COUNTRY)
    assert combined.results["mr"][YEAR].final_administered == pytest.approx(70_040)

    totals = EquipmentForecastAgent(seeded_repo).totals(COUNTRY)
    assert totals["ads_05"].yearly_quantities[YEAR] == pytest.approx(70_040 + 9_888)
    assert totals["ds_2ml"].yearly_quantities[YEAR] == pytest.approx(3_914)
    assert "ds_5ml" in totals


def test_consumption_and_wastage_override(seeded_repo):
    agent = ForecastAgent(seeded_repo)
    history = {
        "bcg": VaccineConsumptionData(
            avg_wastage_rate=0.5,
            monthly_data={"2026-01": MonthlyConsumption(consumption=900, reporting_rate=0.9)},
        )
    }
    agent.save_consumption(agent.compute_consumption(COUNTRY, ConsumptionSource.supply_chain, history, start_year=YEAR))

    updated = agent.override_consumption_wastage(COUNTRY, ConsumptionSource.supply_chain, "bcg", YEAR, 0.0)

    assert updated.results["bcg"].years[YEAR].doses_with_wastage == pytest.approx(12_000)
    assert seeded_repo.latest_consumption(COUNTRY, ConsumptionSource.health_center) is None
    assert seeded_repo.latest_consumption(COUNTRY, ConsumptionSource.supply_chain).id == updated.id


def test_manual_forecast_for_unknown_vaccine(seeded_repo):
    with pytest.raises(NotFoundError):
        ForecastAgent(seeded_repo).save_manual(COUNTRY, "yf", {YEAR: DoseFigures(doses_administered=1)})


def test_manual_forecast_feeds_combined(seeded_repo):
    ForecastAgent(seeded_repo).save_manual(
        COUNTRY, "hpv", {YEAR: DoseFigures(doses_administered=5_000, doses_with_wastage=5_500)},
    )

    forecast = CombinedForecastAgent(seeded_repo).compute(
        COUNTRY, {"hpv": {YEAR: {"manual": {"weight": 1.0}}}}, years=[YEAR],
    )

    assert forecast.results["hpv"][YEAR].final_with_wastage == pytest.approx(5_500)
    assert forecast.results["bcg"][YEAR].final_with_wastage == 0


def test_combined_years_follow_the_source_forecasts(seeded_repo):
    DemographicsAgent(seeded_repo).seed(COUNTRY, start_year=YEAR)
    agent = ForecastAgent(seeded_repo)
    agent.save_unstratified(agent.compute_unstratified(COUNTRY, start_year=YEAR + 3))

    forecast = CombinedForecastAgent(seeded_repo).compute(
        COUNTRY, {"bcg": {YEAR + 3: {"unstratified": {"weight": 1.0}}}},
    )

    assert forecast.forecast_years == [YEAR + 3 + i for i in range(5)]
    assert forecast.results["bcg"][YEAR + 3].final_administered > 0


# -----------------------------
# Budget & shipments
# -----------------------------

def test_financial_plan_from_saved_forecasts(seeded_repo):
    _forecasts(seeded_repo)
    plan = _financial_plan(seeded_repo)

    assert plan.id == f"{COUNTRY}_{YEAR}"
    assert len(plan.procurement_data) == 8
    assert plan.funding_summary.net_funding_ask == pytest.approx(9_600)
    assert plan.constrained_forecast.funding_percentage == pytest.approx(0.5)


def test_financial_plan_keeps_saved_inputs(seeded_repo):
    _forecasts(seeded_repo)
    _financial_plan(seeded_repo)

    plan = FinancialPlanAgent(seeded_repo).compute(
        COUNTRY, YEAR, vaccine_inputs={"bcg": FinancialPlanInventoryInput(on_hand=10_000)},
    )

    assert plan.proposed_procurement == {"bcg": 80_000}
    assert plan.funders[0].id == "govt"
    assert plan.funding_summary.total_inventory_value == pytest.approx(1_200)


def test_negative_boy_inventory_is_flagged(seeded_repo):
    _forecasts(seeded_repo)
    plan = FinancialPlanAgent(seeded_repo).compute(
        COUNTRY, YEAR, vaccine_inputs={"mr": FinancialPlanInventoryInput(on_hand=10, exp_usage=100)},
    )

    codes = [w.code for w in ValidationAgent().check_financial_plan(plan)]

    assert "negative_boy_inventory" in codes


def test_inventory_schedules_follow_constrained_forecast(seeded_repo):
    _forecasts(seeded_repo)
    _financial_plan(seeded_repo)

    schedules = {s.item_id: s for s in InventoryPlanAgent(seeded_repo).compute_all(COUNTRY, YEAR)}

    assert len(schedules) == 8
    bcg = schedules["bcg"]
    assert bcg.months[0].demand == pytest.approx(39_140 / 12)
    assert bcg.min_inventory_mos == 2
    assert bcg.months[0].recommended_order == 16_309
    # mr falls back to policy thresholds
    assert schedules["mr"].min_inventory_mos == 1.5


def test_saved_shipments_are_reused(seeded_repo):
    _forecasts(seeded_repo)
    _financial_plan(seeded_repo)
    agent = InventoryPlanAgent(seeded_repo)

    schedule = agent.compute(COUNTRY, "bcg", YEAR, shipments={f"{YEAR}-01": 0})
    saved = agent.save(COUNTRY, schedule)

    assert saved.id == f"{COUNTRY}_{YEAR}_bcg"
    assert saved.shipments == {f"{YEAR}-01": 0}

    again = agent.compute(COUNTRY, "bcg", YEAR)
    assert again.months[0].shipment_overridden
    assert again.months[0].shipment == 0


def test_shipments_are_kept_per_year(seeded_repo):
    _forecasts(seeded_repo)
    _financial_plan(seeded_repo)
    agent = InventoryPlanAgent(seeded_repo)
    agent.save(COUNTRY, agent.compute(COUNTRY, "bcg", YEAR, shipments={f"{YEAR}-03": 777}))

    next_year = seeded_repo.save_inventory_plan(
        InventoryPlan(country=COUNTRY, item_id="bcg", year=YEAR + 1, shipments={f"{YEAR + 1}-05": 555}),
    )

    again = agent.compute(COUNTRY, "bcg", YEAR)
    assert next_year.id == f"{COUNTRY}_{YEAR + 1}_bcg"
    assert again.months[2].shipment_overridden
    assert again.months[2].shipment == 777
    assert seeded_repo.get_inventory_plan(COUNTRY, YEAR + 1, "bcg").shipments == {f"{YEAR + 1}-05": 555}


def test_unknown_inventory_item(seeded_repo):
    _forecasts(seeded_repo)
    _financial_plan(seeded_repo)
    with pytest.raises(NotFoundError):
        InventoryPlanAgent(seeded_repo).compute(COUNTRY, "nope", YEAR)
