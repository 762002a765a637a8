import logging

from data_contracts.models import (
    ConsumptionSource,
    FinancialPlanFunder,
    MonthlyConsumption,
    VaccineConsumptionData,
)
from planning_agents.combined_agent import CombinedForecastAgent
from planning_agents.demographics_agent import DemographicsAgent
from planning_agents.equipment_agent import EquipmentForecastAgent
from planning_agents.financial_agent import FinancialPlanAgent
from planning_agents.forecast_agent import ForecastAgent
from planning_agents.inventory_agent import InventoryPlanAgent
from repositories.factory import get_planning_repository
from scripts.create_sample_plan import COUNTRY_ID, seed_sample_data
from vaccine_core.equipment import display_quantity, grand_totals
from vaccine_core.policy import planning_year

logging.basicConfig(level=logging.INFO)

repo = get_planning_repository()
seed_sample_data(repo)

year = planning_year()

# -----------------------------
# Forecasts
# -----------------------------
DemographicsAgent(repo).seed(COUNTRY_ID, start_year=year)

forecasts = ForecastAgent(repo)
forecasts.save_unstratified(forecasts.compute_unstratified(COUNTRY_ID, start_year=year))

history = {
    "bcg": VaccineConsumptionData(
        avg_wastage_rate=0.5,
        monthly_data={f"{year - 1}-{m:02d}": MonthlyConsumption(consumption=3200, reporting_rate=0.9) for m in range(1, 13)},
    ),
}
forecasts.save_consumption(
    forecasts.compute_consumption(COUNTRY_ID, ConsumptionSource.health_center, history, start_year=year)
)

weights = {
    v: {year: {"unstratified": {"weight": 0.7}, "consumptionHc": {"weight": 0.3}}}
    for v in ("bcg", "mr", "hpv")
}
combined_agent = CombinedForecastAgent(repo)
combined = combined_agent.save(combined_agent.compute(COUNTRY_ID, weights, years=[year]))

equipment_agent = EquipmentForecastAgent(repo)
equipment_agent.save(equipment_agent.compute(COUNTRY_ID))

print("\nCOMBINED FORECAST:")
for vaccine_id, by_year in combined.results.items():
    print(vaccine_id, round(by_year[year].final_with_wastage))

print("\nEQUIPMENT TOTALS:")
for item in grand_totals(repo.latest_equipment_forecast(COUNTRY_ID)).values():
    print(item.equipment_name, display_quantity(item.yearly_quantities.get(year, 0)))

# -----------------------------
# Budget & shipments
# -----------------------------
financial = FinancialPlanAgent(repo)
plan = financial.compute(
    COUNTRY_ID,
    year,
    proposed_procurement={"bcg": 60000, "mr": 150000, "hpv": 10000},
    funders=[FinancialPlanFunder(id="govt", name="Govt. Funding", allocation=100, committed=100000)],
)
plan = financial.save(plan)

print("\nFUNDING:")
print(plan.funding_summary)
print("funding level:", round(plan.constrained_forecast.funding_percentage * 100, 1), "%")

inventory = InventoryPlanAgent(repo)
schedule = inventory.compute(COUNTRY_ID, "mr", year)
print("\nMR SHIPMENTS:")
for month in schedule.months:
    print(month.month, round(month.beginning_inv), round(month.demand), month.shipment, round(month.ending_inv))
