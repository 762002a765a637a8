from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =========================
# ENUMS (shared, canonical)
# =========================

class EquipmentType(str, Enum):
    administration_syringe = "AdministrationSyringe"
    dilution_syringe = "DilutionSyringe"
    safety_box = "SafetyBox"


class ProgramCategory(str, Enum):
    routine = "Routine"
    catchup = "Catchup"
    sia = "SIA"


class ForecastMethod(str, Enum):
    unstratified = "unstratified"
    stratified = "stratified"
    consumption_hc = "consumptionHc"
    consumption_sc = "consumptionSc"
    manual = "manual"
    # latest saved combined forecast, weighted like any other method
    previous_combined = "previousCombined"


class ConsumptionSource(str, Enum):
    health_center = "hc"
    supply_chain = "sc"


class ItemKind(str, Enum):
    vaccine = "vaccine"
    equipment = "equipment"


# =========================
# MASTER DATA CONTRACTS
# =========================

class Projection(BaseModel):
    year: int
    population: int = Field(0, ge=0)


class TargetGroup(BaseModel):
    id: str
    name: str
    age_lower: Optional[float] = None
    age_upper: Optional[float] = None
    percentage: float = 0.0  # % of total population, groups may overlap


class CountryDemographics(BaseModel):
    country_id: str
    name: Optional[str] = None
    population: int = Field(0, ge=0)
    annual_growth_rate: float = 0.0
    projections: List[Projection] = []
    target_groups: List[TargetGroup] = []


class Vaccine(BaseModel):
    id: str
    vaccine_name: str
    vaccine_type: Optional[str] = None
    doses_in_schedule: Optional[int] = None
    price_per_dose: float = 0.0
    doses_per_vial: float = 0.0
    administration_syringe_id: Optional[str] = None
    dilution_syringe_id: Optional[str] = None
    # months-of-stock multipliers
    buffer_stock: float = 0.0
    min_inventory: float = 0.0
    max_inventory: float = 0.0


class Equipment(BaseModel):
    id: str
    equipment_name: str
    equipment_type: EquipmentType
    equipment_code: Optional[str] = None
    equipment_cost: float = 0.0
    # safety boxes only
    disposal_capacity: Optional[float] = None
    safety_factor: Optional[float] = None  # percentage, 10 = 10% reserved capacity


class DoseAssignment(BaseModel):
    target_group_id: str
    coverage_rate: float = Field(0.0, ge=0, le=1)
    wastage_rate: float = Field(0.0, ge=0, le=1)


class ProgramVaccine(BaseModel):
    vaccine_id: str
    vaccine_name: Optional[str] = None
    doses_in_schedule: Optional[int] = None
    dose_assignments: Dict[int, DoseAssignment] = {}


class Program(BaseModel):
    id: str
    country: str
    program_category: ProgramCategory
    program_name: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    vaccines: List[ProgramVaccine] = []


# =========================
# METHOD INPUTS
# =========================

class Stratum(BaseModel):
    id: str
    name: str
    percentages: Dict[int, float] = {}  # year -> % of target group


class StratumProgramParameter(BaseModel):
    coverage_rate: float = 0.0
    wastage_rate: float = 0.0


class MonthlyConsumption(BaseModel):
    consumption: float = 0.0
    reporting_rate: float = 0.0  # decimal, 0.95 = 95%


class VaccineConsumptionData(BaseModel):
    avg_wastage_rate: float = 0.0
    monthly_data: Dict[str, MonthlyConsumption] = {}  # "YYYY-MM" -> month


# =========================
# FORECAST SNAPSHOTS
# =========================

class DoseFigures(BaseModel):
    doses_administered: float = 0.0
    doses_with_wastage: float = 0.0


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    country: str
    scenario_name: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class UnstratifiedYear(DoseFigures):
    coverage_rate: float = 0.0
    wastage_rate: float = 0.0


class UnstratifiedTargetGroup(BaseModel):
    target_group_id: str
    target_group_name: str
    years: Dict[int, UnstratifiedYear] = {}


class UnstratifiedVaccineResult(BaseModel):
    vaccine_name: str
    target_groups: Dict[str, UnstratifiedTargetGroup] = {}


class UnstratifiedForecast(Snapshot):
    forecast_years: List[int] = []
    results: Dict[str, UnstratifiedVaccineResult] = {}


class StratifiedTargetGroup(BaseModel):
    target_group_name: str
    years: Dict[int, DoseFigures] = {}


class StratifiedStratum(BaseModel):
    stratum_name: str
    target_groups: Dict[str, StratifiedTargetGroup] = {}


class StratifiedVaccine(BaseModel):
    vaccine_name: str
    strata: Dict[str, StratifiedStratum] = {}


class StratifiedForecast(Snapshot):
    forecast_years: List[int] = []
    strata_definitions: List[Stratum] = []
    # stratum_id -> program_id -> parameters
    strata_parameters: Dict[str, Dict[str, StratumProgramParameter]] = {}
    # program category -> vaccine_id -> result
    results: Dict[str, Dict[str, StratifiedVaccine]] = {}


class ConsumptionYear(DoseFigures):
    wastage_rate: float = 0.0


class ConsumptionVaccineResult(BaseModel):
    vaccine_name: str
    years: Dict[int, ConsumptionYear] = {}


class ConsumptionForecast(Snapshot):
    source: ConsumptionSource = ConsumptionSource.health_center
    forecast_years: List[int] = []
    historical_data: Dict[str, VaccineConsumptionData] = {}
    results: Dict[str, ConsumptionVaccineResult] = {}


class ManualForecast(BaseModel):
    id: Optional[str] = None
    country: str
    vaccine_id: str
    vaccine_name: Optional[str] = None
    description: str = ""
    years: Dict[int, DoseFigures] = {}
    last_updated: datetime = Field(default_factory=utcnow)


class CombinedForecastInput(BaseModel):
    weight: float = 0.0  # decimal, 1.0 = 100%
    confidence: int = Field(0, ge=0, le=5)  # advisory, 0 = not rated


class CombinedForecastResult(BaseModel):
    final_administered: float = 0.0
    final_with_wastage: float = 0.0
    total_weight: float = 0.0


class CombinedForecast(Snapshot):
    forecast_years: List[int] = []
    # vaccine_id -> year -> method -> input
    inputs: Dict[str, Dict[int, Dict[ForecastMethod, CombinedForecastInput]]] = {}
    results: Dict[str, Dict[int, CombinedForecastResult]] = {}
    reentrancy_depth: int = 0


class EquipmentForecastItem(BaseModel):
    equipment_id: str
    equipment_name: str
    yearly_quantities: Dict[int, float] = {}


class EquipmentForecastProgram(BaseModel):
    program_id: str
    program_name: str
    program_category: ProgramCategory
    equipment: List[EquipmentForecastItem] = []


class EquipmentForecast(Snapshot):
    combined_forecast_id: Optional[str] = None
    forecast_years: List[int] = []
    results: List[EquipmentForecastProgram] = []


# =========================
# FINANCIAL PLAN
# =========================

class FinancialPlanInventoryInput(BaseModel):
    on_hand: float = 0.0
    exp_shipments: float = 0.0
    exp_usage: float = 0.0


class FinancialPlanFunder(BaseModel):
    id: str
    name: str = ""
    allocation: float = 0.0  # % of net funding ask
    committed: float = 0.0


class ConstrainedForecastItem(BaseModel):
    id: str
    name: str
    item_kind: ItemKind
    original: float
    constrained: float
    constrained_admin: float


class ConstrainedForecast(BaseModel):
    funding_percentage: float = 0.0
    forecasts: List[ConstrainedForecastItem] = []


class ProcurementDataItem(BaseModel):
    id: str
    name: str
    item_kind: ItemKind
    unit_price: float
    forecast: float
    buffer: float
    boy_inventory: float
    recommended_procurement: float
    cost_of_recommended: float
    proposed_value: float
    cost_of_proposed: float


class FundingSummary(BaseModel):
    vaccine_costs: float = 0.0
    equipment_costs: float = 0.0
    total_inventory_value: float = 0.0
    total_proposed_cost: float = 0.0
    net_funding_ask: float = 0.0
    total_allocation: float = 0.0
    total_committed: float = 0.0
    funding_gap: float = 0.0
    funder_amounts: Dict[str, float] = {}  # funder id -> allocation% x net ask


class FinancialPlan(BaseModel):
    id: Optional[str] = None
    country: str
    year: int
    created_at: datetime = Field(default_factory=utcnow)
    inventory_as_of_date: Optional[date] = None
    vaccine_inputs: Dict[str, FinancialPlanInventoryInput] = {}
    equipment_inputs: Dict[str, FinancialPlanInventoryInput] = {}
    vaccine_wastage_rates: Dict[str, float] = {}
    funders: List[FinancialPlanFunder] = []
    proposed_procurement: Dict[str, float] = {}
    calculated_equipment_usage: Dict[str, float] = {}
    equipment_buffer: Dict[str, float] = {}
    procurement_data: List[ProcurementDataItem] = []
    funding_summary: FundingSummary = FundingSummary()
    constrained_forecast: ConstrainedForecast = ConstrainedForecast()


# =========================
# INVENTORY PLAN
# =========================

class InventoryPlan(BaseModel):
    id: Optional[str] = None
    country: str
    item_id: str
    year: int
    last_updated: datetime = Field(default_factory=utcnow)
    shipments: Dict[str, float] = {}  # "YYYY-MM" -> quantity, user overrides
    recommendation: Dict[str, float] = {}


class InventoryMonth(BaseModel):
    month_key: str
    month: str
    beginning_inv: float
    demand: float
    min_level: float
    max_level: float
    projected_end_inv: float
    recommended_order: float
    shipment: float
    shipment_overridden: bool
    ending_inv: float


class InventorySchedule(BaseModel):
    item_id: str
    item_name: str
    item_kind: ItemKind
    year: int
    boy_inventory: float
    min_inventory_mos: float
    max_inventory_mos: float
    procurement_limit: float = 0.0
    total_planned_shipments: float = 0.0
    over_budget: bool = False
    months: List[InventoryMonth] = []


# =========================
# SOFT VALIDATION
# =========================

class PlanWarning(BaseModel):
    code: str
    message: str
    context: Dict[str, Any] = {}
