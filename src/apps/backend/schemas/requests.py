# src/apps/backend/schemas/requests.py

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from data_contracts.models import (
    DoseFigures,
    FinancialPlanFunder,
    FinancialPlanInventoryInput,
    Stratum,
    StratumProgramParameter,
    VaccineConsumptionData,
)
from vaccine_core.combined import CombinedInputs


class SnapshotRequest(BaseModel):
    start_year: Optional[int] = None
    scenario_name: str = ""
    # keep the current snapshot and add another one instead of updating it
    new_scenario: bool = False


class ProjectionUpdate(BaseModel):
    population: int = Field(..., ge=0)


class StratifiedRequest(SnapshotRequest):
    strata: List[Stratum]
    strata_parameters: Dict[str, Dict[str, StratumProgramParameter]] = {}


class ConsumptionRequest(SnapshotRequest):
    historical_data: Dict[str, VaccineConsumptionData]


class WastageOverride(BaseModel):
    vaccine_id: str
    year: int
    wastage_rate: float = Field(..., ge=0, le=1)


class ManualForecastRequest(BaseModel):
    description: str = ""
    years: Dict[int, DoseFigures]


class CombinedRequest(BaseModel):
    inputs: CombinedInputs
    years: Optional[List[int]] = None
    scenario_name: str = ""
    new_scenario: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "inputs": {
                    "bcg": {
                        "2027": {
                            "unstratified": {"weight": 0.6, "confidence": 4},
                            "manual": {"weight": 0.4, "confidence": 3},
                        }
                    }
                },
                "scenario_name": "Baseline",
            }
        }
    )


class EquipmentRequest(BaseModel):
    scenario_name: str = ""
    new_scenario: bool = False


class FinancialPlanRequest(BaseModel):
    # omitted fields keep the values of the saved plan
    inventory_as_of_date: Optional[date] = None
    vaccine_inputs: Optional[Dict[str, FinancialPlanInventoryInput]] = None
    equipment_inputs: Optional[Dict[str, FinancialPlanInventoryInput]] = None
    vaccine_wastage_rates: Optional[Dict[str, float]] = None
    funders: Optional[List[FinancialPlanFunder]] = None
    proposed_procurement: Optional[Dict[str, float]] = None


class ShipmentsRequest(BaseModel):
    shipments: Dict[str, float] = {}  # "YYYY-MM" -> quantity
