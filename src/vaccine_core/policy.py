from dataclasses import dataclass
from datetime import date
from typing import List, Optional


@dataclass
class PlanningPolicy:
    horizon_years: int = 5
    months_per_year: int = 12

    # Inventory thresholds (months of stock) when the item carries none
    default_min_mos: float = 1.5
    default_max_mos: float = 3.0

    # Combined forecasts may weight the previous combined forecast this many levels deep
    max_reentrancy_depth: int = 1

    default_funder_name: str = "Govt. Funding"
    default_funder_allocation: float = 100.0


def default_policy() -> PlanningPolicy:
    return PlanningPolicy()


def planning_year(today: Optional[date] = None) -> int:
    today = today or date.today()
    return today.year + 1


def forecast_years(start_year: Optional[int] = None, horizon: int = 5) -> List[int]:
    if start_year is None:
        start_year = planning_year()
    return [start_year + i for i in range(horizon)]
