import logging
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel

from data_contracts.models import (
    CombinedForecast,
    ConsumptionForecast,
    ConsumptionSource,
    CountryDemographics,
    Equipment,
    EquipmentForecast,
    FinancialPlan,
    InventoryPlan,
    ManualForecast,
    Program,
    Snapshot,
    StratifiedForecast,
    UnstratifiedForecast,
    Vaccine,
    utcnow,
)
from repositories.base import DocumentStore

logger = logging.getLogger(__name__)

# =========================
# COLLECTIONS
# =========================

COUNTRIES = "countries"
VACCINES = "vaccines"
EQUIPMENT = "equipment"
PROGRAMS = "programs"
FORECASTS_UNSTRATIFIED = "forecasts_unstratified"
FORECASTS_STRATIFIED = "forecasts_stratified"
FORECASTS_CONSUMPTION_HC = "forecasts_consumption_hc"
FORECASTS_CONSUMPTION_SC = "forecasts_consumption_sc"
FORECASTS_MANUAL = "forecasts_manual"
FORECASTS_COMBINED = "forecasts_combined"
FORECASTS_EQUIPMENT = "forecasts_equipment"
FINANCIAL_PLANS = "financial_plans"
INVENTORY_PLANS = "inventory_plans"

CONSUMPTION_COLLECTIONS = {
    ConsumptionSource.health_center: FORECASTS_CONSUMPTION_HC,
    ConsumptionSource.supply_chain: FORECASTS_CONSUMPTION_SC,
}

M = TypeVar("M", bound=BaseModel)
S = TypeVar("S", bound=Snapshot)


def financial_plan_id(country: str, year: int) -> str:
    return f"{country}_{year}"


def inventory_plan_id(country: str, year: int, item_id: str) -> str:
    return f"{country}_{year}_{item_id}"


def manual_forecast_id(country: str, vaccine_id: str) -> str:
    return f"{country}_{vaccine_id}"


class PlanningRepository:
    """
    Typed access to planning documents on top of a DocumentStore.

    Snapshots supersede each other per country: readers always take the
    most recently created one.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    # ---------------------------------
    # Generic helpers
    # ---------------------------------

    def _get(self, collection: str, doc_id: str, model: Type[M]) -> Optional[M]:
        doc = self.store.get(collection, doc_id)
        return model.model_validate(doc) if doc is not None else None

    def _list(self, collection: str, model: Type[M], **filters) -> List[M]:
        return [model.model_validate(d) for d in self.store.query(collection, filters)]

    def _put(self, collection: str, doc_id: str, item: BaseModel) -> str:
        return self.store.upsert(collection, doc_id, item.model_dump(mode="json"), merge=False)

    # ---------------------------------
    # Master data
    # ---------------------------------

    def get_country(self, country_id: str) -> Optional[CountryDemographics]:
        return self._get(COUNTRIES, country_id, CountryDemographics)

    def save_country(self, country: CountryDemographics) -> CountryDemographics:
        self._put(COUNTRIES, country.country_id, country)
        return country

    def list_vaccines(self) -> List[Vaccine]:
        return self._list(VACCINES, Vaccine)

    def save_vaccine(self, vaccine: Vaccine) -> Vaccine:
        self._put(VACCINES, vaccine.id, vaccine)
        return vaccine

    def list_equipment(self) -> List[Equipment]:
        return self._list(EQUIPMENT, Equipment)

    def save_equipment(self, item: Equipment) -> Equipment:
        self._put(EQUIPMENT, item.id, item)
        return item

    def list_programs(self, country: str) -> List[Program]:
        return self._list(PROGRAMS, Program, country=country)

    def save_program(self, program: Program) -> Program:
        self._put(PROGRAMS, program.id, program)
        return program

    # ---------------------------------
    # Forecast snapshots
    # ---------------------------------

    def latest_snapshot(self, collection: str, model: Type[S], country: str) -> Optional[S]:
        docs = self.store.query(
            collection,
            {"country": country},
            order_by="created_at",
            descending=True,
            limit=1,
        )
        return model.model_validate(docs[0]) if docs else None

    def save_snapshot(self, collection: str, snapshot: S, new_scenario: bool = False) -> S:
        """
        Re-running a stage updates the country's latest snapshot in place;
        only an explicit new scenario adds another one.
        """
        doc_id = snapshot.id
        if doc_id is None and not new_scenario:
            latest = self.store.query(
                collection,
                {"country": snapshot.country},
                order_by="created_at",
                descending=True,
                limit=1,
            )
            doc_id = latest[0]["id"] if latest else None

        stamped = snapshot.model_copy(update={"created_at": utcnow()})
        body = stamped.model_dump(mode="json", exclude={"id"})

        if doc_id is None:
            doc_id = self.store.add(collection, body)
        else:
            self.store.upsert(collection, doc_id, body, merge=False)

        logger.info("Saved %s/%s for country=%s", collection, doc_id, snapshot.country)
        return stamped.model_copy(update={"id": doc_id})

    def latest_unstratified(self, country: str) -> Optional[UnstratifiedForecast]:
        return self.latest_snapshot(FORECASTS_UNSTRATIFIED, UnstratifiedForecast, country)

    def latest_stratified(self, country: str) -> Optional[StratifiedForecast]:
        return self.latest_snapshot(FORECASTS_STRATIFIED, StratifiedForecast, country)

    def latest_consumption(self, country: str, source: ConsumptionSource) -> Optional[ConsumptionForecast]:
        return self.latest_snapshot(CONSUMPTION_COLLECTIONS[source], ConsumptionForecast, country)

    def latest_combined(self, country: str) -> Optional[CombinedForecast]:
        return self.latest_snapshot(FORECASTS_COMBINED, CombinedForecast, country)

    def latest_equipment_forecast(self, country: str) -> Optional[EquipmentForecast]:
        return self.latest_snapshot(FORECASTS_EQUIPMENT, EquipmentForecast, country)

    # ---------------------------------
    # Manual forecasts (one per country & vaccine)
    # ---------------------------------

    def list_manual_forecasts(self, country: str) -> List[ManualForecast]:
        return self._list(FORECASTS_MANUAL, ManualForecast, country=country)

    def get_manual_forecast(self, country: str, vaccine_id: str) -> Optional[ManualForecast]:
        return self._get(FORECASTS_MANUAL, manual_forecast_id(country, vaccine_id), ManualForecast)

    def save_manual_forecast(self, forecast: ManualForecast) -> ManualForecast:
        doc_id = manual_forecast_id(forecast.country, forecast.vaccine_id)
        saved = forecast.model_copy(update={"id": doc_id, "last_updated": utcnow()})
        self._put(FORECASTS_MANUAL, doc_id, saved)
        return saved

    # ---------------------------------
    # Plans
    # ---------------------------------

    def get_financial_plan(self, country: str, year: int) -> Optional[FinancialPlan]:
        return self._get(FINANCIAL_PLANS, financial_plan_id(country, year), FinancialPlan)

    def save_financial_plan(self, plan: FinancialPlan) -> FinancialPlan:
        doc_id = financial_plan_id(plan.country, plan.year)
        saved = plan.model_copy(update={"id": doc_id, "created_at": utcnow()})
        self._put(FINANCIAL_PLANS, doc_id, saved)
        logger.info("Saved %s/%s", FINANCIAL_PLANS, doc_id)
        return saved

    def get_inventory_plan(self, country: str, year: int, item_id: str) -> Optional[InventoryPlan]:
        return self._get(INVENTORY_PLANS, inventory_plan_id(country, year, item_id), InventoryPlan)

    def save_inventory_plan(self, plan: InventoryPlan) -> InventoryPlan:
        doc_id = inventory_plan_id(plan.country, plan.year, plan.item_id)
        saved = plan.model_copy(update={"id": doc_id, "last_updated": utcnow()})
        self._put(INVENTORY_PLANS, doc_id, saved)
        logger.info("Saved %s/%s", INVENTORY_PLANS, doc_id)
        return saved
