import logging

from data_contracts.models import (
    CountryDemographics,
    DoseAssignment,
    Equipment,
    EquipmentType,
    Program,
    ProgramCategory,
    ProgramVaccine,
    TargetGroup,
    Vaccine,
)
from repositories.factory import get_planning_repository
from repositories.planning_repo import PlanningRepository

logger = logging.getLogger(__name__)

# -----------------------------
# Sample master data
# One country, two programs, three vaccines
# -----------------------------

COUNTRY_ID = "ZM"

COUNTRY = CountryDemographics(
    country_id=COUNTRY_ID,
    name="Zambia",
    population=1_000_000,
    annual_growth_rate=0.03,
    target_groups=[
        TargetGroup(id="tg_infants", name="Surviving infants", age_lower=0, age_upper=1, percentage=4.0),
        TargetGroup(id="tg_girls_9", name="Girls aged 9", age_lower=9, age_upper=10, percentage=1.2),
    ],
)

VACCINES = [
    Vaccine(
        id="bcg",
        vaccine_name="BCG",
        price_per_dose=0.12,
        doses_per_vial=20,
        administration_syringe_id="ads_005",
        dilution_syringe_id="ds_2ml",
        buffer_stock=3,
        min_inventory=2,
        max_inventory=4,
    ),
    Vaccine(
        id="mr",
        vaccine_name="Measles-Rubella",
        price_per_dose=0.95,
        doses_per_vial=10,
        administration_syringe_id="ads_05",
        dilution_syringe_id="ds_5ml",
        buffer_stock=3,
    ),
    Vaccine(
        id="hpv",
        vaccine_name="HPV",
        price_per_dose=4.50,
        doses_per_vial=1,
        administration_syringe_id="ads_05",
        buffer_stock=2,
        min_inventory=1,
        max_inventory=2,
    ),
]

EQUIPMENT = [
    Equipment(id="ads_005", equipment_name="AD syringe 0.05ml", equipment_type=EquipmentType.administration_syringe, equipment_cost=0.045),
    Equipment(id="ads_05", equipment_name="AD syringe 0.5ml", equipment_type=EquipmentType.administration_syringe, equipment_cost=0.04),
    Equipment(id="ds_2ml", equipment_name="Dilution syringe 2ml", equipment_type=EquipmentType.dilution_syringe, equipment_cost=0.03),
    Equipment(id="ds_5ml", equipment_name="Dilution syringe 5ml", equipment_type=EquipmentType.dilution_syringe, equipment_cost=0.035),
    Equipment(
        id="sb_5l",
        equipment_name="Safety box 5L",
        equipment_type=EquipmentType.safety_box,
        equipment_cost=0.60,
        disposal_capacity=100,
        safety_factor=10,
    ),
]

PROGRAMS = [
    Program(
        id="routine",
        country=COUNTRY_ID,
        program_category=ProgramCategory.routine,
        program_name="Routine immunization",
        vaccines=[
            ProgramVaccine(
                vaccine_id="bcg",
                vaccine_name="BCG",
                doses_in_schedule=1,
                dose_assignments={1: DoseAssignment(target_group_id="tg_infants", coverage_rate=0.95, wastage_rate=0.5)},
            ),
            ProgramVaccine(
                vaccine_id="mr",
                vaccine_name="Measles-Rubella",
                doses_in_schedule=2,
                dose_assignments={
                    1: DoseAssignment(target_group_id="tg_infants", coverage_rate=0.90, wastage_rate=0.25),
                    2: DoseAssignment(target_group_id="tg_infants", coverage_rate=0.80, wastage_rate=0.25),
                },
            ),
        ],
    ),
    Program(
        id="hpv_catchup",
        country=COUNTRY_ID,
        program_category=ProgramCategory.catchup,
        program_name="HPV catch-up",
        vaccines=[
            ProgramVaccine(
                vaccine_id="hpv",
                vaccine_name="HPV",
                doses_in_schedule=1,
                dose_assignments={1: DoseAssignment(target_group_id="tg_girls_9", coverage_rate=0.8, wastage_rate=0.05)},
            ),
        ],
    ),
]


def seed_sample_data(repo: PlanningRepository) -> None:
    repo.save_country(COUNTRY)
    for vaccine in VACCINES:
        repo.save_vaccine(vaccine)
    for item in EQUIPMENT:
        repo.save_equipment(item)
    for program in PROGRAMS:
        repo.save_program(program)

    logger.info(
        "Seeded country=%s with %d vaccines, %d equipment items, %d programs",
        COUNTRY_ID, len(VACCINES), len(EQUIPMENT), len(PROGRAMS),
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_sample_data(get_planning_repository())
    print("✅ sample master data created")
