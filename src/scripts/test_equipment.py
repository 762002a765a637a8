import pytest

from data_contracts.models import (
    CombinedForecast,
    CombinedForecastResult,
    DoseFigures,
    Equipment,
    EquipmentType,
    Program,
    ProgramCategory,
    ProgramVaccine,
    Vaccine,
)
from vaccine_core.equipment import (
    EquipmentDerivationEngine,
    display_quantity,
    equipment_total,
    grand_totals,
)

EQUIPMENT = [
    Equipment(id="ads", equipment_name="AD syringe", equipment_type=EquipmentType.administration_syringe),
    Equipment(id="ds", equipment_name="Dilution syringe", equipment_type=EquipmentType.dilution_syringe),
    Equipment(
        id="box",
        equipment_name="Safety box",
        equipment_type=EquipmentType.safety_box,
        disposal_capacity=100,
        safety_factor=10,
    ),
]

VACCINES = [
    Vaccine(id="mr", vaccine_name="MR", doses_per_vial=10, administration_syringe_id="ads", dilution_syringe_id="ds"),
    Vaccine(id="hpv", vaccine_name="HPV", doses_per_vial=0, administration_syringe_id="ads", dilution_syringe_id="ds"),
]


def test_safety_boxes_follow_syringe_total():
    engine = EquipmentDerivationEngine(VACCINES, EQUIPMENT)

    quantities = engine.derive([("mr", DoseFigures(doses_administered=10_000, doses_with_wastage=5_000))])

    assert quantities["ads"] == pytest.approx(10_000)
    assert quantities["ds"] == pytest.approx(500)
    assert quantities["box"] == pytest.approx(10_500 / 110)
    assert round(quantities["box"], 2) == 95.45


def test_box_count_independent_of_syringe_order():
    engine = EquipmentDerivationEngine(VACCINES, EQUIPMENT)
    assert engine.safety_boxes({"ads": 10_000, "ds": 500}) == engine.safety_boxes({"ds": 500, "ads": 10_000})


def test_no_dilution_syringes_without_doses_per_vial():
    engine = EquipmentDerivationEngine(VACCINES, EQUIPMENT)
    quantities = engine.syringe_quantities([("hpv", DoseFigures(doses_administered=100, doses_with_wastage=120))])
    assert quantities == {"ads": 100}


def test_missing_box_capacity_defaults_to_one():
    box = Equipment(id="box", equipment_name="Box", equipment_type=EquipmentType.safety_box)
    engine = EquipmentDerivationEngine(VACCINES, [box])
    assert engine.safety_boxes({"ads": 50}) == pytest.approx(50)


def test_sparse_derivation_rounds_vials_and_skips_empty_vaccines():
    engine = EquipmentDerivationEngine(VACCINES, EQUIPMENT)

    quantities = engine.derive(
        [
            ("mr", DoseFigures(doses_administered=95, doses_with_wastage=95)),
            ("hpv", DoseFigures()),
        ],
        round_vials=True,
        sparse=True,
    )

    assert quantities["ds"] == 10
    assert quantities["ads"] == 95

    assert engine.derive([("hpv", DoseFigures())], sparse=True) == {}


def _combined():
    return CombinedForecast(
        id="c1",
        country="ZM",
        forecast_years=[2027, 2028],
        results={
            "mr": {
                2027: CombinedForecastResult(final_administered=1000, final_with_wastage=1000),
                2028: CombinedForecastResult(final_administered=2000, final_with_wastage=2000),
            }
        },
    )


def _program(program_id):
    return Program(
        id=program_id,
        country="ZM",
        program_category=ProgramCategory.routine,
        program_name=program_id,
        vaccines=[ProgramVaccine(vaccine_id="mr")],
    )


def test_forecast_per_program_and_grand_totals():
    engine = EquipmentDerivationEngine(VACCINES, EQUIPMENT)

    forecast = engine.run(_combined(), [_program("routine"), _program("sia")])

    assert forecast.combined_forecast_id == "c1"
    routine = forecast.results[0]
    assert [e.equipment_id for e in routine.equipment] == ["ads", "ds", "box"]
    assert routine.equipment[0].yearly_quantities == {2027: 1000, 2028: 2000}

    totals = grand_totals(forecast)
    assert totals["ads"].yearly_quantities[2028] == pytest.approx(4000)
    assert totals["ds"].yearly_quantities[2027] == pytest.approx(200)
    assert equipment_total(forecast, "box", 2027) == pytest.approx(2 * 1100 / 110)


def test_display_quantity_rounds_up():
    assert display_quantity(95.45) == 96
    assert display_quantity(10.0) == 10
    assert display_quantity(0) == 0
