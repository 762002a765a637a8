import pytest

from data_contracts.models import (
    CombinedForecast,
    CombinedForecastResult,
    DoseFigures,
    ForecastMethod,
    ManualForecast,
    Vaccine,
)
from vaccine_core.combined import (
    CombinedForecastAggregator,
    collect_method_figures,
    manual_figures,
)
from vaccine_core.errors import ReentrancyError

V = Vaccine(id="v", vaccine_name="Vaccine V")


def _figures(admin, wastage):
    return {"v": {2026: DoseFigures(doses_administered=admin, doses_with_wastage=wastage)}}


def test_weighted_blend_of_unstratified_and_manual():
    method_figures = {
        ForecastMethod.unstratified: _figures(1000, 1111),
        ForecastMethod.manual: _figures(800, 900),
        ForecastMethod.consumption_hc: _figures(5000, 5000),
    }
    inputs = {
        "v": {
            2026: {
                "unstratified": {"weight": 0.6},
                "manual": {"weight": 0.4},
                "consumptionHc": {"weight": 0},
            }
        }
    }

    results = CombinedForecastAggregator().aggregate([V], [2026], inputs, method_figures)

    assert results["v"][2026].final_administered == pytest.approx(920)
    assert results["v"][2026].final_with_wastage == pytest.approx(1026.6)
    assert results["v"][2026].total_weight == pytest.approx(1.0)


def test_missing_method_data_contributes_nothing():
    inputs = {"v": {2026: {"stratified": {"weight": 0.5}, "manual": {"weight": 0.5}}}}
    method_figures = {ForecastMethod.manual: _figures(800, 900)}

    result = CombinedForecastAggregator().aggregate([V], [2026], inputs, method_figures)["v"][2026]

    assert result.final_administered == pytest.approx(400)
    assert result.total_weight == pytest.approx(1.0)


def test_weights_are_not_normalised():
    inputs = {"v": {2026: {"manual": {"weight": 1.5}}}}
    result = CombinedForecastAggregator().aggregate(
        [V], [2026], inputs, {ForecastMethod.manual: _figures(100, 100)},
    )["v"][2026]
    assert result.final_administered == pytest.approx(150)


def test_every_vaccine_and_year_has_a_result():
    results = CombinedForecastAggregator().aggregate([V], [2026, 2027], {}, {})
    assert results["v"][2027].final_administered == 0


def test_manual_figures_from_saved_forecasts():
    forecasts = [
        ManualForecast(country="ZM", vaccine_id="v", years={2026: DoseFigures(doses_administered=1)}),
    ]
    assert manual_figures(forecasts)["v"][2026].doses_administered == 1


def _previous(depth):
    return CombinedForecast(
        id="prev",
        country="ZM",
        forecast_years=[2026],
        results={"v": {2026: CombinedForecastResult(final_administered=100, final_with_wastage=120)}},
        reentrancy_depth=depth,
    )


def test_previous_combined_is_a_weighted_method():
    aggregator = CombinedForecastAggregator(max_reentrancy_depth=1)
    previous = _previous(0)
    inputs = {"v": {2026: {"previousCombined": {"weight": 1.0}}}}

    forecast = aggregator.run(
        "ZM", [V], [2026], inputs,
        collect_method_figures(previous_combined=previous),
        previous=previous,
    )

    assert forecast.results["v"][2026].final_with_wastage == pytest.approx(120)
    assert forecast.reentrancy_depth == 1


def test_combined_of_combined_is_bounded():
    aggregator = CombinedForecastAggregator(max_reentrancy_depth=1)
    previous = _previous(1)
    inputs = {"v": {2026: {"previousCombined": {"weight": 0.5}}}}

    with pytest.raises(ReentrancyError):
        aggregator.run("ZM", [V], [2026], inputs, collect_method_figures(previous_combined=previous), previous=previous)


def test_zero_previous_weight_resets_depth():
    aggregator = CombinedForecastAggregator(max_reentrancy_depth=1)
    inputs = {"v": {2026: {"previousCombined": {"weight": 0}, "manual": {"weight": 1}}}}

    forecast = aggregator.run("ZM", [V], [2026], inputs, {}, previous=_previous(1))

    assert forecast.reentrancy_depth == 0
