"""Tests for the thermal performance calculator."""
import dataclasses
import math

import pytest

from exchanger.models import CalculationMode, FlowArrangement, ShellSideMethod
from exchanger.thermal import (
    calculate_correction_factor,
    calculate_lmtd,
    calculate_thermal_performance,
    effectiveness_counterflow,
    effectiveness_parallel,
    fouled_coefficient,
    shell_side_coefficient,
    tube_side_coefficient,
)
from utils.validation import TemperatureCrossError

from conftest import BALANCED_COLD_OUTLET_K, COLD_FLOW, CP_WATER, HOT_FLOW


class TestLMTD:
    """Log-mean temperature difference."""

    def test_equal_terminal_differences(self):
        """LMTD collapses to the terminal difference when both ends match."""
        assert calculate_lmtd(400.0, 350.0, 300.0, 350.0, FlowArrangement.COUNTER) == 50.0

    def test_counterflow_value(self):
        lmtd = calculate_lmtd(423.15, 363.15, 298.15, 343.15, FlowArrangement.COUNTER)
        assert math.isclose(lmtd, 15.0 / math.log(80.0 / 65.0), rel_tol=1e-9)

    def test_parallel_uses_cocurrent_ends(self):
        lmtd = calculate_lmtd(400.0, 350.0, 300.0, 330.0, FlowArrangement.PARALLEL)
        assert math.isclose(lmtd, (100.0 - 20.0) / math.log(100.0 / 20.0), rel_tol=1e-9)

    def test_temperature_cross_raises(self):
        with pytest.raises(TemperatureCrossError) as exc_info:
            calculate_lmtd(350.0, 300.0, 290.0, 360.0, FlowArrangement.COUNTER)
        assert exc_info.value.dt1 == pytest.approx(-10.0)
        assert exc_info.value.dt2 == pytest.approx(10.0)


class TestCorrectionFactor:
    """LMTD correction factor F."""

    @pytest.mark.parametrize("arrangement", [FlowArrangement.COUNTER, FlowArrangement.PARALLEL])
    def test_pure_arrangements_need_no_correction(self, arrangement):
        assert calculate_correction_factor(423.15, 363.15, 298.15, 343.15, arrangement) == (1.0, False)

    @pytest.mark.parametrize(
        "temperatures",
        [
            (423.15, 363.15, 298.15, 343.15),
            (400.0, 320.0, 300.0, 370.0),
            (400.0, 340.0, 300.0, 355.0),
            (500.0, 450.0, 300.0, 310.0),
            (400.0, 390.0, 300.0, 395.0),
        ],
    )
    @pytest.mark.parametrize(
        "arrangement",
        [
            FlowArrangement.SHELL_TUBE_1_2,
            FlowArrangement.SHELL_TUBE_1_4,
            FlowArrangement.CROSSFLOW_MIXED,
            FlowArrangement.CROSSFLOW_UNMIXED,
        ],
    )
    def test_shell_arrangements_bounded(self, temperatures, arrangement):
        F, _ = calculate_correction_factor(*temperatures, arrangement)
        assert 0.5 <= F <= 1.0

    def test_one_two_shell_value(self):
        """P = 0.36, R = 4/3 gives F ≈ 0.907."""
        F, fallback = calculate_correction_factor(423.15, 363.15, 298.15, 343.15, FlowArrangement.SHELL_TUBE_1_2)
        assert not fallback
        assert F == pytest.approx(0.907, abs=0.005)

    def test_out_of_domain_uses_fallback(self):
        F, fallback = calculate_correction_factor(400.0, 350.0, 300.0, 410.0, FlowArrangement.SHELL_TUBE_1_2)
        assert fallback
        assert F == 0.9

    def test_zero_cold_rise_uses_fallback(self):
        F, fallback = calculate_correction_factor(400.0, 350.0, 300.0, 300.0, FlowArrangement.SHELL_TUBE_1_2)
        assert fallback
        assert F == 0.9


class TestEffectiveness:
    """ε-NTU relations."""

    @pytest.mark.parametrize("ntu", [0.1, 0.5, 1.0, 2.5, 5.0])
    def test_counter_and_parallel_agree_at_zero_capacity_ratio(self, ntu):
        assert math.isclose(effectiveness_counterflow(ntu, 0.0), effectiveness_parallel(ntu, 0.0), rel_tol=1e-12)

    def test_balanced_counterflow(self):
        assert math.isclose(effectiveness_counterflow(2.0, 1.0), 2.0 / 3.0, rel_tol=1e-12)

    def test_counterflow_beats_parallel(self):
        assert effectiveness_counterflow(2.0, 0.5) > effectiveness_parallel(2.0, 0.5)

    def test_fouled_coefficient(self):
        assert math.isclose(fouled_coefficient(850.0, 2e-4, 1e-4), 1.0 / (1.0 / 850.0 + 3e-4), rel_tol=1e-12)


class TestDesignMode:
    """Design mode: terminal temperatures given, area required."""

    def test_water_water_scenario(self, design_config):
        result = calculate_thermal_performance(design_config)
        assert result is not None
        assert result.mode is CalculationMode.DESIGN
        assert math.isclose(result.heat_duty_W, HOT_FLOW * CP_WATER * 60.0, rel_tol=1e-9)
        assert result.lmtd_K > 0
        assert result.correction_factor == 1.0
        assert result.required_area_m2 > 0
        assert result.duty_imbalance_pct < 1e-6
        assert result.U_fouled_W_m2K == pytest.approx(850.0)

    def test_area_and_oversurface(self, design_config):
        result = calculate_thermal_performance(design_config)
        available = 300 * math.pi * 0.01905 * 4.88
        assert result.available_area_m2 == pytest.approx(available)
        expected_area = result.heat_duty_W / (850.0 * result.lmtd_K)
        assert result.required_area_m2 == pytest.approx(expected_area)
        assert result.oversurface_pct == pytest.approx((available / expected_area - 1.0) * 100.0)

    def test_capacity_rates(self, design_config):
        result = calculate_thermal_performance(design_config)
        assert result.C_min_W_K == pytest.approx(HOT_FLOW * CP_WATER)
        assert result.C_max_W_K == pytest.approx(COLD_FLOW * CP_WATER)
        assert 0 < result.effectiveness < 1
        assert result.ntu > 0

    def test_fouling_lowers_coefficient(self, design_config):
        hot = dataclasses.replace(design_config.hot, fouling_resistance=2e-4)
        cold = dataclasses.replace(design_config.cold, fouling_resistance=1e-4)
        result = calculate_thermal_performance(dataclasses.replace(design_config, hot=hot, cold=cold))
        assert result.U_clean_W_m2K == pytest.approx(850.0)
        assert result.U_fouled_W_m2K == pytest.approx(1.0 / (1.0 / 850.0 + 3e-4))
        assert result.U_service_W_m2K == result.U_fouled_W_m2K

    def test_duty_imbalance_reported(self, design_config):
        cold = dataclasses.replace(design_config.cold, outlet_temperature=343.15)
        result = calculate_thermal_performance(dataclasses.replace(design_config, cold=cold))
        assert result.duty_imbalance_pct == pytest.approx(20.0, abs=0.1)

    def test_film_coefficients_when_u_not_given(self, design_config):
        result = calculate_thermal_performance(dataclasses.replace(design_config, overall_u=None))
        assert result.h_tube_W_m2K > 0
        assert result.h_shell_W_m2K > 0
        assert 500 < result.U_clean_W_m2K < 3000
        assert result.U_clean_W_m2K == pytest.approx(result.U_calculated_W_m2K)

    def test_low_correction_factor_flagged(self, design_config):
        hot = dataclasses.replace(design_config.hot, inlet_temperature=400.0, outlet_temperature=340.0)
        cold = dataclasses.replace(design_config.cold, inlet_temperature=300.0, outlet_temperature=355.0)
        config = dataclasses.replace(
            design_config, hot=hot, cold=cold, arrangement=FlowArrangement.SHELL_TUBE_1_2
        )
        result = calculate_thermal_performance(config)
        assert result.correction_factor < 0.75
        assert result.correction_factor_below_tema_minimum
        assert result.effective_lmtd_K == pytest.approx(result.lmtd_K * result.correction_factor)

    def test_temperature_cross_raises(self, design_config):
        cold = dataclasses.replace(design_config.cold, outlet_temperature=430.0)
        with pytest.raises(TemperatureCrossError):
            calculate_thermal_performance(dataclasses.replace(design_config, cold=cold))


class TestRatingMode:
    """Rating mode: area given, outlets solved."""

    @pytest.mark.parametrize("arrangement", [FlowArrangement.COUNTER, FlowArrangement.PARALLEL])
    def test_design_rating_round_trip(self, design_config, arrangement):
        design = calculate_thermal_performance(dataclasses.replace(design_config, arrangement=arrangement))
        rating_config = dataclasses.replace(
            design_config,
            arrangement=arrangement,
            mode=CalculationMode.RATING,
            area=design.required_area_m2,
        )
        rating = calculate_thermal_performance(rating_config)
        assert math.isclose(rating.hot_outlet_K, design_config.hot.outlet_temperature, rel_tol=1e-6)
        assert math.isclose(rating.cold_outlet_K, BALANCED_COLD_OUTLET_K, rel_tol=1e-6)
        assert math.isclose(rating.heat_duty_W, design.heat_duty_W, rel_tol=1e-6)

    def test_rating_balances_duties(self, design_config):
        config = dataclasses.replace(design_config, mode=CalculationMode.RATING, area=40.0)
        result = calculate_thermal_performance(config)
        assert result.available_area_m2 == 40.0
        assert result.duty_imbalance_pct == pytest.approx(0.0, abs=1e-9)
        assert design_config.cold.inlet_temperature < result.hot_outlet_K < design_config.hot.inlet_temperature

    def test_rating_defaults_to_geometry_area(self, design_config):
        config = dataclasses.replace(design_config, mode=CalculationMode.RATING)
        result = calculate_thermal_performance(config)
        assert result.available_area_m2 == pytest.approx(design_config.geometry.heat_transfer_area)

    def test_rating_cross_raises(self, design_config):
        hot = dataclasses.replace(design_config.hot, inlet_temperature=290.0)
        config = dataclasses.replace(design_config, hot=hot, mode=CalculationMode.RATING)
        with pytest.raises(TemperatureCrossError):
            calculate_thermal_performance(config)


class TestInvalidInputs:
    """Invalid configurations return None."""

    def test_negative_mass_flow(self, design_config):
        hot = dataclasses.replace(design_config.hot, mass_flow=-1.0)
        assert calculate_thermal_performance(dataclasses.replace(design_config, hot=hot)) is None

    def test_missing_outlet_in_design_mode(self, design_config):
        cold = dataclasses.replace(design_config.cold, outlet_temperature=None)
        assert calculate_thermal_performance(dataclasses.replace(design_config, cold=cold)) is None

    def test_non_finite_property(self, design_config):
        cold = dataclasses.replace(design_config.cold, viscosity=float("nan"))
        assert calculate_thermal_performance(dataclasses.replace(design_config, cold=cold)) is None

    def test_zero_overall_u(self, design_config):
        assert calculate_thermal_performance(dataclasses.replace(design_config, overall_u=0.0)) is None

    def test_negative_prandtl_number(self, design_config):
        """A supplied Pr must be positive before it reaches the film correlations."""
        hot = dataclasses.replace(design_config.hot, prandtl_number=-1.0)
        config = dataclasses.replace(design_config, hot=hot, overall_u=None)
        assert calculate_thermal_performance(config) is None

    @pytest.mark.parametrize("cut", [0.0, 0.5, 0.6])
    def test_baffle_cut_out_of_range(self, design_config, cut):
        geometry = dataclasses.replace(design_config.geometry, baffle_cut=cut)
        assert calculate_thermal_performance(dataclasses.replace(design_config, geometry=geometry)) is None


class TestFilmCoefficients:
    """Tube-side and shell-side film coefficients."""

    def test_tube_side_turbulent(self, cold_stream, geometry):
        h = tube_side_coefficient(cold_stream, geometry)
        assert 3000 < h < 7000

    def test_tube_side_laminar(self, cold_stream, geometry):
        slow = dataclasses.replace(cold_stream, mass_flow=0.5)
        h = tube_side_coefficient(slow, geometry)
        assert h == pytest.approx(3.66 * 0.63 / geometry.tube_inner_diameter, rel=0.01)

    @pytest.mark.parametrize("method", [ShellSideMethod.KERN, ShellSideMethod.BELL_DELAWARE])
    def test_shell_side_positive(self, hot_stream, geometry, method):
        h = shell_side_coefficient(hot_stream, geometry, method)
        assert 500 < h < 20000
