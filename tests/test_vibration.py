"""Tests for flow-induced vibration screening."""
import dataclasses
import math

import pytest

from exchanger.models import FluidPhase, TubeMaterial, TubePattern, VibrationStatus
from exchanger.vibration import (
    FEI_RECOMMENDATIONS,
    _status,
    added_mass_coefficient,
    assess_vibration,
    damping_ratio_for,
    frequency_margin,
    tube_wear_rate,
)


def _assess(geometry, velocity, **kwargs):
    params = {"shell_density": 950.0, "tube_fluid_density": 990.0}
    params.update(kwargs)
    return assess_vibration(geometry, TubeMaterial(), crossflow_velocity=velocity, **params)


class TestBaseline:
    """Water on the shell side at the baseline crossflow velocity."""

    def test_safe_at_design_velocity(self, geometry):
        result = _assess(geometry, 0.33)
        assert result.status is VibrationStatus.SAFE
        assert not result.is_fei_risk
        assert not result.is_vortex_shedding_risk
        assert not result.is_acoustic_risk
        assert result.recommendations == ()

    def test_natural_frequency(self, geometry):
        result = _assess(geometry, 0.33)
        assert result.natural_frequency_Hz == pytest.approx(830, rel=0.02)
        assert result.critical_velocity_m_s == pytest.approx(38, rel=0.03)

    def test_natural_frequency_formula(self, geometry):
        result = _assess(geometry, 0.33)
        Do, Di = geometry.tube_outer_diameter, geometry.tube_inner_diameter
        moment = math.pi / 64.0 * (Do**4 - Di**4)
        expected = 22.4 / (2 * math.pi) * math.sqrt(2.0e11 * moment / (result.effective_mass_kg_m * 0.3**4))
        assert result.natural_frequency_Hz == pytest.approx(expected)

    def test_frequencies(self, geometry):
        result = _assess(geometry, 1.0)
        assert result.vortex_shedding_frequency_Hz == pytest.approx(0.20 / geometry.tube_outer_diameter)
        pitch_ratio = geometry.pitch_ratio
        assert result.turbulent_buffeting_frequency_Hz == pytest.approx(
            3.05 * (1 - 1 / pitch_ratio) / geometry.tube_outer_diameter
        )
        assert result.frequency_ratio == pytest.approx(
            result.vortex_shedding_frequency_Hz / result.natural_frequency_Hz
        )

    def test_liquid_acoustic_frequency_reported(self, geometry):
        result = _assess(geometry, 1.0)
        assert result.acoustic_resonance_frequency_Hz == pytest.approx(1500.0 / (2 * 0.591))
        assert not result.is_acoustic_risk


class TestFluidElasticInstability:
    """Connors criterion."""

    def test_critical_velocity_independent_of_velocity(self, geometry):
        slow = _assess(geometry, 0.5)
        fast = _assess(geometry, 2.0)
        assert slow.critical_velocity_m_s == pytest.approx(fast.critical_velocity_m_s)

    def test_fei_at_085_of_critical(self, geometry):
        v_crit = _assess(geometry, 1.0).critical_velocity_m_s
        result = _assess(geometry, 0.85 * v_crit)
        assert result.velocity_ratio == pytest.approx(0.85)
        assert result.is_fei_risk
        assert result.status is VibrationStatus.UNSAFE
        for text in FEI_RECOMMENDATIONS:
            assert text in result.recommendations

    def test_marginal_below_limit(self, geometry):
        v_crit = _assess(geometry, 1.0).critical_velocity_m_s
        result = _assess(geometry, 0.75 * v_crit)
        assert not result.is_fei_risk
        assert result.velocity_ratio >= 0.72
        assert result.status in (VibrationStatus.MARGINAL, VibrationStatus.UNSAFE)


class TestVortexShedding:
    """Vortex shedding lock-in."""

    def test_resonance_band(self, geometry):
        fn = _assess(geometry, 1.0).natural_frequency_Hz
        velocity = fn * geometry.tube_outer_diameter / 0.20
        result = _assess(geometry, velocity)
        assert result.frequency_ratio == pytest.approx(1.0)
        assert result.is_vortex_shedding_risk
        assert result.status is VibrationStatus.UNSAFE


class TestAcousticResonance:
    """Acoustic screening applies to vapor on the shell side."""

    def _coincident_velocity(self, geometry, speed_of_sound):
        fa = speed_of_sound / (2 * geometry.shell_inner_diameter)
        return fa * geometry.tube_outer_diameter / 0.20

    def test_vapor_coincidence(self, geometry):
        velocity = self._coincident_velocity(geometry, 343.0)
        result = _assess(
            geometry, velocity, shell_density=5.0, shell_phase=FluidPhase.VAPOR, speed_of_sound=343.0
        )
        assert result.is_acoustic_risk

    def test_liquid_never_acoustic(self, geometry):
        velocity = self._coincident_velocity(geometry, 1500.0)
        result = _assess(geometry, velocity, speed_of_sound=1500.0)
        assert not result.is_acoustic_risk

    def test_speed_of_sound_floor(self, geometry):
        result = _assess(geometry, 1.0, shell_density=5.0, shell_phase=FluidPhase.VAPOR, speed_of_sound=50.0)
        assert result.acoustic_resonance_frequency_Hz == pytest.approx(150.0 / (2 * 0.591))


class TestDampingAndAddedMass:
    """Phase-dependent damping and added mass."""

    def test_default_damping(self):
        assert damping_ratio_for(FluidPhase.VAPOR) == 0.01
        assert damping_ratio_for(FluidPhase.LIQUID) == 0.03
        assert damping_ratio_for(FluidPhase.LIQUID, viscosity=0.05) == 0.05
        assert damping_ratio_for(FluidPhase.TWO_PHASE) == 0.08

    def test_explicit_damping_overrides(self, geometry):
        result = _assess(geometry, 1.0, damping_ratio=0.1)
        assert result.damping_ratio == 0.1

    def test_added_mass_capped(self):
        assert added_mass_coefficient(1.2, TubePattern.TRIANGULAR_30) == 3.0
        assert added_mass_coefficient(1.5, TubePattern.SQUARE_90) == pytest.approx(1.0 + 0.5 / 0.5**1.5)

    def test_longer_span_lowers_frequency(self, geometry):
        short = _assess(geometry, 1.0)
        long_span = _assess(dataclasses.replace(geometry, unsupported_span=0.6), 1.0)
        assert long_span.natural_frequency_Hz == pytest.approx(short.natural_frequency_Hz / 4.0)

    def test_end_spacing_sets_span(self, geometry):
        assert dataclasses.replace(geometry, inlet_baffle_spacing=0.45).tube_unsupported_span == 0.45


class TestInvalidInputs:
    """Out-of-range inputs give None."""

    def test_zero_velocity(self, geometry):
        assert _assess(geometry, 0.0) is None

    def test_pitch_not_above_diameter(self, geometry):
        assert _assess(dataclasses.replace(geometry, tube_pitch=0.019), 1.0) is None

    def test_zero_density(self, geometry):
        assert _assess(geometry, 1.0, shell_density=0.0) is None

    def test_zero_shell_diameter(self, geometry):
        assert _assess(dataclasses.replace(geometry, shell_inner_diameter=0.0), 1.0) is None

    @pytest.mark.parametrize("zeta", [0.0, -0.02])
    def test_non_positive_damping(self, geometry, zeta):
        assert _assess(geometry, 1.0, damping_ratio=zeta) is None


class TestStatus:
    """Roll-up of the three screening ratios."""

    def test_damage_number_at_limit_is_unsafe(self):
        assert _status(0.1, 0.5, 0.1) is VibrationStatus.UNSAFE

    def test_damage_number_near_limit_is_marginal(self):
        assert _status(0.1, 0.46, 0.1) is VibrationStatus.MARGINAL

    def test_all_ratios_low_is_safe(self):
        assert _status(0.1, 0.1, 0.1) is VibrationStatus.SAFE

    def test_frequency_just_outside_band_is_marginal(self):
        assert _status(0.1, 0.1, 0.65) is VibrationStatus.MARGINAL


class TestWearAndMessage:
    """Wear rate, resonance margin and the summary message."""

    def test_baseline_summary(self, geometry):
        result = _assess(geometry, 0.33)
        assert result.tube_wear_rate_mm_yr == 0.01
        assert result.frequency_margin == pytest.approx(0.7 - result.frequency_ratio)
        assert result.message.startswith("SAFE")

    def test_fei_message_and_wear_cap(self, geometry):
        v_crit = _assess(geometry, 1.0).critical_velocity_m_s
        result = _assess(geometry, 0.85 * v_crit)
        assert result.message.startswith("CRITICAL")
        assert result.tube_wear_rate_mm_yr == 5.0

    def test_two_phase_doubles_wear(self):
        assert tube_wear_rate(True, 0.4, FluidPhase.LIQUID) == pytest.approx(0.2)
        assert tube_wear_rate(True, 0.4, FluidPhase.TWO_PHASE) == pytest.approx(0.4)
        assert tube_wear_rate(False, 0.2, FluidPhase.TWO_PHASE) == 0.01

    def test_frequency_margin_nearest_edge(self):
        assert frequency_margin(1.0) == pytest.approx(0.3)
        assert frequency_margin(1.5) == pytest.approx(0.2)
