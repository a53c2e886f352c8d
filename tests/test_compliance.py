"""Tests for the API 660, TEMA and API 661 rule engine."""
import dataclasses

import pytest

from exchanger.compliance import (
    ShellTubeContext,
    effective_service,
    validate_api660,
    validate_api661,
    validate_exchanger,
    validate_tema,
)
from exchanger.geometry import estimate_max_tube_count, minimum_tube_wall
from exchanger.models import (
    AirCooledDesign,
    ExchangerType,
    FanType,
    FluidPhase,
    OperatingConditions,
    RuleStatus,
    ServiceType,
    Severity,
    TemaClass,
    VibrationStatus,
)
from utils.validation import ValidationError


@pytest.fixture
def context(geometry):
    return ShellTubeContext(
        geometry=geometry,
        tube_velocity=0.866,
        shell_velocity=0.33,
        correction_factor=1.0,
        duty_imbalance_pct=0.0,
        vibration_status=VibrationStatus.SAFE,
    )


@pytest.fixture
def air_cooled():
    return AirCooledDesign(
        bundle_width=3.05,
        bundle_length=9.0,
        tube_outer_diameter=0.0254,
        fin_density=394.0,
        fan_diameter=3.0,
        number_of_bays=2,
        header_thickness=0.019,
        design_pressure=1.0e5,
    )


def _rule(result, section):
    matches = [r for r in result.rules if r.section == section]
    assert matches, f"no rule {section}"
    return matches[0]


class TestAPI660:
    """API 660 shell-and-tube rules."""

    def test_baseline_passes(self, context):
        result = validate_api660(context)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []
        assert all(r.status is RuleStatus.PASS for r in result.rules)

    def test_rule_order(self, context):
        sections = [r.section for r in validate_api660(context).rules]
        assert sections == [
            "API 660 §5.3.2",
            "API 660 §5.3.3",
            "API 660 §5.4",
            "API 660 §5.4",
            "API 660 §5.6",
            "API 660 §6.2.2",
            "API 660 §6.2.3",
            "API 660 §6.2.4",
            "API 660 §7",
            "TEMA §RGP-4",
            "Process heat balance",
        ]
        assert sections == [r.section for r in validate_api660(context).rules]

    def test_tight_pitch_fails_critically(self, context):
        tight = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, tube_pitch=0.02286))
        result = validate_api660(tight)
        rule = _rule(result, "API 660 §5.3.2")
        assert rule.status is RuleStatus.FAIL
        assert rule.severity is Severity.CRITICAL
        assert not result.is_valid

    def test_thin_wall_fails(self, context):
        thin = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, tube_wall_thickness=0.0012))
        rule = _rule(validate_api660(thin), "API 660 §5.3.3")
        assert rule.status is RuleStatus.FAIL
        assert rule.severity is Severity.CRITICAL

    def test_tube_velocity_warning_band(self, context):
        result = validate_api660(dataclasses.replace(context, tube_velocity=2.5))
        rule = [r for r in result.rules if r.requirement == "Tube-side velocity limit"][0]
        assert rule.status is RuleStatus.WARNING
        assert result.is_valid

    def test_tube_velocity_exceeded(self, context):
        result = validate_api660(dataclasses.replace(context, tube_velocity=3.0))
        rule = [r for r in result.rules if r.requirement == "Tube-side velocity limit"][0]
        assert rule.status is RuleStatus.FAIL
        assert rule.severity is Severity.CRITICAL
        assert not result.is_valid

    def test_shell_velocity_exceeded_is_warning_severity(self, context):
        result = validate_api660(dataclasses.replace(context, shell_velocity=2.0))
        rule = [r for r in result.rules if r.requirement == "Shell-side velocity limit"][0]
        assert rule.status is RuleStatus.FAIL
        assert rule.severity is Severity.WARNING
        assert result.is_valid
        assert rule in result.warnings

    def test_fouling_service_limits(self, context):
        fouling = dataclasses.replace(
            context, operating=OperatingConditions(service_type=ServiceType.FOULING_LIQUID), tube_velocity=1.8
        )
        assert not validate_api660(fouling).is_valid

    def test_vapor_shell_adds_gas_service_rule(self, context):
        result = validate_api660(dataclasses.replace(context, shell_phase=FluidPhase.VAPOR, shell_velocity=10.0))
        rule = _rule(result, "API 660 §5.6.2")
        assert rule.status is RuleStatus.WARNING
        assert result.is_valid

    def test_missing_stage_results_skip_rules(self, geometry):
        result = validate_api660(ShellTubeContext(geometry=geometry))
        sections = [r.section for r in result.rules]
        assert "API 660 §5.4" not in sections
        assert "API 660 §5.6" not in sections
        assert "Process heat balance" not in sections

    def test_unsafe_vibration_does_not_block(self, context):
        result = validate_api660(dataclasses.replace(context, vibration_status=VibrationStatus.UNSAFE))
        rule = _rule(result, "API 660 §5.6")
        assert rule.status is RuleStatus.FAIL
        assert rule.severity is Severity.WARNING
        assert result.is_valid

    def test_heat_balance_warning(self, context):
        result = validate_api660(dataclasses.replace(context, duty_imbalance_pct=20.0))
        rule = _rule(result, "Process heat balance")
        assert rule.status is RuleStatus.WARNING
        assert result.is_valid

    def test_baffle_spacing_limits(self, context):
        close = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, baffle_spacing=0.08))
        assert _rule(validate_api660(close), "API 660 §6.2.2").status is RuleStatus.WARNING
        wide = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, baffle_spacing=0.7))
        assert _rule(validate_api660(wide), "API 660 §6.2.3").status is RuleStatus.WARNING

    def test_non_standard_length(self, context):
        odd = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, tube_length=5.5))
        assert _rule(validate_api660(odd), "API 660 §7").status is RuleStatus.WARNING

    def test_overfull_shell(self, context):
        crowded = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, tube_count=500))
        assert _rule(validate_api660(crowded), "TEMA §RGP-4").status is RuleStatus.WARNING


class TestTEMA:
    """TEMA rules."""

    def test_baseline_passes(self, context):
        result = validate_tema(context)
        assert result.is_valid
        assert [r.section for r in result.rules] == ["TEMA R-2.31", "TEMA RGP-4", "TEMA RGP", "TEMA RGP-T-3"]

    def test_class_wall_minimum(self, context):
        thin = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, tube_wall_thickness=0.0018))
        assert not validate_tema(thin).is_valid
        class_c = dataclasses.replace(thin, operating=OperatingConditions(tema_class=TemaClass.C))
        result = validate_tema(class_c)
        assert result.is_valid
        assert result.rules[0].section == "TEMA C-2.31"

    def test_tight_pitch_fails(self, context):
        tight = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, tube_pitch=0.02286))
        rule = _rule(validate_tema(tight), "TEMA RGP-4")
        assert rule.status is RuleStatus.FAIL
        assert rule.severity is Severity.CRITICAL

    def test_wide_pitch_warns(self, context):
        wide = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, tube_pitch=0.0318))
        assert _rule(validate_tema(wide), "TEMA RGP-4").status is RuleStatus.WARNING

    def test_low_correction_factor(self, context):
        result = validate_tema(dataclasses.replace(context, correction_factor=0.7))
        assert _rule(result, "TEMA RGP-T-3").status is RuleStatus.WARNING
        assert result.is_valid

    def test_zero_shell_diameter_fails_aspect(self, context):
        """A non-positive shell ID fails the L/D rule instead of dividing by zero."""
        flat = dataclasses.replace(context, geometry=dataclasses.replace(context.geometry, shell_inner_diameter=0.0))
        result = validate_tema(flat)
        rule = _rule(result, "TEMA RGP")
        assert rule.status is RuleStatus.FAIL
        assert rule.severity is Severity.CRITICAL
        assert not result.is_valid


class TestAPI661:
    """API 661 air-cooled rules."""

    def test_valid_design(self, air_cooled):
        result = validate_api661(air_cooled)
        assert result.standard == "API 661"
        assert len(result.rules) == 7
        assert result.is_valid
        assert result.warnings == []

    def test_low_air_pressure_drop_fails(self, air_cooled):
        result = validate_api661(dataclasses.replace(air_cooled, air_side_pressure_drop=50.0))
        assert not result.is_valid
        assert result.errors[0].section == "API 661 §5.4.2"

    def test_thin_header_fails(self, air_cooled):
        result = validate_api661(dataclasses.replace(air_cooled, header_thickness=0.005))
        assert not result.is_valid
        assert result.errors[0].section == "API 661 §7.2"

    def test_induced_draft_face_velocity(self, air_cooled):
        forced = validate_api661(dataclasses.replace(air_cooled, air_face_velocity=3.8))
        induced = validate_api661(dataclasses.replace(air_cooled, air_face_velocity=3.8, fan_type=FanType.INDUCED))
        assert _rule(forced, "API 661 §5.2.1").status is RuleStatus.PASS
        assert _rule(induced, "API 661 §5.2.1").status is RuleStatus.WARNING

    def test_small_fans_warn(self, air_cooled):
        result = validate_api661(dataclasses.replace(air_cooled, fan_diameter=1.5))
        assert _rule(result, "API 661 §5.5").status is RuleStatus.WARNING
        assert result.is_valid


class TestDispatch:
    """validate_exchanger dispatch and result invariants."""

    def test_shell_tube_runs_api660_then_tema(self, context):
        results = validate_exchanger(ExchangerType.SHELL_TUBE, context)
        assert [r.standard for r in results] == ["API 660", "TEMA"]

    def test_air_cooled_runs_api661(self, air_cooled):
        results = validate_exchanger(ExchangerType.AIR_COOLED, air_cooled)
        assert [r.standard for r in results] == ["API 661"]

    def test_mismatched_subject_raises(self, context, air_cooled):
        with pytest.raises(ValidationError):
            validate_exchanger(ExchangerType.AIR_COOLED, context)
        with pytest.raises(ValidationError):
            validate_exchanger(ExchangerType.SHELL_TUBE, air_cooled)

    @pytest.mark.parametrize(
        "changes",
        [
            {},
            {"tube_velocity": 3.0, "shell_velocity": 2.0},
            {"duty_imbalance_pct": 30.0, "correction_factor": 0.6},
            {"vibration_status": VibrationStatus.MARGINAL, "shell_phase": FluidPhase.VAPOR},
        ],
    )
    def test_validity_matches_errors(self, context, changes):
        for result in validate_exchanger(ExchangerType.SHELL_TUBE, dataclasses.replace(context, **changes)):
            assert result.is_valid == (not result.errors)
            for rule in result.rules:
                if rule.status is not RuleStatus.PASS:
                    assert rule.severity is not Severity.INFO

    def test_to_dict(self, context):
        data = validate_api660(context).to_dict()
        assert data["standard"] == "API 660"
        assert data["is_valid"] is True
        assert data["rules"][0]["status"] == "pass"


class TestHelpers:
    """Geometry helpers used by the rules."""

    def test_max_tube_count(self):
        assert estimate_max_tube_count(0.591, 0.0254, True) == 352

    def test_minimum_wall_table(self):
        assert minimum_tube_wall(0.01905) == 0.00165
        assert minimum_tube_wall(0.0254) == 0.00211
        assert minimum_tube_wall(0.0381) == 0.00277

    def test_minimum_wall_pressure(self):
        wall = minimum_tube_wall(0.0254, 2.0e7, 92.4e6)
        assert wall == pytest.approx(2.0e7 * 0.0127 / (92.4e6 + 0.4 * 2.0e7))

    def test_vapor_phase_overrides_service(self):
        assert effective_service(ServiceType.CLEAN_LIQUID, FluidPhase.VAPOR) is ServiceType.GAS_VAPOR
        assert effective_service(ServiceType.CLEAN_LIQUID, FluidPhase.BOILING) is ServiceType.TWO_PHASE
        assert effective_service(ServiceType.EROSIVE, FluidPhase.LIQUID) is ServiceType.EROSIVE
