"""Tests for the end-to-end exchanger evaluation."""
import dataclasses

import pytest

from exchanger.models import FluidPhase, ShellSideMethod, VibrationStatus
from exchanger.pipeline import DISCLAIMER, evaluate_exchanger, generate_safety_report
from utils.validation import TemperatureCrossError


class TestEvaluateExchanger:
    """Thermal, pressure drop, vibration and compliance in sequence."""

    def test_water_water_is_compliant(self, design_config):
        evaluation = evaluate_exchanger(design_config)
        assert evaluation is not None
        assert evaluation.thermal.required_area_m2 > 0
        assert evaluation.pressure_drop.tube_side.total_Pa > 0
        assert evaluation.pressure_drop.shell_side.total_Pa > 0
        assert evaluation.vibration.status is VibrationStatus.SAFE
        assert [v.standard for v in evaluation.validation] == ["API 660", "TEMA"]
        assert evaluation.is_compliant

    def test_stages_are_linked(self, design_config):
        evaluation = evaluate_exchanger(design_config)
        assert evaluation.vibration.crossflow_velocity_m_s == pytest.approx(
            evaluation.pressure_drop.shell_side.velocity_m_s
        )
        api660 = evaluation.validation[0]
        vibration_rule = [r for r in api660.rules if r.section == "API 660 §5.6"][0]
        assert vibration_rule.actual_value == "safe"
        balance_rule = [r for r in api660.rules if r.section == "Process heat balance"][0]
        assert balance_rule.actual_value == "0.0%"

    def test_bell_delaware_pipeline(self, design_config):
        evaluation = evaluate_exchanger(
            dataclasses.replace(design_config, shell_side_method=ShellSideMethod.BELL_DELAWARE)
        )
        assert evaluation.pressure_drop.shell_side.method is ShellSideMethod.BELL_DELAWARE
        assert evaluation.pressure_drop.shell_side.window_Pa > 0

    def test_tight_pitch_is_not_compliant(self, design_config):
        geometry = dataclasses.replace(design_config.geometry, tube_pitch=0.02286)
        evaluation = evaluate_exchanger(dataclasses.replace(design_config, geometry=geometry))
        assert not evaluation.is_compliant
        assert all(not result.is_valid for result in evaluation.validation)

    def test_vapor_shell_side(self, design_config):
        hot = dataclasses.replace(design_config.hot, phase=FluidPhase.VAPOR, density=5.0, viscosity=1.5e-5,
                                  thermal_conductivity=0.03, specific_heat=2000.0, mass_flow=2.0)
        evaluation = evaluate_exchanger(dataclasses.replace(design_config, hot=hot))
        api660 = evaluation.validation[0]
        assert "API 660 §5.6.2" in [r.section for r in api660.rules]

    def test_temperature_cross_propagates(self, design_config):
        cold = dataclasses.replace(design_config.cold, outlet_temperature=430.0)
        with pytest.raises(TemperatureCrossError):
            evaluate_exchanger(dataclasses.replace(design_config, cold=cold))

    def test_invalid_configuration_returns_none(self, design_config):
        hot = dataclasses.replace(design_config.hot, density=0.0)
        assert evaluate_exchanger(dataclasses.replace(design_config, hot=hot)) is None

    def test_to_dict_is_json_ready(self, design_config):
        data = evaluate_exchanger(design_config).to_dict()
        assert data["is_compliant"] is True
        assert data["thermal"]["mode"] == "design"
        assert data["vibration"]["status"] == "safe"
        assert data["validation"][1]["standard"] == "TEMA"
        assert isinstance(data["vibration"]["recommendations"], list)


class TestSafetyReport:
    """Aggregated warnings, errors and required actions."""

    def test_compliant_design(self, design_config):
        report = evaluate_exchanger(design_config).safety_report
        assert report.standards_compliant
        assert report.standards_checked == ("API 660", "TEMA")
        assert report.required_actions == ("Review all warnings with qualified engineer",)
        assert report.disclaimer == DISCLAIMER

    def test_errors_become_required_actions(self, design_config):
        geometry = dataclasses.replace(design_config.geometry, tube_pitch=0.02286)
        report = evaluate_exchanger(dataclasses.replace(design_config, geometry=geometry)).safety_report
        assert not report.standards_compliant
        assert report.required_actions[0] == "Resolve all errors before proceeding"
        assert len(report.required_actions) > 1
        assert any("pitch" in action.lower() for action in report.required_actions[1:])

    def test_keyword_warnings_are_critical(self, design_config):
        validation = evaluate_exchanger(design_config).validation
        report = generate_safety_report(
            validation, ["Shell velocity exceeds erosion limit", "Minor layout note"]
        )
        assert "Shell velocity exceeds erosion limit" in report.critical_warnings
        assert "Minor layout note" not in report.critical_warnings

    def test_empty_results(self):
        report = generate_safety_report([])
        assert report.standards_compliant
        assert report.standards_checked == ()
        assert report.critical_warnings == ()

    def test_serialized_report(self, design_config):
        data = evaluate_exchanger(design_config).to_dict()["safety_report"]
        assert isinstance(data["timestamp"], str)
        assert data["standards_compliant"] is True
        assert data["standards_checked"] == ["API 660", "TEMA"]
