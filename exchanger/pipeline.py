"""
End-to-end shell-and-tube evaluation.

Runs thermal rating, pressure drop, vibration screening and standards
compliance in that order, feeding each stage the results it needs from the
earlier ones.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from exchanger.compliance import ShellTubeContext, validate_exchanger
from exchanger.models import (
    APIValidationResult,
    ExchangerConfiguration,
    ExchangerEvaluation,
    ExchangerType,
    SafetyReport,
    ValidationRule,
    VibrationStatus,
)
from exchanger.pressure_drop import calculate_pressure_drops
from exchanger.thermal import calculate_thermal_performance
from exchanger.vibration import assess_vibration

logger = logging.getLogger("hx-compliance-mcp.pipeline")

DISCLAIMER = (
    "SAFETY CRITICAL DISCLAIMER: THIS IS A SCREENING TOOL ONLY. NOT FOR FINAL DESIGN.\n"
    "MUST BE VERIFIED BY:\n"
    "1. Licensed Professional Engineer\n"
    "2. HTRI/Aspen EDR Software\n"
    "3. API 660/661 Compliance Audit"
)
CRITICAL_KEYWORDS = ("critical", "safety", "exceed")


def describe_rule(standard: str, rule: ValidationRule) -> str:
    return (
        f"{standard} {rule.section} ({rule.severity.value}): {rule.requirement} - "
        f"{rule.actual_value}, limit {rule.limit}"
    )


def generate_safety_report(
    validation_results: Sequence[APIValidationResult], additional_warnings: Iterable[str] = ()
) -> SafetyReport:
    """Aggregate standards results and stage warnings into a safety report.

    Warnings mentioning critical, safety or exceed are promoted to critical
    warnings. Any rule error makes the report non-compliant and is listed as
    a required action.
    """
    warnings = list(additional_warnings)
    errors = []
    for result in validation_results:
        warnings.extend(describe_rule(result.standard, rule) for rule in result.warnings)
        errors.extend(describe_rule(result.standard, rule) for rule in result.errors)

    critical = tuple(w for w in warnings if any(k in w.lower() for k in CRITICAL_KEYWORDS))
    if errors:
        actions = ("Resolve all errors before proceeding", *errors)
    else:
        actions = ("Review all warnings with qualified engineer",)

    return SafetyReport(
        disclaimer=DISCLAIMER,
        critical_warnings=critical,
        required_actions=actions,
        standards_compliant=not errors,
        standards_checked=tuple(result.standard for result in validation_results),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def evaluate_exchanger(config: ExchangerConfiguration) -> Optional[ExchangerEvaluation]:
    """Evaluate a shell-and-tube exchanger configuration.

    Args:
        config: Complete exchanger configuration (SI units)

    Returns:
        ExchangerEvaluation, or None when the thermal or hydraulic stage
        rejects the configuration

    Raises:
        TemperatureCrossError: if the terminal temperatures cross
    """
    thermal = calculate_thermal_performance(config)
    if thermal is None:
        return None

    pressure_drop = calculate_pressure_drops(config)
    if pressure_drop is None:
        return None

    vibration = assess_vibration(
        config.geometry,
        config.material,
        crossflow_velocity=pressure_drop.shell_side.velocity_m_s,
        shell_density=config.hot.density,
        tube_fluid_density=config.cold.density,
        shell_phase=config.hot.phase,
        shell_viscosity=config.hot.viscosity,
        speed_of_sound=config.hot.speed_of_sound,
    )

    context = ShellTubeContext(
        geometry=config.geometry,
        operating=config.operating,
        material=config.material,
        tube_phase=config.cold.phase,
        shell_phase=config.hot.phase,
        tube_velocity=pressure_drop.tube_side.velocity_m_s,
        shell_velocity=pressure_drop.shell_side.velocity_m_s,
        correction_factor=thermal.correction_factor,
        duty_imbalance_pct=thermal.duty_imbalance_pct,
        vibration_status=vibration.status if vibration is not None else None,
    )
    validation = validate_exchanger(ExchangerType.SHELL_TUBE, context)

    stage_warnings = []
    if vibration is None:
        stage_warnings.append("Vibration screening not performed; tube support safety unverified")
    elif vibration.status is not VibrationStatus.SAFE:
        stage_warnings.append(vibration.message)

    evaluation = ExchangerEvaluation(
        thermal=thermal,
        pressure_drop=pressure_drop,
        vibration=vibration,
        validation=tuple(validation),
        safety_report=generate_safety_report(validation, stage_warnings),
    )
    logger.info(
        f"Evaluated exchanger: Q={thermal.heat_duty_W / 1000:.1f} kW, "
        f"A_req={thermal.required_area_m2:.2f} m², compliant={evaluation.is_compliant}"
    )
    return evaluation
