"""
Standards compliance rule engine for API 660, TEMA and API 661.

Each standard is a tuple of small rule functions evaluated in clause order.
A rule takes the validation context and returns a ValidationRule, or None
when it does not apply (for example the gas-service rule for a liquid shell
side). Violations are always reported as data, never raised.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple, Union

from exchanger import geometry as geom
from exchanger.models import (
    AirCooledDesign,
    APIValidationResult,
    ExchangerGeometry,
    ExchangerType,
    FanType,
    FluidPhase,
    HeaderType,
    OperatingConditions,
    RuleStatus,
    ServiceType,
    Severity,
    TemaClass,
    TubeMaterial,
    ValidationRule,
    VibrationStatus,
)
from utils.constants import (
    AIR_FACE_VELOCITY_MAX_FORCED,
    AIR_FACE_VELOCITY_MAX_INDUCED,
    AIR_FACE_VELOCITY_MIN,
    BAFFLE_CUT_RANGE_PCT,
    BUNDLE_WIDTH_TOLERANCE,
    DUTY_IMBALANCE_LIMIT_PCT,
    FIN_DENSITY_RANGE,
    HEADER_MIN_THICKNESS,
    HEADER_PRESSURE_DIVISOR,
    MAX_PITCH_RATIO,
    MIN_AIR_SIDE_PRESSURE_DROP,
    MIN_BAFFLE_SPACING,
    MIN_BAFFLE_SPACING_FRACTION,
    MIN_FAN_COVERAGE,
    MIN_PITCH_RATIO,
    SHELL_LD_RANGE,
    STANDARD_AIR_COOLER_TUBE_OD,
    STANDARD_BUNDLE_WIDTHS,
    STANDARD_TUBE_LENGTHS,
    TEMA_MIN_F,
    TUBE_COUNT_MARGIN,
    TUBE_LENGTH_TOLERANCE,
    TUBE_OD_TOLERANCE,
    VELOCITY_WARNING_MARGIN,
)
from utils.validation import ValidationError

logger = logging.getLogger("hx-compliance-mcp.compliance")

# Maximum velocities (tube side, shell side) in m/s
VELOCITY_LIMITS = {
    ServiceType.CLEAN_LIQUID: (2.4, 1.5),
    ServiceType.FOULING_LIQUID: (1.5, 0.9),
    ServiceType.GAS_VAPOR: (30.0, 25.0),
    ServiceType.TWO_PHASE: (15.0, 10.0),
    ServiceType.EROSIVE: (1.0, 0.6),
}

TEMA_MIN_TUBE_WALL = {
    TemaClass.R: 0.00211,
    TemaClass.C: 0.00165,
    TemaClass.B: 0.00165,
}

HEADER_THICKNESS_FACTOR = {
    HeaderType.PLUG: 1.0,
    HeaderType.COVER_PLATE: 1.2,
    HeaderType.MANIFOLD: 0.8,
}


@dataclass(frozen=True)
class ShellTubeContext:
    """Everything the shell-and-tube rules look at.

    Results of earlier stages are optional; rules that need a missing value
    are skipped.
    """

    geometry: ExchangerGeometry
    operating: OperatingConditions = field(default_factory=OperatingConditions)
    material: TubeMaterial = field(default_factory=TubeMaterial)
    tube_phase: FluidPhase = FluidPhase.LIQUID
    shell_phase: FluidPhase = FluidPhase.LIQUID
    tube_velocity: Optional[float] = None
    shell_velocity: Optional[float] = None
    correction_factor: Optional[float] = None
    duty_imbalance_pct: Optional[float] = None
    vibration_status: Optional[VibrationStatus] = None


def _passed(section: str, requirement: str, actual: str, limit: str) -> ValidationRule:
    return ValidationRule(section, requirement, actual, limit, RuleStatus.PASS, Severity.INFO)


def _checked(
    ok: bool,
    section: str,
    requirement: str,
    actual: str,
    limit: str,
    status: RuleStatus = RuleStatus.WARNING,
    severity: Severity = Severity.WARNING,
) -> ValidationRule:
    if ok:
        return _passed(section, requirement, actual, limit)
    return ValidationRule(section, requirement, actual, limit, status, severity)


def _closest(value: float, options: Sequence[float]) -> float:
    return min(options, key=lambda option: abs(option - value))


def effective_service(service: ServiceType, phase: FluidPhase) -> ServiceType:
    """Service type used for velocity limits; the fluid phase takes precedence."""
    if phase.is_two_phase:
        return ServiceType.TWO_PHASE
    if phase is FluidPhase.VAPOR:
        return ServiceType.GAS_VAPOR
    return service


# ---------------------------------------------------------------------------
# API 660
# ---------------------------------------------------------------------------


def _api660_pitch_ratio(ctx: ShellTubeContext) -> ValidationRule:
    ratio = ctx.geometry.pitch_ratio
    return _checked(
        ratio >= MIN_PITCH_RATIO,
        "API 660 §5.3.2",
        "Minimum tube pitch ratio (P/d)",
        f"{ratio:.3f}",
        f"≥ {MIN_PITCH_RATIO}",
        RuleStatus.FAIL,
        Severity.CRITICAL,
    )


def _api660_tube_wall(ctx: ShellTubeContext) -> ValidationRule:
    minimum = geom.minimum_tube_wall(
        ctx.geometry.tube_outer_diameter,
        ctx.operating.design_pressure,
        ctx.material.allowable_stress,
    )
    wall = ctx.geometry.tube_wall_thickness
    return _checked(
        wall >= minimum,
        "API 660 §5.3.3",
        "Minimum tube wall thickness",
        f"{wall * 1000:.2f} mm",
        f"≥ {minimum * 1000:.2f} mm",
        RuleStatus.FAIL,
        Severity.CRITICAL,
    )


def _velocity_rule(
    velocity: Optional[float], limit: float, requirement: str, exceeded_severity: Severity
) -> Optional[ValidationRule]:
    if velocity is None:
        return None
    actual = f"{velocity:.2f} m/s"
    limit_text = f"≤ {limit} m/s"
    if velocity <= limit:
        return _passed("API 660 §5.4", requirement, actual, limit_text)
    status = RuleStatus.WARNING if velocity <= limit * VELOCITY_WARNING_MARGIN else RuleStatus.FAIL
    return ValidationRule("API 660 §5.4", requirement, actual, limit_text, status, exceeded_severity)


def _api660_tube_velocity(ctx: ShellTubeContext) -> Optional[ValidationRule]:
    service = effective_service(ctx.operating.service_type, ctx.tube_phase)
    return _velocity_rule(
        ctx.tube_velocity, VELOCITY_LIMITS[service][0], "Tube-side velocity limit", Severity.CRITICAL
    )


def _api660_shell_velocity(ctx: ShellTubeContext) -> Optional[ValidationRule]:
    service = effective_service(ctx.operating.service_type, ctx.shell_phase)
    return _velocity_rule(
        ctx.shell_velocity, VELOCITY_LIMITS[service][1], "Shell-side velocity limit", Severity.WARNING
    )


def _api660_gas_service(ctx: ShellTubeContext) -> Optional[ValidationRule]:
    if ctx.shell_phase is not FluidPhase.VAPOR:
        return None
    return ValidationRule(
        "API 660 §5.6.2",
        "Gas service vibration analysis required",
        "Gas/vapor on shell side",
        "See TEMA RGP T-4",
        RuleStatus.WARNING,
        Severity.WARNING,
    )


def _api660_vibration_status(ctx: ShellTubeContext) -> Optional[ValidationRule]:
    status = ctx.vibration_status
    if status is None:
        return None
    section, requirement, limit = "API 660 §5.6", "Flow-induced vibration screening", "safe"
    if status is VibrationStatus.UNSAFE:
        return ValidationRule(section, requirement, status.value, limit, RuleStatus.FAIL, Severity.WARNING)
    if status is VibrationStatus.MARGINAL:
        return ValidationRule(section, requirement, status.value, limit, RuleStatus.WARNING, Severity.WARNING)
    return _passed(section, requirement, status.value, limit)


def _api660_min_baffle_spacing(ctx: ShellTubeContext) -> ValidationRule:
    minimum = max(MIN_BAFFLE_SPACING_FRACTION * ctx.geometry.shell_inner_diameter, MIN_BAFFLE_SPACING)
    spacing = ctx.geometry.baffle_spacing
    return _checked(
        spacing >= minimum,
        "API 660 §6.2.2",
        "Minimum baffle spacing",
        f"{spacing * 1000:.1f} mm",
        f"≥ {minimum * 1000:.1f} mm",
    )


def _api660_max_baffle_spacing(ctx: ShellTubeContext) -> ValidationRule:
    maximum = ctx.geometry.shell_inner_diameter
    spacing = ctx.geometry.baffle_spacing
    return _checked(
        spacing <= maximum,
        "API 660 §6.2.3",
        "Maximum baffle spacing (vibration)",
        f"{spacing * 1000:.1f} mm",
        f"≤ {maximum * 1000:.1f} mm",
    )


def _api660_baffle_cut(ctx: ShellTubeContext) -> ValidationRule:
    cut_pct = ctx.geometry.baffle_cut * 100.0
    low, high = BAFFLE_CUT_RANGE_PCT
    return _checked(
        low <= cut_pct <= high,
        "API 660 §6.2.4",
        "Baffle cut range",
        f"{cut_pct:.1f}%",
        f"{low:.0f}% - {high:.0f}%",
    )


def _api660_tube_length(ctx: ShellTubeContext) -> ValidationRule:
    length = ctx.geometry.tube_length
    standard = _closest(length, STANDARD_TUBE_LENGTHS)
    return _checked(
        abs(length - standard) <= TUBE_LENGTH_TOLERANCE,
        "API 660 §7",
        "Standard tube length",
        f"{length:.2f} m",
        f"Standard: {standard} m",
    )


def _tema_tube_count(ctx: ShellTubeContext) -> ValidationRule:
    g = ctx.geometry
    max_tubes = geom.estimate_max_tube_count(g.shell_inner_diameter, g.tube_pitch, g.tube_pattern.is_triangular)
    return _checked(
        g.tube_count <= max_tubes * TUBE_COUNT_MARGIN,
        "TEMA §RGP-4",
        "Tube count vs shell size",
        f"{g.tube_count} tubes",
        f"≤ ~{max_tubes}",
    )


def _heat_balance(ctx: ShellTubeContext) -> Optional[ValidationRule]:
    if ctx.duty_imbalance_pct is None:
        return None
    imbalance = ctx.duty_imbalance_pct
    return _checked(
        imbalance <= DUTY_IMBALANCE_LIMIT_PCT,
        "Process heat balance",
        "Hot and cold duties agree",
        f"{imbalance:.1f}%",
        f"≤ {DUTY_IMBALANCE_LIMIT_PCT:.0f}%",
    )


API660_RULES: Tuple[Callable[[ShellTubeContext], Optional[ValidationRule]], ...] = (
    _api660_pitch_ratio,
    _api660_tube_wall,
    _api660_tube_velocity,
    _api660_shell_velocity,
    _api660_gas_service,
    _api660_vibration_status,
    _api660_min_baffle_spacing,
    _api660_max_baffle_spacing,
    _api660_baffle_cut,
    _api660_tube_length,
    _tema_tube_count,
    _heat_balance,
)


# ---------------------------------------------------------------------------
# TEMA
# ---------------------------------------------------------------------------


def _tema_class_wall(ctx: ShellTubeContext) -> ValidationRule:
    tema_class = ctx.operating.tema_class
    minimum = TEMA_MIN_TUBE_WALL[tema_class]
    wall = ctx.geometry.tube_wall_thickness
    return _checked(
        wall >= minimum,
        f"TEMA {tema_class.value}-2.31",
        f"Class {tema_class.value} minimum tube wall",
        f"{wall * 1000:.2f} mm",
        f"≥ {minimum * 1000:.2f} mm",
        RuleStatus.FAIL,
        Severity.CRITICAL,
    )


def _tema_pitch_ratio(ctx: ShellTubeContext) -> ValidationRule:
    ratio = ctx.geometry.pitch_ratio
    section, requirement = "TEMA RGP-4", "Pitch ratio (P/d)"
    actual, limit = f"{ratio:.3f}", f"{MIN_PITCH_RATIO} - {MAX_PITCH_RATIO:.2f}"
    if ratio < MIN_PITCH_RATIO:
        return ValidationRule(section, requirement, actual, limit, RuleStatus.FAIL, Severity.CRITICAL)
    return _checked(ratio <= MAX_PITCH_RATIO, section, requirement, actual, limit)


def _tema_shell_aspect(ctx: ShellTubeContext) -> ValidationRule:
    low, high = SHELL_LD_RANGE
    section, requirement, limit = "TEMA RGP", "Shell L/D ratio", f"{low:.0f} - {high:.0f} typical"
    diameter = ctx.geometry.shell_inner_diameter
    if diameter <= 0:
        return ValidationRule(
            section, requirement, f"shell ID {diameter} m", limit, RuleStatus.FAIL, Severity.CRITICAL
        )
    ratio = ctx.geometry.tube_length / diameter
    return _checked(low <= ratio <= high, section, requirement, f"{ratio:.2f}", limit)


def _tema_correction_factor(ctx: ShellTubeContext) -> Optional[ValidationRule]:
    if ctx.correction_factor is None:
        return None
    F = ctx.correction_factor
    return _checked(
        F >= TEMA_MIN_F,
        "TEMA RGP-T-3",
        "LMTD correction factor",
        f"{F:.3f}",
        f"≥ {TEMA_MIN_F}",
    )


TEMA_RULES: Tuple[Callable[[ShellTubeContext], Optional[ValidationRule]], ...] = (
    _tema_class_wall,
    _tema_pitch_ratio,
    _tema_shell_aspect,
    _tema_correction_factor,
)


# ---------------------------------------------------------------------------
# API 661
# ---------------------------------------------------------------------------


def _api661_face_velocity(design: AirCooledDesign) -> ValidationRule:
    maximum = AIR_FACE_VELOCITY_MAX_INDUCED if design.fan_type is FanType.INDUCED else AIR_FACE_VELOCITY_MAX_FORCED
    velocity = design.air_face_velocity
    return _checked(
        AIR_FACE_VELOCITY_MIN <= velocity <= maximum,
        "API 661 §5.2.1",
        "Air face velocity range",
        f"{velocity:.2f} m/s",
        f"{AIR_FACE_VELOCITY_MIN} - {maximum} m/s",
    )


def _api661_air_pressure_drop(design: AirCooledDesign) -> ValidationRule:
    dp = design.air_side_pressure_drop
    return _checked(
        dp >= MIN_AIR_SIDE_PRESSURE_DROP,
        "API 661 §5.4.2",
        "Minimum air-side pressure drop",
        f"{dp:.0f} Pa",
        f"≥ {MIN_AIR_SIDE_PRESSURE_DROP:.0f} Pa (0.1 kPa)",
        RuleStatus.FAIL,
        Severity.CRITICAL,
    )


def _api661_bundle_width(design: AirCooledDesign) -> ValidationRule:
    standard = _closest(design.bundle_width, STANDARD_BUNDLE_WIDTHS)
    return _checked(
        abs(design.bundle_width - standard) < BUNDLE_WIDTH_TOLERANCE,
        "API 661 §5.3",
        "Standard bundle width",
        f"{design.bundle_width:.2f} m",
        f"Standard: {standard} m",
    )


def _api661_fin_density(design: AirCooledDesign) -> ValidationRule:
    low, high = FIN_DENSITY_RANGE
    return _checked(
        low <= design.fin_density <= high,
        "API 661 §6.3",
        "Fin density range",
        f"{design.fin_density:.0f} fins/m",
        f"{low:.0f} - {high:.0f} fins/m",
    )


def _api661_tube_od(design: AirCooledDesign) -> ValidationRule:
    od = design.tube_outer_diameter
    return _checked(
        any(abs(od - standard) < TUBE_OD_TOLERANCE for standard in STANDARD_AIR_COOLER_TUBE_OD),
        "API 661 §6",
        "Standard tube OD",
        f"{od * 1000:.2f} mm",
        "19.05, 25.4, or 31.75 mm",
    )


def _api661_header_thickness(design: AirCooledDesign) -> ValidationRule:
    minimum = max(
        HEADER_MIN_THICKNESS,
        design.design_pressure / HEADER_PRESSURE_DIVISOR * HEADER_THICKNESS_FACTOR[design.header_type],
    )
    return _checked(
        design.header_thickness >= minimum,
        "API 661 §7.2",
        "Header minimum thickness",
        f"{design.header_thickness * 1000:.2f} mm",
        f"≥ {minimum * 1000:.2f} mm",
        RuleStatus.FAIL,
        Severity.CRITICAL,
    )


def _api661_fan_coverage(design: AirCooledDesign) -> ValidationRule:
    bundle_area = design.bundle_width * design.bundle_length
    fan_area = math.pi * (design.fan_diameter / 2.0) ** 2 * design.number_of_bays
    coverage = fan_area / bundle_area if bundle_area > 0 else 0.0
    return _checked(
        coverage >= MIN_FAN_COVERAGE,
        "API 661 §5.5",
        "Fan coverage ratio",
        f"{coverage * 100:.1f}%",
        f"≥ {MIN_FAN_COVERAGE * 100:.0f}%",
    )


API661_RULES: Tuple[Callable[[AirCooledDesign], ValidationRule], ...] = (
    _api661_face_velocity,
    _api661_air_pressure_drop,
    _api661_bundle_width,
    _api661_fin_density,
    _api661_tube_od,
    _api661_header_thickness,
    _api661_fan_coverage,
)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def _run(standard: str, rules, subject) -> APIValidationResult:
    results: List[ValidationRule] = []
    for rule in rules:
        outcome = rule(subject)
        if outcome is not None:
            results.append(outcome)
    result = APIValidationResult(standard=standard, rules=tuple(results))
    logger.debug(f"{standard}: {len(result.errors)} errors, {len(result.warnings)} warnings")
    return result


def validate_api660(ctx: ShellTubeContext) -> APIValidationResult:
    return _run("API 660", API660_RULES, ctx)


def validate_tema(ctx: ShellTubeContext) -> APIValidationResult:
    return _run("TEMA", TEMA_RULES, ctx)


def validate_api661(design: AirCooledDesign) -> APIValidationResult:
    return _run("API 661", API661_RULES, design)


def validate_exchanger(
    exchanger_type: ExchangerType, subject: Union[ShellTubeContext, AirCooledDesign]
) -> List[APIValidationResult]:
    """Run every rule set that applies to the exchanger type.

    Args:
        exchanger_type: SHELL_TUBE runs API 660 then TEMA; AIR_COOLED runs API 661
        subject: ShellTubeContext for shell-and-tube, AirCooledDesign for air-cooled

    Returns:
        List of per-standard results in evaluation order
    """
    if exchanger_type is ExchangerType.AIR_COOLED:
        if not isinstance(subject, AirCooledDesign):
            raise ValidationError("Air-cooled validation requires an AirCooledDesign")
        return [validate_api661(subject)]

    if not isinstance(subject, ShellTubeContext):
        raise ValidationError("Shell-and-tube validation requires a ShellTubeContext")
    return [validate_api660(subject), validate_tema(subject)]
