"""
Flow-induced vibration screening for tubes in crossflow (TEMA Section 6 style).

Checks vortex-shedding resonance, fluid-elastic instability (Connors),
turbulent buffeting, acoustic resonance in gas service and the Pettigrew-Taylor
damage number, then rolls them up into a safe / marginal / unsafe status.
"""

import logging
import math
from typing import List, Optional

from exchanger.models import (
    ExchangerGeometry,
    FluidPhase,
    TubeMaterial,
    TubePattern,
    VibrationResult,
    VibrationStatus,
)
from utils.constants import (
    ACOUSTIC_BAND,
    ADDED_MASS_COEFFICIENT_CAP,
    DAMAGE_NUMBER_LIMIT,
    DEFAULT_LIQUID_SPEED_OF_SOUND,
    DEFAULT_VAPOR_SPEED_OF_SOUND,
    MARGINAL_FRACTION,
    MIN_SPEED_OF_SOUND,
    MODE_CONSTANT_FIXED_FIXED,
    REDUCED_VELOCITY_LIMIT,
    RESONANCE_BAND,
    VELOCITY_RATIO_LIMIT,
    VISCOUS_LIQUID_VISCOSITY,
)

logger = logging.getLogger("hx-compliance-mcp.vibration")

STROUHAL_NUMBER = {
    TubePattern.TRIANGULAR_30: 0.20,
    TubePattern.TRIANGULAR_60: 0.22,
    TubePattern.SQUARE_90: 0.25,
    TubePattern.ROTATED_SQUARE_45: 0.21,
}

# Connors fluid-elastic instability constant
CONNORS_CONSTANT = {
    TubePattern.TRIANGULAR_30: 2.4,
    TubePattern.TRIANGULAR_60: 2.8,
    TubePattern.SQUARE_90: 3.4,
    TubePattern.ROTATED_SQUARE_45: 3.0,
}

VORTEX_RECOMMENDATIONS = (
    "Reduce unsupported span to raise natural frequency",
    "Add intermediate tube supports",
    "Consider rotated square pitch layout",
)
FEI_RECOMMENDATIONS = (
    "Reduce shell-side flow rate",
    "Increase tube pitch",
    "Use larger shell diameter",
)
DAMAGE_RECOMMENDATIONS = ("Increase tube support frequency",)
ACOUSTIC_RECOMMENDATIONS = (
    "Install acoustic baffles or desuperheater plates",
    "Modify tube pitch to shift vortex frequency",
)
BUFFETING_RECOMMENDATIONS = ("Review tube support design",)
MARGINAL_RECOMMENDATIONS = ("Within 10% of a vibration limit; confirm with a detailed vibration analysis",)

# Fretting wear, mm/year
MINIMAL_WEAR_RATE = 0.01
MAX_WEAR_RATE = 5.0
WEAR_DAMAGE_THRESHOLD = 0.3


def damping_ratio_for(phase: FluidPhase, viscosity: float = 0.0) -> float:
    """Default critical damping ratio for the shell-side fluid."""
    if phase.is_two_phase:
        return 0.08
    if phase is FluidPhase.VAPOR:
        return 0.01
    return 0.05 if viscosity > VISCOUS_LIQUID_VISCOSITY else 0.03


def added_mass_coefficient(pitch_ratio: float, pattern: TubePattern) -> float:
    factor = 0.6 if pattern.is_triangular else 0.5
    return min(1.0 + factor / (pitch_ratio - 1.0) ** 1.5, ADDED_MASS_COEFFICIENT_CAP)


def _in_band(value: float, band) -> bool:
    low, high = band
    return low <= value <= high


def _acoustic_coincidence(fvs: float, fa: float) -> bool:
    low, high = ACOUSTIC_BAND
    return any(low < ratio < high for ratio in (fvs / fa, 2.0 * fvs / fa))


def _status(velocity_ratio: float, damage_number: float, frequency_ratio: float) -> VibrationStatus:
    if (
        velocity_ratio >= VELOCITY_RATIO_LIMIT
        or damage_number >= DAMAGE_NUMBER_LIMIT
        or _in_band(frequency_ratio, RESONANCE_BAND)
    ):
        return VibrationStatus.UNSAFE

    low, high = RESONANCE_BAND
    marginal_band = (low * MARGINAL_FRACTION, high / MARGINAL_FRACTION)
    if (
        velocity_ratio >= VELOCITY_RATIO_LIMIT * MARGINAL_FRACTION
        or damage_number >= DAMAGE_NUMBER_LIMIT * MARGINAL_FRACTION
        or _in_band(frequency_ratio, marginal_band)
    ):
        return VibrationStatus.MARGINAL
    return VibrationStatus.SAFE


def tube_wear_rate(has_vibration_issue: bool, damage_number: float, phase: FluidPhase) -> float:
    """Rough fretting wear rate (mm/year) at the baffle holes."""
    if not has_vibration_issue and damage_number < WEAR_DAMAGE_THRESHOLD:
        return MINIMAL_WEAR_RATE
    rate = damage_number * 0.5
    # droplet impingement
    if phase.is_two_phase:
        rate *= 2.0
    return min(rate, MAX_WEAR_RATE)


def frequency_margin(frequency_ratio: float) -> float:
    """Distance of fvs/fn from the nearer edge of the resonance band."""
    low, high = RESONANCE_BAND
    return min(abs(frequency_ratio - low), abs(frequency_ratio - high))


def vibration_message(
    is_vortex: bool, is_fei: bool, is_acoustic: bool, is_buffeting: bool, velocity_ratio: float
) -> str:
    if is_fei:
        return "CRITICAL: Fluid-elastic instability risk - redesign required"
    if is_vortex:
        return "WARNING: Vortex shedding resonance - reduce baffle spacing"
    if is_acoustic:
        return "WARNING: Acoustic resonance possible - install acoustic baffles"
    if is_buffeting:
        return "CAUTION: Turbulent buffeting concern - review support design"
    percent = velocity_ratio * 100.0
    if velocity_ratio > 0.6:
        return (
            f"ACCEPTABLE: Operating at {percent:.0f}% of critical velocity "
            f"(limit: {VELOCITY_RATIO_LIMIT * 100:.0f}%)"
        )
    return f"SAFE: Design well within vibration limits ({percent:.0f}% of critical)"


def assess_vibration(
    geometry: ExchangerGeometry,
    material: TubeMaterial,
    crossflow_velocity: float,
    shell_density: float,
    tube_fluid_density: float,
    shell_phase: FluidPhase = FluidPhase.LIQUID,
    shell_viscosity: float = 0.0,
    speed_of_sound: Optional[float] = None,
    damping_ratio: Optional[float] = None,
) -> Optional[VibrationResult]:
    """Assess flow-induced vibration risk for the longest unsupported span.

    Args:
        geometry: Exchanger geometry (tube dimensions, pitch, pattern, span)
        material: Tube material (elastic modulus and density)
        crossflow_velocity: Shell-side crossflow velocity (m/s)
        shell_density: Shell-side fluid density (kg/m³)
        tube_fluid_density: Tube-side fluid density (kg/m³)
        shell_phase: Shell-side fluid phase; sets damping and acoustic screening
        shell_viscosity: Shell-side viscosity (Pa·s); viscous liquids damp more
        speed_of_sound: Shell-side speed of sound (m/s); defaults by phase
        damping_ratio: Critical damping ratio; defaults by phase

    Returns:
        VibrationResult, or None if any input is out of range
    """
    Do = geometry.tube_outer_diameter
    Di = geometry.tube_inner_diameter
    span = geometry.tube_unsupported_span
    pitch = geometry.tube_pitch

    if (
        crossflow_velocity <= 0
        or Do <= 0
        or Di <= 0
        or Di >= Do
        or span <= 0
        or shell_density <= 0
        or tube_fluid_density <= 0
        or material.density <= 0
        or material.elastic_modulus <= 0
        or pitch <= Do
        or geometry.shell_inner_diameter <= 0
        or (damping_ratio is not None and damping_ratio <= 0)
    ):
        logger.warning(
            "Vibration assessment skipped: velocity, diameters, span, densities and damping must be "
            "positive, with Di < Do < pitch"
        )
        return None

    V = crossflow_velocity
    pattern = geometry.tube_pattern
    pitch_ratio = pitch / Do

    # Per-metre masses: tube wall, tube-side contents, hydrodynamic added mass
    moment = math.pi / 64.0 * (Do**4 - Di**4)
    tube_mass = material.density * math.pi / 4.0 * (Do**2 - Di**2)
    contents_mass = tube_fluid_density * math.pi / 4.0 * Di**2
    Cm = added_mass_coefficient(pitch_ratio, pattern)
    added_mass = Cm * shell_density * math.pi / 4.0 * Do**2
    m = tube_mass + contents_mass + added_mass

    fn = MODE_CONSTANT_FIXED_FIXED / (2.0 * math.pi) * math.sqrt(
        material.elastic_modulus * moment / (m * span**4)
    )

    fvs = STROUHAL_NUMBER[pattern] * V / Do
    frequency_ratio = fvs / fn

    zeta = damping_ratio if damping_ratio is not None else damping_ratio_for(shell_phase, shell_viscosity)
    log_decrement = 2.0 * math.pi * zeta
    mass_ratio = m / (shell_density * Do**2)
    V_crit = CONNORS_CONSTANT[pattern] * fn * Do * math.sqrt(mass_ratio * log_decrement)
    velocity_ratio = V / V_crit

    damage_number = shell_density * V**2 * Do / (m * fn * log_decrement)

    ftb = 3.05 * V * (1.0 - 1.0 / pitch_ratio) / Do
    reduced_velocity = V / (fn * Do)

    is_vapor = shell_phase is FluidPhase.VAPOR
    if speed_of_sound is None:
        speed_of_sound = DEFAULT_VAPOR_SPEED_OF_SOUND if is_vapor else DEFAULT_LIQUID_SPEED_OF_SOUND
    fa = max(speed_of_sound, MIN_SPEED_OF_SOUND) / (2.0 * geometry.shell_inner_diameter)

    is_vortex = _in_band(frequency_ratio, RESONANCE_BAND)
    is_fei = velocity_ratio >= VELOCITY_RATIO_LIMIT
    is_damage = damage_number >= DAMAGE_NUMBER_LIMIT
    is_acoustic = is_vapor and _acoustic_coincidence(fvs, fa)
    is_buffeting = reduced_velocity > REDUCED_VELOCITY_LIMIT

    status = _status(velocity_ratio, damage_number, frequency_ratio)

    recommendations: List[str] = []
    for flagged, texts in (
        (is_vortex, VORTEX_RECOMMENDATIONS),
        (is_fei, FEI_RECOMMENDATIONS),
        (is_damage, DAMAGE_RECOMMENDATIONS),
        (is_acoustic, ACOUSTIC_RECOMMENDATIONS),
        (is_buffeting, BUFFETING_RECOMMENDATIONS),
        (status is VibrationStatus.MARGINAL, MARGINAL_RECOMMENDATIONS),
    ):
        if flagged:
            recommendations.extend(t for t in texts if t not in recommendations)

    if status is VibrationStatus.UNSAFE:
        logger.info(
            f"Tube vibration unsafe: V/Vcrit={velocity_ratio:.2f}, fvs/fn={frequency_ratio:.2f}, "
            f"damage number={damage_number:.2f}"
        )

    return VibrationResult(
        natural_frequency_Hz=fn,
        vortex_shedding_frequency_Hz=fvs,
        turbulent_buffeting_frequency_Hz=ftb,
        acoustic_resonance_frequency_Hz=fa,
        critical_velocity_m_s=V_crit,
        crossflow_velocity_m_s=V,
        velocity_ratio=velocity_ratio,
        frequency_ratio=frequency_ratio,
        reduced_velocity=reduced_velocity,
        damage_number=damage_number,
        effective_mass_kg_m=m,
        damping_ratio=zeta,
        is_vortex_shedding_risk=is_vortex,
        is_fei_risk=is_fei,
        is_acoustic_risk=is_acoustic,
        is_turbulent_buffeting_risk=is_buffeting,
        status=status,
        recommendations=tuple(recommendations),
        tube_wear_rate_mm_yr=tube_wear_rate(is_vortex or is_fei, damage_number, shell_phase),
        frequency_margin=frequency_margin(frequency_ratio),
        message=vibration_message(is_vortex, is_fei, is_acoustic, is_buffeting, velocity_ratio),
    )
