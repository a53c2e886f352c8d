"""
Gas-liquid two-phase flow in exchanger tubes and process piping.

Lockhart-Martinelli parameter with Blasius single-phase gradients, Chisholm
void fraction and friction multiplier, a simplified Baker / Taitel-Dukler
flow pattern map and screening checks for slug, churn, Ledinegg and flashing
instabilities. Also provides the Shah condensation and Chen flow-boiling
film coefficients.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from fluids.constants import g
from fluids.core import Froude, Reynolds, Weber
from fluids.two_phase_voidage import Lockhart_Martinelli_Xtt
from ht.boiling_nucleic import Forster_Zuber

from exchanger.models import Record
from exchanger.pressure_drop import fanning_friction_factor
from utils.validation import (
    ValidationError,
    is_finite_number,
    require_non_negative,
    require_open_range,
    require_positive,
)

logger = logging.getLogger("hx-compliance-mcp.two_phase")

# Superficial velocity (m/s) below which a phase is treated as absent
SINGLE_PHASE_VELOCITY = 0.001
# Inclination (rad) inside which flow counts as horizontal
HORIZONTAL_INCLINATION = 0.1

LEDINEGG_PRESSURE_DENSITY_RATIO = 1.0e5   # P/rho_L, J/kg
LEDINEGG_MIXTURE_VELOCITY = 1.0           # m/s
FLASHING_PRESSURE = 5.0e5                 # Pa
FLASHING_VOID_FRACTION = 0.8
SLUG_FREQUENCY_COEFFICIENT = 0.3

# Chen suppression factor when no liquid Reynolds number is given
CHEN_DEFAULT_REYNOLDS = 1.0e4


class FlowPattern(str, Enum):
    BUBBLE = "bubble"
    DISPERSED_BUBBLE = "dispersed_bubble"
    SLUG = "slug"
    CHURN = "churn"
    ANNULAR = "annular"
    STRATIFIED = "stratified"
    STRATIFIED_WAVY = "stratified_wavy"
    MIST = "mist"


# Chisholm C in phi_L^2 = 1 + C/X + 1/X^2
CHISHOLM_C = {
    FlowPattern.ANNULAR: 20.0,
    FlowPattern.SLUG: 12.0,
    FlowPattern.CHURN: 12.0,
    FlowPattern.STRATIFIED: 10.0,
    FlowPattern.STRATIFIED_WAVY: 10.0,
    FlowPattern.BUBBLE: 5.0,
    FlowPattern.DISPERSED_BUBBLE: 5.0,
}
DEFAULT_CHISHOLM_C = 12.0


@dataclass(frozen=True)
class TwoPhaseInputs(Record):
    """Two-phase flow in a straight pipe or tube, SI units."""

    liquid_flow: float          # kg/s
    gas_flow: float             # kg/s
    liquid_density: float       # kg/m³
    gas_density: float          # kg/m³
    liquid_viscosity: float     # Pa·s
    gas_viscosity: float        # Pa·s
    surface_tension: float      # N/m
    diameter: float             # m
    length: float               # m
    pressure: float             # Pa absolute
    inclination: float = 0.0    # rad from horizontal, positive upward


@dataclass(frozen=True)
class TwoPhaseResult(Record):
    flow_pattern: FlowPattern
    void_fraction: float
    liquid_holdup: float
    pressure_drop_Pa: float
    friction_pressure_drop_Pa: float
    acceleration_pressure_drop_Pa: float
    gravitational_pressure_drop_Pa: float
    liquid_velocity_m_s: float
    gas_velocity_m_s: float
    mixture_velocity_m_s: float
    gas_quality: float
    lockhart_martinelli_X: float
    friction_multiplier: float
    is_slug_flow: bool
    slug_frequency_Hz: Optional[float]
    is_flow_unstable: bool
    instabilities: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def superficial_velocity(mass_flow: float, density: float, diameter: float) -> float:
    area = math.pi * diameter**2 / 4.0
    return mass_flow / (density * area)


def _pressure_gradient(density: float, viscosity: float, velocity: float, diameter: float) -> float:
    """Single-phase frictional gradient dP/dz = 2·f·rho·v²/D (Pa/m)."""
    Re = Reynolds(V=velocity, D=diameter, rho=density, mu=viscosity)
    return 2.0 * fanning_friction_factor(Re) * density * velocity**2 / diameter


def lockhart_martinelli_parameter(inputs: TwoPhaseInputs) -> float:
    """X = sqrt((dP/dz)_L / (dP/dz)_G), each phase flowing alone.

    Infinite with no gas, zero with no liquid.
    """
    if inputs.gas_flow <= 0:
        return math.inf
    if inputs.liquid_flow <= 0:
        return 0.0
    D = inputs.diameter
    vL = superficial_velocity(inputs.liquid_flow, inputs.liquid_density, D)
    vG = superficial_velocity(inputs.gas_flow, inputs.gas_density, D)
    dPL = _pressure_gradient(inputs.liquid_density, inputs.liquid_viscosity, vL, D)
    dPG = _pressure_gradient(inputs.gas_density, inputs.gas_viscosity, vG, D)
    if dPG <= 0:
        return math.inf
    return math.sqrt(dPL / dPG)


def void_fraction(X: float) -> float:
    """Chisholm void fraction alpha = 1 / (1 + 0.28·X^0.71)."""
    if X <= 0:
        return 1.0
    if math.isinf(X):
        return 0.0
    return min(1.0, max(0.0, 1.0 / (1.0 + 0.28 * X**0.71)))


def friction_multiplier(X: float, pattern: FlowPattern) -> float:
    """Liquid-based two-phase multiplier phi_L² (Chisholm, 1967)."""
    if X <= 0:
        return 1.0
    C = CHISHOLM_C.get(pattern, DEFAULT_CHISHOLM_C)
    return 1.0 + C / X + 1.0 / X**2


def determine_flow_pattern(
    liquid_velocity: float,
    gas_velocity: float,
    gas_density: float,
    surface_tension: float,
    diameter: float,
    inclination: float = 0.0,
) -> FlowPattern:
    """Flow pattern from superficial velocities (simplified Baker / Taitel-Dukler map)."""
    vL, vG = liquid_velocity, gas_velocity
    if vG <= SINGLE_PHASE_VELOCITY:
        return FlowPattern.BUBBLE
    if vL <= SINGLE_PHASE_VELOCITY:
        return FlowPattern.MIST

    Fr_L = Froude(vL, diameter)
    Fr_G = Froude(vG, diameter)
    Fr_M = Froude(vG, diameter, squared=True)
    We = Weber(vG, diameter, gas_density, surface_tension)
    alpha = vG / (vG + vL)

    if abs(inclination) < HORIZONTAL_INCLINATION:
        if Fr_G < 0.5 and Fr_L < 0.1:
            return FlowPattern.STRATIFIED if Fr_G < 0.1 else FlowPattern.STRATIFIED_WAVY
        if alpha < 0.4 and Fr_M < 4:
            return FlowPattern.SLUG
        if We > 350 or Fr_G > 3:
            return FlowPattern.ANNULAR
        if Fr_L > 0.5 and alpha < 0.3:
            return FlowPattern.DISPERSED_BUBBLE
        if 0.2 < alpha < 0.8:
            return FlowPattern.SLUG
        if alpha > 0.6 and Fr_G > 1:
            return FlowPattern.CHURN
        return FlowPattern.SLUG

    if inclination > 0:
        if alpha < 0.25:
            return FlowPattern.BUBBLE
        if alpha < 0.65 and Fr_M < 4:
            return FlowPattern.SLUG
        if alpha < 0.85:
            return FlowPattern.CHURN
        return FlowPattern.ANNULAR

    return FlowPattern.STRATIFIED if Fr_G < 1 else FlowPattern.ANNULAR


def detect_instabilities(
    pattern: FlowPattern, inputs: TwoPhaseInputs, mixture_velocity: float, alpha: float
) -> List[str]:
    found = []
    if pattern is FlowPattern.SLUG and 0.3 < alpha < 0.7:
        found.append("Slug flow oscillation")
    if (
        inputs.pressure / inputs.liquid_density > LEDINEGG_PRESSURE_DENSITY_RATIO
        and mixture_velocity < LEDINEGG_MIXTURE_VELOCITY
    ):
        found.append("Potential Ledinegg instability")
    if inputs.pressure < FLASHING_PRESSURE and alpha > FLASHING_VOID_FRACTION:
        found.append("Flashing risk at low pressure")
    if pattern is FlowPattern.CHURN:
        found.append("Churn flow oscillation")
    return found


def slug_frequency(mixture_velocity: float, diameter: float) -> float:
    """Heywood-Richardson style estimate f ≈ 0.3·Vm/D (Hz)."""
    return SLUG_FREQUENCY_COEFFICIENT * mixture_velocity / diameter


def _validate(inputs: TwoPhaseInputs) -> None:
    require_non_negative(inputs.liquid_flow, "liquid_flow")
    require_non_negative(inputs.gas_flow, "gas_flow")
    if inputs.liquid_flow <= 0 and inputs.gas_flow <= 0:
        raise ValidationError("At least one phase flow rate must be positive")
    for name in (
        "liquid_density",
        "gas_density",
        "liquid_viscosity",
        "gas_viscosity",
        "surface_tension",
        "diameter",
        "length",
        "pressure",
    ):
        require_positive(getattr(inputs, name), name)
    if not is_finite_number(inputs.inclination) or abs(inputs.inclination) > math.pi / 2:
        raise ValidationError(f"inclination must be between -pi/2 and pi/2 rad; got {inputs.inclination}")


def calculate_two_phase_flow(inputs: TwoPhaseInputs) -> TwoPhaseResult:
    """Flow pattern, void fraction, pressure drop and instability screening.

    Raises:
        ValidationError: if a flow, property or dimension is out of range
    """
    _validate(inputs)

    D, L = inputs.diameter, inputs.length
    vL = superficial_velocity(inputs.liquid_flow, inputs.liquid_density, D)
    vG = superficial_velocity(inputs.gas_flow, inputs.gas_density, D)
    vm = vL + vG

    X = lockhart_martinelli_parameter(inputs)
    alpha = void_fraction(X)
    pattern = determine_flow_pattern(vL, vG, inputs.gas_density, inputs.surface_tension, D, inputs.inclination)
    phi2 = friction_multiplier(X, pattern)

    if inputs.liquid_flow > 0:
        friction = _pressure_gradient(inputs.liquid_density, inputs.liquid_viscosity, vL, D) * phi2 * L
    else:
        friction = _pressure_gradient(inputs.gas_density, inputs.gas_viscosity, vG, D) * L
    rho_m = inputs.liquid_density * (1.0 - alpha) + inputs.gas_density * alpha
    gravitational = rho_m * g * L * math.sin(inputs.inclination)
    # Adiabatic flow: no quality change along the line
    acceleration = 0.0
    total = friction + abs(gravitational) + acceleration

    instabilities = detect_instabilities(pattern, inputs, vm, alpha)
    warnings = []
    if instabilities:
        warnings.append(f"Flow instability detected: {'; '.join(instabilities)}")

    is_slug = pattern is FlowPattern.SLUG
    f_slug = None
    if is_slug:
        f_slug = slug_frequency(vm, D)
        warnings.append(
            f"Slug flow detected - frequency ~{f_slug:.1f} Hz. "
            "May cause mechanical vibration and instrumentation issues."
        )

    quality = inputs.gas_flow / (inputs.gas_flow + inputs.liquid_flow)
    if quality > 0.9:
        warnings.append("Very high gas quality (>90%) - approaching mist flow")
    if quality < 0.1:
        warnings.append("Very low gas quality (<10%) - approaching bubble flow")

    for message in warnings:
        logger.warning(message)

    return TwoPhaseResult(
        flow_pattern=pattern,
        void_fraction=alpha,
        liquid_holdup=1.0 - alpha,
        pressure_drop_Pa=max(0.0, total),
        friction_pressure_drop_Pa=max(0.0, friction),
        acceleration_pressure_drop_Pa=acceleration,
        gravitational_pressure_drop_Pa=gravitational,
        liquid_velocity_m_s=vL,
        gas_velocity_m_s=vG,
        mixture_velocity_m_s=vm,
        gas_quality=quality,
        lockhart_martinelli_X=X,
        friction_multiplier=phi2,
        is_slug_flow=is_slug,
        slug_frequency_Hz=f_slug,
        is_flow_unstable=bool(instabilities),
        instabilities=tuple(instabilities),
        warnings=tuple(warnings),
    )


# ---------------------------------------------------------------------------
# Condensation and boiling film coefficients
# ---------------------------------------------------------------------------


def shah_condensation_htc(liquid_htc: float, quality: float, pressure: float, critical_pressure: float) -> float:
    """Shah (1979) in-tube condensation coefficient (W/m²K).

    h = h_L·[(1-x)^0.8 + 3.8·x^0.76·(1-x)^0.04 / Pr^0.38] with Pr = P/Pc.

    Args:
        liquid_htc: Coefficient with the total flow as liquid (W/m²K)
        quality: Vapor quality, 0-1
        pressure: Saturation pressure (Pa)
        critical_pressure: Critical pressure (Pa)

    Raises:
        ValidationError: if the quality is outside 0-1 or P is not below Pc
    """
    require_positive(liquid_htc, "liquid_htc")
    require_non_negative(quality, "quality")
    if quality > 1:
        raise ValidationError(f"quality must be <= 1; got {quality}")
    require_positive(pressure, "pressure")
    require_positive(critical_pressure, "critical_pressure")
    if pressure >= critical_pressure:
        raise ValidationError("pressure must be below the critical pressure")

    reduced_pressure = pressure / critical_pressure
    liquid_term = (1.0 - quality) ** 0.8
    vapor_term = 3.8 * quality**0.76 * (1.0 - quality) ** 0.04 / reduced_pressure**0.38
    return liquid_htc * (liquid_term + vapor_term)


def chen_enhancement_factor(Xtt: float) -> float:
    inverse = 1.0 / Xtt
    if inverse <= 0.1:
        return 1.0
    return 2.35 * (inverse + 0.213) ** 0.736


def chen_suppression_factor(two_phase_reynolds: float) -> float:
    return 1.0 / (1.0 + 2.53e-6 * two_phase_reynolds**1.17)


def chen_boiling_htc(
    liquid_htc: float,
    quality: float,
    pressure: float,
    wall_superheat: float,
    liquid_density: float,
    vapor_density: float,
    liquid_viscosity: float,
    vapor_viscosity: float,
    liquid_conductivity: float,
    liquid_specific_heat: float,
    surface_tension: float,
    latent_heat: float,
    liquid_reynolds: Optional[float] = None,
    saturation_pressure_rise: Optional[float] = None,
) -> float:
    """Chen (1966) saturated flow-boiling coefficient h = F·h_L + S·h_NB (W/m²K).

    F comes from the turbulent-turbulent Martinelli parameter, S from the
    two-phase Reynolds number Re_L·F^1.25 (10⁴ when ``liquid_reynolds`` is
    not given) and h_NB from Forster-Zuber. ``saturation_pressure_rise`` is
    Psat(T_wall) - Psat(T_sat); it defaults to 10% of the pressure.

    Raises:
        ValidationError: if the quality is not strictly between 0 and 1 or a
            property is not positive
    """
    require_open_range(quality, "quality", 0.0, 1.0)
    for name, value in (
        ("liquid_htc", liquid_htc),
        ("pressure", pressure),
        ("wall_superheat", wall_superheat),
        ("liquid_density", liquid_density),
        ("vapor_density", vapor_density),
        ("liquid_viscosity", liquid_viscosity),
        ("vapor_viscosity", vapor_viscosity),
        ("liquid_conductivity", liquid_conductivity),
        ("liquid_specific_heat", liquid_specific_heat),
        ("surface_tension", surface_tension),
        ("latent_heat", latent_heat),
    ):
        require_positive(value, name)

    Xtt = Lockhart_Martinelli_Xtt(quality, liquid_density, vapor_density, liquid_viscosity, vapor_viscosity)
    F = chen_enhancement_factor(Xtt)
    Re_tp = CHEN_DEFAULT_REYNOLDS if liquid_reynolds is None else liquid_reynolds * F**1.25
    S = chen_suppression_factor(Re_tp)

    dPsat = 0.1 * pressure if saturation_pressure_rise is None else saturation_pressure_rise
    h_nb = Forster_Zuber(
        rhol=liquid_density,
        rhog=vapor_density,
        mul=liquid_viscosity,
        kl=liquid_conductivity,
        Cpl=liquid_specific_heat,
        Hvap=latent_heat,
        sigma=surface_tension,
        dPsat=dPsat,
        Te=wall_superheat,
    )
    return F * liquid_htc + S * h_nb
