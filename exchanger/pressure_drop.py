"""
Tube-side and shell-side pressure drop for shell-and-tube exchangers.

Tube side follows Kern (straight-tube friction plus four velocity heads per
pass for the return bends). Shell side uses either Kern's method or a
simplified Bell-Delaware breakdown into crossflow, window and end-zone
components. All pressures are reported in Pa.
"""

import logging
import math
from typing import Dict, Optional

from fluids.core import Reynolds

from exchanger.models import (
    ExchangerConfiguration,
    ExchangerGeometry,
    FlowRegime,
    FluidStream,
    PressureDropResult,
    ShellSideMethod,
    ShellSidePressureDrop,
    TubeSidePressureDrop,
)
from utils.constants import (
    KERN_SHELL_RE_LIMIT,
    RE_BLASIUS_LIMIT,
    RE_LAMINAR_LIMIT,
    RE_TURBULENT_LIMIT,
    TUBE_NOZZLE_VELOCITY_HEADS,
)
from utils.validation import ValidationError, require_open_range, require_positive

logger = logging.getLogger("hx-compliance-mcp.pressure_drop")


def flow_regime(reynolds: float) -> FlowRegime:
    if reynolds < RE_LAMINAR_LIMIT:
        return FlowRegime.LAMINAR
    if reynolds < RE_TURBULENT_LIMIT:
        return FlowRegime.TRANSITIONAL
    return FlowRegime.TURBULENT


def fanning_friction_factor(reynolds: float) -> float:
    """Fanning friction factor for smooth tubes.

    16/Re (laminar), Blasius 0.079 Re^-0.25 up to Re = 1e5, then 0.046 Re^-0.2.
    """
    if reynolds <= 0:
        return 0.0
    if reynolds < RE_LAMINAR_LIMIT:
        return 16.0 / reynolds
    if reynolds < RE_BLASIUS_LIMIT:
        return 0.079 * reynolds**-0.25
    return 0.046 * reynolds**-0.2


def tube_side_velocity(stream: FluidStream, geometry: ExchangerGeometry) -> float:
    area = geometry.flow_area_per_pass
    if area <= 0 or stream.density <= 0:
        return 0.0
    return stream.mass_flow / (stream.density * area)


def calculate_tube_side_pressure_drop(
    stream: FluidStream, geometry: ExchangerGeometry
) -> TubeSidePressureDrop:
    """Tube-side pressure drop of the stream flowing through the tubes.

    Args:
        stream: Tube-side (cold) stream
        geometry: Exchanger geometry

    Returns:
        TubeSidePressureDrop; an all-zero record when velocity, diameter,
        density or viscosity is not positive
    """
    velocity = tube_side_velocity(stream, geometry)
    di = geometry.tube_inner_diameter
    if velocity <= 0 or di <= 0 or stream.density <= 0 or stream.viscosity <= 0:
        return TubeSidePressureDrop.zero()

    rho = stream.density
    passes = geometry.tube_passes
    Re = Reynolds(V=velocity, D=di, rho=rho, mu=stream.viscosity)
    f = fanning_friction_factor(Re)

    velocity_head = rho * velocity**2 / 2.0
    friction = 4.0 * f * geometry.tube_length * passes * velocity_head / di
    return_loss = 4.0 * passes * velocity_head

    nozzle = 0.0
    if geometry.tube_nozzle_diameter and geometry.tube_nozzle_diameter > 0:
        nozzle_velocity = stream.mass_flow / (rho * math.pi * geometry.tube_nozzle_diameter**2 / 4.0)
        nozzle = TUBE_NOZZLE_VELOCITY_HEADS * rho * nozzle_velocity**2 / 2.0

    return TubeSidePressureDrop(
        friction_Pa=friction,
        return_loss_Pa=return_loss,
        nozzle_Pa=nozzle,
        total_Pa=friction + return_loss + nozzle,
        velocity_m_s=velocity,
        reynolds=Re,
        friction_factor=f,
        flow_regime=flow_regime(Re),
    )


def calculate_kern_shell_side(stream: FluidStream, geometry: ExchangerGeometry) -> ShellSidePressureDrop:
    """Shell-side pressure drop by Kern's method.

    ΔP = f·Gs²·Ds·(Nb+1)/(2ρ·De), reported entirely as the crossflow
    component.
    """
    area = geometry.cross_flow_area
    if stream.mass_flow <= 0 or stream.density <= 0 or stream.viscosity <= 0 or area <= 0:
        return ShellSidePressureDrop.zero(ShellSideMethod.KERN)

    Gs = stream.mass_flow / area
    velocity = Gs / stream.density
    De = geometry.equivalent_diameter
    Re = De * Gs / stream.viscosity
    f = math.exp(0.576 - 0.19 * math.log(Re)) if Re > KERN_SHELL_RE_LIMIT else 1.0
    baffles = geometry.number_of_baffles

    dP = f * Gs**2 * geometry.shell_inner_diameter * (baffles + 1) / (2.0 * stream.density * De)
    dP = max(0.0, dP)

    return ShellSidePressureDrop(
        method=ShellSideMethod.KERN,
        crossflow_Pa=dP,
        window_Pa=0.0,
        end_zone_Pa=0.0,
        total_Pa=dP,
        velocity_m_s=velocity,
        mass_velocity_kg_m2s=Gs,
        reynolds=Re,
        friction_factor=f,
        cross_flow_area_m2=area,
        equivalent_diameter_m=De,
        number_of_baffles=baffles,
        flow_regime=flow_regime(Re),
    )


def bell_delaware_corrections(geometry: ExchangerGeometry, reynolds: float) -> Dict[str, float]:
    """Bell-Delaware correction factors Jc, Jl, Jb, Jr and Js.

    Args:
        geometry: Exchanger geometry (baffle cut, leakage clearances, bypass fraction)
        reynolds: Shell-side Reynolds number based on tube OD

    Returns:
        Dict with the five correction factors
    """
    Sm = geometry.cross_flow_area

    # Baffle cut
    Fc = 1.0 - 2.0 * geometry.baffle_cut
    Jc = 0.55 + 0.72 * max(0.3, min(0.9, Fc))

    # Shell-to-baffle and tube-to-baffle leakage
    Asb = math.pi * geometry.shell_inner_diameter * geometry.shell_baffle_clearance
    Atb = geometry.tube_count * math.pi * geometry.tube_outer_diameter * geometry.tube_baffle_clearance
    rs = Asb / (Asb + Atb + 0.001)
    rlm = (Asb + Atb) / (Sm + 0.001)
    Jl = 0.44 * (1 - rs) + (1 - 0.44 * (1 - rs)) * math.exp(-2.2 * rlm)

    # Bundle bypass with half the bypass lanes sealed
    Cbp = 1.35 if reynolds >= 100 else 1.25
    sealing_ratio = 0.5
    Jb = math.exp(-Cbp * geometry.bundle_bypass_fraction * (1 - (2 * sealing_ratio) ** (1.0 / 3.0)))

    if reynolds >= 100:
        Jr = 1.0
    elif reynolds >= 20:
        Jr = 0.9
    else:
        Jr = 0.8

    return {"Jc": Jc, "Jl": Jl, "Jb": Jb, "Jr": Jr, "Js": 1.0}


def _bell_delaware_friction_factor(reynolds: float, triangular: bool) -> float:
    if reynolds > 1000:
        slope = 0.19 if triangular else 0.18
        return math.exp(0.576 - slope * math.log(reynolds))
    if reynolds > 100:
        return math.exp(0.8 - 0.15 * math.log(reynolds))
    return 48.0 / reynolds


def calculate_bell_delaware_shell_side(
    stream: FluidStream, geometry: ExchangerGeometry
) -> ShellSidePressureDrop:
    """Shell-side pressure drop by a simplified Bell-Delaware method.

    Approximate: ideal crossflow drop corrected by Jb·Jl², plus window and
    end-zone losses. Reynolds number is based on tube OD.
    """
    Sm = geometry.cross_flow_area
    if stream.mass_flow <= 0 or stream.density <= 0 or stream.viscosity <= 0 or Sm <= 0:
        return ShellSidePressureDrop.zero(ShellSideMethod.BELL_DELAWARE)

    rho = stream.density
    Gs = stream.mass_flow / Sm
    velocity = Gs / rho
    Re = geometry.tube_outer_diameter * Gs / stream.viscosity
    baffles = max(1, geometry.number_of_baffles)
    J = bell_delaware_corrections(geometry, Re)
    f = _bell_delaware_friction_factor(Re, geometry.tube_pattern.is_triangular)

    Ds = geometry.shell_inner_diameter
    cut = geometry.baffle_cut
    pitch = geometry.tube_pitch
    crossflow_rows = math.floor(Ds * (1 - 2 * cut) / pitch)
    window_rows = math.floor(2 * cut * Ds / pitch)
    mass_head = Gs**2 / (2.0 * rho)

    crossflow = baffles * 4.0 * f * crossflow_rows * mass_head * J["Jb"] * J["Jl"] ** 2
    window = (baffles + 1) * (2 + 0.6 * window_rows) * mass_head
    ends = 2.0 * mass_head

    return ShellSidePressureDrop(
        method=ShellSideMethod.BELL_DELAWARE,
        crossflow_Pa=crossflow,
        window_Pa=window,
        end_zone_Pa=ends,
        total_Pa=max(0.0, crossflow + window + ends),
        velocity_m_s=velocity,
        mass_velocity_kg_m2s=Gs,
        reynolds=Re,
        friction_factor=f,
        cross_flow_area_m2=Sm,
        equivalent_diameter_m=geometry.equivalent_diameter,
        number_of_baffles=baffles,
        flow_regime=flow_regime(Re),
        **J,
    )


def validate_geometry(geometry: ExchangerGeometry) -> Optional[str]:
    """Return a message naming the first invalid geometry field, or None."""
    checks = (
        ("tube_outer_diameter", geometry.tube_outer_diameter),
        ("tube_wall_thickness", geometry.tube_wall_thickness),
        ("tube_inner_diameter", geometry.tube_inner_diameter),
        ("tube_length", geometry.tube_length),
        ("tube_count", geometry.tube_count),
        ("tube_pitch", geometry.tube_pitch),
        ("tube_passes", geometry.tube_passes),
        ("shell_inner_diameter", geometry.shell_inner_diameter),
        ("baffle_spacing", geometry.baffle_spacing),
    )
    try:
        for name, value in checks:
            require_positive(value, name)
        require_open_range(geometry.baffle_cut, "baffle_cut", 0.0, 0.5)
    except ValidationError as e:
        return str(e)
    return None


def calculate_pressure_drops(config: ExchangerConfiguration) -> Optional[PressureDropResult]:
    """Tube-side (cold stream) and shell-side (hot stream) pressure drops.

    Returns:
        PressureDropResult, or None when the geometry is invalid
    """
    problem = validate_geometry(config.geometry)
    if problem:
        logger.warning(f"Invalid exchanger geometry: {problem}")
        return None

    tube_side = calculate_tube_side_pressure_drop(config.cold, config.geometry)
    if config.shell_side_method is ShellSideMethod.BELL_DELAWARE:
        shell_side = calculate_bell_delaware_shell_side(config.hot, config.geometry)
    else:
        shell_side = calculate_kern_shell_side(config.hot, config.geometry)

    return PressureDropResult(tube_side=tube_side, shell_side=shell_side)
