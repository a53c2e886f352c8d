"""
Thermal performance of a shell-and-tube exchanger.

Design mode sizes the area for fully specified terminal temperatures; Rating
mode solves the outlet temperatures for a given area with the ε-NTU method.
Both report the LMTD with its correction factor, the family of overall
coefficients (clean, fouled, required, service and film-calculated) and the
film coefficients on each side.
"""

import logging
import math
from typing import Optional, Tuple

from ht.conv_internal import laminar_T_const, turbulent_Dittus_Boelter, turbulent_Gnielinski
from fluids.core import Reynolds
from fluids.friction import friction_factor

from exchanger.models import (
    CalculationMode,
    ExchangerConfiguration,
    ExchangerGeometry,
    FlowArrangement,
    FluidStream,
    ShellSideMethod,
    ThermalResult,
)
from exchanger.pressure_drop import bell_delaware_corrections, tube_side_velocity
from utils.constants import (
    CAPACITY_RATIO_UNITY_TOLERANCE,
    DUTY_IMBALANCE_LIMIT_PCT,
    F_FALLBACK,
    F_MAX,
    F_MIN,
    KERN_NU_COEFFICIENT,
    KERN_NU_EXPONENT,
    LMTD_EQUALITY_TOLERANCE,
    R_UNITY_TOLERANCE,
    RE_LAMINAR_LIMIT,
    RE_TURBULENT_LIMIT,
    TEMA_MIN_F,
)
from utils.hx_common import calculate_overall_U
from utils.validation import (
    TemperatureCrossError,
    ValidationError,
    require_non_negative,
    require_open_range,
    require_positive,
)

logger = logging.getLogger("hx-compliance-mcp.thermal")


# ---------------------------------------------------------------------------
# Temperature difference
# ---------------------------------------------------------------------------


def calculate_lmtd(Thi: float, Tho: float, Tci: float, Tco: float, arrangement: FlowArrangement) -> float:
    """Log-mean temperature difference.

    Args:
        Thi: Hot fluid inlet temperature (K)
        Tho: Hot fluid outlet temperature (K)
        Tci: Cold fluid inlet temperature (K)
        Tco: Cold fluid outlet temperature (K)
        arrangement: Flow arrangement; only PARALLEL uses co-current terminal differences

    Returns:
        LMTD in K

    Raises:
        TemperatureCrossError: if either terminal difference is not positive
    """
    if arrangement is FlowArrangement.PARALLEL:
        dT1 = Thi - Tci
        dT2 = Tho - Tco
    else:
        dT1 = Thi - Tco
        dT2 = Tho - Tci

    if dT1 <= 0 or dT2 <= 0:
        raise TemperatureCrossError(dT1, dT2)

    if abs(dT1 - dT2) < LMTD_EQUALITY_TOLERANCE:
        return dT1
    return (dT1 - dT2) / math.log(dT1 / dT2)


def calculate_correction_factor(
    Thi: float, Tho: float, Tci: float, Tco: float, arrangement: FlowArrangement
) -> Tuple[float, bool]:
    """LMTD correction factor F (Bowman-Mueller-Nagle, one shell pass).

    Returns:
        Tuple of (F, used_fallback). F is 1.0 for counter and parallel flow,
        otherwise clamped to [0.5, 1.0].
    """
    if arrangement.is_pure:
        return 1.0, False

    cold_rise = Tco - Tci
    span = Thi - Tci
    if cold_rise == 0 or span == 0:
        logger.warning("Correction factor undefined for zero temperature change; using fallback F")
        return F_FALLBACK, True

    P = cold_rise / span
    R = (Thi - Tho) / cold_rise
    if P <= 0 or P >= 1 or R <= 0:
        logger.warning(f"Correction factor outside valid domain (P={P:.4f}, R={R:.4f}); using fallback F")
        return F_FALLBACK, True

    try:
        if abs(R - 1) < R_UNITY_TOLERANCE:
            root2 = math.sqrt(2)
            F = (P * root2) / ((1 - P) * math.log((2 - P * (2 - root2)) / (2 - P * (2 + root2))))
        else:
            S = math.sqrt(R * R + 1)
            numerator = S * math.log((1 - P) / (1 - P * R))
            denominator = (R - 1) * math.log((2 - P * (R + 1 - S)) / (2 - P * (R + 1 + S)))
            F = numerator / denominator
    except (ValueError, ZeroDivisionError):
        F = float("nan")

    if not math.isfinite(F):
        logger.warning(f"Correction factor not finite (P={P:.4f}, R={R:.4f}); using fallback F")
        return F_FALLBACK, True

    return min(F_MAX, max(F_MIN, F)), False


# ---------------------------------------------------------------------------
# Effectiveness
# ---------------------------------------------------------------------------


def effectiveness_counterflow(ntu: float, Cr: float) -> float:
    if Cr == 0:
        return 1 - math.exp(-ntu)
    if abs(Cr - 1) < CAPACITY_RATIO_UNITY_TOLERANCE:
        return ntu / (1 + ntu)
    return (1 - math.exp(-ntu * (1 - Cr))) / (1 - Cr * math.exp(-ntu * (1 - Cr)))


def effectiveness_parallel(ntu: float, Cr: float) -> float:
    if Cr == 0:
        return 1 - math.exp(-ntu)
    return (1 - math.exp(-ntu * (1 + Cr))) / (1 + Cr)


def calculate_effectiveness(ntu: float, Cr: float, arrangement: FlowArrangement) -> float:
    """ε(NTU, Cr); shell and crossflow arrangements use the counter-flow form."""
    if arrangement is FlowArrangement.PARALLEL:
        return effectiveness_parallel(ntu, Cr)
    return effectiveness_counterflow(ntu, Cr)


def fouled_coefficient(U_clean: float, fouling_hot: float, fouling_cold: float) -> float:
    """1/U_fouled = 1/U_clean + Rf_hot + Rf_cold."""
    return 1.0 / (1.0 / U_clean + fouling_hot + fouling_cold)


# ---------------------------------------------------------------------------
# Film coefficients
# ---------------------------------------------------------------------------


def tube_side_coefficient(stream: FluidStream, geometry: ExchangerGeometry) -> float:
    """Tube-side film coefficient h_i (W/m²K) for the fluid being heated.

    Laminar: constant-wall-temperature Nu = 3.66. Transitional: Gnielinski with
    the smooth-tube Darcy friction factor, never below the laminar value.
    Turbulent: Dittus-Boelter.
    """
    di = geometry.tube_inner_diameter
    velocity = tube_side_velocity(stream, geometry)
    Re = Reynolds(V=velocity, D=di, rho=stream.density, mu=stream.viscosity)
    Pr = stream.prandtl

    if Re < RE_LAMINAR_LIMIT:
        Nu = laminar_T_const()
    elif Re < RE_TURBULENT_LIMIT:
        fd = friction_factor(Re=Re, eD=0.0)
        Nu = max(laminar_T_const(), turbulent_Gnielinski(Re, Pr, fd))
    else:
        Nu = turbulent_Dittus_Boelter(Re, Pr, heating=True)

    return Nu * stream.thermal_conductivity / di


def shell_side_coefficient(
    stream: FluidStream, geometry: ExchangerGeometry, method: ShellSideMethod = ShellSideMethod.KERN
) -> float:
    """Shell-side film coefficient h_o (W/m²K).

    Kern: Nu = 0.36·Re^0.55·Pr^(1/3) on the equivalent diameter.
    Bell-Delaware: Colburn j-factor on tube-OD Reynolds number, corrected by
    Jc·Jl·Jb·Jr·Js.
    """
    area = geometry.cross_flow_area
    if area <= 0:
        return 0.0
    Gs = stream.mass_flow / area
    Pr = stream.prandtl

    if method is ShellSideMethod.BELL_DELAWARE:
        Re = geometry.tube_outer_diameter * Gs / stream.viscosity
        j = _colburn_j_factor(Re, geometry.tube_pattern.is_triangular)
        J = bell_delaware_corrections(geometry, Re)
        h_ideal = j * stream.specific_heat * Gs * Pr ** (-2.0 / 3.0)
        return h_ideal * J["Jc"] * J["Jl"] * J["Jb"] * J["Jr"] * J["Js"]

    De = geometry.equivalent_diameter
    Re = De * Gs / stream.viscosity
    Nu = KERN_NU_COEFFICIENT * Re**KERN_NU_EXPONENT * Pr ** (1.0 / 3.0)
    return Nu * stream.thermal_conductivity / De


def _colburn_j_factor(reynolds: float, triangular: bool) -> float:
    # Taborek ideal tube-bank j-factors: (Re > 1e4, > 1e3, > 1e2, laminar)
    if triangular:
        bands = ((0.321, -0.388), (0.593, -0.477), (1.52, -0.574), (1.04, -0.451))
    else:
        bands = ((0.249, -0.382), (0.391, -0.438), (1.187, -0.547), (0.994, -0.426))

    if reynolds > 1.0e4:
        a, b = bands[0]
    elif reynolds > 1.0e3:
        a, b = bands[1]
    elif reynolds > 100:
        a, b = bands[2]
    else:
        a, b = bands[3]
    return a * reynolds**b


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


def _validate_inputs(config: ExchangerConfiguration) -> Optional[str]:
    """Return a message naming the first invalid input, or None."""
    try:
        for label, stream in (("hot", config.hot), ("cold", config.cold)):
            require_positive(stream.inlet_temperature, f"{label}.inlet_temperature")
            require_positive(stream.mass_flow, f"{label}.mass_flow")
            require_positive(stream.specific_heat, f"{label}.specific_heat")
            require_positive(stream.density, f"{label}.density")
            require_positive(stream.viscosity, f"{label}.viscosity")
            require_positive(stream.thermal_conductivity, f"{label}.thermal_conductivity")
            require_non_negative(stream.fouling_resistance, f"{label}.fouling_resistance")
            if stream.prandtl_number is not None:
                require_positive(stream.prandtl_number, f"{label}.prandtl_number")
            if config.mode is CalculationMode.DESIGN:
                if stream.outlet_temperature is None:
                    raise ValidationError(f"{label}.outlet_temperature is required in design mode")
                require_positive(stream.outlet_temperature, f"{label}.outlet_temperature")

        geometry = config.geometry
        require_positive(geometry.tube_outer_diameter, "geometry.tube_outer_diameter")
        require_positive(geometry.tube_inner_diameter, "geometry.tube_inner_diameter")
        require_positive(geometry.tube_length, "geometry.tube_length")
        require_positive(geometry.tube_count, "geometry.tube_count")
        require_positive(geometry.tube_passes, "geometry.tube_passes")
        require_positive(geometry.shell_inner_diameter, "geometry.shell_inner_diameter")
        require_positive(geometry.baffle_spacing, "geometry.baffle_spacing")
        require_open_range(geometry.baffle_cut, "geometry.baffle_cut", 0.0, 0.5)
        require_positive(geometry.cross_flow_area, "geometry.cross_flow_area")
        require_positive(config.material.thermal_conductivity, "material.thermal_conductivity")

        if config.overall_u is not None:
            require_positive(config.overall_u, "overall_u")
        if config.mode is CalculationMode.RATING and config.area is not None:
            require_positive(config.area, "area")
    except ValidationError as e:
        return str(e)
    return None


def calculate_thermal_performance(config: ExchangerConfiguration) -> Optional[ThermalResult]:
    """Thermal performance of the exchanger in Design or Rating mode.

    The hot stream is on the shell side and the cold stream in the tubes.

    Args:
        config: Exchanger configuration (SI units)

    Returns:
        ThermalResult, or None when an input is missing, non-finite or out of range

    Raises:
        TemperatureCrossError: if the terminal temperatures cross
    """
    problem = _validate_inputs(config)
    if problem:
        logger.warning(f"Invalid thermal configuration: {problem}")
        return None

    hot, cold, geometry = config.hot, config.cold, config.geometry
    arrangement = config.arrangement
    C_hot = hot.capacity_rate
    C_cold = cold.capacity_rate
    C_min = min(C_hot, C_cold)
    C_max = max(C_hot, C_cold)
    Cr = C_min / C_max if C_max > 0 else 0.0

    # Film coefficients and the coefficient they imply
    h_tube = tube_side_coefficient(cold, geometry)
    h_shell = shell_side_coefficient(hot, geometry, config.shell_side_method)
    Do = geometry.tube_outer_diameter
    Di = geometry.tube_inner_diameter
    k_wall = config.material.thermal_conductivity
    U_calculated = calculate_overall_U(
        h_tube, h_shell, Di, Do, k_wall,
        fouling_inner=cold.fouling_resistance,
        fouling_outer=hot.fouling_resistance,
    )["U_W_m2K"]

    if config.overall_u is not None:
        U_clean = config.overall_u
    else:
        U_clean = calculate_overall_U(h_tube, h_shell, Di, Do, k_wall)["U_W_m2K"]
    if U_clean <= 0:
        logger.warning("Invalid thermal configuration: clean overall coefficient is not positive")
        return None
    U_fouled = fouled_coefficient(U_clean, hot.fouling_resistance, cold.fouling_resistance)

    Thi, Tci = hot.inlet_temperature, cold.inlet_temperature
    if config.mode is CalculationMode.RATING:
        available_area = config.area if config.area is not None else geometry.heat_transfer_area
        if Thi <= Tci:
            raise TemperatureCrossError(Thi - Tci, Thi - Tci)
        ntu = U_fouled * available_area / C_min
        effectiveness = calculate_effectiveness(ntu, Cr, arrangement)
        Q = effectiveness * C_min * (Thi - Tci)
        Tho = Thi - Q / C_hot
        Tco = Tci + Q / C_cold
        Q_cold = C_cold * (Tco - Tci)
    else:
        available_area = geometry.heat_transfer_area
        Tho, Tco = hot.outlet_temperature, cold.outlet_temperature
        Q = C_hot * (Thi - Tho)
        Q_cold = C_cold * (Tco - Tci)

    lmtd = calculate_lmtd(Thi, Tho, Tci, Tco, arrangement)
    if Q <= 0:
        logger.warning("Invalid thermal configuration: hot stream duty is not positive")
        return None

    F, fallback = calculate_correction_factor(Thi, Tho, Tci, Tco, arrangement)
    below_tema = F < TEMA_MIN_F
    if below_tema:
        logger.warning(
            f"Correction factor F={F:.3f} is below the TEMA minimum of {TEMA_MIN_F}; "
            "consider more shell passes or a different arrangement"
        )
    effective_lmtd = lmtd * F

    required_area = Q / (U_fouled * effective_lmtd)
    if config.mode is CalculationMode.DESIGN:
        ntu = U_fouled * required_area / C_min
        effectiveness = calculate_effectiveness(ntu, Cr, arrangement)

    imbalance = abs(Q_cold - Q) / Q * 100.0
    if imbalance > DUTY_IMBALANCE_LIMIT_PCT:
        logger.info(f"Duty imbalance of {imbalance:.1f}% between hot and cold streams")

    U_required = Q / (available_area * effective_lmtd)
    oversurface = (available_area / required_area - 1.0) * 100.0

    assert math.isfinite(effective_lmtd) and math.isfinite(required_area), "non-finite thermal result"

    return ThermalResult(
        mode=config.mode,
        arrangement=arrangement,
        heat_duty_W=Q,
        cold_side_duty_W=Q_cold,
        duty_imbalance_pct=imbalance,
        hot_outlet_K=Tho,
        cold_outlet_K=Tco,
        lmtd_K=lmtd,
        correction_factor=F,
        effective_lmtd_K=effective_lmtd,
        U_clean_W_m2K=U_clean,
        U_fouled_W_m2K=U_fouled,
        U_required_W_m2K=U_required,
        U_service_W_m2K=U_fouled,
        effectiveness=effectiveness,
        ntu=ntu,
        capacity_ratio=Cr,
        C_min_W_K=C_min,
        C_max_W_K=C_max,
        required_area_m2=required_area,
        available_area_m2=available_area,
        oversurface_pct=oversurface,
        h_shell_W_m2K=h_shell,
        h_tube_W_m2K=h_tube,
        U_calculated_W_m2K=U_calculated,
        correction_factor_fallback=fallback,
        correction_factor_below_tema_minimum=below_tema,
    )
