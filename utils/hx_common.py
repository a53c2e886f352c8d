"""
Shared heat exchanger utilities.

Resistance sums, heat-balance checks and temperature reporting shared by the
thermal calculator and the MCP tools.
"""

import logging
import math
from typing import Dict

from utils.constants import DEG_C_to_K

logger = logging.getLogger("hx-compliance-mcp.hx_common")


def calculate_overall_U(
    h_inner: float,
    h_outer: float,
    D_inner: float,
    D_outer: float,
    k_wall: float,
    fouling_inner: float = 0.0,
    fouling_outer: float = 0.0,
    reference: str = "outer"
) -> Dict:
    """
    Calculate overall heat transfer coefficient for a plain tube wall.

    Uses standard cylindrical wall resistance formula:
    1/U_o = 1/h_o + R_fo + (r_o * ln(r_o/r_i))/k + R_fi*(r_o/r_i) + (r_o/r_i)/h_i

    Args:
        h_inner: Tube-side film coefficient (W/m²K)
        h_outer: Shell-side film coefficient (W/m²K)
        D_inner: Tube inner diameter (m)
        D_outer: Tube outer diameter (m)
        k_wall: Wall thermal conductivity (W/m-K)
        fouling_inner: Tube-side fouling resistance (m²K/W)
        fouling_outer: Shell-side fouling resistance (m²K/W)
        reference: Reference surface ("inner" or "outer")

    Returns:
        Dict with U value and resistances
    """
    r_i = D_inner / 2
    r_o = D_outer / 2

    # Resistances (referenced to outer surface)
    R_conv_inner = r_o / (r_i * h_inner) if h_inner > 0 else float('inf')
    R_fouling_inner = fouling_inner * (r_o / r_i)
    R_wall = (r_o * math.log(r_o / r_i)) / k_wall if r_o > r_i and k_wall > 0 else 0
    R_fouling_outer = fouling_outer
    R_conv_outer = 1 / h_outer if h_outer > 0 else float('inf')

    R_total = R_conv_inner + R_fouling_inner + R_wall + R_fouling_outer + R_conv_outer

    U_outer = 1 / R_total if R_total > 0 else 0

    if reference == "inner":
        U = U_outer * (r_o / r_i)
    else:
        U = U_outer

    return {
        "U_W_m2K": U,
        "U_outer_W_m2K": U_outer,
        "R_total_m2K_W": R_total,
        "R_conv_inner_m2K_W": R_conv_inner,
        "R_fouling_inner_m2K_W": R_fouling_inner,
        "R_wall_m2K_W": R_wall,
        "R_fouling_outer_m2K_W": R_fouling_outer,
        "R_conv_outer_m2K_W": R_conv_outer,
        "reference_surface": reference
    }


def verify_heat_balance(
    Q_duty: float,
    U: float,
    A: float,
    LMTD: float,
    F: float = 1.0,
    tolerance_pct: float = 5.0
) -> Dict:
    """
    Verify heat balance: Q = U * A * LMTD * F.

    Args:
        Q_duty: Heat duty from energy balance (W)
        U: Overall heat transfer coefficient (W/m²K)
        A: Heat transfer area (m²)
        LMTD: Log mean temperature difference (K)
        F: LMTD correction factor (default 1.0)
        tolerance_pct: Acceptable error percentage (default 5%)

    Returns:
        Dict with verification results
    """
    Q_from_UA = U * A * LMTD * F

    if Q_duty > 0:
        error_pct = abs(Q_from_UA - Q_duty) / Q_duty * 100
    else:
        error_pct = 0.0

    return {
        "Q_duty_W": Q_duty,
        "Q_from_UA_W": Q_from_UA,
        "error_pct": error_pct,
        "balance_satisfied": error_pct <= tolerance_pct,
        "tolerance_pct": tolerance_pct
    }


def format_temperature_output(
    Thi: float,
    Tho: float,
    Tci: float,
    Tco: float
) -> Dict:
    """Terminal temperatures in K and °C with both end approaches."""
    return {
        "hot_inlet_K": Thi,
        "hot_inlet_C": Thi - DEG_C_to_K,
        "hot_outlet_K": Tho,
        "hot_outlet_C": Tho - DEG_C_to_K,
        "cold_inlet_K": Tci,
        "cold_inlet_C": Tci - DEG_C_to_K,
        "cold_outlet_K": Tco,
        "cold_outlet_C": Tco - DEG_C_to_K,
        "approach_hot_end_K": Thi - Tco,
        "approach_cold_end_K": Tho - Tci,
    }
