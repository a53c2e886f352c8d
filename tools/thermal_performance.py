"""
Exchanger thermal performance tool.

Design mode sizes the required area from fully specified terminal
temperatures; rating mode solves the outlet temperatures for a given area.
"""

import json
import logging
from typing import Any, Dict, Optional

from exchanger.models import CalculationMode
from exchanger.thermal import calculate_thermal_performance
from utils.helpers import build_exchanger_configuration
from utils.hx_common import format_temperature_output, verify_heat_balance
from utils.validation import TemperatureCrossError, ValidationError

logger = logging.getLogger("hx-compliance-mcp.thermal_performance")


def calculate_exchanger_thermal_performance(
    hot_fluid: Dict[str, Any],
    cold_fluid: Dict[str, Any],
    geometry: Dict[str, Any],
    mode: str = "design",
    flow_arrangement: str = "counter",
    overall_u: Optional[float] = None,
    area: Optional[float] = None,
    tube_material: Optional[Dict[str, Any]] = None,
    shell_side_method: str = "kern",
) -> str:
    """Calculates LMTD, correction factor, duty, NTU and required area.

    Args:
        hot_fluid: Hot (shell-side) stream; see evaluate_shell_tube_exchanger for keys
        cold_fluid: Cold (tube-side) stream
        geometry: Exchanger geometry in m
        mode: 'design' or 'rating'
        flow_arrangement: 'counter', 'parallel', 'shell_tube_1_2', 'shell_tube_1_4',
            'crossflow_mixed' or 'crossflow_unmixed'
        overall_u: Clean overall coefficient estimate (W/m²K)
        area: Heat transfer area for rating mode (m²)
        tube_material: Optional tube material overrides (thermal_conductivity in W/m·K)
        shell_side_method: 'kern' or 'bell_delaware' for the shell-side film coefficient

    Returns:
        JSON string with the thermal result, terminal temperatures and a
        Q = U·A·F·LMTD check against the available area
    """
    try:
        try:
            config = build_exchanger_configuration(
                hot_fluid,
                cold_fluid,
                geometry,
                mode=mode,
                flow_arrangement=flow_arrangement,
                overall_u=overall_u,
                area=area,
                tube_material=tube_material,
                shell_side_method=shell_side_method,
            )
        except (ValidationError, ImportError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Check that every stream and geometry field is a positive number in SI units.",
            })

        try:
            thermal = calculate_thermal_performance(config)
        except TemperatureCrossError as e:
            return json.dumps({
                "error": str(e),
                "suggestion": "Check terminal temperatures; the hot stream must stay hotter than the cold stream.",
            })

        if thermal is None:
            return json.dumps({
                "error": "Invalid thermal configuration; see server log for the offending field.",
                "suggestion": "In design mode both outlet temperatures are required.",
            })

        result = thermal.to_dict()
        result["temperatures"] = format_temperature_output(
            config.hot.inlet_temperature,
            thermal.hot_outlet_K,
            config.cold.inlet_temperature,
            thermal.cold_outlet_K,
        )
        if config.mode is CalculationMode.RATING:
            result["heat_balance_check"] = verify_heat_balance(
                thermal.heat_duty_W,
                thermal.U_fouled_W_m2K,
                thermal.available_area_m2,
                thermal.lmtd_K,
                thermal.correction_factor,
            )
        else:
            result["heat_balance_check"] = verify_heat_balance(
                thermal.heat_duty_W,
                thermal.U_fouled_W_m2K,
                thermal.required_area_m2,
                thermal.lmtd_K,
                thermal.correction_factor,
            )
        return json.dumps(result)

    except Exception as e:
        logger.error(f"Error in calculate_exchanger_thermal_performance: {e}", exc_info=True)
        return json.dumps({
            "error": f"Thermal performance calculation failed: {str(e)}"
        })
