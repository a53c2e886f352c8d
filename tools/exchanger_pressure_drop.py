"""
Shell-and-tube pressure drop tool.

Tube side carries the cold stream, shell side the hot stream. The shell side
is rated by Kern's method or a simplified Bell-Delaware breakdown.
"""

import json
import logging
from typing import Any, Dict

from exchanger.models import ExchangerConfiguration, ShellSideMethod
from exchanger.pressure_drop import calculate_pressure_drops
from utils.helpers import build_fluid_stream, build_geometry
from utils.validation import ValidationError, parse_enum

logger = logging.getLogger("hx-compliance-mcp.exchanger_pressure_drop")


def calculate_exchanger_pressure_drop(
    hot_fluid: Dict[str, Any],
    cold_fluid: Dict[str, Any],
    geometry: Dict[str, Any],
    shell_side_method: str = "kern",
) -> str:
    """Calculates tube-side and shell-side pressure drops.

    Args:
        hot_fluid: Shell-side stream: mass_flow (kg/s), density (kg/m³), viscosity
            (Pa·s) plus inlet_temperature (K) and the remaining stream properties
        cold_fluid: Tube-side stream, same keys
        geometry: Exchanger geometry in m; tube_nozzle_diameter adds a nozzle loss
        shell_side_method: 'kern' or 'bell_delaware'

    Returns:
        JSON string with tube_side and shell_side breakdowns (Pa), velocities,
        Reynolds numbers and flow regimes
    """
    try:
        try:
            config = ExchangerConfiguration(
                hot=build_fluid_stream(hot_fluid, "hot"),
                cold=build_fluid_stream(cold_fluid, "cold"),
                geometry=build_geometry(geometry),
                shell_side_method=parse_enum(ShellSideMethod, shell_side_method or "kern", "shell_side_method"),
            )
        except (ValidationError, ImportError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Check that every stream and geometry field is a positive number in SI units.",
            })

        result = calculate_pressure_drops(config)
        if result is None:
            return json.dumps({
                "error": "Invalid exchanger geometry; dimensions and counts must be positive.",
                "suggestion": "Check that tube_wall_thickness leaves a positive tube inner diameter.",
            })

        output = result.to_dict()
        output["total_Pa"] = {
            "tube_side": result.tube_side.total_Pa,
            "shell_side": result.shell_side.total_Pa,
        }
        output["total_kPa"] = {
            "tube_side": result.tube_side.total_Pa / 1000.0,
            "shell_side": result.shell_side.total_Pa / 1000.0,
        }
        return json.dumps(output)

    except Exception as e:
        logger.error(f"Error in calculate_exchanger_pressure_drop: {e}", exc_info=True)
        return json.dumps({
            "error": f"Pressure drop calculation failed: {str(e)}"
        })
