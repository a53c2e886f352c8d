"""
Shell-and-tube exchanger evaluation tool.

Runs the full rating pipeline (thermal performance, pressure drop, tube
vibration and API 660 / TEMA compliance) for one exchanger and returns a
single JSON report.
"""

import json
import logging
from typing import Any, Dict, Optional

from exchanger.pipeline import evaluate_exchanger
from utils.helpers import build_exchanger_configuration
from utils.hx_common import format_temperature_output
from utils.validation import TemperatureCrossError, ValidationError

logger = logging.getLogger("hx-compliance-mcp.evaluate_exchanger")


def evaluate_shell_tube_exchanger(
    hot_fluid: Dict[str, Any],
    cold_fluid: Dict[str, Any],
    geometry: Dict[str, Any],
    mode: str = "design",
    flow_arrangement: str = "counter",
    overall_u: Optional[float] = None,
    area: Optional[float] = None,
    design_pressure: Optional[float] = None,
    design_temperature: Optional[float] = None,
    service_type: Optional[str] = None,
    tema_class: Optional[str] = None,
    tube_material: Optional[Dict[str, Any]] = None,
    shell_side_method: str = "kern",
) -> str:
    """Evaluates a shell-and-tube heat exchanger end to end.

    The hot stream flows on the shell side and the cold stream in the tubes.

    Args:
        hot_fluid: Hot stream. Keys: inlet_temperature (K), outlet_temperature (K,
            required in design mode), mass_flow (kg/s), specific_heat (J/kg·K),
            density (kg/m³), viscosity (Pa·s), thermal_conductivity (W/m·K),
            fouling_resistance (m²K/W), phase ('liquid', 'vapor', 'two_phase'),
            speed_of_sound (m/s). Give fluid_name (and pressure, Pa) to fill
            missing properties from thermo.
        cold_fluid: Cold stream, same keys as hot_fluid
        geometry: Exchanger geometry. Keys: tube_outer_diameter, tube_wall_thickness,
            tube_length, tube_count, tube_pitch, shell_inner_diameter, baffle_spacing
            (all m), tube_pattern ('triangular_30', 'triangular_60', 'square_90',
            'rotated_square_45'), tube_passes, shell_passes, baffle_cut (fraction),
            unsupported_span (m), tube_nozzle_diameter (m)
        mode: 'design' (size area from terminal temperatures) or 'rating'
            (solve outlet temperatures for the area)
        flow_arrangement: 'counter', 'parallel', 'shell_tube_1_2', 'shell_tube_1_4',
            'crossflow_mixed' or 'crossflow_unmixed'
        overall_u: Clean overall coefficient estimate (W/m²K); calculated from film
            coefficients when omitted
        area: Heat transfer area for rating mode (m²); defaults to the geometry area
        design_pressure: Design pressure (Pa gauge), used for the tube wall check
        design_temperature: Design temperature (K)
        service_type: 'clean_liquid', 'fouling_liquid', 'gas_vapor', 'two_phase' or 'erosive'
        tema_class: TEMA class 'R', 'C' or 'B'
        tube_material: Optional overrides: elastic_modulus (Pa), density (kg/m³),
            thermal_conductivity (W/m·K), allowable_stress (Pa)
        shell_side_method: 'kern' or 'bell_delaware'

    Returns:
        JSON string with thermal, pressure_drop, vibration and validation sections
        and an overall is_compliant flag
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
                design_pressure=design_pressure,
                design_temperature=design_temperature,
                service_type=service_type,
                tema_class=tema_class,
                tube_material=tube_material,
                shell_side_method=shell_side_method,
            )
        except (ValidationError, ImportError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Check that every stream and geometry field is a positive number in SI units.",
            })

        try:
            evaluation = evaluate_exchanger(config)
        except TemperatureCrossError as e:
            return json.dumps({
                "error": str(e),
                "suggestion": "The hot stream must stay hotter than the cold stream at both ends.",
            })

        if evaluation is None:
            return json.dumps({
                "error": "Invalid exchanger configuration; see server log for the offending field.",
                "suggestion": "Check stream properties, outlet temperatures (design mode) and geometry dimensions.",
            })

        result = evaluation.to_dict()
        thermal = evaluation.thermal
        result["temperatures"] = format_temperature_output(
            config.hot.inlet_temperature,
            thermal.hot_outlet_K,
            config.cold.inlet_temperature,
            thermal.cold_outlet_K,
        )
        g = config.geometry
        bundle = g.bundle_diameter
        result["geometry_summary"] = {
            "heat_transfer_area_m2": g.heat_transfer_area,
            "bundle_diameter_m": bundle,
            "bundle_shell_clearance_m": g.shell_inner_diameter - bundle,
            "number_of_baffles": g.number_of_baffles,
            "unsupported_span_m": g.tube_unsupported_span,
        }
        result["inputs"] = {
            "hot_fluid": config.hot.to_dict(),
            "cold_fluid": config.cold.to_dict(),
            "geometry": config.geometry.to_dict(),
            "operating": config.operating.to_dict(),
            "tube_material": config.material.to_dict(),
            "shell_side_method": config.shell_side_method.value,
        }
        return json.dumps(result)

    except Exception as e:
        logger.error(f"Error in evaluate_shell_tube_exchanger: {e}", exc_info=True)
        return json.dumps({
            "error": f"Exchanger evaluation failed: {str(e)}"
        })
