"""Unit-aware decorator for the exchanger compliance MCP tools.

This decorator converts unit-bearing string arguments ("19.05 mm", "150 degC",
"50000 kg/hr") to SI before the tool runs. It is applied at the server
registration level for every tool listed in TOOL_MAPPINGS.
"""

import logging
from functools import wraps
from typing import Dict, Any, Optional, Union

from utils.unit_converter import parse_and_convert

logger = logging.getLogger("hx-compliance-mcp.unit_decorator")

# Parameter type definitions with their target SI units
PARAMETER_TYPES = {
    "temperature": {"target_unit": "kelvin"},
    "temperature_difference": {"target_unit": "delta_degC"},
    "length": {"target_unit": "meter"},
    # Tube and shell dimensions, usually quoted in mm or inches
    "length_small": {"target_unit": "meter"},
    "area": {"target_unit": "meter^2"},
    "mass_flow": {"target_unit": "kg/s"},
    "pressure": {"target_unit": "pascal"},
    "velocity": {"target_unit": "m/s"},
    "density": {"target_unit": "kg/m^3"},
    "viscosity": {"target_unit": "pascal*second"},
    "specific_heat": {"target_unit": "J/(kg*K)"},
    "htc": {"target_unit": "W/(m^2*K)"},
    "thermal_conductivity": {"target_unit": "W/(m*K)"},
    "fouling": {"target_unit": "m^2*K/W"},
    "modulus": {"target_unit": "pascal"},
    "fin_density": {"target_unit": "1/meter"},
    "surface_tension": {"target_unit": "N/m"},
}

ParamMapping = Dict[str, Union[str, Dict[str, str]]]


def convert_value(value: Any, param_type: str, param_name: Optional[str] = None) -> Any:
    """Convert a single value based on parameter type.

    Args:
        value: Value to convert (number, or string with unit)
        param_type: Type of parameter from PARAMETER_TYPES
        param_name: Optional parameter name for logging

    Returns:
        Converted value in SI units; numbers pass through unchanged
    """
    if param_type not in PARAMETER_TYPES or value is None:
        return value

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        target_unit = PARAMETER_TYPES[param_type]["target_unit"]
        try:
            return parse_and_convert(value, target_unit, param_type)
        except ValueError:
            logger.warning(f"Could not convert {param_name}='{value}' to {target_unit}")
            raise
    return value


def convert_dict_values(data: Dict[str, Any], mappings: ParamMapping) -> Dict[str, Any]:
    """Convert values in a dictionary based on parameter mappings.

    A mapping value may itself be a dictionary, in which case the argument is
    an object whose keys are converted with that nested mapping.

    Args:
        data: Dictionary of parameter values
        mappings: Dictionary mapping parameter names to types (or nested mappings)

    Returns:
        Dictionary with converted values
    """
    converted = {}
    for key, value in data.items():
        mapping = mappings.get(key)
        if mapping is None or value is None:
            converted[key] = value
        elif isinstance(mapping, dict):
            if isinstance(value, dict):
                converted[key] = convert_dict_values(value, mapping)
            else:
                converted[key] = value
        else:
            converted[key] = convert_value(value, mapping, key)
    return converted


def unit_aware(param_mappings: ParamMapping):
    """Decorator to make a function unit-aware.

    Args:
        param_mappings: Dictionary mapping parameter names to their unit types

    Example:
        @unit_aware({
            'inlet_temperature': 'temperature',
            'geometry': {'tube_outer_diameter': 'length_small'},
        })
        def my_tool(inlet_temperature, geometry):
            ...
    """

    def decorator(func):
        @wraps(func)
        def wrapper(**kwargs):
            logger.debug(f"Unit conversion for {func.__name__} with params: {list(kwargs.keys())}")

            try:
                converted_kwargs = convert_dict_values(kwargs, param_mappings)
            except ValueError as e:
                logger.error(f"Unit conversion error in {func.__name__}: {e}")
                # Let the tool report the unparsed value itself
                return func(**kwargs)

            for key in kwargs:
                if kwargs[key] != converted_kwargs.get(key):
                    logger.info(f"Converted {key}: {kwargs[key]} → {converted_kwargs[key]}")
            return func(**converted_kwargs)

        wrapper._unit_aware = True
        wrapper._param_mappings = param_mappings

        return wrapper

    return decorator


STREAM_MAPPING = {
    "inlet_temperature": "temperature",
    "outlet_temperature": "temperature",
    "mass_flow": "mass_flow",
    "specific_heat": "specific_heat",
    "density": "density",
    "viscosity": "viscosity",
    "thermal_conductivity": "thermal_conductivity",
    "fouling_resistance": "fouling",
    "speed_of_sound": "velocity",
    "pressure": "pressure",
}

GEOMETRY_MAPPING = {
    "tube_outer_diameter": "length_small",
    "tube_wall_thickness": "length_small",
    "tube_length": "length",
    "tube_pitch": "length_small",
    "shell_inner_diameter": "length_small",
    "baffle_spacing": "length_small",
    "inlet_baffle_spacing": "length_small",
    "outlet_baffle_spacing": "length_small",
    "baffle_thickness": "length_small",
    "unsupported_span": "length",
    "shell_baffle_clearance": "length_small",
    "tube_baffle_clearance": "length_small",
    "tube_nozzle_diameter": "length_small",
}

MATERIAL_MAPPING = {
    "elastic_modulus": "modulus",
    "density": "density",
    "thermal_conductivity": "thermal_conductivity",
    "allowable_stress": "pressure",
}

AIR_COOLED_MAPPING = {
    "bundle_width": "length",
    "bundle_length": "length",
    "tube_outer_diameter": "length_small",
    "fin_density": "fin_density",
    "fan_diameter": "length",
    "header_thickness": "length_small",
    "design_pressure": "pressure",
    "air_face_velocity": "velocity",
    "air_side_pressure_drop": "pressure",
}

_EXCHANGER_MAPPING = {
    "hot_fluid": STREAM_MAPPING,
    "cold_fluid": STREAM_MAPPING,
    "geometry": GEOMETRY_MAPPING,
    "tube_material": MATERIAL_MAPPING,
    "overall_u": "htc",
    "area": "area",
    "design_pressure": "pressure",
    "design_temperature": "temperature",
}

# Tool-specific parameter mappings
TOOL_MAPPINGS = {
    "get_fluid_properties": {"temperature": "temperature", "pressure": "pressure"},
    "evaluate_shell_tube_exchanger": _EXCHANGER_MAPPING,
    "calculate_exchanger_thermal_performance": _EXCHANGER_MAPPING,
    "calculate_exchanger_pressure_drop": {
        "hot_fluid": STREAM_MAPPING,
        "cold_fluid": STREAM_MAPPING,
        "geometry": GEOMETRY_MAPPING,
    },
    "assess_tube_vibration": {
        "geometry": GEOMETRY_MAPPING,
        "tube_material": MATERIAL_MAPPING,
        "crossflow_velocity": "velocity",
        "shell_fluid_density": "density",
        "tube_fluid_density": "density",
        "shell_fluid_viscosity": "viscosity",
        "speed_of_sound": "velocity",
    },
    "validate_exchanger_standards": {
        "geometry": GEOMETRY_MAPPING,
        "tube_material": MATERIAL_MAPPING,
        "air_cooled": AIR_COOLED_MAPPING,
        "tube_velocity": "velocity",
        "shell_velocity": "velocity",
        "design_pressure": "pressure",
        "design_temperature": "temperature",
    },
    "calculate_compressor_power": {
        "inlet_pressure": "pressure",
        "discharge_pressure": "pressure",
        "inlet_temperature": "temperature",
        "mass_flow": "mass_flow",
        "critical_temperature": "temperature",
        "critical_pressure": "pressure",
        "intercooler_approach": "temperature_difference",
    },
    "analyze_two_phase_flow": {
        "liquid_flow": "mass_flow",
        "gas_flow": "mass_flow",
        "liquid_density": "density",
        "gas_density": "density",
        "liquid_viscosity": "viscosity",
        "gas_viscosity": "viscosity",
        "surface_tension": "surface_tension",
        "pipe_diameter": "length_small",
        "pipe_length": "length",
        "pressure": "pressure",
    },
    "calculate_two_phase_htc": {
        "liquid_htc": "htc",
        "pressure": "pressure",
        "critical_pressure": "pressure",
        "wall_superheat": "temperature_difference",
        "liquid_density": "density",
        "vapor_density": "density",
        "liquid_viscosity": "viscosity",
        "vapor_viscosity": "viscosity",
        "liquid_thermal_conductivity": "thermal_conductivity",
        "liquid_specific_heat": "specific_heat",
        "surface_tension": "surface_tension",
        "saturation_pressure_rise": "pressure",
    },
    "select_exchanger_material": {"temperature": "temperature", "pressure": "pressure"},
    "check_nace_mr0175": {
        "h2s_partial_pressure": "pressure",
        "co2_partial_pressure": "pressure",
        "temperature": "temperature",
    },
}


def get_tool_mapping(tool_name: str) -> ParamMapping:
    return TOOL_MAPPINGS.get(tool_name, {})


def make_tool_unit_aware(tool_func):
    """Make a tool function unit-aware using its predefined mappings.

    Args:
        tool_func: The tool function to wrap

    Returns:
        Unit-aware version of the function
    """
    tool_name = tool_func.__name__
    mappings = get_tool_mapping(tool_name)

    if not mappings:
        logger.debug(f"No unit mappings defined for {tool_name}")
        return tool_func

    return unit_aware(mappings)(tool_func)
