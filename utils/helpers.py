"""
Helper functions for the exchanger compliance MCP server.

Builders that turn the plain dictionaries the MCP tools receive into the
engine's frozen records. Missing stream properties are filled from thermo
when the stream names its fluid.
"""

import logging
from typing import Any, Dict, Optional

from exchanger.models import (
    AirCooledDesign,
    CalculationMode,
    ExchangerConfiguration,
    ExchangerGeometry,
    FanType,
    FlowArrangement,
    FluidPhase,
    FluidStream,
    HeaderType,
    OperatingConditions,
    ServiceType,
    ShellSideMethod,
    TemaClass,
    TubeMaterial,
    TubePattern,
)
from utils.constants import P_ATM
from utils.validation import ValidationError, parse_enum

logger = logging.getLogger("hx-compliance-mcp.helpers")

# Stream field -> key in the fluid property lookup
_PROPERTY_KEYS = {
    "specific_heat": "specific_heat_cp",
    "density": "density",
    "viscosity": "dynamic_viscosity",
    "thermal_conductivity": "thermal_conductivity",
}


def _require(data: Dict[str, Any], key: str, label: str) -> Any:
    value = data.get(key)
    if value is None:
        raise ValidationError(f"{label}.{key} is required")
    return value


def _optional_float(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    return None if value is None else float(value)


def build_fluid_stream(data: Dict[str, Any], label: str) -> FluidStream:
    """Build a FluidStream from a tool argument dictionary.

    Args:
        data: Stream fields in SI units. ``fluid_name`` (with optional
            ``pressure``) lets thermo supply any of specific_heat, density,
            viscosity and thermal_conductivity that are not given.
        label: Stream label used in error messages ("hot" or "cold")

    Returns:
        FluidStream

    Raises:
        ValidationError: if a required field is missing
    """
    if not isinstance(data, dict):
        raise ValidationError(f"{label} stream must be an object")
    values = dict(data)
    inlet = float(_require(values, "inlet_temperature", label))
    outlet = _optional_float(values, "outlet_temperature")

    missing = [field for field in _PROPERTY_KEYS if values.get(field) is None]
    fluid_name = values.get("fluid_name")
    if missing and fluid_name:
        from tools.fluid_properties import lookup_fluid_properties

        bulk_temperature = (inlet + outlet) / 2.0 if outlet is not None else inlet
        pressure = float(values.get("pressure") or P_ATM)
        props = lookup_fluid_properties(fluid_name, bulk_temperature, pressure)
        for field in missing:
            values[field] = props.get(_PROPERTY_KEYS[field])
        if values.get("phase") is None and props.get("phase"):
            values["phase"] = props["phase"]
        logger.info(f"Filled {label} stream {', '.join(missing)} from thermo for {fluid_name} at {bulk_temperature:.2f} K")

    phase = parse_enum(FluidPhase, values.get("phase") or FluidPhase.LIQUID, f"{label}.phase")
    return FluidStream(
        inlet_temperature=inlet,
        outlet_temperature=outlet,
        mass_flow=float(_require(values, "mass_flow", label)),
        specific_heat=float(_require(values, "specific_heat", label)),
        density=float(_require(values, "density", label)),
        viscosity=float(_require(values, "viscosity", label)),
        thermal_conductivity=float(_require(values, "thermal_conductivity", label)),
        prandtl_number=_optional_float(values, "prandtl_number"),
        fouling_resistance=float(values.get("fouling_resistance") or 0.0),
        phase=phase,
        speed_of_sound=_optional_float(values, "speed_of_sound"),
    )


def build_geometry(data: Dict[str, Any]) -> ExchangerGeometry:
    """Build ExchangerGeometry from a tool argument dictionary (SI units)."""
    if not isinstance(data, dict):
        raise ValidationError("geometry must be an object")
    label = "geometry"
    optional = {
        key: float(data[key])
        for key in (
            "inlet_baffle_spacing",
            "outlet_baffle_spacing",
            "unsupported_span",
            "tube_nozzle_diameter",
        )
        if data.get(key) is not None
    }
    for key in (
        "baffle_cut",
        "baffle_thickness",
        "shell_baffle_clearance",
        "tube_baffle_clearance",
        "bundle_bypass_fraction",
    ):
        if data.get(key) is not None:
            optional[key] = float(data[key])

    return ExchangerGeometry(
        tube_outer_diameter=float(_require(data, "tube_outer_diameter", label)),
        tube_wall_thickness=float(_require(data, "tube_wall_thickness", label)),
        tube_length=float(_require(data, "tube_length", label)),
        tube_count=int(_require(data, "tube_count", label)),
        tube_pitch=float(_require(data, "tube_pitch", label)),
        shell_inner_diameter=float(_require(data, "shell_inner_diameter", label)),
        baffle_spacing=float(_require(data, "baffle_spacing", label)),
        tube_pattern=parse_enum(TubePattern, data.get("tube_pattern") or TubePattern.TRIANGULAR_30, "tube_pattern"),
        tube_passes=int(data.get("tube_passes") or 1),
        shell_passes=int(data.get("shell_passes") or 1),
        **optional,
    )


def build_material(data: Optional[Dict[str, Any]]) -> TubeMaterial:
    """TubeMaterial from overrides on the carbon-steel defaults."""
    if not data:
        return TubeMaterial()
    fields = {}
    if data.get("name"):
        fields["name"] = str(data["name"])
    for key in ("elastic_modulus", "density", "thermal_conductivity", "allowable_stress"):
        if data.get(key) is not None:
            fields[key] = float(data[key])
    return TubeMaterial(**fields)


def build_operating_conditions(
    design_pressure: Optional[float] = None,
    design_temperature: Optional[float] = None,
    service_type: Optional[str] = None,
    tema_class: Optional[str] = None,
) -> OperatingConditions:
    fields = {}
    if design_pressure is not None:
        fields["design_pressure"] = float(design_pressure)
    if design_temperature is not None:
        fields["design_temperature"] = float(design_temperature)
    if service_type:
        fields["service_type"] = parse_enum(ServiceType, service_type, "service_type")
    if tema_class:
        fields["tema_class"] = parse_enum(TemaClass, tema_class, "tema_class")
    return OperatingConditions(**fields)


def build_exchanger_configuration(
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
) -> ExchangerConfiguration:
    """Assemble an ExchangerConfiguration from tool arguments.

    The hot stream is placed on the shell side and the cold stream in the tubes.

    Raises:
        ValidationError: if a required field is missing or an enum value is unknown
    """
    return ExchangerConfiguration(
        hot=build_fluid_stream(hot_fluid, "hot"),
        cold=build_fluid_stream(cold_fluid, "cold"),
        geometry=build_geometry(geometry),
        mode=parse_enum(CalculationMode, mode or CalculationMode.DESIGN, "mode"),
        arrangement=parse_enum(FlowArrangement, flow_arrangement or FlowArrangement.COUNTER, "flow_arrangement"),
        overall_u=None if overall_u is None else float(overall_u),
        area=None if area is None else float(area),
        operating=build_operating_conditions(design_pressure, design_temperature, service_type, tema_class),
        material=build_material(tube_material),
        shell_side_method=parse_enum(ShellSideMethod, shell_side_method or ShellSideMethod.KERN, "shell_side_method"),
    )


def build_air_cooled_design(data: Dict[str, Any]) -> AirCooledDesign:
    """Build AirCooledDesign from a tool argument dictionary (SI units)."""
    if not isinstance(data, dict):
        raise ValidationError("air_cooled must be an object")
    label = "air_cooled"
    optional = {}
    for key in ("air_face_velocity", "air_side_pressure_drop"):
        if data.get(key) is not None:
            optional[key] = float(data[key])
    if data.get("fan_type"):
        optional["fan_type"] = parse_enum(FanType, data["fan_type"], "fan_type")
    if data.get("header_type"):
        optional["header_type"] = parse_enum(HeaderType, data["header_type"], "header_type")

    return AirCooledDesign(
        bundle_width=float(_require(data, "bundle_width", label)),
        bundle_length=float(_require(data, "bundle_length", label)),
        tube_outer_diameter=float(_require(data, "tube_outer_diameter", label)),
        fin_density=float(_require(data, "fin_density", label)),
        fan_diameter=float(_require(data, "fan_diameter", label)),
        number_of_bays=int(_require(data, "number_of_bays", label)),
        header_thickness=float(_require(data, "header_thickness", label)),
        design_pressure=float(_require(data, "design_pressure", label)),
        **optional,
    )
