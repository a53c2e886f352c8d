"""
Gas compressor power tool.

Polytropic head, power and discharge temperature for centrifugal, axial,
reciprocating, screw and diaphragm machines. Gas properties may be given
directly or looked up from thermo by name.
"""

import json
import logging
from typing import Optional

from exchanger.compressor import CompressorInputs, CompressorType, MACHINES, calculate_compressor_performance
from tools.fluid_properties import lookup_fluid_properties
from utils.validation import ValidationError, parse_enum

logger = logging.getLogger("hx-compliance-mcp.compressor_power")


def _fraction(value: Optional[float]) -> Optional[float]:
    """Efficiency as a fraction; values above 1 are read as percent."""
    if value is None:
        return None
    value = float(value)
    return value / 100.0 if value > 1.0 else value


def calculate_compressor_power(
    inlet_pressure: float,
    inlet_temperature: float,
    discharge_pressure: float,
    mass_flow: float,
    gas_name: Optional[str] = None,
    molecular_weight: Optional[float] = None,
    specific_heat_ratio: Optional[float] = None,
    compressibility: Optional[float] = None,
    critical_temperature: Optional[float] = None,
    critical_pressure: Optional[float] = None,
    estimate_critical_properties: bool = False,
    compressor_type: str = "centrifugal",
    isentropic_efficiency: Optional[float] = None,
    polytropic_efficiency: Optional[float] = None,
    mechanical_efficiency: float = 0.98,
    motor_efficiency: float = 0.95,
    stages: int = 1,
    intercooler_approach: float = 10.0,
) -> str:
    """Calculates compressor head, power and discharge temperature.

    Args:
        inlet_pressure: Suction pressure (Pa absolute)
        inlet_temperature: Suction temperature (K)
        discharge_pressure: Discharge pressure (Pa absolute)
        mass_flow: Gas mass flow (kg/s)
        gas_name: Gas name for a thermo lookup of any missing molecular weight,
            specific heat ratio, compressibility and critical properties
        molecular_weight: Gas molecular weight (kg/kmol)
        specific_heat_ratio: Cp/Cv at suction
        compressibility: Suction compressibility factor Z (default 1.0)
        critical_temperature: Critical temperature (K), enables the real-gas correction
        critical_pressure: Critical pressure (Pa)
        estimate_critical_properties: Estimate Tc and Pc from molecular weight
            (light hydrocarbons only) when they are not given
        compressor_type: 'centrifugal', 'axial', 'reciprocating', 'screw' or 'diaphragm'
        isentropic_efficiency: Isentropic efficiency (fraction or percent); machine default if omitted
        polytropic_efficiency: Polytropic efficiency (fraction or percent); machine default if omitted
        mechanical_efficiency: Mechanical efficiency (fraction or percent)
        motor_efficiency: Motor efficiency (fraction or percent)
        stages: Number of compression stages with intercooling between them
        intercooler_approach: Intercooler outlet temperature above suction (K)

    Returns:
        JSON string with heads (kJ/kg), powers (kW), discharge temperatures (°C),
        flows and warnings
    """
    try:
        try:
            kind = parse_enum(CompressorType, compressor_type or "centrifugal", "compressor_type")
        except ValidationError as e:
            return json.dumps({"error": str(e)})

        properties_source = "supplied"
        if gas_name and (
            molecular_weight is None
            or specific_heat_ratio is None
            or (compressibility is None and critical_temperature is None)
        ):
            try:
                props = lookup_fluid_properties(gas_name, float(inlet_temperature), float(inlet_pressure))
            except ImportError as e:
                return json.dumps({"error": str(e), "suggestion": "pip install thermo, or supply the gas properties"})
            except ValueError as e:
                return json.dumps({
                    "error": str(e),
                    "suggestion": "Supply molecular_weight and specific_heat_ratio directly.",
                })
            if molecular_weight is None:
                molecular_weight = props.get("molecular_weight")
            if specific_heat_ratio is None:
                specific_heat_ratio = props.get("isentropic_exponent")
            if critical_temperature is None and critical_pressure is None:
                critical_temperature = props.get("critical_temperature")
                critical_pressure = props.get("critical_pressure")
            properties_source = "thermo_library"
            logger.info(f"Gas properties for {gas_name} from thermo: MW={molecular_weight}, k={specific_heat_ratio}")

        if molecular_weight is None or specific_heat_ratio is None:
            return json.dumps({
                "error": "molecular_weight and specific_heat_ratio are required",
                "suggestion": "Supply them directly or give gas_name for a thermo lookup.",
            })

        try:
            inputs = CompressorInputs(
                molecular_weight=float(molecular_weight),
                specific_heat_ratio=float(specific_heat_ratio),
                inlet_pressure=float(inlet_pressure),
                inlet_temperature=float(inlet_temperature),
                discharge_pressure=float(discharge_pressure),
                mass_flow=float(mass_flow),
                compressor_type=kind,
                compressibility=1.0 if compressibility is None else float(compressibility),
                critical_temperature=None if critical_temperature is None else float(critical_temperature),
                critical_pressure=None if critical_pressure is None else float(critical_pressure),
                estimate_critical_properties=bool(estimate_critical_properties),
                isentropic_efficiency=_fraction(isentropic_efficiency),
                polytropic_efficiency=_fraction(polytropic_efficiency),
                mechanical_efficiency=_fraction(mechanical_efficiency),
                motor_efficiency=_fraction(motor_efficiency),
                stages=int(stages),
                intercooler_approach=float(intercooler_approach),
            )
            result = calculate_compressor_performance(inputs)
        except (ValidationError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Pressures in Pa absolute, temperature in K, discharge above suction pressure.",
            })

        output = result.to_dict()
        output["compressor"] = MACHINES[kind].to_dict()
        output["gas_properties_source"] = properties_source
        output["inputs"] = inputs.to_dict()
        return json.dumps(output)

    except Exception as e:
        logger.error(f"Error in calculate_compressor_power: {e}", exc_info=True)
        return json.dumps({
            "error": f"Compressor calculation failed: {str(e)}"
        })
