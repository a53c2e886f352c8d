"""
Two-phase flow and condensing / boiling film coefficient tools.

Flow pattern, void fraction, pressure drop and instability screening for
gas-liquid flow in a tube, plus Shah condensation and Chen flow-boiling
coefficients.
"""

import json
import logging
from typing import Optional

from exchanger.two_phase import (
    TwoPhaseInputs,
    calculate_two_phase_flow,
    chen_boiling_htc,
    shah_condensation_htc,
)
from utils.validation import ValidationError

logger = logging.getLogger("hx-compliance-mcp.two_phase_flow")


def analyze_two_phase_flow(
    liquid_flow: float,
    gas_flow: float,
    liquid_density: float,
    gas_density: float,
    liquid_viscosity: float,
    gas_viscosity: float,
    surface_tension: float,
    pipe_diameter: float,
    pipe_length: float,
    pressure: float,
    inclination: float = 0.0,
) -> str:
    """Analyzes gas-liquid flow in a tube or pipe.

    Args:
        liquid_flow: Liquid mass flow (kg/s)
        gas_flow: Gas mass flow (kg/s)
        liquid_density: Liquid density (kg/m³)
        gas_density: Gas density (kg/m³)
        liquid_viscosity: Liquid viscosity (Pa·s)
        gas_viscosity: Gas viscosity (Pa·s)
        surface_tension: Gas-liquid surface tension (N/m)
        pipe_diameter: Inside diameter (m)
        pipe_length: Straight length (m)
        pressure: Operating pressure (Pa absolute)
        inclination: Angle from horizontal (rad), positive for upward flow

    Returns:
        JSON string with flow pattern, void fraction, pressure drop components,
        Lockhart-Martinelli parameter, slug frequency and instability warnings
    """
    try:
        try:
            inputs = TwoPhaseInputs(
                liquid_flow=float(liquid_flow),
                gas_flow=float(gas_flow),
                liquid_density=float(liquid_density),
                gas_density=float(gas_density),
                liquid_viscosity=float(liquid_viscosity),
                gas_viscosity=float(gas_viscosity),
                surface_tension=float(surface_tension),
                diameter=float(pipe_diameter),
                length=float(pipe_length),
                pressure=float(pressure),
                inclination=float(inclination or 0.0),
            )
            result = calculate_two_phase_flow(inputs)
        except (ValidationError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Flows must be non-negative (one positive); properties and dimensions positive, SI units.",
            })

        output = result.to_dict()
        output["pressure_drop_kPa"] = result.pressure_drop_Pa / 1000.0
        output["inputs"] = inputs.to_dict()
        return json.dumps(output)

    except Exception as e:
        logger.error(f"Error in analyze_two_phase_flow: {e}", exc_info=True)
        return json.dumps({
            "error": f"Two-phase flow analysis failed: {str(e)}"
        })


def calculate_two_phase_htc(
    mode: str,
    liquid_htc: float,
    quality: float,
    pressure: float,
    critical_pressure: Optional[float] = None,
    wall_superheat: Optional[float] = None,
    liquid_density: Optional[float] = None,
    vapor_density: Optional[float] = None,
    liquid_viscosity: Optional[float] = None,
    vapor_viscosity: Optional[float] = None,
    liquid_thermal_conductivity: Optional[float] = None,
    liquid_specific_heat: Optional[float] = None,
    surface_tension: Optional[float] = None,
    latent_heat: Optional[float] = None,
    liquid_reynolds: Optional[float] = None,
    saturation_pressure_rise: Optional[float] = None,
) -> str:
    """Calculates a condensing (Shah) or flow-boiling (Chen) film coefficient.

    Args:
        mode: 'condensation' or 'boiling'
        liquid_htc: Single-phase liquid coefficient (W/m²K)
        quality: Vapor quality (0-1)
        pressure: Saturation pressure (Pa absolute)
        critical_pressure: Critical pressure (Pa), condensation only
        wall_superheat: Wall minus saturation temperature (K), boiling only
        liquid_density: Liquid density (kg/m³), boiling only
        vapor_density: Vapor density (kg/m³), boiling only
        liquid_viscosity: Liquid viscosity (Pa·s), boiling only
        vapor_viscosity: Vapor viscosity (Pa·s), boiling only
        liquid_thermal_conductivity: Liquid conductivity (W/m·K), boiling only
        liquid_specific_heat: Liquid heat capacity (J/kg·K), boiling only
        surface_tension: Surface tension (N/m), boiling only
        latent_heat: Heat of vaporization (J/kg), boiling only
        liquid_reynolds: Liquid-alone Reynolds number for the suppression factor
        saturation_pressure_rise: Psat(T_wall) - Psat(T_sat) (Pa); 10% of pressure if omitted

    Returns:
        JSON string with the two-phase coefficient and its ratio to liquid_htc
    """
    try:
        kind = str(mode or "").strip().lower()
        try:
            if kind == "condensation":
                if critical_pressure is None:
                    raise ValidationError("critical_pressure is required for condensation")
                htc = shah_condensation_htc(
                    float(liquid_htc), float(quality), float(pressure), float(critical_pressure)
                )
                correlation = "Shah (1979)"
            elif kind == "boiling":
                required = {
                    "wall_superheat": wall_superheat,
                    "liquid_density": liquid_density,
                    "vapor_density": vapor_density,
                    "liquid_viscosity": liquid_viscosity,
                    "vapor_viscosity": vapor_viscosity,
                    "liquid_thermal_conductivity": liquid_thermal_conductivity,
                    "liquid_specific_heat": liquid_specific_heat,
                    "surface_tension": surface_tension,
                    "latent_heat": latent_heat,
                }
                missing = [name for name, value in required.items() if value is None]
                if missing:
                    raise ValidationError(f"boiling requires: {', '.join(missing)}")
                htc = chen_boiling_htc(
                    float(liquid_htc),
                    float(quality),
                    float(pressure),
                    float(wall_superheat),
                    float(liquid_density),
                    float(vapor_density),
                    float(liquid_viscosity),
                    float(vapor_viscosity),
                    float(liquid_thermal_conductivity),
                    float(liquid_specific_heat),
                    float(surface_tension),
                    float(latent_heat),
                    liquid_reynolds=None if liquid_reynolds is None else float(liquid_reynolds),
                    saturation_pressure_rise=(
                        None if saturation_pressure_rise is None else float(saturation_pressure_rise)
                    ),
                )
                correlation = "Chen (1966) with Forster-Zuber nucleate boiling"
            else:
                raise ValidationError(f"mode must be 'condensation' or 'boiling'; got {mode!r}")
        except (ValidationError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Quality between 0 and 1, pressures in Pa absolute, properties in SI units.",
            })

        return json.dumps({
            "mode": kind,
            "correlation": correlation,
            "htc_W_m2K": htc,
            "enhancement_ratio": htc / float(liquid_htc),
            "liquid_htc_W_m2K": float(liquid_htc),
            "quality": float(quality),
        })

    except Exception as e:
        logger.error(f"Error in calculate_two_phase_htc: {e}", exc_info=True)
        return json.dumps({
            "error": f"Two-phase coefficient calculation failed: {str(e)}"
        })
