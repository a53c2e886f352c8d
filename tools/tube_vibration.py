"""
Tube flow-induced vibration screening tool.

Checks the longest unsupported tube span for vortex shedding resonance,
fluid-elastic instability (Connors), turbulent buffeting and, for gas on the
shell side, acoustic resonance.
"""

import json
import logging
from typing import Any, Dict, Optional

from exchanger.models import FluidPhase
from exchanger.vibration import assess_vibration
from utils.helpers import build_geometry, build_material
from utils.validation import ValidationError, parse_enum

logger = logging.getLogger("hx-compliance-mcp.tube_vibration")


def assess_tube_vibration(
    geometry: Dict[str, Any],
    crossflow_velocity: float,
    shell_fluid_density: float,
    tube_fluid_density: float,
    shell_fluid_phase: str = "liquid",
    shell_fluid_viscosity: float = 0.0,
    speed_of_sound: Optional[float] = None,
    damping_ratio: Optional[float] = None,
    tube_material: Optional[Dict[str, Any]] = None,
) -> str:
    """Assesses flow-induced vibration risk for the exchanger tube bundle.

    Args:
        geometry: Exchanger geometry in m; unsupported_span overrides the
            longest baffle spacing
        crossflow_velocity: Shell-side crossflow velocity (m/s)
        shell_fluid_density: Shell-side fluid density (kg/m³)
        tube_fluid_density: Tube-side fluid density (kg/m³)
        shell_fluid_phase: 'liquid', 'vapor' or 'two_phase'
        shell_fluid_viscosity: Shell-side viscosity (Pa·s), raises damping for viscous liquids
        speed_of_sound: Shell-side speed of sound (m/s)
        damping_ratio: Critical damping ratio; defaults by phase
        tube_material: Optional overrides: elastic_modulus (Pa), density (kg/m³)

    Returns:
        JSON string with natural, shedding, buffeting and acoustic frequencies,
        critical velocity, risk flags, status and recommendations
    """
    try:
        try:
            exchanger_geometry = build_geometry(geometry)
            material = build_material(tube_material)
            phase = parse_enum(FluidPhase, shell_fluid_phase or "liquid", "shell_fluid_phase")
            velocity = float(crossflow_velocity)
            shell_density = float(shell_fluid_density)
            tube_density = float(tube_fluid_density)
        except (ValidationError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Geometry, velocity and densities must be numbers in SI units.",
            })

        result = assess_vibration(
            exchanger_geometry,
            material,
            crossflow_velocity=velocity,
            shell_density=shell_density,
            tube_fluid_density=tube_density,
            shell_phase=phase,
            shell_viscosity=float(shell_fluid_viscosity or 0.0),
            speed_of_sound=None if speed_of_sound is None else float(speed_of_sound),
            damping_ratio=None if damping_ratio is None else float(damping_ratio),
        )
        if result is None:
            return json.dumps({
                "error": "Vibration assessment not possible for these inputs.",
                "suggestion": "Velocity, span and densities must be positive, with tube ID < OD < pitch.",
            })

        output = result.to_dict()
        output["unsupported_span_m"] = exchanger_geometry.tube_unsupported_span
        output["tube_material"] = material.name
        return json.dumps(output)

    except Exception as e:
        logger.error(f"Error in assess_tube_vibration: {e}", exc_info=True)
        return json.dumps({
            "error": f"Vibration assessment failed: {str(e)}"
        })
