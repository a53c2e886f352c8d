"""
Standards compliance tool for API 660, TEMA and API 661.

Shell-and-tube designs are checked against API 660 and TEMA; air-cooled
designs against API 661. Rule violations come back as data, never as errors.
"""

import json
import logging
from typing import Any, Dict, Optional

from exchanger.compliance import ShellTubeContext, validate_exchanger
from exchanger.models import ExchangerType, FluidPhase, VibrationStatus
from exchanger.pipeline import generate_safety_report
from utils.helpers import (
    build_air_cooled_design,
    build_geometry,
    build_material,
    build_operating_conditions,
)
from utils.validation import ValidationError, parse_enum

logger = logging.getLogger("hx-compliance-mcp.validate_standards")


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def validate_exchanger_standards(
    exchanger_type: str = "shell_tube",
    geometry: Optional[Dict[str, Any]] = None,
    air_cooled: Optional[Dict[str, Any]] = None,
    design_pressure: Optional[float] = None,
    design_temperature: Optional[float] = None,
    service_type: Optional[str] = None,
    tema_class: Optional[str] = None,
    tube_material: Optional[Dict[str, Any]] = None,
    tube_fluid_phase: str = "liquid",
    shell_fluid_phase: str = "liquid",
    tube_velocity: Optional[float] = None,
    shell_velocity: Optional[float] = None,
    correction_factor: Optional[float] = None,
    duty_imbalance_pct: Optional[float] = None,
    vibration_status: Optional[str] = None,
) -> str:
    """Validates an exchanger design against industry standards.

    Args:
        exchanger_type: 'shell_tube' (API 660 + TEMA) or 'air_cooled' (API 661)
        geometry: Shell-and-tube geometry in m (required for shell_tube)
        air_cooled: Air-cooled design (required for air_cooled): bundle_width,
            bundle_length, tube_outer_diameter, fan_diameter, header_thickness (m),
            fin_density (fins/m), number_of_bays, design_pressure (Pa),
            air_face_velocity (m/s), air_side_pressure_drop (Pa),
            fan_type ('forced'/'induced'), header_type ('plug'/'cover_plate'/'manifold')
        design_pressure: Shell-and-tube design pressure (Pa gauge)
        design_temperature: Design temperature (K)
        service_type: 'clean_liquid', 'fouling_liquid', 'gas_vapor', 'two_phase' or 'erosive'
        tema_class: 'R', 'C' or 'B'
        tube_material: Optional tube material overrides (allowable_stress in Pa)
        tube_fluid_phase: Tube-side phase, selects the velocity limit
        shell_fluid_phase: Shell-side phase; vapor adds the gas-service rule
        tube_velocity: Tube-side velocity (m/s); the rule is skipped when omitted
        shell_velocity: Shell-side velocity (m/s); the rule is skipped when omitted
        correction_factor: LMTD correction factor F; the rule is skipped when omitted
        duty_imbalance_pct: Hot/cold duty imbalance (%); the rule is skipped when omitted
        vibration_status: 'safe', 'marginal' or 'unsafe'; the rule is skipped when omitted

    Returns:
        JSON string with per-standard rule lists, errors, warnings and is_valid,
        plus an overall is_compliant flag
    """
    try:
        try:
            kind = parse_enum(ExchangerType, exchanger_type or "shell_tube", "exchanger_type")
            if kind is ExchangerType.AIR_COOLED:
                if air_cooled is None:
                    raise ValidationError("air_cooled design data is required for air-cooled validation")
                subject = build_air_cooled_design(air_cooled)
            else:
                if geometry is None:
                    raise ValidationError("geometry is required for shell-and-tube validation")
                subject = ShellTubeContext(
                    geometry=build_geometry(geometry),
                    operating=build_operating_conditions(design_pressure, design_temperature, service_type, tema_class),
                    material=build_material(tube_material),
                    tube_phase=parse_enum(FluidPhase, tube_fluid_phase or "liquid", "tube_fluid_phase"),
                    shell_phase=parse_enum(FluidPhase, shell_fluid_phase or "liquid", "shell_fluid_phase"),
                    tube_velocity=_optional_float(tube_velocity),
                    shell_velocity=_optional_float(shell_velocity),
                    correction_factor=_optional_float(correction_factor),
                    duty_imbalance_pct=_optional_float(duty_imbalance_pct),
                    vibration_status=(
                        parse_enum(VibrationStatus, vibration_status, "vibration_status") if vibration_status else None
                    ),
                )
        except (ValidationError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Provide geometry for shell_tube or air_cooled data for air_cooled, in SI units.",
            })

        results = validate_exchanger(kind, subject)
        standards = [result.to_dict() for result in results]
        return json.dumps({
            "exchanger_type": kind.value,
            "standards": standards,
            "error_count": sum(len(result.errors) for result in results),
            "warning_count": sum(len(result.warnings) for result in results),
            "is_compliant": all(result.is_valid for result in results),
            "safety_report": generate_safety_report(results).to_dict(),
        })

    except Exception as e:
        logger.error(f"Error in validate_exchanger_standards: {e}", exc_info=True)
        return json.dumps({
            "error": f"Standards validation failed: {str(e)}"
        })
