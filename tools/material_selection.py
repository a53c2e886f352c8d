"""
Exchanger material selection and NACE MR0175 sour-service tools.
"""

import json
import logging
from typing import Optional

from exchanger.materials import (
    MATERIALS,
    CorrosionEnvironment,
    SourServiceConditions,
    select_material,
    validate_nace_mr0175,
)
from utils.validation import ValidationError, parse_enum, require_non_negative, require_positive

logger = logging.getLogger("hx-compliance-mcp.material_selection")


def select_exchanger_material(
    environment: str,
    temperature: float,
    pressure: float,
    design_life: float = 20.0,
    h2s_content: float = 0.0,
    co2_content: float = 0.0,
    chloride_content: float = 0.0,
    ph: float = 7.0,
) -> str:
    """Recommends a pressure-part material for the service.

    Args:
        environment: 'none', 'mild', 'moderate', 'severe', 'sour' or 'acidic'
        temperature: Design temperature (K)
        pressure: Operating pressure (Pa absolute)
        design_life: Design life (years)
        h2s_content: H2S content of the gas (mol%)
        co2_content: CO2 content of the gas (mol%)
        chloride_content: Chloride in the water phase (mg/L)
        ph: In-situ pH

    Returns:
        JSON string with the recommended grade, alternatives, corrosion rate,
        expected life, NACE MR0175 requirements and cracking risks
    """
    try:
        try:
            env = parse_enum(CorrosionEnvironment, environment, "environment")
            result = select_material(
                env,
                temperature=float(temperature),
                pressure=float(pressure),
                design_life=float(design_life),
                h2s_content=float(h2s_content or 0.0),
                co2_content=float(co2_content or 0.0),
                chloride_content=float(chloride_content or 0.0),
                ph=float(ph),
            )
        except (ValidationError, TypeError, ValueError) as e:
            return json.dumps({
                "error": str(e),
                "suggestion": "Temperature in K, pressure in Pa absolute, gas contents in mol%.",
            })

        output = result.to_dict()
        output["material"] = MATERIALS[result.recommended_material].to_dict()
        return json.dumps(output)

    except Exception as e:
        logger.error(f"Error in select_exchanger_material: {e}", exc_info=True)
        return json.dumps({
            "error": f"Material selection failed: {str(e)}"
        })


def check_nace_mr0175(
    material: str,
    h2s_partial_pressure: float,
    temperature: float,
    ph: float = 7.0,
    chloride_content: float = 0.0,
    co2_partial_pressure: Optional[float] = None,
) -> str:
    """Checks one material grade against NACE MR0175 / ISO 15156 sour service.

    Args:
        material: Grade id, e.g. 'SA-516-70', 'SS-316L', 'DUPLEX-2205'
        h2s_partial_pressure: H2S partial pressure (Pa)
        temperature: Service temperature (K)
        ph: In-situ pH
        chloride_content: Chloride in the water phase (mg/L)
        co2_partial_pressure: CO2 partial pressure (Pa)

    Returns:
        JSON string with the SSC region, compliance flag, requirements and restrictions
    """
    try:
        try:
            require_non_negative(float(h2s_partial_pressure), "h2s_partial_pressure")
            require_positive(float(temperature), "temperature")
            conditions = SourServiceConditions(
                h2s_partial_pressure=float(h2s_partial_pressure),
                temperature=float(temperature),
                ph=float(ph),
                chloride_content=float(chloride_content or 0.0),
                co2_partial_pressure=float(co2_partial_pressure or 0.0),
            )
        except (ValidationError, TypeError, ValueError) as e:
            return json.dumps({
                "error": f"Invalid input: {e}",
                "suggestion": "Partial pressures in Pa, temperature in K.",
            })

        assessment = validate_nace_mr0175(material, conditions)
        output = assessment.to_dict()
        output["known_materials"] = list(MATERIALS)
        return json.dumps(output)

    except Exception as e:
        logger.error(f"Error in check_nace_mr0175: {e}", exc_info=True)
        return json.dumps({
            "error": f"NACE MR0175 check failed: {str(e)}"
        })
