"""Unit conversion utilities using Pint for the exchanger compliance MCP server.

Tool arguments may arrive as strings with units ("19.05 mm", "150 degC",
"50000 kg/hr"). This module parses them and converts to the SI units the
rating engine works in.
"""

from pint import UnitRegistry
import logging
from typing import Union, Optional

logger = logging.getLogger("hx-compliance-mcp.units")

# Initialize unit registry
ureg = UnitRegistry()

# Process-industry shorthands
ureg.define("fins_per_inch = 1 / inch")
ureg.define("fpi = 1 / inch")
ureg.define("gpm = gallon/minute")
ureg.define("GPM = gallon/minute")


def convert_units(value: float, from_unit: str, to_unit: str) -> float:
    """Convert between units using Pint.

    Args:
        value: Numerical value to convert
        from_unit: Source unit string (e.g., 'degF', 'inch', 'psi', 'kg/hr')
        to_unit: Target unit string (e.g., 'kelvin', 'meter', 'pascal', 'kg/s')

    Returns:
        Converted value as float

    Raises:
        ValueError: If conversion fails
    """
    try:
        quantity = ureg.Quantity(value, from_unit)
        converted = quantity.to(to_unit)
        return float(converted.magnitude)
    except Exception as e:
        logger.error(f"Unit conversion failed: {e}")
        raise ValueError(f"Cannot convert {value} {from_unit} to {to_unit}: {e}")


# Utility function to parse and convert user input
def parse_and_convert(
    value_str: Union[str, float, int],
    target_unit: str,
    param_type: Optional[str] = None,
) -> float:
    """Parse a value with optional unit and convert to target unit.

    Args:
        value_str: Number, or string holding a value and unit (e.g. "19.05 mm", "150 degC")
        target_unit: Target unit to convert to
        param_type: Optional parameter type hint; a bare numeric string of a
            hinted type is read in that type's default unit

    Returns:
        Converted value in target units

    Examples:
        >>> parse_and_convert("0.75 inch", "meter")
        0.01905
        >>> parse_and_convert(0.01905, "meter")
        0.01905
    """
    # Numeric values are assumed to be in SI units already
    if isinstance(value_str, (int, float)):
        return float(value_str)

    parts = value_str.strip().split(maxsplit=1)

    if len(parts) == 2:
        try:
            value = float(parts[0])
        except ValueError:
            raise ValueError(f"Could not parse '{value_str}' as a numeric value with unit")
        return convert_units(value, parts[1], target_unit)

    try:
        value = float(value_str.strip())
    except ValueError:
        raise ValueError(f"Could not parse '{value_str}' as a numeric value")

    if param_type:
        default_units = {
            "temperature": "kelvin",
            "length": "meter",
            "length_small": "millimeter",
            "pressure": "pascal",
            "mass_flow": "kg/s",
        }
        if param_type in default_units:
            from_unit = default_units[param_type]
            logger.info(f"Assuming {from_unit} for {param_type} value {value}")
            return convert_units(value, from_unit, target_unit)

    # No conversion needed - already in target units
    return value
