"""
Fluid properties tool to retrieve thermophysical properties of process fluids.

Properties come from the thermo library. The exchanger tools use the same
lookup to fill stream properties the caller leaves out.
"""

import json
import logging
import math
from functools import lru_cache
from typing import Dict, Optional

from utils.constants import DEG_C_to_K, P_ATM
from utils.import_helpers import THERMO_AVAILABLE

logger = logging.getLogger("hx-compliance-mcp.fluid_properties")


def _as_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@lru_cache(maxsize=128)
def _cached_get_properties_thermo(fluid_name: str, temperature: float, pressure: float) -> Dict[str, Optional[float]]:
    """Cached property lookup using thermo.Chemical (mass basis, SI units)."""
    from thermo import Chemical

    chem = Chemical(fluid_name, T=temperature, P=pressure)
    phase = getattr(chem, "phase", None)
    if phase not in ("l", "g"):
        raise ValueError(f"Unsupported phase '{phase}' for {fluid_name} at T={temperature} K, P={pressure} Pa")

    rho = _as_float(chem.rho)
    Cp = _as_float(chem.Cp)
    k = _as_float(chem.k)
    mu = _as_float(chem.mu)
    Pr = _as_float(chem.Pr)
    if Pr is None and mu and Cp and k:
        Pr = mu * Cp / k

    return {
        "density": rho,
        "specific_heat_cp": Cp,
        "thermal_conductivity": k,
        "dynamic_viscosity": mu,
        "kinematic_viscosity": mu / rho if (mu and rho) else None,
        "prandtl_number": Pr,
        "phase": "liquid" if phase == "l" else "vapor",
        "molecular_weight": _as_float(chem.MW),
        "critical_temperature": _as_float(chem.Tc),
        "critical_pressure": _as_float(chem.Pc),
        "isentropic_exponent": _as_float(getattr(chem, "isentropic_exponent", None)),
        "compressibility": _as_float(getattr(chem, "Z", None)),
    }


def lookup_fluid_properties(fluid_name: str, temperature: float, pressure: float = P_ATM) -> Dict[str, Optional[float]]:
    """Property dictionary for a named fluid.

    Raises:
        ImportError: if thermo is not installed
        ValueError: if the fluid or state cannot be resolved
    """
    if not THERMO_AVAILABLE:
        raise ImportError("thermo library is required for fluid property lookup")
    try:
        return dict(_cached_get_properties_thermo(fluid_name.strip(), float(temperature), float(pressure)))
    except (ImportError, ValueError):
        raise
    except Exception as e:
        raise ValueError(f"Could not retrieve properties for '{fluid_name}': {e}") from e


def get_fluid_properties(
    fluid_name: str,
    temperature: float,
    pressure: float = P_ATM,
) -> str:
    """Retrieves thermophysical properties of a fluid at specified conditions.

    Args:
        fluid_name: Name of the fluid (e.g., 'water', 'methane', 'toluene')
        temperature: Temperature in Kelvin (K)
        pressure: Pressure in Pascals (Pa)

    Returns:
        JSON string with density (kg/m³), specific heat (J/kg·K), thermal
        conductivity (W/m·K), viscosity (Pa·s), Prandtl number and phase
    """
    try:
        try:
            T = float(temperature)
            P = float(pressure)
        except (TypeError, ValueError):
            return json.dumps({
                "error": "Temperature (K) and pressure (Pa) must be numeric values."
            })
        if not math.isfinite(T) or not math.isfinite(P):
            return json.dumps({
                "error": "Temperature and pressure must be finite real numbers."
            })
        if T <= 0.0 or P <= 0.0:
            return json.dumps({
                "error": "Temperature and pressure must be positive absolute values."
            })

        logger.info(f"Looking up properties for {fluid_name} at T={T} K, P={P} Pa")
        try:
            props = lookup_fluid_properties(fluid_name, T, P)
        except ImportError as e:
            return json.dumps({"error": str(e), "suggestion": "pip install thermo"})
        except ValueError as e:
            return json.dumps({
                "error": str(e),
                "suggestion": "Use a common chemical name or CAS number, or supply the properties directly.",
            })

        result = {"fluid_name": fluid_name, "temperature_k": T, "pressure_pa": P}
        result.update({k: v for k, v in props.items() if v is not None})
        result["temperature_c"] = round(T - DEG_C_to_K, 2)
        result["data_source"] = "thermo_library"
        return json.dumps(result)

    except Exception as e:
        logger.error(f"Unexpected error in get_fluid_properties: {e}", exc_info=True)
        return json.dumps({
            "error": f"An unexpected error occurred: {str(e)}"
        })
