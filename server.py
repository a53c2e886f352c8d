"""
MCP server for shell-and-tube exchanger rating and standards compliance.

Exposes thermal rating, pressure drop, tube vibration screening, API 660 /
TEMA / API 661 compliance, two-phase flow, material selection and
compressor power calculations. Unit conversion of string arguments
("19.05 mm", "150 degC") is enabled automatically when the unit system is
importable.
"""

import logging
from mcp.server.fastmcp import FastMCP

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("hx-compliance-mcp")

# Initialize the MCP server
mcp = FastMCP("hx-compliance-engine")

# Auto-detect unit conversion capability
UNIT_CONVERSION_ENABLED = False

try:
    from utils.unit_aware_decorator import make_tool_unit_aware, TOOL_MAPPINGS

    UNIT_CONVERSION_ENABLED = True
    logger.info("Unit conversion system detected and enabled")
except ImportError:
    logger.warning("Unit conversion system not available - using SI units only")

# Import all tools
from tools.evaluate_exchanger import evaluate_shell_tube_exchanger
from tools.thermal_performance import calculate_exchanger_thermal_performance
from tools.exchanger_pressure_drop import calculate_exchanger_pressure_drop
from tools.tube_vibration import assess_tube_vibration
from tools.validate_standards import validate_exchanger_standards
from tools.compressor_power import calculate_compressor_power
from tools.fluid_properties import get_fluid_properties
from tools.two_phase_flow import analyze_two_phase_flow, calculate_two_phase_htc
from tools.material_selection import select_exchanger_material, check_nace_mr0175

# Full evaluation (primary)
OMNIBUS_TOOLS = [
    evaluate_shell_tube_exchanger,
]

# Individual calculation stages and supporting tools
TOOLS = [
    calculate_exchanger_thermal_performance,
    calculate_exchanger_pressure_drop,
    assess_tube_vibration,
    validate_exchanger_standards,
    calculate_compressor_power,
    get_fluid_properties,
    analyze_two_phase_flow,
    calculate_two_phase_htc,
    select_exchanger_material,
    check_nace_mr0175,
]

# Register all tools with automatic unit awareness if available
for tool in OMNIBUS_TOOLS + TOOLS:
    if UNIT_CONVERSION_ENABLED:
        tool_name = tool.__name__
        if tool_name in TOOL_MAPPINGS:
            unit_aware_tool = make_tool_unit_aware(tool)
            logger.info(f"Registered {tool_name} with unit conversion support")
        else:
            unit_aware_tool = tool
            logger.info(f"Registered {tool_name} (no unit mappings)")

        mcp.tool()(unit_aware_tool)
    else:
        mcp.tool()(tool)  # type: ignore[arg-type]
        logger.info(f"Registered {tool.__name__} (SI units only)")

# Log information about available dependencies
from utils.import_helpers import CHEMICALS_AVAILABLE, FLUIDS_AVAILABLE, HT_AVAILABLE, THERMO_AVAILABLE


def log_server_capabilities():
    """Log server capabilities and unit support."""
    logger.info("=" * 60)
    logger.info("HX COMPLIANCE MCP SERVER STARTING")
    logger.info("=" * 60)

    # Core dependencies
    logger.info(f"HT library available: {HT_AVAILABLE}")
    logger.info(f"Fluids library available: {FLUIDS_AVAILABLE}")
    logger.info(f"Thermo library available: {THERMO_AVAILABLE}")
    logger.info(f"Chemicals library available: {CHEMICALS_AVAILABLE}")

    # Unit conversion status
    if UNIT_CONVERSION_ENABLED:
        logger.info("✓ UNIT CONVERSION: ENABLED")
        logger.info("  Supported units:")
        logger.info("    Temperature: °F, °C, K")
        logger.info("    Length: in, mm, ft, m")
        logger.info("    Mass Flow: lb/hr, kg/hr, kg/s")
        logger.info("    Pressure: psi, bar, kPa, Pa")
        logger.info("    Viscosity: cP, Pa·s")
        logger.info("    Fin Density: fins_per_inch, fins/m")
        logger.info("")
        logger.info("  Usage examples:")
        logger.info('    geometry={"tube_outer_diameter": "0.75 inch", "tube_length": "16 ft"}')
        logger.info('    hot_fluid={"inlet_temperature": "150 degC", "mass_flow": "50000 kg/hr"}')
        logger.info('    inlet_pressure="14.7 psi"')
    else:
        logger.info("⚠ UNIT CONVERSION: DISABLED")
        logger.info("  All parameters must be in SI units:")
        logger.info("    Temperature: K")
        logger.info("    Length: m")
        logger.info("    Mass Flow: kg/s")
        logger.info("    Pressure: Pa")
        logger.info("    Viscosity: Pa·s")

    logger.info("=" * 60)
    logger.info(f"Server registered {len(OMNIBUS_TOOLS) + len(TOOLS)} tools successfully")
    logger.info("=" * 60)


if __name__ == "__main__":
    log_server_capabilities()

    # Start the server
    mcp.run()
