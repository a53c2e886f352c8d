"""Simple example of using the exchanger compliance MCP tools."""

import json
import os
import sys

# Add the parent directory to the path so we can import tools
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tools.compressor_power import calculate_compressor_power
from tools.evaluate_exchanger import evaluate_shell_tube_exchanger
from utils.unit_aware_decorator import make_tool_unit_aware

# Wrapped the same way the server registers them, so unit strings are accepted
evaluate = make_tool_unit_aware(evaluate_shell_tube_exchanger)
compressor = make_tool_unit_aware(calculate_compressor_power)

GEOMETRY = {
    "tube_outer_diameter": "0.75 inch",
    "tube_wall_thickness": "2.11 mm",
    "tube_length": "16 ft",
    "tube_count": 300,
    "tube_pitch": "1 inch",
    "shell_inner_diameter": "591 mm",
    "baffle_spacing": "300 mm",
    "tube_pattern": "triangular_30",
    "tube_passes": 2,
}


def main():
    """Run basic usage examples."""

    # Example 1: Hot water on the shell side cooled by cooling water
    print("Example 1: Shell-and-tube evaluation")
    result = json.loads(evaluate(
        hot_fluid={
            "inlet_temperature": "150 degC",
            "outlet_temperature": "90 degC",
            "mass_flow": "50000 kg/hr",
            "specific_heat": 4180,
            "density": 950,
            "viscosity": "0.25 cP",
            "thermal_conductivity": 0.68,
        },
        cold_fluid={
            "inlet_temperature": "25 degC",
            "outlet_temperature": "62.5 degC",
            "mass_flow": "80000 kg/hr",
            "specific_heat": 4180,
            "density": 990,
            "viscosity": "0.65 cP",
            "thermal_conductivity": 0.63,
        },
        geometry=GEOMETRY,
        overall_u=850,
    ))
    if "error" in result:
        print(f"Error: {result['error']}")
    else:
        thermal = result["thermal"]
        print(f"Duty: {thermal['heat_duty_W'] / 1000:.0f} kW")
        print(f"Required area: {thermal['required_area_m2']:.1f} m² of {thermal['available_area_m2']:.1f} m²")
        print(f"Tube-side dP: {result['pressure_drop']['tube_side']['total_Pa'] / 1000:.1f} kPa")
        print(f"Shell-side dP: {result['pressure_drop']['shell_side']['total_Pa'] / 1000:.1f} kPa")
        print(f"Vibration: {result['vibration']['status']}")
        for standard in result["validation"]:
            print(f"{standard['standard']}: {'valid' if standard['is_valid'] else 'NOT valid'}")
            for rule in standard["errors"] + standard["warnings"]:
                print(f"  [{rule['status']}] {rule['section']} {rule['requirement']}: {rule['actual_value']} (limit {rule['limit']})")
        print(f"Compliant: {result['is_compliant']}")
    print()

    # Example 2: Natural gas booster
    print("Example 2: Centrifugal compressor")
    result = json.loads(compressor(
        inlet_pressure="5 bar",
        inlet_temperature="27 degC",
        discharge_pressure="15 bar",
        mass_flow="7200 kg/hr",
        molecular_weight=16.04,
        specific_heat_ratio=1.3,
    ))
    print(f"Polytropic head: {result['polytropic_head_kJ_kg']:.1f} kJ/kg")
    print(f"Motor power: {result['motor_power_kW']:.0f} kW")
    print(f"Discharge temperature: {result['discharge_temperature_C']:.1f} °C")
    print()


if __name__ == "__main__":
    main()
