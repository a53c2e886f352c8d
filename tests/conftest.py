"""Shared fixtures: a water/water exchanger with hot water on the shell side."""
import pytest

from exchanger.models import (
    CalculationMode,
    ExchangerConfiguration,
    ExchangerGeometry,
    FluidStream,
    TubePattern,
)

HOT_INLET_K = 423.15  # 150°C
HOT_OUTLET_K = 363.15  # 90°C
COLD_INLET_K = 298.15  # 25°C
HOT_FLOW = 13.889  # kg/s (50,000 kg/h)
COLD_FLOW = 22.222  # kg/s (80,000 kg/h)
CP_WATER = 4180.0

# Cold outlet that closes the heat balance exactly
BALANCED_COLD_OUTLET_K = COLD_INLET_K + HOT_FLOW * (HOT_INLET_K - HOT_OUTLET_K) / COLD_FLOW


@pytest.fixture
def geometry():
    return ExchangerGeometry(
        tube_outer_diameter=0.01905,
        tube_wall_thickness=0.00211,
        tube_length=4.88,
        tube_count=300,
        tube_pitch=0.0254,
        shell_inner_diameter=0.591,
        baffle_spacing=0.3,
        tube_pattern=TubePattern.TRIANGULAR_30,
        tube_passes=2,
        baffle_cut=0.25,
    )


@pytest.fixture
def hot_stream():
    return FluidStream(
        inlet_temperature=HOT_INLET_K,
        outlet_temperature=HOT_OUTLET_K,
        mass_flow=HOT_FLOW,
        specific_heat=CP_WATER,
        density=950.0,
        viscosity=2.5e-4,
        thermal_conductivity=0.68,
    )


@pytest.fixture
def cold_stream():
    return FluidStream(
        inlet_temperature=COLD_INLET_K,
        outlet_temperature=BALANCED_COLD_OUTLET_K,
        mass_flow=COLD_FLOW,
        specific_heat=CP_WATER,
        density=990.0,
        viscosity=6.5e-4,
        thermal_conductivity=0.63,
    )


@pytest.fixture
def design_config(hot_stream, cold_stream, geometry):
    return ExchangerConfiguration(
        hot=hot_stream,
        cold=cold_stream,
        geometry=geometry,
        mode=CalculationMode.DESIGN,
        overall_u=850.0,
    )


@pytest.fixture
def geometry_dict():
    return {
        "tube_outer_diameter": 0.01905,
        "tube_wall_thickness": 0.00211,
        "tube_length": 4.88,
        "tube_count": 300,
        "tube_pitch": 0.0254,
        "shell_inner_diameter": 0.591,
        "baffle_spacing": 0.3,
        "tube_pattern": "triangular_30",
        "tube_passes": 2,
        "baffle_cut": 0.25,
    }


@pytest.fixture
def hot_fluid_dict():
    return {
        "inlet_temperature": HOT_INLET_K,
        "outlet_temperature": HOT_OUTLET_K,
        "mass_flow": HOT_FLOW,
        "specific_heat": CP_WATER,
        "density": 950.0,
        "viscosity": 2.5e-4,
        "thermal_conductivity": 0.68,
    }


@pytest.fixture
def cold_fluid_dict():
    return {
        "inlet_temperature": COLD_INLET_K,
        "outlet_temperature": BALANCED_COLD_OUTLET_K,
        "mass_flow": COLD_FLOW,
        "specific_heat": CP_WATER,
        "density": 990.0,
        "viscosity": 6.5e-4,
        "thermal_conductivity": 0.63,
    }
