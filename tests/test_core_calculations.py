"""
Core geometry, resistance and input-building tests.
Tests the relations every stage of the rating engine relies on.
"""

import math

import pytest

from exchanger import geometry as geom
from exchanger.models import (
    CalculationMode,
    FanType,
    FlowArrangement,
    FluidPhase,
    ServiceType,
    ShellSideMethod,
    TemaClass,
    TubePattern,
)
from utils.helpers import (
    build_air_cooled_design,
    build_exchanger_configuration,
    build_fluid_stream,
    build_geometry,
    build_material,
    build_operating_conditions,
)
from utils.hx_common import calculate_overall_U, format_temperature_output, verify_heat_balance
from utils.validation import ValidationError, parse_enum


class TestBundleGeometry:
    """Tube bundle relations."""

    def test_equivalent_diameter_triangular(self):
        De = geom.equivalent_diameter(0.0254, 0.01905, True)
        assert De == pytest.approx(0.01829, abs=1e-4)

    def test_equivalent_diameter_square(self):
        De = geom.equivalent_diameter(0.0254, 0.01905, False)
        expected = 4.0 * (0.0254**2 - math.pi * 0.01905**2 / 4.0) / (math.pi * 0.01905)
        assert De == pytest.approx(expected)
        assert De > geom.equivalent_diameter(0.0254, 0.01905, True)

    def test_cross_flow_area(self):
        area = geom.cross_flow_area(0.591, 0.3, 0.0254, 0.01905)
        assert area == pytest.approx(0.591 * 0.3 * 0.25)

    def test_number_of_baffles(self):
        assert geom.number_of_baffles(4.88, 0.3) == 15
        assert geom.number_of_baffles(4.88, 0.0) == 0

    def test_bundle_diameter_fits_shell(self):
        D = geom.bundle_diameter(300, 0.01905, 0.0254, 30)
        assert 0.45 < D < 0.591


class TestGeometryRecord:
    """Derived properties of ExchangerGeometry."""

    def test_derived_dimensions(self, geometry):
        assert geometry.tube_inner_diameter == pytest.approx(0.01483)
        assert geometry.pitch_ratio == pytest.approx(4.0 / 3.0)
        assert geometry.tubes_per_pass == 150
        assert geometry.heat_transfer_area == pytest.approx(87.6, abs=0.1)
        assert geometry.flow_area_per_pass == pytest.approx(150 * math.pi * 0.01483**2 / 4.0)

    def test_bundle_diameter_property(self, geometry):
        assert geometry.bundle_diameter == pytest.approx(geom.bundle_diameter(300, 0.01905, 0.0254, 30))
        assert geometry.bundle_diameter < geometry.shell_inner_diameter

    def test_default_unsupported_span(self, geometry):
        assert geometry.tube_unsupported_span == 0.3

    def test_pattern_properties(self):
        assert TubePattern.TRIANGULAR_60.is_triangular
        assert not TubePattern.ROTATED_SQUARE_45.is_triangular
        assert TubePattern.SQUARE_90.layout_angle == 90

    def test_arrangement_properties(self):
        assert FlowArrangement.COUNTER.is_pure
        assert not FlowArrangement.SHELL_TUBE_1_2.is_pure


class TestOverallCoefficient:
    """Series resistance sum."""

    def test_two_equal_films(self):
        result = calculate_overall_U(1000.0, 1000.0, 0.02, 0.02, 45.0)
        assert result["U_W_m2K"] == pytest.approx(500.0)

    def test_fouling_adds_resistance(self):
        result = calculate_overall_U(1000.0, 1000.0, 0.02, 0.02, 45.0, fouling_outer=0.001)
        assert result["U_W_m2K"] == pytest.approx(1.0 / 0.003)

    def test_inner_reference(self):
        outer = calculate_overall_U(2000.0, 1500.0, 0.01483, 0.01905, 45.0)
        inner = calculate_overall_U(2000.0, 1500.0, 0.01483, 0.01905, 45.0, reference="inner")
        assert inner["U_W_m2K"] == pytest.approx(outer["U_W_m2K"] * 0.01905 / 0.01483)

    def test_heat_balance_check(self):
        check = verify_heat_balance(1000.0, 10.0, 10.0, 10.0)
        assert check["error_pct"] == 0.0
        assert check["balance_satisfied"]
        assert not verify_heat_balance(1000.0, 10.0, 10.0, 10.0, F=0.8)["balance_satisfied"]

    def test_temperature_output(self):
        temps = format_temperature_output(423.15, 363.15, 298.15, 343.15)
        assert temps["hot_inlet_C"] == pytest.approx(150.0)
        assert temps["approach_hot_end_K"] == pytest.approx(80.0)
        assert temps["approach_cold_end_K"] == pytest.approx(65.0)


class TestInputBuilders:
    """Tool dictionaries to engine records."""

    def test_geometry(self, geometry_dict, geometry):
        assert build_geometry(geometry_dict) == geometry

    def test_geometry_missing_field(self, geometry_dict):
        del geometry_dict["tube_pitch"]
        with pytest.raises(ValidationError, match="tube_pitch"):
            build_geometry(geometry_dict)

    def test_geometry_bad_pattern(self, geometry_dict):
        geometry_dict["tube_pattern"] = "hexagonal"
        with pytest.raises(ValidationError):
            build_geometry(geometry_dict)

    def test_fluid_stream(self, hot_fluid_dict, hot_stream):
        assert build_fluid_stream(hot_fluid_dict, "hot") == hot_stream

    def test_fluid_stream_phase(self, hot_fluid_dict):
        hot_fluid_dict["phase"] = "VAPOR"
        assert build_fluid_stream(hot_fluid_dict, "hot").phase is FluidPhase.VAPOR

    def test_fluid_stream_missing_property(self, hot_fluid_dict):
        del hot_fluid_dict["viscosity"]
        with pytest.raises(ValidationError, match="hot.viscosity"):
            build_fluid_stream(hot_fluid_dict, "hot")

    def test_configuration(self, hot_fluid_dict, cold_fluid_dict, geometry_dict):
        config = build_exchanger_configuration(
            hot_fluid_dict,
            cold_fluid_dict,
            geometry_dict,
            mode="rating",
            flow_arrangement="shell_tube_1_2",
            area=50.0,
            service_type="fouling_liquid",
            tema_class="c",
            shell_side_method="bell_delaware",
        )
        assert config.mode is CalculationMode.RATING
        assert config.arrangement is FlowArrangement.SHELL_TUBE_1_2
        assert config.area == 50.0
        assert config.operating.service_type is ServiceType.FOULING_LIQUID
        assert config.operating.tema_class is TemaClass.C
        assert config.shell_side_method is ShellSideMethod.BELL_DELAWARE

    def test_material_defaults_and_overrides(self):
        assert build_material(None).name == "carbon_steel"
        titanium = build_material({"name": "titanium", "elastic_modulus": 1.07e11, "density": 4510})
        assert titanium.elastic_modulus == 1.07e11
        assert titanium.allowable_stress == build_material(None).allowable_stress

    def test_operating_defaults(self):
        operating = build_operating_conditions()
        assert operating.tema_class is TemaClass.R
        assert operating.service_type is ServiceType.CLEAN_LIQUID

    def test_air_cooled(self):
        design = build_air_cooled_design({
            "bundle_width": 3.05,
            "bundle_length": 9.0,
            "tube_outer_diameter": 0.0254,
            "fin_density": 394,
            "fan_diameter": 3.0,
            "number_of_bays": 2,
            "header_thickness": 0.019,
            "design_pressure": 1.0e5,
            "fan_type": "induced",
        })
        assert design.fan_type is FanType.INDUCED
        assert design.air_face_velocity == 3.0

    def test_parse_enum_accepts_member_names(self):
        assert parse_enum(FlowArrangement, "CROSSFLOW_MIXED", "arrangement") is FlowArrangement.CROSSFLOW_MIXED
        with pytest.raises(ValidationError, match="arrangement must be one of"):
            parse_enum(FlowArrangement, "zigzag", "arrangement")
