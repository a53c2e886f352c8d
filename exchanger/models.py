"""
Data model for the shell-and-tube rating and compliance engine.

Every record is a frozen dataclass constructed fresh from the caller's inputs
(SI units throughout). Geometry-derived quantities are exposed as properties
so they are always recomputed from the primary fields and can never diverge
from them. Result records serialize to plain dicts via ``to_dict()`` for the
MCP tool layer.
"""

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from exchanger import geometry


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {_serialize(k): _serialize(v) for k, v in value.items()}
    return value


class Record:
    """Mixin giving dataclasses a JSON-friendly ``to_dict``."""

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _serialize(getattr(self, f.name)) for f in fields(self)}


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class FluidPhase(str, Enum):
    LIQUID = "liquid"
    VAPOR = "vapor"
    TWO_PHASE = "two_phase"
    CONDENSING = "condensing"
    BOILING = "boiling"

    @property
    def is_gas(self) -> bool:
        return self is FluidPhase.VAPOR

    @property
    def is_two_phase(self) -> bool:
        return self in (FluidPhase.TWO_PHASE, FluidPhase.CONDENSING, FluidPhase.BOILING)


class TubePattern(str, Enum):
    TRIANGULAR_30 = "triangular_30"
    TRIANGULAR_60 = "triangular_60"
    SQUARE_90 = "square_90"
    ROTATED_SQUARE_45 = "rotated_square_45"

    @property
    def is_triangular(self) -> bool:
        return self in (TubePattern.TRIANGULAR_30, TubePattern.TRIANGULAR_60)

    @property
    def layout_angle(self) -> int:
        return {"triangular_30": 30, "triangular_60": 60, "square_90": 90, "rotated_square_45": 45}[self.value]


class CalculationMode(str, Enum):
    DESIGN = "design"
    RATING = "rating"


class FlowArrangement(str, Enum):
    COUNTER = "counter"
    PARALLEL = "parallel"
    SHELL_TUBE_1_2 = "shell_tube_1_2"
    SHELL_TUBE_1_4 = "shell_tube_1_4"
    CROSSFLOW_UNMIXED = "crossflow_unmixed"
    CROSSFLOW_MIXED = "crossflow_mixed"

    @property
    def is_pure(self) -> bool:
        """Counter and parallel flow need no LMTD correction."""
        return self in (FlowArrangement.COUNTER, FlowArrangement.PARALLEL)


class FlowRegime(str, Enum):
    LAMINAR = "laminar"
    TRANSITIONAL = "transitional"
    TURBULENT = "turbulent"


class ShellSideMethod(str, Enum):
    KERN = "kern"
    BELL_DELAWARE = "bell_delaware"


class ServiceType(str, Enum):
    CLEAN_LIQUID = "clean_liquid"
    FOULING_LIQUID = "fouling_liquid"
    GAS_VAPOR = "gas_vapor"
    TWO_PHASE = "two_phase"
    EROSIVE = "erosive"


class TemaClass(str, Enum):
    R = "R"
    C = "C"
    B = "B"


class ExchangerType(str, Enum):
    SHELL_TUBE = "shell_tube"
    AIR_COOLED = "air_cooled"


class VibrationStatus(str, Enum):
    SAFE = "safe"
    MARGINAL = "marginal"
    UNSAFE = "unsafe"


class RuleStatus(str, Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class FanType(str, Enum):
    FORCED = "forced"
    INDUCED = "induced"


class HeaderType(str, Enum):
    PLUG = "plug"
    COVER_PLATE = "cover_plate"
    MANIFOLD = "manifold"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FluidStream(Record):
    """One process stream. Temperatures in K, properties in SI."""

    inlet_temperature: float
    mass_flow: float
    specific_heat: float
    density: float
    viscosity: float
    thermal_conductivity: float
    outlet_temperature: Optional[float] = None
    prandtl_number: Optional[float] = None
    fouling_resistance: float = 0.0
    phase: FluidPhase = FluidPhase.LIQUID
    speed_of_sound: Optional[float] = None

    @property
    def capacity_rate(self) -> float:
        return self.mass_flow * self.specific_heat

    @property
    def prandtl(self) -> float:
        if self.prandtl_number is not None:
            return self.prandtl_number
        if self.thermal_conductivity <= 0:
            return 0.0
        return self.specific_heat * self.viscosity / self.thermal_conductivity


@dataclass(frozen=True)
class ExchangerGeometry(Record):
    """Primary tube and shell dimensions (m). Derived values are properties."""

    tube_outer_diameter: float
    tube_wall_thickness: float
    tube_length: float
    tube_count: int
    tube_pitch: float
    shell_inner_diameter: float
    baffle_spacing: float
    tube_pattern: TubePattern = TubePattern.TRIANGULAR_30
    tube_passes: int = 1
    shell_passes: int = 1
    inlet_baffle_spacing: Optional[float] = None
    outlet_baffle_spacing: Optional[float] = None
    baffle_cut: float = 0.25
    baffle_thickness: float = 0.005
    unsupported_span: Optional[float] = None
    shell_baffle_clearance: float = 0.0032
    tube_baffle_clearance: float = 0.0008
    bundle_bypass_fraction: float = 0.1
    tube_nozzle_diameter: Optional[float] = None

    @property
    def tube_inner_diameter(self) -> float:
        return self.tube_outer_diameter - 2.0 * self.tube_wall_thickness

    @property
    def pitch_ratio(self) -> float:
        return self.tube_pitch / self.tube_outer_diameter

    @property
    def heat_transfer_area(self) -> float:
        return self.tube_count * math.pi * self.tube_outer_diameter * self.tube_length

    @property
    def tubes_per_pass(self) -> float:
        return self.tube_count / self.tube_passes

    @property
    def flow_area_per_pass(self) -> float:
        return self.tubes_per_pass * math.pi * self.tube_inner_diameter**2 / 4.0

    @property
    def cross_flow_area(self) -> float:
        return geometry.cross_flow_area(
            self.shell_inner_diameter, self.baffle_spacing, self.tube_pitch, self.tube_outer_diameter
        )

    @property
    def equivalent_diameter(self) -> float:
        return geometry.equivalent_diameter(
            self.tube_pitch, self.tube_outer_diameter, self.tube_pattern.is_triangular
        )

    @property
    def number_of_baffles(self) -> int:
        return geometry.number_of_baffles(self.tube_length, self.baffle_spacing)

    @property
    def bundle_diameter(self) -> float:
        return geometry.bundle_diameter(
            self.tube_count, self.tube_outer_diameter, self.tube_pitch, self.tube_pattern.layout_angle
        )

    @property
    def tube_unsupported_span(self) -> float:
        """Longest unsupported tube span; the end spans default to the central spacing."""
        if self.unsupported_span is not None:
            return self.unsupported_span
        return max(
            self.baffle_spacing,
            self.inlet_baffle_spacing or self.baffle_spacing,
            self.outlet_baffle_spacing or self.baffle_spacing,
        )


@dataclass(frozen=True)
class TubeMaterial(Record):
    """Tube material; defaults are seamless carbon steel (SA-179)."""

    name: str = "carbon_steel"
    elastic_modulus: float = 2.0e11      # Pa
    density: float = 7850.0              # kg/m³
    thermal_conductivity: float = 45.0   # W/(m·K)
    allowable_stress: float = 92.4e6     # Pa


@dataclass(frozen=True)
class OperatingConditions(Record):
    design_pressure: float = 1.0e6       # Pa gauge
    design_temperature: float = 473.15   # K
    service_type: ServiceType = ServiceType.CLEAN_LIQUID
    tema_class: TemaClass = TemaClass.R


@dataclass(frozen=True)
class AirCooledDesign(Record):
    """Air-cooled exchanger bundle and operating data checked against API 661."""

    bundle_width: float
    bundle_length: float
    tube_outer_diameter: float
    fin_density: float
    fan_diameter: float
    number_of_bays: int
    header_thickness: float
    design_pressure: float
    air_face_velocity: float = 3.0
    air_side_pressure_drop: float = 150.0
    fan_type: FanType = FanType.FORCED
    header_type: HeaderType = HeaderType.PLUG


@dataclass(frozen=True)
class ExchangerConfiguration(Record):
    """Complete, normalized input for one evaluation.

    The hot stream is on the shell side and the cold stream in the tubes.
    ``overall_u`` is the clean overall coefficient estimate; when omitted the
    coefficient calculated from film coefficients is used instead. ``area`` is
    the given area for Rating mode and defaults to the geometry area.
    """

    hot: FluidStream
    cold: FluidStream
    geometry: ExchangerGeometry
    mode: CalculationMode = CalculationMode.DESIGN
    arrangement: FlowArrangement = FlowArrangement.COUNTER
    overall_u: Optional[float] = None
    area: Optional[float] = None
    operating: OperatingConditions = field(default_factory=OperatingConditions)
    material: TubeMaterial = field(default_factory=TubeMaterial)
    shell_side_method: ShellSideMethod = ShellSideMethod.KERN


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ThermalResult(Record):
    mode: CalculationMode
    arrangement: FlowArrangement
    heat_duty_W: float
    cold_side_duty_W: float
    duty_imbalance_pct: float
    hot_outlet_K: float
    cold_outlet_K: float
    lmtd_K: float
    correction_factor: float
    effective_lmtd_K: float
    U_clean_W_m2K: float
    U_fouled_W_m2K: float
    U_required_W_m2K: float
    U_service_W_m2K: float
    effectiveness: float
    ntu: float
    capacity_ratio: float
    C_min_W_K: float
    C_max_W_K: float
    required_area_m2: float
    available_area_m2: float
    oversurface_pct: float
    h_shell_W_m2K: Optional[float] = None
    h_tube_W_m2K: Optional[float] = None
    U_calculated_W_m2K: Optional[float] = None
    correction_factor_fallback: bool = False
    correction_factor_below_tema_minimum: bool = False


@dataclass(frozen=True)
class TubeSidePressureDrop(Record):
    friction_Pa: float
    return_loss_Pa: float
    nozzle_Pa: float
    total_Pa: float
    velocity_m_s: float
    reynolds: float
    friction_factor: float
    flow_regime: FlowRegime

    @classmethod
    def zero(cls) -> "TubeSidePressureDrop":
        return cls(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, FlowRegime.LAMINAR)


@dataclass(frozen=True)
class ShellSidePressureDrop(Record):
    method: ShellSideMethod
    crossflow_Pa: float
    window_Pa: float
    end_zone_Pa: float
    total_Pa: float
    velocity_m_s: float
    mass_velocity_kg_m2s: float
    reynolds: float
    friction_factor: float
    cross_flow_area_m2: float
    equivalent_diameter_m: float
    number_of_baffles: int
    flow_regime: FlowRegime
    Jc: float = 1.0
    Jl: float = 1.0
    Jb: float = 1.0
    Jr: float = 1.0
    Js: float = 1.0

    @classmethod
    def zero(cls, method: ShellSideMethod = ShellSideMethod.KERN) -> "ShellSidePressureDrop":
        return cls(method, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0, FlowRegime.LAMINAR)


@dataclass(frozen=True)
class PressureDropResult(Record):
    tube_side: TubeSidePressureDrop
    shell_side: ShellSidePressureDrop


@dataclass(frozen=True)
class VibrationResult(Record):
    natural_frequency_Hz: float
    vortex_shedding_frequency_Hz: float
    turbulent_buffeting_frequency_Hz: float
    acoustic_resonance_frequency_Hz: float
    critical_velocity_m_s: float
    crossflow_velocity_m_s: float
    velocity_ratio: float
    frequency_ratio: float
    reduced_velocity: float
    damage_number: float
    effective_mass_kg_m: float
    damping_ratio: float
    is_vortex_shedding_risk: bool
    is_fei_risk: bool
    is_acoustic_risk: bool
    is_turbulent_buffeting_risk: bool
    status: VibrationStatus
    recommendations: Tuple[str, ...] = ()
    tube_wear_rate_mm_yr: float = 0.0
    frequency_margin: float = 0.0
    message: str = ""


@dataclass(frozen=True)
class ValidationRule(Record):
    section: str
    requirement: str
    actual_value: str
    limit: str
    status: RuleStatus
    severity: Severity


@dataclass(frozen=True)
class APIValidationResult(Record):
    standard: str
    rules: Tuple[ValidationRule, ...]

    @property
    def errors(self) -> List[ValidationRule]:
        return [r for r in self.rules if r.severity is Severity.CRITICAL and r.status is RuleStatus.FAIL]

    @property
    def warnings(self) -> List[ValidationRule]:
        errors = self.errors
        return [r for r in self.rules if r.status is not RuleStatus.PASS and r not in errors]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["warnings"] = [r.to_dict() for r in self.warnings]
        result["errors"] = [r.to_dict() for r in self.errors]
        result["is_valid"] = self.is_valid
        return result


@dataclass(frozen=True)
class SafetyReport(Record):
    """Screening disclaimer plus the warnings and actions an engineer must review."""

    disclaimer: str
    critical_warnings: Tuple[str, ...]
    required_actions: Tuple[str, ...]
    standards_compliant: bool
    standards_checked: Tuple[str, ...]
    timestamp: str


@dataclass(frozen=True)
class ExchangerEvaluation(Record):
    thermal: ThermalResult
    pressure_drop: PressureDropResult
    vibration: Optional[VibrationResult]
    validation: Tuple[APIValidationResult, ...]
    safety_report: Optional[SafetyReport] = None

    @property
    def is_compliant(self) -> bool:
        return all(result.is_valid for result in self.validation)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["is_compliant"] = self.is_compliant
        return result
