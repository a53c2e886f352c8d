"""
Gas compressor head, power and discharge temperature.

Polytropic compression with the Schultz method. Real-gas behaviour comes from
a simplified Lee-Kesler virial correlation (B0 only, no acentric term), so
the real-gas results are approximate and flagged as such. Without critical
properties the gas is treated with the constant compressibility supplied.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from exchanger.models import Record
from utils.constants import (
    BAR_to_PA,
    DEG_C_to_K,
    DISCHARGE_TEMPERATURE_LIMIT_C,
    LOW_SUCTION_PRESSURE_BAR,
    P_ATM,
    R_UNIVERSAL,
    SCHULTZ_WARNING_RANGE,
)
from utils.validation import ValidationError, require_non_negative, require_positive

logger = logging.getLogger("hx-compliance-mcp.compressor")


class CompressorType(str, Enum):
    CENTRIFUGAL = "centrifugal"
    AXIAL = "axial"
    RECIPROCATING = "reciprocating"
    SCREW = "screw"
    DIAPHRAGM = "diaphragm"

    @property
    def is_positive_displacement_piston(self) -> bool:
        return self in (CompressorType.RECIPROCATING, CompressorType.DIAPHRAGM)


@dataclass(frozen=True)
class CompressorMachine(Record):
    name: str
    isentropic_efficiency: float
    polytropic_efficiency: float
    max_ratio_per_stage: float
    standard: str
    clearance_volume: Optional[float] = None


MACHINES: Dict[CompressorType, CompressorMachine] = {
    CompressorType.CENTRIFUGAL: CompressorMachine("Centrifugal (API 617)", 0.78, 0.82, 4.0, "API 617"),
    CompressorType.AXIAL: CompressorMachine("Axial (API 617)", 0.88, 0.90, 2.0, "API 617"),
    CompressorType.RECIPROCATING: CompressorMachine("Reciprocating (API 618)", 0.82, 0.85, 10.0, "API 618", 0.08),
    CompressorType.SCREW: CompressorMachine("Screw (Rotary)", 0.75, 0.78, 6.0, "API 619"),
    CompressorType.DIAPHRAGM: CompressorMachine("Diaphragm (API 618)", 0.70, 0.73, 10.0, "API 618", 0.05),
}

# Reference conditions for normal volumetric flow (15 °C, 1 atm)
STANDARD_TEMPERATURE = 288.15


@dataclass(frozen=True)
class CompressorInputs(Record):
    """Compressor duty in SI units. Efficiencies are fractions (0-1).

    Efficiencies left as None take the machine defaults.
    """

    molecular_weight: float
    specific_heat_ratio: float
    inlet_pressure: float            # Pa absolute
    inlet_temperature: float         # K
    discharge_pressure: float        # Pa absolute
    mass_flow: float                 # kg/s
    compressor_type: CompressorType = CompressorType.CENTRIFUGAL
    compressibility: float = 1.0
    critical_temperature: Optional[float] = None   # K
    critical_pressure: Optional[float] = None      # Pa
    estimate_critical_properties: bool = False
    isentropic_efficiency: Optional[float] = None
    polytropic_efficiency: Optional[float] = None
    mechanical_efficiency: float = 0.98
    motor_efficiency: float = 0.95
    stages: int = 1
    intercooler_approach: float = 10.0   # K above suction temperature


@dataclass(frozen=True)
class CompressorResult(Record):
    compression_ratio: float
    ratio_per_stage: float
    isentropic_head_kJ_kg: float
    polytropic_head_kJ_kg: float
    discharge_temperature_C: float
    discharge_temperature_per_stage_C: Tuple[float, ...]
    isentropic_power_kW: float
    polytropic_power_kW: float
    shaft_power_kW: float
    motor_power_kW: float
    actual_flow_m3_h: float
    mass_flow_kg_h: float
    specific_power_kW_per_100Nm3h: float
    polytropic_exponent: float
    isentropic_exponent: float
    schultz_factor: float
    compressibility_X: float
    compressibility_Y: float
    Z1: float
    Z2: float
    inlet_density_kg_m3: float
    discharge_density_kg_m3: float
    volumetric_efficiency: float
    piston_displacement_m3_h: float
    rod_load_kN: float
    surge_flow_m3_h: float
    stonewall_flow_m3_h: float
    real_gas_model: str
    critical_properties_source: str
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def estimate_critical_properties(molecular_weight: float) -> Tuple[float, float]:
    """Rough critical temperature (K) and pressure (Pa) for light hydrocarbons.

    Straight lines through methane and n-butane:
    Tc ≈ 101 + 5.58·MW, Pc ≈ 49.6 - 0.2·MW bar (not below 10 bar).
    """
    Tc = 101.0 + 5.58 * molecular_weight
    Pc = max(10.0, 49.6 - 0.2 * molecular_weight) * BAR_to_PA
    return Tc, Pc


def _virial_b0(reduced_temperature: float) -> float:
    return 0.083 - 0.422 / reduced_temperature**1.6


def _virial_z(T: float, P: float, Tc: float, Pc: float) -> float:
    Tr = T / Tc
    return max(0.5, min(1.1, 1.0 + _virial_b0(Tr) * (P / Pc) / Tr))


def _validate(inputs: CompressorInputs) -> None:
    require_positive(inputs.molecular_weight, "molecular_weight")
    require_positive(inputs.inlet_pressure, "inlet_pressure")
    require_positive(inputs.inlet_temperature, "inlet_temperature")
    require_positive(inputs.discharge_pressure, "discharge_pressure")
    require_positive(inputs.mass_flow, "mass_flow")
    require_positive(inputs.compressibility, "compressibility")
    require_positive(inputs.mechanical_efficiency, "mechanical_efficiency")
    require_positive(inputs.motor_efficiency, "motor_efficiency")
    require_non_negative(inputs.intercooler_approach, "intercooler_approach")
    if inputs.specific_heat_ratio is None or not inputs.specific_heat_ratio > 1.0:
        raise ValidationError(f"specific_heat_ratio must be > 1; got {inputs.specific_heat_ratio}")
    if not isinstance(inputs.stages, int) or inputs.stages < 1:
        raise ValidationError(f"stages must be a positive integer; got {inputs.stages}")
    if inputs.discharge_pressure <= inputs.inlet_pressure:
        raise ValidationError("discharge_pressure must exceed inlet_pressure")


def calculate_compressor_performance(
    inputs: CompressorInputs, machine: Optional[CompressorMachine] = None
) -> CompressorResult:
    """Compressor head, power and discharge temperature.

    Args:
        inputs: Compressor duty (SI units)
        machine: Machine data; defaults to the table entry for inputs.compressor_type

    Returns:
        CompressorResult

    Raises:
        ValidationError: if an input is missing or out of range
    """
    _validate(inputs)
    machine = machine or MACHINES[inputs.compressor_type]
    warnings: List[str] = []

    k = inputs.specific_heat_ratio
    MW = inputs.molecular_weight
    R_gas = R_UNIVERSAL / MW
    eta_s = inputs.isentropic_efficiency or machine.isentropic_efficiency
    eta_p = inputs.polytropic_efficiency or machine.polytropic_efficiency
    eta_mech = inputs.mechanical_efficiency
    eta_motor = inputs.motor_efficiency
    stages = inputs.stages
    T1 = inputs.inlet_temperature
    P1 = inputs.inlet_pressure
    P2 = inputs.discharge_pressure
    mass_flow = inputs.mass_flow

    ratio = P2 / P1
    ratio_per_stage = ratio ** (1.0 / stages)
    if ratio_per_stage > machine.max_ratio_per_stage:
        warnings.append(
            f"Compression ratio per stage ({ratio_per_stage:.2f}) exceeds {machine.standard} limit "
            f"for {machine.name} ({machine.max_ratio_per_stage})"
        )

    Tc, Pc = inputs.critical_temperature, inputs.critical_pressure
    critical_source = "supplied"
    if not (Tc and Pc) and inputs.estimate_critical_properties:
        Tc, Pc = estimate_critical_properties(MW)
        critical_source = "estimated_from_molecular_weight"
    use_real_gas = bool(Tc and Pc and Tc > 1.0 and Pc > BAR_to_PA)
    if not use_real_gas:
        critical_source = "none"

    Z1 = inputs.compressibility
    Z2 = Z1
    X, Y = 0.0, 1.0
    schultz = 1.0
    T2_isentropic = T1 * ratio ** ((k - 1) / k)

    if use_real_gas:
        Tr1 = T1 / Tc
        Pr1 = P1 / Pc
        B0_1 = _virial_b0(Tr1)
        # A clearly non-ideal supplied Z wins over the correlation
        if not (Z1 < 0.99 and abs(Z1 - 1.0) > 0.01):
            Z1 = max(0.5, min(1.1, 1.0 + B0_1 * Pr1 / Tr1))

        dBdT = 0.422 * 1.6 / (Tc * Tr1**2.6)
        dZdT = Pr1 * (dBdT / Tr1 - B0_1 / (Tc * Tr1 * Tr1))
        dZdP = B0_1 / (Pc * Tr1)
        X = max(-0.5, min(0.5, T1 / Z1 * dZdT))
        Y = max(0.8, min(1.2, 1.0 - P1 / Z1 * dZdP))

        Z2 = _virial_z(T2_isentropic, P2, Tc, Pc)
        v1 = Z1 * R_gas * T1 / P1
        v2 = Z2 * R_gas * T2_isentropic / P2
        Zv1, Zv2 = Z1 * v1, Z2 * v2
        ln_zv = math.log(Zv2 / Zv1)
        if abs(Zv2 - Zv1) < 0.001 * Zv1 or abs(ln_zv) < 1e-10:
            schultz = 1.0
        else:
            schultz = math.log(ratio) * (Zv2 - Zv1) / (Zv2 * ln_zv)
        schultz = max(0.85, min(1.15, schultz))

    rho1 = P1 / (Z1 * R_gas * T1)
    rho2 = P2 / (Z2 * R_gas * T2_isentropic)

    n = max(1.01, 1.0 / (1.0 - ((k - 1) / k) * eta_p * (1 + X) / Y))
    ns = k * Y / (1 + X)

    # Stage discharge temperatures; intercooling returns the gas to T1 + approach
    piston = inputs.compressor_type.is_positive_displacement_piston
    if piston:
        exponent = (k - 1) / (k * eta_s)
    else:
        exponent = ((n - 1) / n) * (1 + X) / Y
    stage_temperatures: List[float] = []
    T_in = T1
    for _ in range(stages):
        T_out = T_in * ratio_per_stage**exponent
        stage_temperatures.append(T_out - DEG_C_to_K)
        T_in = T1 + inputs.intercooler_approach
    T2 = stage_temperatures[-1] + DEG_C_to_K

    isentropic_head = stages * (Z1 * R_gas * T1 * k / (k - 1)) * (ratio_per_stage ** ((k - 1) / k) - 1)
    polytropic_head = stages * schultz * (Z1 * R_gas * T1 * n / (n - 1)) * (ratio_per_stage ** ((n - 1) / n) - 1)

    volumetric_efficiency = 1.0
    piston_displacement = 0.0
    rod_load = 0.0
    isentropic_power = mass_flow * isentropic_head / 1000.0
    if piston:
        clearance = machine.clearance_volume or 0.08
        re_expansion = clearance * (ratio_per_stage ** (1.0 / k) - 1)
        volumetric_efficiency = max(0.4, 1.0 - re_expansion - 0.02 - 0.02)
        piston_displacement = mass_flow / rho1 / volumetric_efficiency * 3600.0
        polytropic_power = isentropic_power / eta_s
        # First-stage differential on a 0.1 m² piston
        rod_load = P1 * (ratio_per_stage - 1) * 0.1 / 1000.0
    else:
        polytropic_power = mass_flow * polytropic_head / 1000.0
    shaft_power = polytropic_power / eta_mech
    motor_power = shaft_power / eta_motor

    actual_flow = mass_flow / rho1 * 3600.0
    normal_flow = mass_flow * 3600.0 * R_UNIVERSAL * STANDARD_TEMPERATURE / (MW * P_ATM)
    specific_power = motor_power / normal_flow * 100.0 if normal_flow > 0 else 0.0

    surge_flow = stonewall_flow = 0.0
    if not piston:
        surge_flow = actual_flow * (0.75 if inputs.compressor_type is CompressorType.AXIAL else 0.55)
        stonewall_flow = actual_flow * 1.15

    discharge_C = T2 - DEG_C_to_K
    if discharge_C > DISCHARGE_TEMPERATURE_LIMIT_C:
        warnings.append(f"Discharge temp ({discharge_C:.0f}°C) exceeds {DISCHARGE_TEMPERATURE_LIMIT_C:.0f}°C limit")
    if P1 / BAR_to_PA < LOW_SUCTION_PRESSURE_BAR:
        warnings.append("Very low suction pressure")
    low, high = SCHULTZ_WARNING_RANGE
    if use_real_gas and not (low <= schultz <= high):
        warnings.append(f"Schultz factor ({schultz:.3f}) indicates deviation from ideal gas")

    for message in warnings:
        logger.warning(message)

    return CompressorResult(
        compression_ratio=ratio,
        ratio_per_stage=ratio_per_stage,
        isentropic_head_kJ_kg=isentropic_head / 1000.0,
        polytropic_head_kJ_kg=polytropic_head / 1000.0,
        discharge_temperature_C=discharge_C,
        discharge_temperature_per_stage_C=tuple(stage_temperatures),
        isentropic_power_kW=isentropic_power,
        polytropic_power_kW=polytropic_power,
        shaft_power_kW=shaft_power,
        motor_power_kW=motor_power,
        actual_flow_m3_h=actual_flow,
        mass_flow_kg_h=mass_flow * 3600.0,
        specific_power_kW_per_100Nm3h=specific_power,
        polytropic_exponent=n,
        isentropic_exponent=ns,
        schultz_factor=schultz,
        compressibility_X=X,
        compressibility_Y=Y,
        Z1=Z1,
        Z2=Z2,
        inlet_density_kg_m3=rho1,
        discharge_density_kg_m3=rho2,
        volumetric_efficiency=volumetric_efficiency,
        piston_displacement_m3_h=piston_displacement,
        rod_load_kN=rod_load,
        surge_flow_m3_h=surge_flow,
        stonewall_flow_m3_h=stonewall_flow,
        real_gas_model="approximate" if use_real_gas else "constant_compressibility",
        critical_properties_source=critical_source,
        warnings=tuple(warnings),
    )
