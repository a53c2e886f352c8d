"""
Material selection for exchanger pressure parts, with NACE MR0175 / ISO 15156
sour-service screening.

Candidate grades are scored on temperature range, corrosion allowance use
over the design life, relative cost and (in chloride service) pitting
resistance. Sour service restricts the field to NACE-listed grades and adds
the hardness, heat-treatment and testing requirements of the SSC region.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from exchanger.models import Record
from utils.validation import ValidationError, require_non_negative, require_positive

logger = logging.getLogger("hx-compliance-mcp.materials")

# H2S partial pressure (Pa) at and above which service is sour (0.05 psia)
H2S_SOUR_THRESHOLD = 345.0
SSC_REGION_1_LIMIT = 1.0e3   # Pa H2S
SSC_REGION_2_LIMIT = 1.0e4
SSC_MIN_PH = 3.5

CORROSION_ALLOWANCE_MM = 3.0
DUPLEX_SOUR_TEMPERATURE_LIMIT = 505.0     # K (232 °C)
CHLORIDE_SCC_CONTENT = 50.0               # mg/L
CHLORIDE_SCC_TEMPERATURE = 333.0          # K
CHLORIDE_PREN_CONTENT = 100.0             # mg/L
HYDROGEN_EMBRITTLEMENT_YIELD_MPA = 550.0
HYDROGEN_EMBRITTLEMENT_HRC = 28.0
GALVANIC_POSITION_SPREAD = 2


class MaterialClass(str, Enum):
    CARBON_STEEL = "carbon_steel"
    LOW_ALLOY = "low_alloy"
    STAINLESS = "stainless"
    DUPLEX = "duplex"
    NICKEL_ALLOY = "nickel_alloy"
    TITANIUM = "titanium"
    COPPER_ALLOY = "copper_alloy"


class CorrosionEnvironment(str, Enum):
    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    SOUR = "sour"
    ACIDIC = "acidic"


@dataclass(frozen=True)
class MaterialGrade(Record):
    name: str
    material_class: MaterialClass
    yield_strength_MPa: float
    tensile_strength_MPa: float
    allowable_stress_MPa: float
    max_temperature: float          # K
    min_temperature: float          # K
    corrosion_rates: Dict[CorrosionEnvironment, float]   # mm/year
    nace_listed: bool
    max_hardness_HRC: float
    pren: Optional[float] = None

    def corrosion_rate(self, environment: CorrosionEnvironment) -> float:
        return self.corrosion_rates[environment]


def _rates(none, mild, moderate, severe, sour, acidic) -> Dict[CorrosionEnvironment, float]:
    return dict(zip(CorrosionEnvironment, (none, mild, moderate, severe, sour, acidic)))


MATERIALS: Dict[str, MaterialGrade] = {
    "SA-516-70": MaterialGrade(
        "SA-516 Grade 70", MaterialClass.CARBON_STEEL, 260, 485, 137.9, 700, 243,
        _rates(0.1, 0.25, 0.5, 1.0, 0.5, 2.0), True, 22,
    ),
    "SA-387-11": MaterialGrade(
        "SA-387 Grade 11 Class 2", MaterialClass.LOW_ALLOY, 310, 515, 158.6, 811, 243,
        _rates(0.05, 0.15, 0.3, 0.6, 0.3, 1.0), True, 22,
    ),
    "SS-304": MaterialGrade(
        "SS 304", MaterialClass.STAINLESS, 205, 515, 137.9, 1089, 77,
        _rates(0.01, 0.05, 0.1, 0.3, 0.2, 0.5), False, 22, 18,
    ),
    "SS-316L": MaterialGrade(
        "SS 316L", MaterialClass.STAINLESS, 170, 485, 115.1, 1089, 77,
        _rates(0.01, 0.03, 0.08, 0.2, 0.1, 0.3), True, 22, 25,
    ),
    "DUPLEX-2205": MaterialGrade(
        "Duplex 2205", MaterialClass.DUPLEX, 450, 620, 165.5, 573, 233,
        _rates(0.005, 0.02, 0.05, 0.1, 0.05, 0.15), True, 28, 35,
    ),
    "INCONEL-625": MaterialGrade(
        "Inconel 625", MaterialClass.NICKEL_ALLOY, 414, 827, 165.5, 1366, 77,
        _rates(0.001, 0.005, 0.01, 0.03, 0.02, 0.05), True, 35, 51,
    ),
    "TITANIUM-GR2": MaterialGrade(
        "Titanium Grade 2", MaterialClass.TITANIUM, 275, 345, 96.5, 589, 77,
        _rates(0.001, 0.002, 0.005, 0.01, 0.01, 0.02), True, 25,
    ),
    "CU-NI-90-10": MaterialGrade(
        "Cu-Ni 90/10", MaterialClass.COPPER_ALLOY, 105, 275, 68.9, 505, 200,
        _rates(0.02, 0.05, 0.1, 0.3, 2.0, 1.0), False, 20,
    ),
}

# Relative installed cost, carbon steel = 1
COST_FACTOR = {
    MaterialClass.CARBON_STEEL: 1.0,
    MaterialClass.LOW_ALLOY: 1.5,
    MaterialClass.STAINLESS: 3.0,
    MaterialClass.DUPLEX: 5.0,
    MaterialClass.NICKEL_ALLOY: 10.0,
    MaterialClass.TITANIUM: 15.0,
    MaterialClass.COPPER_ALLOY: 4.0,
}

# Approximate galvanic series in seawater, 1 = most noble
GALVANIC_POSITION = {
    MaterialClass.TITANIUM: 1,
    MaterialClass.NICKEL_ALLOY: 2,
    MaterialClass.STAINLESS: 3,
    MaterialClass.DUPLEX: 3,
    MaterialClass.COPPER_ALLOY: 4,
    MaterialClass.LOW_ALLOY: 5,
    MaterialClass.CARBON_STEEL: 6,
}


@dataclass(frozen=True)
class SourServiceConditions(Record):
    """Process chemistry for sour-service screening. Pressures in Pa, T in K."""

    h2s_partial_pressure: float
    temperature: float
    ph: float = 7.0
    chloride_content: float = 0.0     # mg/L
    co2_partial_pressure: float = 0.0
    total_pressure: Optional[float] = None


@dataclass(frozen=True)
class SourServiceRegion(Record):
    region: int
    description: str

    @property
    def is_sour(self) -> bool:
        return self.region > 0


@dataclass(frozen=True)
class NaceAssessment(Record):
    material: str
    region: SourServiceRegion
    is_compliant: bool
    requirements: Tuple[str, ...]
    restrictions: Tuple[str, ...]


@dataclass(frozen=True)
class MaterialSelectionResult(Record):
    recommended_material: str
    material_class: MaterialClass
    alternative_materials: Tuple[str, ...]
    corrosion_rate_mm_yr: float
    expected_life_years: float
    is_sour_service: bool
    is_nace_compliant: bool
    nace_requirements: Tuple[str, ...]
    galvanic_compatible: bool
    hydrogen_embrittlement_risk: bool
    stress_corrosion_cracking_risk: bool
    min_temperature: float
    max_temperature: float
    score: float
    warnings: Tuple[str, ...] = ()


def sour_service_region(conditions: SourServiceConditions) -> SourServiceRegion:
    """NACE MR0175 / ISO 15156-2 SSC region from H2S partial pressure and pH."""
    pH2S = conditions.h2s_partial_pressure
    if pH2S < H2S_SOUR_THRESHOLD:
        return SourServiceRegion(0, "Non-sour service (H2S < 0.05 psia)")
    if conditions.ph >= SSC_MIN_PH:
        if pH2S < SSC_REGION_1_LIMIT:
            return SourServiceRegion(1, "SSC Region 1 - Mild sour")
        if pH2S < SSC_REGION_2_LIMIT:
            return SourServiceRegion(2, "SSC Region 2 - Moderate sour")
    return SourServiceRegion(3, "SSC Region 3 - Severe sour")


def get_material(material_id: str) -> MaterialGrade:
    key = str(material_id).strip().upper()
    if key not in MATERIALS:
        raise ValidationError(f"Unknown material {material_id!r}; choose from: {', '.join(MATERIALS)}")
    return MATERIALS[key]


def validate_nace_mr0175(material_id: str, conditions: SourServiceConditions) -> NaceAssessment:
    """Check one grade against NACE MR0175 for the given sour conditions."""
    region = sour_service_region(conditions)
    try:
        material = get_material(material_id)
    except ValidationError:
        return NaceAssessment(
            material_id,
            region,
            False,
            ("Unknown material - verify NACE compliance manually",),
            ("Cannot assess compliance for unknown material",),
        )

    if not region.is_sour:
        return NaceAssessment(material.name, region, True, ("Standard material specifications apply",), ())

    if not material.nace_listed:
        return NaceAssessment(
            material.name,
            region,
            False,
            ("Select NACE MR0175 listed material",),
            (f"{material.name} is NOT listed in NACE MR0175",),
        )

    requirements = [f"Maximum hardness: {material.max_hardness_HRC:.0f} HRC"]
    restrictions = []

    if material.material_class is MaterialClass.DUPLEX and conditions.temperature > DUPLEX_SOUR_TEMPERATURE_LIMIT:
        restrictions.append("Duplex SS limited to 232°C (450°F) in sour service")

    if region.region >= 2:
        requirements.append("Post-weld heat treatment (PWHT) required")
        requirements.append("Impact testing per NACE TM0177 required")
    if region.region == 3:
        requirements.append("SSC testing per NACE TM0177 Method A required")
        requirements.append("Weld procedure qualification for sour service required")

    if (
        material.material_class is MaterialClass.STAINLESS
        and conditions.chloride_content > CHLORIDE_SCC_CONTENT
        and conditions.temperature > CHLORIDE_SCC_TEMPERATURE
    ):
        restrictions.append("Risk of chloride SCC - consider duplex or nickel alloy")

    return NaceAssessment(material.name, region, not restrictions, tuple(requirements), tuple(restrictions))


def galvanic_compatible(primary: MaterialClass, others) -> bool:
    position = GALVANIC_POSITION[primary]
    return all(abs(position - GALVANIC_POSITION[o]) <= GALVANIC_POSITION_SPREAD for o in others)


def _score(grade: MaterialGrade, environment: CorrosionEnvironment, design_life: float, chloride: float) -> float:
    score = 100.0
    wall_loss = grade.corrosion_rate(environment) * design_life
    if wall_loss > 2 * CORROSION_ALLOWANCE_MM:
        score -= 50
    elif wall_loss > CORROSION_ALLOWANCE_MM:
        score -= 25
    score -= (COST_FACTOR[grade.material_class] - 1.0) * 5.0
    if chloride > CHLORIDE_PREN_CONTENT and grade.pren is not None:
        score += (grade.pren - 20.0) * 0.5
    return score


def select_material(
    environment: CorrosionEnvironment,
    temperature: float,
    pressure: float,
    design_life: float = 20.0,
    h2s_content: float = 0.0,
    co2_content: float = 0.0,
    chloride_content: float = 0.0,
    ph: float = 7.0,
) -> MaterialSelectionResult:
    """Rank the grade database for a service and recommend the best one.

    Args:
        environment: Corrosion severity class of the process fluid
        temperature: Design temperature (K)
        pressure: Operating pressure (Pa absolute)
        design_life: Design life (years)
        h2s_content: H2S in the gas (mol%)
        co2_content: CO2 in the gas (mol%)
        chloride_content: Chlorides in the water phase (mg/L)
        ph: In-situ pH

    Returns:
        MaterialSelectionResult for the top-ranked grade

    Raises:
        ValidationError: if an input is out of range or no grade qualifies
    """
    require_positive(temperature, "temperature")
    require_positive(pressure, "pressure")
    require_positive(design_life, "design_life")
    for name, value in (("h2s_content", h2s_content), ("co2_content", co2_content)):
        require_non_negative(value, name)
        if value > 100:
            raise ValidationError(f"{name} is a mole percent and must be <= 100; got {value}")
    require_non_negative(chloride_content, "chloride_content")

    conditions = SourServiceConditions(
        h2s_partial_pressure=h2s_content / 100.0 * pressure,
        co2_partial_pressure=co2_content / 100.0 * pressure,
        total_pressure=pressure,
        temperature=temperature,
        ph=ph,
        chloride_content=chloride_content,
    )
    is_sour = environment is CorrosionEnvironment.SOUR or conditions.h2s_partial_pressure >= H2S_SOUR_THRESHOLD

    ranked: List[Tuple[float, str, MaterialGrade]] = []
    for material_id, grade in MATERIALS.items():
        if not grade.min_temperature <= temperature <= grade.max_temperature:
            continue
        if is_sour and not grade.nace_listed:
            continue
        ranked.append((_score(grade, environment, design_life, chloride_content), material_id, grade))
    ranked.sort(key=lambda item: item[0], reverse=True)

    if not ranked or ranked[0][0] <= 0:
        raise ValidationError("No suitable material found for specified conditions; consult a materials engineer")

    score, material_id, grade = ranked[0]
    alternatives = [(mid, g) for s, mid, g in ranked[1:4] if s > 0]
    warnings: List[str] = []

    requirements: Tuple[str, ...] = ()
    if is_sour:
        assessment = validate_nace_mr0175(material_id, conditions)
        requirements = assessment.requirements
        warnings.extend(assessment.restrictions)

    h2_risk = is_sour and (
        grade.yield_strength_MPa > HYDROGEN_EMBRITTLEMENT_YIELD_MPA
        or grade.max_hardness_HRC > HYDROGEN_EMBRITTLEMENT_HRC
    )
    if h2_risk:
        warnings.append("Hydrogen embrittlement risk - verify hardness and PWHT requirements")

    scc_risk = (
        grade.material_class is MaterialClass.STAINLESS
        and chloride_content > CHLORIDE_SCC_CONTENT
        and temperature > CHLORIDE_SCC_TEMPERATURE
    )
    if scc_risk:
        warnings.append("Chloride stress corrosion cracking risk for austenitic SS")

    rate = grade.corrosion_rate(environment)
    expected_life = min(CORROSION_ALLOWANCE_MM / rate, 2.0 * design_life)

    logger.info(f"Selected {grade.name} for {environment.value} service (score {score:.1f}, sour={is_sour})")
    return MaterialSelectionResult(
        recommended_material=material_id,
        material_class=grade.material_class,
        alternative_materials=tuple(mid for mid, _ in alternatives),
        corrosion_rate_mm_yr=rate,
        expected_life_years=expected_life,
        is_sour_service=is_sour,
        is_nace_compliant=grade.nace_listed if is_sour else True,
        nace_requirements=requirements,
        galvanic_compatible=galvanic_compatible(grade.material_class, [g.material_class for _, g in alternatives]),
        hydrogen_embrittlement_risk=h2_risk,
        stress_corrosion_cracking_risk=scc_risk,
        min_temperature=grade.min_temperature,
        max_temperature=grade.max_temperature,
        score=score,
        warnings=tuple(warnings),
    )


def suitable_materials(environment: CorrosionEnvironment, max_corrosion_rate: float = 0.5) -> List[str]:
    """Grades whose corrosion rate in ``environment`` is at most ``max_corrosion_rate`` mm/year."""
    return [mid for mid, grade in MATERIALS.items() if grade.corrosion_rate(environment) <= max_corrosion_rate]
