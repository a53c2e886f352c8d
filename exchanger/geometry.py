"""
Tube bundle geometry relations for segmental-baffle shell-and-tube exchangers.

Pure functions of the primary geometry fields. ExchangerGeometry exposes
these as read-only properties so derived quantities are always recomputed
from the stored dimensions.
"""

import math
from typing import Optional

from ht.hx import DBundle_for_Ntubes_HEDH

from utils.constants import (
    API660_TUBE_WALL_LARGE,
    API660_TUBE_WALL_TABLE,
    BUNDLE_CLEARANCE,
    TUBE_PACKING_FACTOR,
)


def equivalent_diameter(tube_pitch: float, tube_outer_diameter: float, triangular: bool) -> float:
    """Kern shell-side equivalent (hydraulic) diameter.

    Args:
        tube_pitch: Centre-to-centre tube spacing (m)
        tube_outer_diameter: Tube OD (m)
        triangular: True for 30/60 degree layouts, False for square layouts

    Returns:
        Equivalent diameter De in meters
    """
    do = tube_outer_diameter
    if triangular:
        return (4.0 * (tube_pitch**2 * math.sqrt(3) / 4.0 - math.pi * do**2 / 8.0)) / (math.pi * do / 2.0)
    return (4.0 * (tube_pitch**2 - math.pi * do**2 / 4.0)) / (math.pi * do)


def cross_flow_area(
    shell_inner_diameter: float, baffle_spacing: float, tube_pitch: float, tube_outer_diameter: float
) -> float:
    """Shell-side cross-flow area at the bundle centreline, A_s = Ds*B*(Pt - Do)/Pt."""
    if tube_pitch <= 0:
        return 0.0
    clearance = tube_pitch - tube_outer_diameter
    return shell_inner_diameter * baffle_spacing * clearance / tube_pitch


def number_of_baffles(tube_length: float, baffle_spacing: float) -> int:
    """Baffle count N_b = floor(L/B) - 1."""
    if baffle_spacing <= 0:
        return 0
    return int(math.floor(tube_length / baffle_spacing)) - 1


def bundle_diameter(tube_count: int, tube_outer_diameter: float, tube_pitch: float, layout_angle: int) -> float:
    """Outer tube limit diameter of a bundle holding ``tube_count`` tubes.

    Uses ht.hx.DBundle_for_Ntubes_HEDH (0.78 packing with the layout constant).
    """
    return DBundle_for_Ntubes_HEDH(tube_count, tube_outer_diameter, tube_pitch, layout_angle)


def estimate_max_tube_count(
    shell_inner_diameter: float, tube_pitch: float, triangular: bool
) -> int:
    """Estimate the maximum number of tubes that pack into a shell.

    Bundle diameter is the shell ID less the fixed-tubesheet clearance on
    each side; area per tube is Pt^2*sqrt(3)/2 (triangular) or Pt^2 (square)
    with a 0.78 packing factor.
    """
    bundle = shell_inner_diameter - 2.0 * BUNDLE_CLEARANCE
    if bundle <= 0 or tube_pitch <= 0:
        return 0
    bundle_area = math.pi * (bundle / 2.0) ** 2
    area_per_tube = tube_pitch**2 * math.sqrt(3) / 2.0 if triangular else tube_pitch**2
    return int(math.floor(bundle_area / area_per_tube * TUBE_PACKING_FACTOR))


def minimum_tube_wall(
    tube_outer_diameter: float,
    design_pressure: float = 0.0,
    allowable_stress: Optional[float] = None,
    joint_efficiency: float = 1.0,
) -> float:
    """Minimum tube wall thickness for a given OD and internal design pressure.

    The larger of the OD-based table minimum and the ASME VIII UG-27 outside
    radius formula t = P*Ro/(S*E + 0.4*P).

    Args:
        tube_outer_diameter: Tube OD (m)
        design_pressure: Internal design pressure (Pa gauge)
        allowable_stress: Material allowable stress (Pa); pressure term skipped when None
        joint_efficiency: Weld joint efficiency (1.0 for seamless tubes)

    Returns:
        Minimum wall thickness in meters
    """
    table_minimum = API660_TUBE_WALL_LARGE
    for max_od, wall in API660_TUBE_WALL_TABLE:
        if tube_outer_diameter <= max_od:
            table_minimum = wall
            break

    pressure_minimum = 0.0
    if allowable_stress and design_pressure > 0:
        outer_radius = tube_outer_diameter / 2.0
        pressure_minimum = design_pressure * outer_radius / (allowable_stress * joint_efficiency + 0.4 * design_pressure)

    return max(table_minimum, pressure_minimum)
