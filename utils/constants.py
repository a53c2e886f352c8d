"""
Constants used across the exchanger rating engine.

This module defines unit conversion factors, correlation switch points and the
scalar limits applied by the vibration assessor and compliance rule sets.
Tables keyed by enumerations live beside the code that consumes them.
"""

# Conversion factors for unit flexibility
DEG_C_to_K = 273.15          # Celsius to Kelvin (offset)
BAR_to_PA = 1.0e5            # bar to Pascal

# Standard atmospheric conditions
P_ATM = 101325.0             # Standard atmospheric pressure, Pa (1 atm)
R_UNIVERSAL = 8314.46        # Universal gas constant, J/(kmol·K)

# Thermal calculator
LMTD_EQUALITY_TOLERANCE = 1e-3       # K, |dT1 - dT2| below which LMTD = dT1
CAPACITY_RATIO_UNITY_TOLERANCE = 1e-3
R_UNITY_TOLERANCE = 1e-3
F_FALLBACK = 0.9                     # heuristic F when P/R fall outside the valid domain
F_MIN = 0.5
F_MAX = 1.0
TEMA_MIN_F = 0.75
DUTY_IMBALANCE_LIMIT_PCT = 5.0

# Flow regime switch points
RE_LAMINAR_LIMIT = 2300.0
RE_TURBULENT_LIMIT = 1.0e4
RE_BLASIUS_LIMIT = 1.0e5
KERN_SHELL_RE_LIMIT = 500.0

# Kern shell-side heat transfer constants (25% baffle cut)
KERN_NU_COEFFICIENT = 0.36
KERN_NU_EXPONENT = 0.55

# Nozzle loss in velocity heads (inlet + outlet)
TUBE_NOZZLE_VELOCITY_HEADS = 1.5

# Vibration assessor
MODE_CONSTANT_FIXED_FIXED = 22.4     # tube span clamped at both baffles
ADDED_MASS_COEFFICIENT_CAP = 3.0
VISCOUS_LIQUID_VISCOSITY = 0.01      # Pa·s, above which the viscous-liquid damping applies
VELOCITY_RATIO_LIMIT = 0.8
DAMAGE_NUMBER_LIMIT = 0.5
RESONANCE_BAND = (0.7, 1.3)
MARGINAL_FRACTION = 0.9
ACOUSTIC_BAND = (0.85, 1.15)
MIN_SPEED_OF_SOUND = 150.0           # m/s
DEFAULT_LIQUID_SPEED_OF_SOUND = 1500.0
DEFAULT_VAPOR_SPEED_OF_SOUND = 343.0
REDUCED_VELOCITY_LIMIT = 3.3

# API 660 / TEMA geometry limits
MIN_PITCH_RATIO = 1.25
MAX_PITCH_RATIO = 1.50
MIN_BAFFLE_SPACING_FRACTION = 0.2
MIN_BAFFLE_SPACING = 0.050           # m
BAFFLE_CUT_RANGE_PCT = (15.0, 45.0)
STANDARD_TUBE_LENGTHS = (2.44, 3.05, 3.66, 4.88, 6.10, 7.32)  # m
TUBE_LENGTH_TOLERANCE = 0.1          # m
VELOCITY_WARNING_MARGIN = 1.1
BUNDLE_CLEARANCE = 0.012             # m per side, fixed tubesheet
TUBE_PACKING_FACTOR = 0.78
TUBE_COUNT_MARGIN = 1.1
SHELL_LD_RANGE = (3.0, 15.0)
# (maximum tube OD in m, minimum wall in m)
API660_TUBE_WALL_TABLE = ((0.01905, 0.00165), (0.0254, 0.00211))
API660_TUBE_WALL_LARGE = 0.00277

# API 661 air-cooled limits
AIR_FACE_VELOCITY_MIN = 2.0          # m/s
AIR_FACE_VELOCITY_MAX_INDUCED = 3.5
AIR_FACE_VELOCITY_MAX_FORCED = 4.0
MIN_AIR_SIDE_PRESSURE_DROP = 100.0   # Pa
STANDARD_BUNDLE_WIDTHS = (2.44, 2.74, 3.05)  # m
BUNDLE_WIDTH_TOLERANCE = 0.1
FIN_DENSITY_RANGE = (276.0, 433.0)   # fins/m
STANDARD_AIR_COOLER_TUBE_OD = (0.01905, 0.0254, 0.03175)  # m
TUBE_OD_TOLERANCE = 0.001
HEADER_MIN_THICKNESS = 0.003         # m
HEADER_PRESSURE_DIVISOR = 1.0e7
MIN_FAN_COVERAGE = 0.40

# Compressor calculator
DISCHARGE_TEMPERATURE_LIMIT_C = 200.0
LOW_SUCTION_PRESSURE_BAR = 0.5
SCHULTZ_WARNING_RANGE = (0.9, 1.1)
