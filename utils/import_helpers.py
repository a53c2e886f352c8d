"""Optional dependency detection.

This module centralizes availability checks for the scientific libraries
the server reports on at startup.

Notes:
- The rating engine imports ht and fluids directly; these flags exist so the
  server can log its capabilities and so property lookups can fail with a
  clear message when thermo is missing.
- Each flag reflects the actual library presence.
"""

import logging

logger = logging.getLogger("hx-compliance-mcp.imports")

# Library availability flags (kept lightweight to avoid import side-effects)
HT_AVAILABLE = False
THERMO_AVAILABLE = False
FLUIDS_AVAILABLE = False
CHEMICALS_AVAILABLE = False

# Heat transfer correlations library
try:
    import ht  # noqa: F401
    HT_AVAILABLE = True
    logger.info("Heat transfer (ht) library successfully imported")
except ImportError:
    logger.warning("Heat transfer (ht) library not available. Film coefficients cannot be computed.")

# Thermophysical properties library
try:
    import thermo  # noqa: F401
    THERMO_AVAILABLE = True
    logger.info("Thermo library successfully imported")
except ImportError:
    logger.warning("Thermo library not available. Fluid property lookup by name is disabled.")

# Fluid mechanics helpers library
try:
    import fluids  # noqa: F401
    FLUIDS_AVAILABLE = True
    logger.info("Fluids library successfully imported")
except ImportError:
    logger.warning("Fluids library not available. Friction factors cannot be computed.")

# Chemicals property backend used by thermo
try:
    import chemicals  # noqa: F401
    CHEMICALS_AVAILABLE = True
    logger.info("Chemicals library successfully imported")
except ImportError:
    logger.warning("Chemicals library not available. Some property methods may be missing.")
