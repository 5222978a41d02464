"""Runtime/default constants for analysis and execution settings."""

# Covalent bond inference
MAX_COVALENT_BOND_LENGTH = 3.5          # Angstrom; spatial hash cell and query radius
COVALENT_BOND_UPPER_TOLERANCE = 0.3     # d_high = d + tolerance
COVALENT_BOND_LOWER_TOLERANCE = 0.5     # d_low = d - tolerance

# Backbone spline defaults
SPLINE_DEFAULT_SUBDIVISIONS = 8
SPLINE_DEFAULT_TENSION = 0.5
SPLINE_TANGENT_EPSILON = 1e-4
SPLINE_MIN_SEGMENTS = 4

# Playback interpolation
INTERPOLATION_MODES = ("nearest", "linear", "linear_periodic", "cubic", "cubic_periodic")
DEFAULT_INTERPOLATION_MODE = "cubic_periodic"

# Worker join timeout (seconds) used when a session shuts down
WORKER_JOIN_TIMEOUT = 10.0

# Colors
DEFAULT_STATIC_COLOR = 0xFFFFFFFF
RESIDUE_COLOR_SATURATION = 0.55
RESIDUE_COLOR_LIGHTNESS = 0.60
RESIDUE_COLOR_MOD = 21
