"""Internal constants shared across the library."""

DEFAULT_VEHICLE_ID = "vehicle-001"
DEFAULT_MAX_RPM = 7000.0

# ------------------------------------------------------------------
# Drivetrain
# ------------------------------------------------------------------

# Gears 1..6, final drive baked in.  Neutral (gear 0) idles.
DEFAULT_GEAR_RATIOS: tuple[float, ...] = (3.2, 2.1, 1.55, 1.15, 0.95, 0.82)
IDLE_RPM = 900.0
RPM_PER_KPH_RATIO = 55.0
RPM_OVERSHOOT_FACTOR = 1.05
UPSHIFT_RPM_FACTOR = 0.94
DOWNSHIFT_RPM = 1600.0
RPM_SMOOTHING = 0.25
MAX_SPEED_KPH = 320.0

# ------------------------------------------------------------------
# Track
# ------------------------------------------------------------------

TRACK_LENGTH_M = 3000.0
SECTOR_COUNT = 3
ORIGIN_LATITUDE = 37.77
ORIGIN_LONGITUDE = -122.41

# ------------------------------------------------------------------
# Tick scheduling / storage defaults
# ------------------------------------------------------------------

DEFAULT_MIN_TICK_MS = 100
DEFAULT_MAX_TICK_MS = 200
DEFAULT_SEED = 1

DEFAULT_RETENTION_MS = 60 * 60 * 1000
DEFAULT_HARD_CAP = 25_000
DEFAULT_QUERY_LIMIT = 200
MAX_QUERY_LIMIT = 500

DEFAULT_HISTORY_CAP = 300
