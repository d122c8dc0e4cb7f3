from enum import Enum

# --- Geodesy
# Mean Earth radius used by the Haversine formula (metres)
EARTH_MEAN_RADIUS_M = 6371000.0

# Metres per degree of latitude (local-scale approximation)
METERS_PER_DEGREE_LAT = 111320.0

# Below this, metres-per-degree of longitude is treated as degenerate (poles)
MIN_METERS_PER_DEGREE_LON = 1e-6

# Latitude/longitude validity limits (degrees)
WORLD_LAT_MAX_DEG = 90.0
WORLD_LNG_MAX_DEG = 180.0

# --- Coordinate reference systems
WGS84_CODE = 4326
WGS84_CRS = f'EPSG:{WGS84_CODE}'

# Last-resort CRS for projected rasters without recoverable CRS metadata
# (UTM zone 36N). A guess, not a guarantee.
DEFAULT_PROJECTED_CRS = 'EPSG:32636'

# --- Raster
# Bounds magnitude above which a raster is classified as projected
GEOGRAPHIC_LON_LIMIT = 180.0
GEOGRAPHIC_LAT_LIMIT = 90.0

# Rasters with more pixels than this get their memory footprint logged on decode
LARGE_RASTER_PIXELS = 4_000_000

# Band read by the GeoTIFF decoder (multi-band rasters are not supported)
RASTER_BAND_INDEX = 1

# Decoded rasters kept in RasterCache
RASTER_CACHE_MAX_ENTRIES = 4

# --- Radius statistics
# Target range of sampled pixels per radius query
RADIUS_MIN_SAMPLES = 10
RADIUS_MAX_SAMPLES = 200

# Half-size of the exact neighbourhood probed around the query pixel (px)
RADIUS_CENTER_PROBE_PX = 2

# --- Profile
# Radius for local min/max (metres)
DEFAULT_RADIUS_M = 50.0

# Arc-length spacing of densified path points (metres)
DEFAULT_SAMPLING_INTERVAL_M = 5.0

# Nominal flight height above ground (metres AGL)
DEFAULT_NOMINAL_FLIGHT_HEIGHT_M = 100.0

# Minimum number of vertices for a meaningful profile
MIN_PATH_VERTICES = 2

# --- Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ProfileOutputFormat(str, Enum):
    """Serialization format for the CLI profile output."""

    JSON = 'json'
    JSON_LINES = 'jsonl'


def default_output_format() -> ProfileOutputFormat:
    return ProfileOutputFormat.JSON
