"""Configuration constants for Field Mapper.

All configurable parameters are centralized here for easy tuning.

Classes:
    AppConfig: UI application settings
    MapConfig: Default map view parameters
    BasemapConfig: Raster tile sources for the base map
    InteractionConfig: Edge hit testing and planar approximations
    ElevationConfig: Elevation relay, batching and overlay ramp
    GeocodingConfig: Place search service
    UnitConfig: Area unit conversion factors and precision
    StyleConfig: Visual colors and styling
    ExportConfig: Export file naming
    ChartConfig: Chart rendering dimensions
"""

import os


class AppConfig:
    """UI application settings."""

    TITLE = "Field Area Measurement System"
    ICON = "🌾"
    LAYOUT = "wide"


class MapConfig:
    """Default map view parameters."""

    # Initial center for program start: center of India
    START_CENTER_LAT = 20.5937
    START_CENTER_LON = 78.9629
    DEFAULT_ZOOM = 5  # Shows most of India

    # Zoom used after jumping to a search result or GPS fix
    SEARCH_RESULT_ZOOM = 14
    GPS_FIX_ZOOM = 18

    # Map height in pixels
    HEIGHT_PX = 620

    # Click picking tolerance (pixels) for vertex handles
    PICKING_RADIUS_PX = 8


class BasemapConfig:
    """Raster basemaps selectable in the sidebar.

    max_zoom is the deepest level at which tiles are available.
    """

    LAYERS = {
        "satellite": {
            "tiles": ["https://mt1.google.com/vt/lyrs=s&x={x}&y={y}&z={z}"],
            "attribution": "&copy; Google Maps",
            "max_zoom": 21,
        },
        "terrain": {
            "tiles": [
                "https://a.tile.opentopomap.org/{z}/{x}/{y}.png",
                "https://b.tile.opentopomap.org/{z}/{x}/{y}.png",
                "https://c.tile.opentopomap.org/{z}/{x}/{y}.png",
            ],
            "attribution": "&copy; OpenTopoMap contributors",
            "max_zoom": 17,
        },
        "street": {
            "tiles": [
                "https://a.tile.openstreetmap.org/{z}/{x}/{y}.png",
                "https://b.tile.openstreetmap.org/{z}/{x}/{y}.png",
                "https://c.tile.openstreetmap.org/{z}/{x}/{y}.png",
            ],
            "attribution": "&copy; OpenStreetMap contributors",
            "max_zoom": 19,
        },
    }
    NAMES = list(LAYERS.keys())
    DEFAULT = "satellite"
    assert DEFAULT in LAYERS


class InteractionConfig:
    """Edge hit testing and planar approximations."""

    # Click within this distance of an edge inserts a new corner there
    EDGE_HIT_THRESHOLD_M = 20.0

    # Flat-earth conversion used for segment distances (small scale only)
    METERS_PER_DEGREE_APPROX = 111_000.0


class ElevationConfig:
    """Elevation relay, batching and overlay parameters."""

    # Relay endpoint accepting {points, apiKey}. Empty = use the in-process relay.
    RELAY_URL = os.getenv("FIELDMAPPER_ELEVATION_RELAY_URL", "")
    API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", "")

    # Upstream provider used by the relay
    GOOGLE_ELEVATION_URL = "https://maps.googleapis.com/maps/api/elevation/json"

    # Upstream accepts at most this many locations per call
    MAX_POINTS_PER_REQUEST = 500
    # Points sent per relay call during analysis
    BATCH_SIZE = 100
    assert BATCH_SIZE <= MAX_POINTS_PER_REQUEST

    # Pause between batches (rate limit precaution)
    BATCH_DELAY_S = 0.1
    REQUEST_TIMEOUT_S = 30

    # Sample grid: density x density cells over the ring's bounding box
    GRID_DENSITY_MIN = 3
    GRID_DENSITY_MAX = 30
    GRID_DENSITY_DEFAULT = 10
    assert GRID_DENSITY_MIN <= GRID_DENSITY_DEFAULT <= GRID_DENSITY_MAX

    # Overlay color ramp, low to high
    COLOR_RAMP = [
        "#2b83ba",  # blue - lowest
        "#abdda4",  # blue-green
        "#ffffbf",  # yellow
        "#fdae61",  # orange
        "#d7191c",  # red - highest
    ]
    CELL_OPACITY = 0.6


class GeocodingConfig:
    """Place search against Nominatim."""

    SEARCH_URL = "https://nominatim.openstreetmap.org/search"
    USER_AGENT = "fieldmapper/1.0"
    # Appended to every query to bias results toward a region, e.g. "Rajasthan India"
    REGION_HINT = os.getenv("FIELDMAPPER_SEARCH_REGION", "")
    MIN_QUERY_LENGTH = 2
    RESULT_LIMIT = 5
    REQUEST_TIMEOUT_S = 10


class UnitConfig:
    """Area units. Stored values are always square meters."""

    UNIT_CONVERSIONS = {
        "ha": {"from_sq_meters": 1 / 10000, "decimals": 2, "label": "ha"},
        "sqm": {"from_sq_meters": 1.0, "decimals": 0, "label": "m²"},
        "acre": {"from_sq_meters": 1 / 4046.86, "decimals": 2, "label": "ac"},
        "sqft": {"from_sq_meters": 1 / 0.092903, "decimals": 0, "label": "ft²"},
    }
    UNITS = list(UNIT_CONVERSIONS.keys())
    DEFAULT_UNIT = "ha"
    assert DEFAULT_UNIT in UNIT_CONVERSIONS

    # Edge labels switch to kilometers at this length
    KM_THRESHOLD_M = 1000


class StyleConfig:
    """Visual colors and styling."""

    BOUNDARY_COLOR = "#3388ff"
    BOUNDARY_FILL_OPACITY = 0.2
    BOUNDARY_LINE_WIDTH_PX = 3

    VERTEX_FILL_COLOR = "#ffffff"
    VERTEX_BORDER_COLOR = "#3388ff"
    VERTEX_DRAGGING_COLOR = "#ff3333"
    VERTEX_RADIUS_PX = 6

    EDGE_LABEL_COLOR = "#ffffff"
    EDGE_LABEL_BACKGROUND = "#000000"
    EDGE_LABEL_SIZE = 12

    SEARCH_MARKER_COLOR = "#f97316"
    GPS_MARKER_COLOR = "#3b82f6"

    # Fallback when a color string cannot be parsed
    FALLBACK_COLOR = "#ff0000"


class ExportConfig:
    """Export file naming."""

    FILENAME_PREFIX = "field_boundary"
    JSON_INDENT = 2


class ChartConfig:
    """Chart rendering dimensions and settings."""

    HISTOGRAM_HEIGHT = 260
    HISTOGRAM_BINS = 20
