"""
Takeoff Engine - Master Constants Reference

Reference tables and defaults shared by calibration, geometry, costing
and text classification. Values can be overridden from config/settings.yaml
(see takeoff.settings); the tables here are the stock values.
"""

# =============================================================================
# ENGINE METADATA
# =============================================================================

ENGINE_VERSION = "1.0.0"

# =============================================================================
# UNIT CONVERSION CONSTANTS
# =============================================================================

METERS_PER_FOOT = 0.3048

METERS_PER_INCH = 0.0254

INCHES_PER_FOOT = 12

# Meters per unit, keyed by canonical short unit name
METERS_PER_UNIT = {
    "m": 1.0,
    "cm": 0.01,
    "mm": 0.001,
    "ft": METERS_PER_FOOT,
    "in": METERS_PER_INCH,
}

# Aliases accepted for each canonical unit (lowercased)
UNIT_ALIASES = {
    "m": ["m", "meter", "meters", "metre", "metres", "mètre", "mètres"],
    "cm": ["cm", "centimeter", "centimeters", "centimètre", "centimètres"],
    "mm": ["mm", "millimeter", "millimeters", "millimètre", "millimètres"],
    "ft": ["ft", "'", "′", "pi", "pied", "pieds", "foot", "feet"],
    "in": ["in", '"', "″", "po", "pouce", "pouces", "inch", "inches"],
}

SQUARE_FEET_PER_SQUARE_METER = 1 / (METERS_PER_FOOT ** 2)

CUBIC_FEET_PER_CUBIC_METER = 1 / (METERS_PER_FOOT ** 3)

# =============================================================================
# SCALE CALIBRATION CONSTANTS
# =============================================================================

# Default scale: 0.02 m per pixel on both axes (1:50)
DEFAULT_SCALE_X = 0.02
DEFAULT_SCALE_Y = 0.02

# Warn if a detected scale differs from the calibrated one by >15%
SCALE_CONFLICT_THRESHOLD_PERCENT = 15

# Assumed click precision for two-point calibration (pixels, 1 sigma)
DEFAULT_CLICK_TOLERANCE_PX = 1.0

# Metric presets: label -> drawing ratio (1:N)
METRIC_SCALE_PRESETS = {
    "1:10": 10,
    "1:20": 20,
    "1:25": 25,
    "1:50": 50,
    "1:75": 75,
    "1:100": 100,
    "1:200": 200,
    "1:250": 250,
    "1:500": 500,
}

# Imperial architectural presets: label -> drawing ratio
IMPERIAL_SCALE_PRESETS = {
    "1\" = 1'": 12,
    "1/2\" = 1'": 24,
    "1/4\" = 1'": 48,
    "1/8\" = 1'": 96,
    "3/16\" = 1'": 64,
    "3/32\" = 1'": 128,
    "1\" = 10'": 120,
    "1\" = 20'": 240,
    "1\" = 50'": 600,
}

# =============================================================================
# MEASUREMENT CONSTANTS
# =============================================================================

# Minimum points per measurement type
MIN_POINTS = {
    "line": 2,
    "rectangle": 2,
    "area": 3,
    "count": 1,
}

# Default unit per measurement type
DEFAULT_UNITS = {
    "line": "m",
    "rectangle": "m²",
    "area": "m²",
    "count": "unité",
}

# Polygons whose real-world area falls below this are treated as collinear
DEGENERATE_AREA_EPSILON = 1e-12

DEFAULT_CATEGORY = "Autre"

DEFAULT_COLOR = "#A9A9A9"

DUPLICATE_LABEL_SUFFIX = " (copie)"

# =============================================================================
# OCR CONSTANTS
# =============================================================================

# Tokens below this confidence (0-100) are dropped before classification
OCR_MIN_CONFIDENCE = 30

# Render DPI used to map embedded PDF text to pixel space
DEFAULT_RENDER_DPI = 150

PDF_POINTS_PER_INCH = 72

DEFAULT_OCR_LANG = "fra+eng"

# =============================================================================
# REFERENCE TABLES
# =============================================================================

# Takeoff categories with display color and default CCQ trade
TAKEOFF_CATEGORIES = [
    {"id": "excavation", "name": "Excavation", "color": "#8B4513", "default_trade": "COND"},
    {"id": "fondations", "name": "Fondations", "color": "#696969", "default_trade": "CARP"},
    {"id": "structure", "name": "Structure/Charpente", "color": "#CD853F", "default_trade": "CARP"},
    {"id": "murs_ext", "name": "Murs extérieurs", "color": "#4682B4", "default_trade": "BRIQ"},
    {"id": "murs_int", "name": "Murs intérieurs", "color": "#87CEEB", "default_trade": "CARP"},
    {"id": "toiture", "name": "Toiture", "color": "#B22222", "default_trade": "COUV"},
    {"id": "portes", "name": "Portes", "color": "#228B22", "default_trade": "CARP"},
    {"id": "fenetres", "name": "Fenêtres", "color": "#00CED1", "default_trade": "CARP"},
    {"id": "electricite", "name": "Électricité", "color": "#FFD700", "default_trade": "ELEC"},
    {"id": "plomberie", "name": "Plomberie", "color": "#1E90FF", "default_trade": "PLMB"},
    {"id": "cvac", "name": "CVAC", "color": "#32CD32", "default_trade": "FRIG"},
    {"id": "finitions", "name": "Finitions", "color": "#DDA0DD", "default_trade": "PEIN"},
    {"id": "paysagement", "name": "Paysagement", "color": "#90EE90", "default_trade": "COND"},
    {"id": "autre", "name": "Autre", "color": "#A9A9A9", "default_trade": ""},
]

# CCQ trades with approximate hourly rates (2024)
CCQ_TRADES = [
    {"code": "CARP", "name": "Charpentier-menuisier", "rate": 42.50},
    {"code": "ELEC", "name": "Électricien", "rate": 45.00},
    {"code": "PLMB", "name": "Plombier", "rate": 46.50},
    {"code": "BRIQ", "name": "Briqueteur-maçon", "rate": 44.00},
    {"code": "PEIN", "name": "Peintre", "rate": 38.50},
    {"code": "FRIG", "name": "Frigoriste", "rate": 47.00},
    {"code": "TUYA", "name": "Tuyauteur", "rate": 48.00},
    {"code": "FERB", "name": "Ferblantier", "rate": 44.50},
    {"code": "COUV", "name": "Couvreur", "rate": 41.00},
    {"code": "COND", "name": "Opérateur d'équipement lourd", "rate": 43.00},
    {"code": "MANV", "name": "Manœuvre", "rate": 32.00},
    {"code": "CIME", "name": "Cimentier-applicateur", "rate": 40.00},
    {"code": "FERR", "name": "Ferrailleur", "rate": 43.50},
    {"code": "GYPS", "name": "Poseur de systèmes intérieurs", "rate": 39.00},
]

# Common materials with approximate unit prices
COMMON_MATERIALS = [
    {"id": "beton", "name": "Béton 30 MPa", "unit": "m³", "price": 185.00},
    {"id": "acier", "name": "Acier d'armature", "unit": "kg", "price": 2.50},
    {"id": "brique", "name": "Brique standard", "unit": "unité", "price": 0.85},
    {"id": "bloc", "name": "Bloc de béton", "unit": "unité", "price": 3.50},
    {"id": "bois_2x4", "name": "Bois 2x4 SPF", "unit": "pmp", "price": 0.95},
    {"id": "bois_2x6", "name": "Bois 2x6 SPF", "unit": "pmp", "price": 1.10},
    {"id": "plywood", "name": "Contreplaqué 3/4\"", "unit": "feuille", "price": 65.00},
    {"id": "gypse", "name": "Gypse 1/2\"", "unit": "feuille", "price": 18.00},
    {"id": "isolant_r20", "name": "Isolant R-20", "unit": "m²", "price": 12.00},
    {"id": "bardeaux", "name": "Bardeaux asphalte", "unit": "paquet", "price": 35.00},
    {"id": "membrane", "name": "Membrane élastomère", "unit": "m²", "price": 45.00},
    {"id": "peinture", "name": "Peinture latex", "unit": "litre", "price": 45.00},
]

# =============================================================================
# MEASUREMENT TYPES
# =============================================================================

class MeasurementType:
    LINE = "line"
    RECTANGLE = "rectangle"
    AREA = "area"
    COUNT = "count"

    ALL = (LINE, RECTANGLE, AREA, COUNT)

# =============================================================================
# OCR TOKEN TYPES
# =============================================================================

class TokenType:
    SCALE = "scale"
    DIMENSION = "dimension"
    NUMBER = "number"
    TEXT = "text"

# =============================================================================
# UNIT SYSTEMS
# =============================================================================

class UnitSystem:
    METRIC = "metric"
    IMPERIAL = "imperial"

    ALL = (METRIC, IMPERIAL)

# =============================================================================
# SORT ORDERS
# =============================================================================

class SortOrder:
    CATEGORY = "category"
    TYPE = "type"
    VALUE = "value"

    ALL = (CATEGORY, TYPE, VALUE)
