# badgesmith/domain/constants.py

MAX_LINES = 4

# Normalized ranges
SIZE_NORM_MIN = 0.05
SIZE_NORM_MAX = 0.5
POSITION_NORM_MIN = 0.0
POSITION_NORM_MAX = 1.0
CENTER_CLAMP_MIN = 0.1
CENTER_CLAMP_MAX = 0.9

# Fallback font size when a line has neither sizeNorm nor fontSize
DEFAULT_SIZE_NORM = 0.15

# Vertical pitch between stacked lines, as a multiple of the font size
LINE_SPACING_FACTOR = 1.2

# yNorm value given to freshly created lines; "never laid out"
SENTINEL_Y_NORM = 0.5

# Height ratio vs width ratio drift tolerated before a migration warning
ASPECT_TOLERANCE = 0.1

DEFAULT_COLOR = "#000000"
DEFAULT_BACKGROUND = "#FFFFFF"
DEFAULT_BACKING = "pin"
BACKINGS = ("pin", "magnetic", "adhesive")
ALIGNMENTS = ("left", "center", "right")
TEXT_ANCHORS = {"left": "start", "center": "middle", "right": "end"}

# Legacy logo defaults, in fractions of the design box
LOGO_DEFAULT_X = 0.1
LOGO_DEFAULT_Y = 0.2
LOGO_DEFAULT_SIZE = 0.3

MM_PER_INCH = 25.4

# Template ids with shape-specific layout advice
HOUSE_TEMPLATE_ID = "house-1_5x3"
OVAL_TEMPLATE_ID = "oval-1_5x3"
HOUSE_MAX_LINES = 3
