"""Default configuration, constants, and limits for StyleSmith."""

# --- Display scales ---
# Scale factors are expressed in quarter units: 4 = 100%, 8 = 200%.
SCALES = (4, 5, 6, 8)
SCALE_NAMES = ("dbisOne", "dbisOneAndQuarter", "dbisOneAndHalf", "dbisTwo")
SCALE_ONE = 4
SCALE_ONE_AND_QUARTER = 5
SCALE_ONE_AND_HALF = 6
SCALE_TWO = 8
PX_ADJUST_BIAS = 0.1  # Rounds 2.999.. style products up before flooring

# --- Generated code ---
STYLE_CORE_INCLUDE = "ui/style/style_core.h"
PALETTE_MODULE_NAME = "palette"
STYLE_MODULE_PREFIX = "style_"
PALETTE_SUFFIXES = (".palette", ".palette.json")
STRING_LITERAL_WRAP = 80  # Columns before a string literal continues on a new line
BINARY_ARRAY_ROW = 13  # Bytes per row in emitted byte arrays

# --- Palette runtime ---
PALETTE_BYTES_PER_SLOT = 4  # red, green, blue, alpha
PALETTE_NOT_FOUND = -1

# --- Icons ---
ICON_FILE_SUFFIX = ".png"
ICON_RETINA_SUFFIX = "@2x.png"
ICON_SIZE_SCHEME = "size://"
ICON_GENERATE_TAG = b"GENERATE:"
ICON_SIZE_TAG = b"SIZE:"
ICON_FILL_ALPHA = 255
MAX_ICON_DIMENSION = 4096  # Per side, nominal resolution

# --- Error codes (stable, reported through the diagnostic sink) ---
ERROR_INTERNAL = 800
ERROR_FILE_NOT_OPENED = 803
ERROR_BAD_MODEL = 810
ERROR_UNRESOLVED_TYPE = 851
ERROR_UNRESOLVED_STRUCT = 852
ERROR_UNRESOLVED_ALIAS = 853
ERROR_NON_COLOR_IN_PALETTE = 854
ERROR_UNINDEXED_RESOURCE = 855
ERROR_DUPLICATE_PALETTE_NAME = 856
ERROR_BAD_ICON_SIZE = 861
ERROR_BAD_ICON_FORMAT = 862
ERROR_MODIFIER_NOT_FOUND = 863
ERROR_BAD_PLACEHOLDER = 864
ERROR_ICON_NOT_FOUND = 865

# --- Theme export ---
THEME_HEADER = """\
//
// This is a sample theme file.
// It was generated from the palette style module.
//
// Each line assigns a color to one palette entry, either as a
// hex value '#rrggbb' (with optional alpha '#rrggbbaa') or as the
// name of another palette entry it should follow.
//
// Entries that differ from the color they fall back to mention
// that fallback in a trailing comment.
//

"""
