"""
Single source of truth for export workbook colors, fonts, fills, borders, alignments.
"""
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

# ---------------------------------------------------------------------------
# Color constants
# ---------------------------------------------------------------------------
DARK_BLUE = "1E3A8A"
HEADER_BG = "1E3A8A"
ALTERNATE_ROW = "F5F5F5"
WHITE = "FFFFFF"
BLACK = "000000"
LIGHT_RED = "FFEBEE"
LIGHT_AMBER = "FFF8E1"
GRAY_666 = "666666"

# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------
HEADER_FONT = Font(name="Calibri", size=11, bold=True, color=WHITE)
DATA_FONT = Font(name="Calibri", size=10, color=BLACK)
NOTE_FONT = Font(name="Calibri", size=9, italic=True, color=GRAY_666)

# ---------------------------------------------------------------------------
# Fills
# ---------------------------------------------------------------------------
HEADER_FILL = PatternFill(start_color=HEADER_BG, end_color=HEADER_BG, fill_type="solid")
ALTERNATE_FILL = PatternFill(start_color=ALTERNATE_ROW, end_color=ALTERNATE_ROW, fill_type="solid")
ERROR_FILL = PatternFill(start_color=LIGHT_RED, end_color=LIGHT_RED, fill_type="solid")
WARNING_FILL = PatternFill(start_color=LIGHT_AMBER, end_color=LIGHT_AMBER, fill_type="solid")

# ---------------------------------------------------------------------------
# Borders
# ---------------------------------------------------------------------------
THIN_BORDER = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)
HEADER_BORDER = Border(
    left=Side(style="thin", color=DARK_BLUE),
    right=Side(style="thin", color=DARK_BLUE),
    top=Side(style="thin", color=DARK_BLUE),
    bottom=Side(style="medium", color=DARK_BLUE),
)

# ---------------------------------------------------------------------------
# Alignments
# ---------------------------------------------------------------------------
CENTER = Alignment(horizontal="center", vertical="center")
LEFT = Alignment(horizontal="left", vertical="center")
RIGHT = Alignment(horizontal="right", vertical="center")
WRAP = Alignment(horizontal="left", vertical="center", wrap_text=True)

# ---------------------------------------------------------------------------
# Finding severity → fill
# ---------------------------------------------------------------------------
HIGHLIGHT_FILLS = {
    "error": ERROR_FILL,
    "warning": WARNING_FILL,
}
