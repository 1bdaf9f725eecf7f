# follow_dashboard/kpi_follow/constants.py
"""
Constants for KPI Follow Module

VERSION: 1.0.0
"""

# =====================================================================
# FISCAL MONTH ORDER (April start)
# =====================================================================

FISCAL_MONTH_ORDER = [
    "04", "05", "06", "07", "08", "09",
    "10", "11", "12", "01", "02", "03"
]

MONTH_LABELS = {
    "01": "Jan", "02": "Feb", "03": "Mar", "04": "Apr",
    "05": "May", "06": "Jun", "07": "Jul", "08": "Aug",
    "09": "Sep", "10": "Oct", "11": "Nov", "12": "Dec",
}

# Quarter -> positions in the fiscal month order
FISCAL_QUARTERS = {
    'Q1': [0, 1, 2],
    'Q2': [3, 4, 5],
    'Q3': [6, 7, 8],
    'Q4': [9, 10, 11],
}

# =====================================================================
# STATUS CLASSIFICATION
# =====================================================================

STATUS_GOOD = 'good'
STATUS_WARNING = 'warning'
STATUS_CRITICAL = 'critical'
STATUS_PENDING = 'pending'

STATUS_LEVELS = [STATUS_GOOD, STATUS_WARNING, STATUS_CRITICAL, STATUS_PENDING]

# Percentage points below plan before a KPI turns critical
DEFAULT_WARNING_THRESHOLD = -5.0

STATUS_CONFIG = {
    STATUS_GOOD: {"label": "On track", "icon": "🟢", "color": "#28a745"},
    STATUS_WARNING: {"label": "Watch", "icon": "🟡", "color": "#ffc107"},
    STATUS_CRITICAL: {"label": "Action needed", "icon": "🔴", "color": "#dc3545"},
    STATUS_PENDING: {"label": "Not closed", "icon": "⚪", "color": "#d3d3d3"},
}

# =====================================================================
# PIPELINE
# =====================================================================

# Default stage table (probability in %)
DEFAULT_PIPELINE_STAGES = [
    {"id": "A", "name": "Stage A", "probability": 80, "description": "Letter of intent, nearly confirmed"},
    {"id": "B", "name": "Stage B", "probability": 50, "description": "Quote submitted, negotiating"},
    {"id": "C", "name": "Stage C", "probability": 20, "description": "Proposal under review"},
    {"id": "D", "name": "Stage D", "probability": 5, "description": "Information gathering only"},
]

DEFAULT_HIGH_CONFIDENCE_STAGES = ("A", "B")

# Share of the continuing stage counted as recurring revenue
DEFAULT_CONTINUING_STAGE = "A"
DEFAULT_CONTINUING_RATIO = 0.8

# =====================================================================
# INSIGHT RULES
# =====================================================================

INSIGHT_INFO = 'info'
INSIGHT_WARNING = 'warning'
INSIGHT_CRITICAL = 'critical'

RED_PROJECTS_KPI = 'red_projects'
PROJECT_MARGIN_KPI = 'project_margin'

# Margin variance (%) below which the margin insight fires
MARGIN_INSIGHT_THRESHOLD = -10.0

# Gross pipeline above this share of the annual target is a "go" signal
PIPELINE_RICH_RATIO = 0.8

# =====================================================================
# UNITS
# =====================================================================

# Internal monetary unit is yen; the dashboard shows 億円
DISPLAY_UNIT = 100_000_000
DISPLAY_UNIT_LABEL = "億円"

# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_WIDTH = 700
CHART_HEIGHT = 320

COLORS = {
    "budget": "#aec7e8",
    "actual": "#1f77b4",
    "forecast": "#ff7f0e",
    "target": "#d62728",
    "confirmed": "#2ca02c",
    "weighted": "#9467bd",
    "grid": "#e0e0e0",
}

STAGE_COLORS = {
    "A": "#2ca02c",
    "B": "#1f77b4",
    "C": "#ffc107",
    "D": "#9e9e9e",
}

# =====================================================================
# EXCEL EXPORT
# =====================================================================

EXCEL_STYLES = {
    "header_fill_color": "1f77b4",
    "header_font_color": "FFFFFF",
    "amount_format": '#,##0.0',
    "rate_format": '+0.0;-0.0;0.0',
    "date_format": 'YYYY-MM-DD',
}
