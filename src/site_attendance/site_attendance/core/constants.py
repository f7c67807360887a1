"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_CIVIL_TIMEZONE = "Europe/Prague"
EARTH_RADIUS_M = 6_371_000

# Half-hour rounding thresholds (wall-clock minute)
ROUND_DOWN_BEFORE_MINUTE = 15
ROUND_UP_FROM_MINUTE = 45

# Repair job: arrival shifted by "about one hour"
REPAIR_MIN_OFFSET_SECONDS = 3500
REPAIR_MAX_OFFSET_SECONDS = 3700
DEFAULT_REPAIR_WINDOW_DAYS = 30

DEFAULT_REPORT_DAYS = 30
MAX_REPORT_DAYS = 180

UNASSIGNED_SITE_NAME = "Unassigned"
DEFAULT_OFFSITE_REASON = "Off-site work"

# Input limits
MAX_KM = 2000
MAX_MATERIAL_AMOUNT = 200_000
MAX_MATERIAL_DESCRIPTION = 500
MAX_WORK_DESCRIPTION = 2000
MAX_OFFSITE_HOURS = 24
MAX_OFFSITE_REASON = 500
MAX_REPORTED_TIME = 50
MAX_FORGET_REASON = 500
