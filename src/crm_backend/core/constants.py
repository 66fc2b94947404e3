"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

API_PREFIX = "/api/v1"

TOKEN_COOKIE_NAME = "token"
DEFAULT_TOKEN_DAYS = 30
LOGOUT_COOKIE_SECONDS = 10

EXPECTED_CHECK_IN = time(9, 30)
LATE_GRACE_MINUTES = 30
HALF_DAY_HOURS = 4
SHORT_DAY_HOURS = 6
MY_ATTENDANCE_LIMIT = 31

DEFAULT_RECENT_LEADS = 5
DEFAULT_PROFILE_PICTURE = "default-profile.jpg"
