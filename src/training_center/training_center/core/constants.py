"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

TOKEN_HOURS = 24
REMEMBER_ME_DAYS = 7

LOGIN_THROTTLE_MINUTES = 5
LOGIN_THROTTLE_MAX_FAILURES = 5

INCOME_DELETE_WINDOW_HOURS = 24

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200
DEFAULT_TREND_MONTHS = 12
MAX_TREND_MONTHS = 120
DEFAULT_LOG_LIMIT = 50

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"
