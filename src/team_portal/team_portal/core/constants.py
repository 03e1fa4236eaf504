"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 1
DEFAULT_REPORT_DAYS = 30
DEFAULT_LIST_LIMIT = 500
DEFAULT_MAX_PAID_LEAVES_PER_MONTH = 2
MIN_PASSWORD_LENGTH = 6
