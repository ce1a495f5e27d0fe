"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
Every value can be overridden from the active settings module.
"""

DEFAULT_EARLY_GRACE_MINUTES = 30
DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_OVERTIME_ROUNDING_MINUTES = 30
DEFAULT_SHIFT_CACHE_TTL_SECONDS = 300
DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0

DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.5
DEFAULT_MAX_BACKOFF_SECONDS = 4.0

DEFAULT_PAYROLL_PERIOD_START_DAY = 26
DEFAULT_HOLIDAY_COUNTRY_CODE = "TH"
DEFAULT_HOLIDAY_API_URL = "https://date.nager.at/api/v3/PublicHolidays"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10
DEFAULT_JOB_WORKERS = 2

# Shift group that observes public holidays one day early.
AFTERNOON_VARIANT_SHIFT_CODE = "SHIFT104"

NO_ACTIVE_WINDOW_REASON = "No active window found"
