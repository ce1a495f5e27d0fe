import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

EARLY_GRACE_MINUTES = 30
LATE_GRACE_MINUTES = 15
OVERTIME_ROUNDING_MINUTES = 30
SHIFT_CACHE_TTL_SECONDS = 0
DEFAULT_SHIFT_CODE = ""
LOCK_TIMEOUT_SECONDS = 1

COLLABORATOR_RETRY_ATTEMPTS = 1
COLLABORATOR_BACKOFF_SECONDS = 0
COLLABORATOR_MAX_BACKOFF_SECONDS = 0

PAYROLL_PERIOD_START_DAY = 26

HOLIDAY_COUNTRY_CODE = "TH"
# No outbound calls from tests.
HOLIDAY_API_URL = ""
HTTP_TIMEOUT_SECONDS = 2

JOB_WORKERS = 1
