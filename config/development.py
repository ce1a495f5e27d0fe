import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo shifts/employees on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Cửa sổ chấm công (phút)
EARLY_GRACE_MINUTES = int(os.getenv("EARLY_GRACE_MINUTES", "30"))
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "15"))
OVERTIME_ROUNDING_MINUTES = int(os.getenv("OVERTIME_ROUNDING_MINUTES", "30"))

SHIFT_CACHE_TTL_SECONDS = int(os.getenv("SHIFT_CACHE_TTL_SECONDS", "300"))
DEFAULT_SHIFT_CODE = os.getenv("DEFAULT_SHIFT_CODE", "SHIFT101")
LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS", "5"))

COLLABORATOR_RETRY_ATTEMPTS = int(os.getenv("COLLABORATOR_RETRY_ATTEMPTS", "3"))
COLLABORATOR_BACKOFF_SECONDS = float(os.getenv("COLLABORATOR_BACKOFF_SECONDS", "0.5"))
COLLABORATOR_MAX_BACKOFF_SECONDS = float(os.getenv("COLLABORATOR_MAX_BACKOFF_SECONDS", "4"))

PAYROLL_PERIOD_START_DAY = int(os.getenv("PAYROLL_PERIOD_START_DAY", "26"))

HOLIDAY_COUNTRY_CODE = os.getenv("HOLIDAY_COUNTRY_CODE", "TH")
HOLIDAY_API_URL = os.getenv("HOLIDAY_API_URL", "https://date.nager.at/api/v3/PublicHolidays")
HTTP_TIMEOUT_SECONDS = int(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

JOB_WORKERS = int(os.getenv("JOB_WORKERS", "2"))
