from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from . import constants


@dataclass(frozen=True)
class EngineSettings:
    """Attendance engine knobs collected from the active settings module."""

    early_grace_minutes: int = constants.DEFAULT_EARLY_GRACE_MINUTES
    late_grace_minutes: int = constants.DEFAULT_LATE_GRACE_MINUTES
    overtime_rounding_minutes: int = constants.DEFAULT_OVERTIME_ROUNDING_MINUTES
    shift_cache_ttl_seconds: int = constants.DEFAULT_SHIFT_CACHE_TTL_SECONDS
    default_shift_code: Optional[str] = None
    lock_timeout_seconds: float = constants.DEFAULT_LOCK_TIMEOUT_SECONDS
    retry_attempts: int = constants.DEFAULT_RETRY_ATTEMPTS
    backoff_seconds: float = constants.DEFAULT_BACKOFF_SECONDS
    max_backoff_seconds: float = constants.DEFAULT_MAX_BACKOFF_SECONDS
    payroll_period_start_day: int = constants.DEFAULT_PAYROLL_PERIOD_START_DAY
    holiday_country_code: str = constants.DEFAULT_HOLIDAY_COUNTRY_CODE
    holiday_api_url: str = constants.DEFAULT_HOLIDAY_API_URL
    http_timeout_seconds: int = constants.DEFAULT_HTTP_TIMEOUT_SECONDS
    job_workers: int = constants.DEFAULT_JOB_WORKERS

    @classmethod
    def from_module(cls, settings: Any) -> "EngineSettings":
        defaults = cls()
        default_shift = getattr(settings, "DEFAULT_SHIFT_CODE", None) or None
        return cls(
            early_grace_minutes=int(getattr(settings, "EARLY_GRACE_MINUTES", defaults.early_grace_minutes)),
            late_grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", defaults.late_grace_minutes)),
            overtime_rounding_minutes=int(
                getattr(settings, "OVERTIME_ROUNDING_MINUTES", defaults.overtime_rounding_minutes)
            ),
            shift_cache_ttl_seconds=int(getattr(settings, "SHIFT_CACHE_TTL_SECONDS", defaults.shift_cache_ttl_seconds)),
            default_shift_code=default_shift,
            lock_timeout_seconds=float(getattr(settings, "LOCK_TIMEOUT_SECONDS", defaults.lock_timeout_seconds)),
            retry_attempts=int(getattr(settings, "COLLABORATOR_RETRY_ATTEMPTS", defaults.retry_attempts)),
            backoff_seconds=float(getattr(settings, "COLLABORATOR_BACKOFF_SECONDS", defaults.backoff_seconds)),
            max_backoff_seconds=float(
                getattr(settings, "COLLABORATOR_MAX_BACKOFF_SECONDS", defaults.max_backoff_seconds)
            ),
            payroll_period_start_day=int(
                getattr(settings, "PAYROLL_PERIOD_START_DAY", defaults.payroll_period_start_day)
            ),
            holiday_country_code=str(getattr(settings, "HOLIDAY_COUNTRY_CODE", defaults.holiday_country_code)),
            holiday_api_url=str(getattr(settings, "HOLIDAY_API_URL", defaults.holiday_api_url)),
            http_timeout_seconds=int(getattr(settings, "HTTP_TIMEOUT_SECONDS", defaults.http_timeout_seconds)),
            job_workers=int(getattr(settings, "JOB_WORKERS", defaults.job_workers)),
        )
