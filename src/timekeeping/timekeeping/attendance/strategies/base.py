from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from ...core.enums import CheckAction, LeaveKind, PeriodType
from ...shifts.model import ShiftWindow
from ..model import PeriodFlags


@dataclass(frozen=True)
class CheckContext:
    """Inputs a period rule needs to judge one check action."""

    now: datetime
    window: ShiftWindow
    shift_window: ShiftWindow
    early_grace: timedelta
    late_grace: timedelta
    leave: Optional[LeaveKind] = None
    is_day_off: bool = False

    @property
    def opens_at(self) -> datetime:
        return self.window.start - self.early_grace

    @property
    def closes_at(self) -> datetime:
        return self.window.end + self.late_grace


@dataclass(frozen=True)
class RuleOutcome:
    allowed: bool
    flags: PeriodFlags = field(default_factory=PeriodFlags)
    reason: Optional[str] = None
    requires_confirmation: bool = False


class CheckStrategy(ABC):
    """Strategy Pattern: one rule object per (period, action)."""

    period_type: PeriodType
    action: CheckAction

    def in_bounds(self, ctx: CheckContext) -> bool:
        return ctx.opens_at <= ctx.now <= ctx.closes_at

    def out_of_bounds(self, ctx: CheckContext) -> RuleOutcome:
        if ctx.now < ctx.opens_at:
            reason = f"Too early to {self.action.value}; window opens at {ctx.opens_at:%H:%M}"
        else:
            reason = f"Too late to {self.action.value}; window closed at {ctx.closes_at:%H:%M}"
        return RuleOutcome(allowed=False, reason=reason)

    @abstractmethod
    def evaluate(self, ctx: CheckContext) -> RuleOutcome:
        raise NotImplementedError
