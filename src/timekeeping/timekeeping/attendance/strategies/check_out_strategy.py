from __future__ import annotations

from ...core.enums import CheckAction, PeriodType
from ..model import PeriodFlags
from .base import CheckContext, CheckStrategy, RuleOutcome


class RegularCheckOutStrategy(CheckStrategy):
    """Early check-out is allowed but flagged.

    Leaving before the middle of the shift without planned half-day leave is
    treated as emergency leave and needs confirmation.
    """

    period_type = PeriodType.REGULAR
    action = CheckAction.CHECK_OUT

    def evaluate(self, ctx: CheckContext) -> RuleOutcome:
        if not self.in_bounds(ctx):
            return self.out_of_bounds(ctx)

        half_day = bool(ctx.leave and ctx.leave.is_half_day)
        early = ctx.now < ctx.window.end
        emergency = early and not half_day and ctx.now < ctx.shift_window.midpoint

        return RuleOutcome(
            allowed=True,
            flags=PeriodFlags(
                is_early_check_out=early,
                is_late_check_out=ctx.now > ctx.window.end,
                is_planned_half_day_leave=half_day,
                is_emergency_leave=emergency,
            ),
            requires_confirmation=emergency,
        )
