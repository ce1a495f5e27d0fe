from __future__ import annotations

from ...core.enums import CheckAction, PeriodType
from ..model import PeriodFlags
from .base import CheckContext, CheckStrategy, RuleOutcome


class RegularCheckInStrategy(CheckStrategy):
    """Late if past start + grace; early if before start."""

    period_type = PeriodType.REGULAR
    action = CheckAction.CHECK_IN

    def evaluate(self, ctx: CheckContext) -> RuleOutcome:
        if not self.in_bounds(ctx):
            return self.out_of_bounds(ctx)

        return RuleOutcome(
            allowed=True,
            flags=PeriodFlags(
                is_late_check_in=ctx.now > ctx.window.start + ctx.late_grace,
                is_early_check_in=ctx.now < ctx.window.start,
                is_planned_half_day_leave=bool(ctx.leave and ctx.leave.is_half_day),
            ),
        )
