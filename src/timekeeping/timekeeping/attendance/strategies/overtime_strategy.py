from __future__ import annotations

from ...core.enums import CheckAction, PeriodType
from ..model import PeriodFlags
from .base import CheckContext, CheckStrategy, RuleOutcome


class OvertimeCheckInStrategy(CheckStrategy):
    period_type = PeriodType.OVERTIME
    action = CheckAction.CHECK_IN

    def evaluate(self, ctx: CheckContext) -> RuleOutcome:
        if not self.in_bounds(ctx):
            return self.out_of_bounds(ctx)

        return RuleOutcome(
            allowed=True,
            flags=PeriodFlags(
                is_overtime=True,
                is_day_off_overtime=ctx.is_day_off,
                is_early_check_in=ctx.now < ctx.window.start,
            ),
        )


class OvertimeCheckOutStrategy(CheckStrategy):
    period_type = PeriodType.OVERTIME
    action = CheckAction.CHECK_OUT

    def evaluate(self, ctx: CheckContext) -> RuleOutcome:
        if not self.in_bounds(ctx):
            return self.out_of_bounds(ctx)

        return RuleOutcome(
            allowed=True,
            flags=PeriodFlags(
                is_overtime=True,
                is_day_off_overtime=ctx.is_day_off,
                is_early_check_out=ctx.now < ctx.window.end,
                is_late_check_out=ctx.now > ctx.window.end,
            ),
        )
