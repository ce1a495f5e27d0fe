from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from ..core.enums import CheckAction, PeriodType
from .strategies.base import CheckStrategy
from .strategies.check_in_strategy import RegularCheckInStrategy
from .strategies.check_out_strategy import RegularCheckOutStrategy
from .strategies.overtime_strategy import OvertimeCheckInStrategy, OvertimeCheckOutStrategy


def _default_strategies() -> Dict[Tuple[PeriodType, CheckAction], CheckStrategy]:
    strategies = (
        RegularCheckInStrategy(),
        RegularCheckOutStrategy(),
        OvertimeCheckInStrategy(),
        OvertimeCheckOutStrategy(),
    )
    return {(s.period_type, s.action): s for s in strategies}


@dataclass
class CheckStrategyFactory:
    """Factory Pattern: choose the rule object for the targeted period and action."""

    strategies: Dict[Tuple[PeriodType, CheckAction], CheckStrategy] = field(default_factory=_default_strategies)

    def for_target(self, period_type: PeriodType, action: CheckAction) -> CheckStrategy:
        return self.strategies[(period_type, action)]
