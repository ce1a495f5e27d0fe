from __future__ import annotations

import logging

from ..core.enums import RequestStatus
from ..core.exceptions import ValidationError
from .model import ShiftAdjustment
from .repository import ShiftAdjustmentRepository
from .resolver import ShiftWindowResolver

logger = logging.getLogger(__name__)


class ShiftAdjustmentService:
    """Approval hook for shift adjustments.

    Every decision drops the employee's cached windows so the next check
    request sees the new shift immediately.
    """

    def __init__(self, adjustments: ShiftAdjustmentRepository, resolver: ShiftWindowResolver):
        self._adjustments = adjustments
        self._resolver = resolver

    def approve(self, *, adjustment_id: int) -> ShiftAdjustment:
        return self._decide(adjustment_id=adjustment_id, status=RequestStatus.APPROVED)

    def reject(self, *, adjustment_id: int) -> ShiftAdjustment:
        return self._decide(adjustment_id=adjustment_id, status=RequestStatus.REJECTED)

    def _decide(self, *, adjustment_id: int, status: RequestStatus) -> ShiftAdjustment:
        if int(adjustment_id) <= 0:
            raise ValidationError("Invalid adjustment id")

        adjustment = self._adjustments.get_adjustment(adjustment_id=int(adjustment_id))
        if not adjustment:
            raise ValidationError("Shift adjustment not found")
        if adjustment.status != RequestStatus.PENDING:
            raise ValidationError("Shift adjustment has already been decided")

        if not self._adjustments.decide_adjustment(adjustment_id=int(adjustment_id), status=status):
            raise ValidationError("Shift adjustment has already been decided")

        self._resolver.invalidate(adjustment.employee_id)
        logger.info(
            "Shift adjustment %s for %s on %s -> %s",
            adjustment_id,
            adjustment.employee_id,
            adjustment.work_date,
            status.value,
        )
        return ShiftAdjustment(
            adjustment_id=adjustment.adjustment_id,
            employee_id=adjustment.employee_id,
            work_date=adjustment.work_date,
            shift_code=adjustment.shift_code,
            status=status,
            reason=adjustment.reason,
        )
