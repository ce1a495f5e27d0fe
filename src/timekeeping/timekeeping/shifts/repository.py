from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import ShiftAdjustment, ShiftDefinition


class ShiftCatalog(Protocol):
    def list_all(self) -> Sequence[ShiftDefinition]:
        raise NotImplementedError

    def get_shift(self, shift_code: str) -> Optional[ShiftDefinition]:
        raise NotImplementedError

    def get_assigned_shift(self, employee_id: str) -> Optional[ShiftDefinition]:
        raise NotImplementedError

    def get_approved_adjustment(self, employee_id: str, day: date) -> Optional[ShiftDefinition]:
        """Replacement shift of an APPROVED adjustment for that date, if any."""

        raise NotImplementedError


class ShiftAdjustmentRepository(Protocol):
    def get_adjustment(self, *, adjustment_id: int) -> Optional[ShiftAdjustment]:
        raise NotImplementedError

    def decide_adjustment(self, *, adjustment_id: int, status: RequestStatus) -> bool:
        raise NotImplementedError
