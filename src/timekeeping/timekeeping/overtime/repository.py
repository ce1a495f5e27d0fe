from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from .model import OvertimeRequest


class OvertimeProvider(Protocol):
    def get_approved_overtime(self, employee_id: str, day: date) -> Optional[OvertimeRequest]:
        raise NotImplementedError
