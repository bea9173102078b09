"""Slot conflict checker"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .repository import SchedulingRepository


class SlotConflictChecker:
    """
    Early-exit check for a barber's slot. Slots match on the exact
    date and time; there is no duration or tolerance window.

    The unique index uq_appointments_barber_slot is the authoritative
    guard, this check only avoids opening a doomed transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def has_conflict(
        self,
        barber_id: int,
        scheduled_at: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        holder = self.repo.find_slot_holder(self.db, barber_id, scheduled_at, exclude_appointment_id)
        return holder is not None
