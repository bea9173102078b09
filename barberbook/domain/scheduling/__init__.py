"""Scheduling domain - Appointments, slot conflicts and booking"""

from .booking_service import BookingService
from .conflicts import SlotConflictChecker
from .router import router

__all__ = ["BookingService", "SlotConflictChecker", "router"]
