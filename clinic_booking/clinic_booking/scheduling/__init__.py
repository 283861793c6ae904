"""
Scheduling Services Module

This module provides core business logic for clinic bookings:
- Time grid values (timegrid.py)
- Availability calculation (availability.py)
- Overlap detection (overlap.py)
- Slot generation for UI (slots.py)
- Race-safe reservation (reservation.py)
- Booking status lifecycle and reschedule (lifecycle.py)

Nothing here imports frappe; persistence goes through a BookingStore
(see clinic_booking.clinic_booking.stores).
"""

from .availability import generate_slots, get_effective_availability, resolve_day_windows
from .lifecycle import Action, get_booking, next_status, reschedule, transition
from .reservation import reserve
from .slots import get_available_slots, get_slots_for_range

__all__ = [
	"Action",
	"generate_slots",
	"get_available_slots",
	"get_booking",
	"get_effective_availability",
	"get_slots_for_range",
	"next_status",
	"reschedule",
	"reserve",
	"resolve_day_windows",
	"transition",
]
