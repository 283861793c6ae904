"""
Bookings API Domain

Handles slot lookup, reservations and the booking lifecycle.
"""

# Re-export endpoints from booking_api for new-style imports
from clinic_booking.api.booking_api import (
    # Slots (public)
    get_available_slots,
    get_slots_for_range,
    # Reservations
    create_booking,
    create_staff_booking,
    transition_booking,
    reschedule_booking,
    # Reads (staff)
    get_booking,
    get_day_bookings,
)

__all__ = [
    "get_available_slots",
    "get_slots_for_range",
    "create_booking",
    "create_staff_booking",
    "transition_booking",
    "reschedule_booking",
    "get_booking",
    "get_day_bookings",
]
