"""
Clinic Booking API

Structure:
    api/
    ├── __init__.py              # This file
    ├── bookings/                # Bookings domain
    │   └── __init__.py          # Re-exports from booking_api
    ├── shared/                  # Shared utilities
    │   ├── __init__.py          # Re-exports security and validators
    │   └── validators.py        # Input validators
    ├── booking_api.py           # Whitelisted endpoints
    └── security.py              # Rate limiting and honeypot

Usage:
    frappe.call("clinic_booking.api.bookings.get_available_slots", ...)
    frappe.call("clinic_booking.api.booking_api.create_booking", ...)
"""

# Re-export domains for convenient access
from . import bookings
from . import shared

__all__ = [
    "bookings",
    "shared",
]
