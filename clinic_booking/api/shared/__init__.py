"""
Shared utilities for Clinic Booking API.

Request protection (rate limiting, honeypot) and input validators used by
the public booking endpoints.
"""

from ..security import (
    # Rate limiting
    check_rate_limit,
    get_client_ip,
    # Bots
    check_honeypot,
)

from .validators import (
    sanitize_string,
    validate_date_string,
    validate_docname,
    validate_time_string,
)

__all__ = [
    "check_rate_limit",
    "get_client_ip",
    "check_honeypot",
    "sanitize_string",
    "validate_date_string",
    "validate_docname",
    "validate_time_string",
]
