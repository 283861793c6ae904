"""
Guest Endpoint Protection

The public booking page calls the slot and booking endpoints without a
session. Each call is counted per client IP in the Frappe cache, and the
booking form carries a hidden `website` field that only bots fill in.
"""

import frappe
from frappe import _
from frappe.utils import cint


# endpoint -> (peticiones, ventana en segundos) por IP
GUEST_RATE_LIMITS = {
    "get_available_slots": (30, 60),
    "get_slots_for_range": (20, 60),
    "create_booking": (5, 60),
}

DEFAULT_RATE_LIMIT = (10, 60)


def check_rate_limit(action: str, limit: int = None, seconds: int = None) -> None:
    """
    Count one guest call to `action` and reject it once the IP is over quota.

    The quota comes from GUEST_RATE_LIMITS unless limit/seconds are given.

    Raises:
        frappe.TooManyRequestsError
    """
    default_limit, default_seconds = GUEST_RATE_LIMITS.get(action, DEFAULT_RATE_LIMIT)
    limit = limit or default_limit
    seconds = seconds or default_seconds

    ip = get_client_ip()
    cache_key = f"clinic_booking:guest_calls:{action}:{ip}"
    calls = cint(frappe.cache.get_value(cache_key))

    if calls >= limit:
        frappe.logger("clinic_booking").warning(
            f"Guest quota reached for {action} from {ip} ({limit} per {seconds}s)"
        )
        frappe.throw(
            _("Demasiadas solicitudes, espere un momento e intente de nuevo."),
            frappe.TooManyRequestsError
        )

    frappe.cache.set_value(cache_key, calls + 1, expires_in_sec=seconds)


def get_client_ip() -> str:
    """IP del cliente; detrás de un proxy se toma el primer salto de X-Forwarded-For."""
    request = getattr(frappe.local, "request", None)
    if not request:
        return "unknown"

    for header in ("X-Forwarded-For", "X-Real-IP"):
        value = request.headers.get(header, "")
        if value:
            return value.split(",")[0].strip()

    return request.remote_addr or "unknown"


def check_honeypot(website: str = None) -> None:
    """
    Reject a booking form whose hidden `website` field was filled.

    The error is generic so the form does not reveal the trap.
    """
    if not website:
        return

    frappe.log_error(
        title=_("Booking form rejected"),
        message=f"Hidden field filled from {get_client_ip()}: {website[:100]}"
    )
    frappe.throw(_("Solicitud inválida"), frappe.ValidationError)
