"""
Booking Input Validators

Format checks for the arguments of the public booking endpoints. They run
before any database access.
"""

import re
import frappe
from frappe import _


def validate_date_string(date_str: str, field_name: str = "date") -> str:
    """
    Validate date string format (YYYY-MM-DD).

    Args:
        date_str: Date string to validate
        field_name: Name of field for error messages

    Returns:
        str: Validated date string

    Raises:
        frappe.ValidationError: If date format is invalid
    """
    if not date_str:
        frappe.throw(_("{0} is required").format(field_name), frappe.ValidationError)

    date_str = str(date_str).strip()

    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        frappe.throw(
            _("Invalid {0} format. Use YYYY-MM-DD").format(field_name), frappe.ValidationError
        )

    return date_str


def validate_time_string(time_str: str, field_name: str = "time") -> str:
    """
    Validate time string format (HH:MM or HH:MM:SS).

    Range checks (hour < 24, minute < 60) are left to the scheduling core,
    which raises InvalidTimeValue.

    Raises:
        frappe.ValidationError: If time format is invalid
    """
    if not time_str:
        frappe.throw(_("{0} is required").format(field_name), frappe.ValidationError)

    time_str = str(time_str).strip()

    if not re.match(r"^\d{1,2}:\d{2}(:\d{2})?$", time_str):
        frappe.throw(
            _("Invalid {0} format. Use HH:MM").format(field_name), frappe.ValidationError
        )

    return time_str


def validate_docname(name: str, field_name: str = "name") -> str:
    """
    Validate a document name (ID).

    Ensures the name is not too long and doesn't contain injection patterns.

    Args:
        name: Document name to validate
        field_name: Name of field for error messages

    Returns:
        str: Validated document name

    Raises:
        frappe.ValidationError: If name is invalid
    """
    if not name:
        frappe.throw(_("{0} is required").format(field_name), frappe.ValidationError)

    name = str(name).strip()

    if len(name) > 140:
        frappe.throw(_("{0} is too long").format(field_name), frappe.ValidationError)

    # Block obvious injection attempts
    dangerous_patterns = [
        r"<script",
        r"javascript:",
        r"onclick",
        r"onerror",
        r"SELECT\s+",
        r"INSERT\s+",
        r"UPDATE\s+",
        r"DELETE\s+",
        r"DROP\s+",
        r"UNION\s+",
        r"--",
        r";",
    ]

    for pattern in dangerous_patterns:
        if re.search(pattern, name, re.IGNORECASE):
            frappe.throw(_("Invalid {0}").format(field_name), frappe.ValidationError)

    return name


def sanitize_string(value: str, max_length: int = 500) -> str:
    """
    General string sanitization for free text (notes, reasons).

    Args:
        value: String to sanitize
        max_length: Maximum allowed length

    Returns:
        str: Sanitized string, or None if empty
    """
    if not value:
        return None

    value = str(value).strip()[:max_length]

    # Remove null bytes and other control characters
    value = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)

    return value or None
