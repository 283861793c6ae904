# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Clinic Booking Settings DocType

Single DocType with the reservation policy and defaults of the site.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint
from typing import Tuple

from clinic_booking.clinic_booking.scheduling.clock import DEFAULT_REMINDER_HOURS
from clinic_booking.clinic_booking.scheduling.settings import BookingSettings

SETTINGS_DOCTYPE = "Clinic Booking Settings"


class ClinicBookingSettings(Document):
	def validate(self) -> None:
		if self.default_slot_minutes is not None and cint(self.default_slot_minutes) <= 0:
			frappe.throw(_("Default Slot Minutes debe ser mayor que 0"))

		try:
			hours = parse_reminder_hours(self.reminder_hours)
		except ValueError:
			frappe.throw(_("Reminder Hours debe ser una lista de horas separadas por coma, p. ej. 24,1"))

		self.reminder_hours = ",".join(str(h) for h in hours)


def parse_reminder_hours(value: str) -> Tuple[int, ...]:
	"""
	"24, 1" -> (24, 1). Vacío -> valores por defecto.

	Raises:
		ValueError: si algún valor no es un entero positivo
	"""
	if not value or not value.strip():
		return DEFAULT_REMINDER_HOURS

	hours = tuple(int(part) for part in value.split(",") if part.strip())
	if any(h <= 0 for h in hours):
		raise ValueError(f"Invalid reminder hours: {value}")

	return tuple(sorted(set(hours), reverse=True))


def get_booking_settings() -> BookingSettings:
	"""Carga la configuración del sitio; los campos vacíos toman el valor por defecto."""
	defaults = BookingSettings()
	doc = frappe.get_cached_doc(SETTINGS_DOCTYPE)

	def check(fieldname: str) -> bool:
		value = doc.get(fieldname)
		return getattr(defaults, fieldname) if value is None else bool(cint(value))

	try:
		reminder_hours = parse_reminder_hours(doc.reminder_hours)
	except ValueError:
		frappe.logger("clinic_booking").warning(f"Invalid reminder_hours in settings: {doc.reminder_hours}")
		reminder_hours = defaults.reminder_hours

	return BookingSettings(
		enforce_availability_public=check("enforce_availability_public"),
		enforce_availability_staff=check("enforce_availability_staff"),
		default_slot_minutes=cint(doc.default_slot_minutes) or defaults.default_slot_minutes,
		reminder_hours=reminder_hours,
		publish_realtime=check("publish_realtime"),
	)
