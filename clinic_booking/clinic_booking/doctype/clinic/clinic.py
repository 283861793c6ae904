# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Clinic DocType

Tenant of the booking system. Every professional, service and booking
belongs to exactly one clinic; its timezone is the one all local
booking times are expressed in.
"""

import frappe
import pytz
from frappe import _
from frappe.model.document import Document

from clinic_booking.clinic_booking.scheduling.clock import TenantClock

SYSTEM_TIMEZONE = "system timezone"


class Clinic(Document):
	def validate(self) -> None:
		if not self.clinic_name:
			frappe.throw(_("Clinic Name es requerido"))

		if self.timezone and self.timezone != SYSTEM_TIMEZONE and self.timezone not in pytz.all_timezones_set:
			frappe.throw(_("Timezone {0} no es válida").format(self.timezone))


def get_clinic_timezone(clinic: str) -> str:
	"""Zona horaria IANA de la clínica (la del sistema si no tiene)."""
	tz_name = frappe.get_cached_value("Clinic", clinic, "timezone") if clinic else None

	if not tz_name or tz_name == SYSTEM_TIMEZONE:
		tz_name = frappe.utils.get_system_timezone()

	return tz_name or "UTC"


def get_clinic_clock(clinic: str) -> TenantClock:
	return TenantClock(get_clinic_timezone(clinic))
