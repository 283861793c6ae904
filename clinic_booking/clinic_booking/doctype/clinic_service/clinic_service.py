# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Clinic Service DocType

Bookable service of a clinic. Its duration sizes the slots offered to
clients and its price is copied onto each booking.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint, flt

from clinic_booking.clinic_booking.scheduling.models import MAX_SERVICE_MINUTES, MIN_SERVICE_MINUTES


class ClinicService(Document):
	def validate(self) -> None:
		self._validate_duration()
		self._validate_price()

	def _validate_duration(self) -> None:
		duration = cint(self.duration_minutes)
		if duration < MIN_SERVICE_MINUTES or duration > MAX_SERVICE_MINUTES:
			frappe.throw(
				_("Duration debe estar entre {0} y {1} minutos").format(
					MIN_SERVICE_MINUTES, MAX_SERVICE_MINUTES
				)
			)

	def _validate_price(self) -> None:
		if flt(self.price) < 0:
			frappe.throw(_("Price no puede ser negativo"))
