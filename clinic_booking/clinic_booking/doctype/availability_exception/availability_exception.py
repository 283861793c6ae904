# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Availability Exception DocType

Override de disponibilidad de un profesional para una fecha concreta:
- is_available = 0: bloquea el día completo
- is_available = 1 con horario: reemplaza las franjas semanales del día
- is_available = 1 sin horario: se usan las franjas semanales
"""

import frappe
from frappe import _
from frappe.model.document import Document

from clinic_booking.clinic_booking.scheduling.exceptions import InvalidTimeValue
from clinic_booking.clinic_booking.scheduling.timegrid import TimeInterval


class AvailabilityException(Document):
	"""
	Availability Exception with validations.

	Validations:
	- professional and exception_date required
	- start_time and end_time go together, start_time < end_time
	- At most one exception per professional and date
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_required_fields()
		self._validate_times()
		self._validate_unique_per_date()

	def _validate_required_fields(self) -> None:
		"""Valida campos requeridos."""
		if not self.professional:
			frappe.throw(_("Professional es requerido"))

		if not self.exception_date:
			frappe.throw(_("Exception Date es requerido"))

	def _validate_times(self) -> None:
		"""
		Un día bloqueado no lleva horario; uno disponible lleva ambas horas o ninguna.
		"""
		if not self.is_available:
			self.start_time = None
			self.end_time = None
			return

		if bool(self.start_time) != bool(self.end_time):
			frappe.throw(_("Start Time y End Time deben indicarse juntos"))

		if self.start_time and self.end_time:
			try:
				TimeInterval.from_values(self.start_time, self.end_time)
			except InvalidTimeValue:
				frappe.throw(_("Start Time debe ser menor que End Time"))

	def _validate_unique_per_date(self) -> None:
		existing = frappe.db.exists(
			"Availability Exception",
			{
				"professional": self.professional,
				"exception_date": self.exception_date,
				"name": ["!=", self.name or ""],
			},
		)

		if existing:
			frappe.throw(
				_("Ya existe una excepción ({0}) para este profesional en {1}").format(
					existing, self.exception_date
				),
				frappe.DuplicateEntryError,
			)
