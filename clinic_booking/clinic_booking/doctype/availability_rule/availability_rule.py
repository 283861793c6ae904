# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Availability Rule DocType

Franja semanal recurrente de disponibilidad de un profesional.
"""

import frappe
from frappe import _
from frappe.model.document import Document

from clinic_booking.clinic_booking.scheduling.exceptions import InvalidTimeValue
from clinic_booking.clinic_booking.scheduling.timegrid import TimeInterval, WEEKDAYS, overlaps


class AvailabilityRule(Document):
	"""
	Availability Rule with validations.

	Validations:
	- professional and weekday required
	- start_time < end_time (same day)
	- No overlapping active rules for the same professional and weekday
	  (contiguous rules are allowed; the resolver merges them)
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.
		"""
		self._validate_required_fields()
		self._validate_times()
		self._validate_no_overlapping_rules()

	def _validate_required_fields(self) -> None:
		"""Valida campos requeridos."""
		if not self.professional:
			frappe.throw(_("Professional es requerido"))

		if self.weekday not in WEEKDAYS:
			frappe.throw(_("Weekday es requerido"))

	def _validate_times(self) -> None:
		"""Valida que start_time < end_time."""
		if not self.start_time or not self.end_time:
			frappe.throw(_("Start Time y End Time son requeridos"))

		try:
			self.interval
		except InvalidTimeValue:
			frappe.throw(_("Start Time debe ser menor que End Time"))

	def _validate_no_overlapping_rules(self) -> None:
		"""
		Valida que no haya otra regla activa solapada el mismo día.

		Dos reglas se solapan si start1 < end2 AND start2 < end1.
		"""
		if not self.is_active:
			return

		existing = frappe.get_all(
			"Availability Rule",
			filters={
				"professional": self.professional,
				"weekday": self.weekday,
				"is_active": 1,
				"name": ["!=", self.name or ""],
			},
			fields=["name", "start_time", "end_time"],
		)

		current = self.interval
		for rule in existing:
			other = TimeInterval.from_values(rule.start_time, rule.end_time)
			if overlaps(current, other):
				frappe.throw(
					_("{0}: la franja {1} se solapa con {2} ({3})").format(
						self.weekday, current, rule.name, other
					)
				)

	@property
	def interval(self) -> TimeInterval:
		return TimeInterval.from_values(self.start_time, self.end_time)
