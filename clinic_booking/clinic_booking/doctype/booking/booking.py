# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Booking DocType

A reserved interval of a professional on a date, in the clinic's local
time. Reservations made through the API run the conflict check inside
the store's unit of work and set `flags.in_reservation`; bookings edited
from the desk are checked here under the same professional row lock.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import flt, getdate

from clinic_booking.clinic_booking.scheduling.exceptions import InvalidStateTransition, InvalidTimeValue
from clinic_booking.clinic_booking.scheduling.lifecycle import Action, next_status
from clinic_booking.clinic_booking.scheduling.models import BookingStatus
from clinic_booking.clinic_booking.scheduling.overlap import find_overlapping
from clinic_booking.clinic_booking.scheduling.timegrid import TimeInterval
from clinic_booking.clinic_booking.stores.frappe_store import FrappeBookingStore

# Estado destino -> acción del ciclo de vida que lo produce
STATUS_ACTIONS = {
	BookingStatus.CONFIRMED: Action.CONFIRM,
	BookingStatus.CANCELLED: Action.CANCEL,
	BookingStatus.COMPLETED: Action.COMPLETE,
	BookingStatus.NO_SHOW: Action.NO_SHOW,
}


class Booking(Document):
	"""
	Booking DocType with scheduling validation.

	Flujo:
	1. El API reserva vía scheduling.reserve (pending)
	2. El personal confirma / cancela / completa vía scheduling.transition
	3. Las ediciones manuales desde el desk pasan por las mismas reglas
	"""

	def validate(self) -> None:
		"""
		Validación antes de guardar.

		Ejecuta:
		1. Validar campos requeridos y heredar la clínica del profesional
		2. Validar start_time < end_time
		3. Copiar precio del servicio si falta
		4. Si no viene del core: validar transición de estado y overlaps
		"""
		self._validate_required_fields()
		self._set_clinic_from_professional()
		self._validate_interval()
		self._set_amount_from_service()

		if not self.flags.in_reservation:
			self._validate_status_change()
			self._validate_no_overlap()

	# ===== VALIDATION METHODS =====

	def _validate_required_fields(self) -> None:
		"""Valida campos requeridos."""
		if not self.professional:
			frappe.throw(_("Professional es requerido"))

		if not self.service:
			frappe.throw(_("Service es requerido"))

		if not self.booking_date:
			frappe.throw(_("Booking Date es requerido"))

	def _set_clinic_from_professional(self) -> None:
		"""La clínica de la reserva es siempre la del profesional."""
		clinic = frappe.db.get_value("Clinic Professional", self.professional, "clinic")
		if self.clinic and clinic and self.clinic != clinic:
			frappe.throw(_("El profesional no pertenece a la clínica {0}").format(self.clinic))
		self.clinic = self.clinic or clinic

	def _validate_interval(self) -> None:
		"""Valida que start_time < end_time."""
		if not self.start_time or not self.end_time:
			frappe.throw(_("Start Time y End Time son requeridos"))

		try:
			TimeInterval.from_values(self.start_time, self.end_time)
		except InvalidTimeValue:
			frappe.throw(_("Start Time debe ser menor que End Time"))

	def _set_amount_from_service(self) -> None:
		if not self.is_new() or flt(self.total_amount):
			return

		price, currency = frappe.db.get_value("Clinic Service", self.service, ["price", "currency"]) or (0, None)
		self.total_amount = flt(price)
		self.currency = self.currency or currency

	def _validate_status_change(self) -> None:
		"""
		Los cambios de estado manuales deben ser transiciones válidas.
		"""
		previous = self.get_doc_before_save()
		if not previous or previous.status == self.status:
			return

		target = BookingStatus(self.status)
		action = STATUS_ACTIONS.get(target)

		try:
			if action is None or next_status(BookingStatus(previous.status), action) is not target:
				raise InvalidStateTransition(f"{previous.status} -> {self.status}")
		except InvalidStateTransition:
			frappe.throw(
				_("No se puede pasar una reserva de {0} a {1}").format(previous.status, self.status)
			)

	def _validate_no_overlap(self) -> None:
		"""
		Bloquea si el intervalo se solapa con otra reserva activa del profesional.

		La fila del profesional se bloquea (FOR UPDATE) hasta el commit de
		la request, igual que en una reserva hecha desde el API.
		"""
		if self.status == BookingStatus.CANCELLED.value:
			return

		frappe.db.get_value("Clinic Professional", self.professional, "name", for_update=True)

		# Lectura con lock para ver lo que otra request confirmó mientras esperábamos
		store = FrappeBookingStore()
		existing = store.get_active_bookings(self.professional, getdate(self.booking_date), for_update=True)
		conflicts = find_overlapping(
			existing,
			TimeInterval.from_values(self.start_time, self.end_time),
			exclude_booking=None if self.is_new() else self.name,
		)

		if conflicts:
			frappe.throw(
				_("Este horario ya no está disponible, por favor elija otro ({0})").format(
					", ".join(b.id for b in conflicts)
				)
			)
