"""
Frappe Booking Store

Reads rules, exceptions, services and bookings from the site database and
serialises reservations per professional with row locks
(SELECT ... FOR UPDATE) inside the request transaction.
"""

import frappe
from frappe.utils import get_datetime, getdate
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Iterator, List, Optional

from clinic_booking.clinic_booking.scheduling.exceptions import TransactionFailed
from clinic_booking.clinic_booking.scheduling.models import (
	Booking,
	BookingStatus,
	DateException,
	PaymentStatus,
	Service,
	VisitType,
	WeeklyRule,
)
from clinic_booking.clinic_booking.scheduling.timegrid import WEEKDAYS, to_time_of_day
from .base import BookingStore

BOOKING_FIELDS = [
	"name",
	"clinic",
	"professional",
	"service",
	"client",
	"booking_date",
	"start_time",
	"end_time",
	"status",
	"payment_status",
	"visit_type",
	"notes",
	"total_amount",
	"currency",
	"cancelled_at",
	"cancelled_by",
	"cancellation_reason",
	"creation",
	"modified",
]


def booking_from_row(row: Any) -> Booking:
	"""Convierte una fila/doc de Booking al modelo del core."""
	return Booking(
		id=row.name,
		tenant_id=row.clinic,
		professional_id=row.professional,
		service_id=row.service,
		client_id=row.client,
		date=getdate(row.booking_date),
		start_time=to_time_of_day(row.start_time),
		end_time=to_time_of_day(row.end_time),
		status=BookingStatus(row.status or BookingStatus.PENDING.value),
		payment_status=PaymentStatus(row.payment_status or PaymentStatus.PENDING.value),
		visit_type=VisitType(row.visit_type or VisitType.IN_PERSON.value),
		notes=row.notes,
		total_amount=Decimal(str(row.total_amount or 0)),
		currency=row.currency or "USD",
		cancelled_at=get_datetime(row.cancelled_at) if row.cancelled_at else None,
		cancelled_by=row.cancelled_by,
		cancellation_reason=row.cancellation_reason,
		created_at=get_datetime(row.creation) if row.get("creation") else None,
		updated_at=get_datetime(row.modified) if row.get("modified") else None,
	)


def _booking_values(booking: Booking) -> dict:
	return {
		"clinic": booking.tenant_id,
		"professional": booking.professional_id,
		"service": booking.service_id,
		"client": booking.client_id,
		"booking_date": booking.date,
		"start_time": booking.start_time.format(),
		"end_time": booking.end_time.format(),
		"status": booking.status.value,
		"payment_status": booking.payment_status.value,
		"visit_type": booking.visit_type.value,
		"notes": booking.notes,
		"total_amount": booking.total_amount,
		"currency": booking.currency,
		"cancelled_at": booking.cancelled_at,
		"cancelled_by": booking.cancelled_by,
		"cancellation_reason": booking.cancellation_reason,
	}


class FrappeBookingStore(BookingStore):
	"""Store sobre los DocTypes de la app."""

	def __init__(self):
		self.in_unit_of_work = False

	@property
	def logger(self):
		return frappe.logger("clinic_booking")

	def get_weekly_rules(self, professional_id: str, day_of_week: int) -> List[WeeklyRule]:
		rows = frappe.get_all(
			"Availability Rule",
			filters={
				"professional": professional_id,
				"weekday": WEEKDAYS[day_of_week],
				"is_active": 1,
			},
			fields=["name", "professional", "weekday", "start_time", "end_time", "is_active"],
			order_by="start_time asc",
		)

		return [
			WeeklyRule(
				professional_id=row.professional,
				day_of_week=WEEKDAYS.index(row.weekday),
				start_time=to_time_of_day(row.start_time),
				end_time=to_time_of_day(row.end_time),
				is_active=bool(row.is_active),
				name=row.name,
			)
			for row in rows
		]

	def get_date_exception(self, professional_id: str, target_date: date) -> Optional[DateException]:
		rows = frappe.get_all(
			"Availability Exception",
			filters={"professional": professional_id, "exception_date": target_date},
			fields=["professional", "exception_date", "is_available", "start_time", "end_time", "reason"],
			limit=1,
		)
		if not rows:
			return None

		row = rows[0]
		return DateException(
			professional_id=row.professional,
			date=getdate(row.exception_date),
			is_available=bool(row.is_available),
			start_time=to_time_of_day(row.start_time) if row.start_time is not None else None,
			end_time=to_time_of_day(row.end_time) if row.end_time is not None else None,
			reason=row.reason,
		)

	def get_service(self, service_id: str) -> Optional[Service]:
		row = frappe.db.get_value(
			"Clinic Service",
			service_id,
			["name", "service_name", "duration_minutes", "price", "currency", "is_active"],
			as_dict=True,
		)
		if not row:
			return None

		return Service(
			id=row.name,
			duration_minutes=row.duration_minutes,
			name=row.service_name,
			price=Decimal(str(row.price or 0)),
			currency=row.currency or "USD",
			is_active=bool(row.is_active),
		)

	def get_booking(self, booking_id: str, for_update: bool = False) -> Optional[Booking]:
		row = frappe.db.get_value(
			"Booking", booking_id, BOOKING_FIELDS, as_dict=True, for_update=for_update
		)
		return booking_from_row(row) if row else None

	def get_active_bookings(
		self, professional_id: str, target_date: date, for_update: Optional[bool] = None
	) -> List[Booking]:
		"""
		Reservas no canceladas del profesional en esa fecha.

		Dentro de unit_of_work la lectura es FOR UPDATE: una lectura normal
		devolvería el snapshot REPEATABLE READ tomado antes del lock, sin las
		reservas que otra request confirmó mientras esperábamos.
		"""
		if for_update is None:
			for_update = self.in_unit_of_work

		rows = frappe.get_all(
			"Booking",
			filters={
				"professional": professional_id,
				"booking_date": target_date,
				"status": ["!=", BookingStatus.CANCELLED.value],
			},
			fields=BOOKING_FIELDS,
			order_by="start_time asc",
			for_update=for_update,
		)
		return [booking_from_row(row) for row in rows]

	@contextmanager
	def unit_of_work(self, professional_id: str, *dates: date) -> Iterator["FrappeBookingStore"]:
		"""
		Unidad de trabajo sobre la transacción de la request.

		Algoritmo:
			1. Bloquear la fila del Clinic Professional (FOR UPDATE): todos los
			   writers del mismo profesional quedan serializados, cualquier fecha
			2. Ejecutar el bloque; las reservas se leen con FOR UPDATE
			3. Commit si todo salió bien, rollback si no
			4. Deadlock / lock timeout -> TransactionFailed (reintentable)
		"""
		self.in_unit_of_work = True
		try:
			frappe.db.get_value("Clinic Professional", professional_id, "name", for_update=True)
			yield self
			frappe.db.commit()
		except (frappe.QueryDeadlockError, frappe.QueryTimeoutError) as e:
			frappe.db.rollback()
			self.logger.warning(
				f"Transient failure locking {professional_id} {[str(d) for d in dates]}: {str(e)}"
			)
			raise TransactionFailed(f"Could not complete booking transaction: {str(e)}") from e
		except BaseException:
			frappe.db.rollback()
			raise
		finally:
			self.in_unit_of_work = False

	def insert_booking(self, booking: Booking) -> Booking:
		doc = frappe.get_doc({"doctype": "Booking", **_booking_values(booking)})
		# El core ya validó solapamientos bajo el lock
		doc.flags.in_reservation = True
		doc.insert(ignore_permissions=True, set_name=booking.id)
		return booking_from_row(doc)

	def update_booking(self, booking: Booking) -> Booking:
		doc = frappe.get_doc("Booking", booking.id)
		doc.update(_booking_values(booking))
		doc.flags.in_reservation = True
		doc.save(ignore_permissions=True)
		return booking_from_row(doc)

	def new_booking_id(self) -> str:
		return frappe.generate_hash(length=12)
