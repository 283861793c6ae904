"""
Tests for scheduling/lifecycle.py

Tests status transitions, terminal states and rescheduling.
"""

import unittest
from datetime import date, datetime
from decimal import Decimal

from clinic_booking.clinic_booking.scheduling.clock import TenantClock
from clinic_booking.clinic_booking.scheduling.events import (
	BookingCancelled,
	BookingConfirmed,
	BookingRescheduled,
	BookingStatusChanged,
	RecordingEventSink,
)
from clinic_booking.clinic_booking.scheduling.exceptions import (
	BookingNotFound,
	InvalidStateTransition,
	InvalidTimeValue,
	OutsideAvailability,
	SlotConflict,
	TransactionFailed,
)
from clinic_booking.clinic_booking.scheduling.lifecycle import (
	Action,
	get_booking,
	next_status,
	reschedule,
	transition,
)
from clinic_booking.clinic_booking.scheduling.models import BookingStatus, Service, WeeklyRule
from clinic_booking.clinic_booking.scheduling.reservation import reserve
from clinic_booking.clinic_booking.scheduling.timegrid import TimeOfDay
from clinic_booking.clinic_booking.stores.memory import MemoryBookingStore

MONDAY = date(2026, 1, 19)
TUESDAY = date(2026, 1, 20)
NEXT_MONDAY = date(2026, 1, 26)

# 15:00 UTC = 10:00 en Bogotá
BOGOTA_10AM = TenantClock("America/Bogota", now=datetime(2026, 1, 19, 15, 0))


class TestNextStatus(unittest.TestCase):
	"""Tests for the pure transition table."""

	def test_valid_transitions(self):
		self.assertEqual(next_status(BookingStatus.PENDING, "confirm"), BookingStatus.CONFIRMED)
		self.assertEqual(next_status(BookingStatus.PENDING, Action.CANCEL), BookingStatus.CANCELLED)
		self.assertEqual(next_status(BookingStatus.CONFIRMED, "cancel"), BookingStatus.CANCELLED)
		self.assertEqual(next_status(BookingStatus.CONFIRMED, "complete"), BookingStatus.COMPLETED)
		self.assertEqual(next_status(BookingStatus.CONFIRMED, "no_show"), BookingStatus.NO_SHOW)

	def test_invalid_transitions(self):
		invalid = [
			(BookingStatus.CONFIRMED, "confirm"),
			(BookingStatus.PENDING, "complete"),
			(BookingStatus.PENDING, "no_show"),
		]
		for status, action in invalid:
			with self.assertRaises(InvalidStateTransition):
				next_status(status, action)

	def test_terminal_states_accept_nothing(self):
		for status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
			self.assertTrue(status.is_terminal)
			for action in Action:
				with self.assertRaises(InvalidStateTransition):
					next_status(status, action)

	def test_unknown_action(self):
		with self.assertRaises(InvalidStateTransition) as ctx:
			next_status(BookingStatus.PENDING, "archive")

		self.assertEqual(ctx.exception.current_status, "pending")


class MovingStore(MemoryBookingStore):
	"""
	Reprograma la reserva justo después de cada lectura sin lock, como una
	request concurrente que gana la carrera por el lock.
	"""

	def __init__(self, targets):
		super().__init__()
		self.targets = list(targets)
		self._moving = False

	def get_booking(self, booking_id, for_update=False):
		booking = super().get_booking(booking_id, for_update)
		if booking and self.targets and not for_update and not self._moving:
			self._moving = True
			try:
				reschedule(self, booking_id, self.targets.pop(0), "10:00", "10:30")
			finally:
				self._moving = False
		return booking


class LifecycleTestCase(unittest.TestCase):
	def setUp(self):
		self.store = MemoryBookingStore()
		for day in (1, 2):
			self.store.add_rule(WeeklyRule("prof-1", day, TimeOfDay.parse("09:00"), TimeOfDay.parse("12:00")))
		self.store.add_service(Service("svc-30", 30, price=Decimal("40")))
		self.sink = RecordingEventSink()

	def _reserve(self, start, booking_date=MONDAY):
		return reserve(self.store, "prof-1", "svc-30", booking_date, start, tenant_id="clinic-1")


class TestTransition(LifecycleTestCase):
	"""Tests for transition() against a store."""

	def test_confirm(self):
		booking = self._reserve("10:00")

		updated = transition(self.store, booking.id, "confirm", sink=self.sink)

		self.assertEqual(updated.status, BookingStatus.CONFIRMED)
		self.assertEqual(self.store.get_booking(booking.id).status, BookingStatus.CONFIRMED)
		self.assertEqual(len(self.sink.of_type(BookingConfirmed)), 1)

	def test_confirm_twice_rejected(self):
		booking = self._reserve("10:00")
		transition(self.store, booking.id, "confirm")

		with self.assertRaises(InvalidStateTransition):
			transition(self.store, booking.id, "confirm")

	def test_cancel_records_who_and_why(self):
		booking = self._reserve("10:00")

		updated = transition(
			self.store, booking.id, "cancel",
			actor="recepcion@clinica.com", reason="Paciente enfermo",
			clock=BOGOTA_10AM, sink=self.sink,
		)

		self.assertEqual(updated.status, BookingStatus.CANCELLED)
		self.assertEqual(updated.cancelled_by, "recepcion@clinica.com")
		self.assertEqual(updated.cancellation_reason, "Paciente enfermo")
		self.assertEqual(updated.cancelled_at, BOGOTA_10AM.now())

		event = self.sink.of_type(BookingCancelled)[0]
		self.assertEqual(event.reason, "Paciente enfermo")

	def test_cancelled_is_terminal(self):
		booking = self._reserve("10:00")
		transition(self.store, booking.id, "cancel")

		for action in ("confirm", "cancel", "complete", "no_show"):
			with self.assertRaises(InvalidStateTransition):
				transition(self.store, booking.id, action, clock=BOGOTA_10AM)

	def test_complete_after_start(self):
		booking = self._reserve("09:00")
		transition(self.store, booking.id, "confirm")

		updated = transition(self.store, booking.id, "complete", clock=BOGOTA_10AM, sink=self.sink)

		self.assertEqual(updated.status, BookingStatus.COMPLETED)
		self.assertEqual(self.sink.of_type(BookingStatusChanged)[0].status, "completed")

	def test_complete_before_start_rejected(self):
		booking = self._reserve("11:00")
		transition(self.store, booking.id, "confirm")

		with self.assertRaises(InvalidStateTransition):
			transition(self.store, booking.id, "complete", clock=BOGOTA_10AM)
		with self.assertRaises(InvalidStateTransition):
			transition(self.store, booking.id, "no_show", clock=BOGOTA_10AM)

		self.assertEqual(self.store.get_booking(booking.id).status, BookingStatus.CONFIRMED)

	def test_no_show_keeps_slot_taken(self):
		booking = self._reserve("09:00")
		transition(self.store, booking.id, "confirm")
		transition(self.store, booking.id, "no_show", clock=BOGOTA_10AM)

		with self.assertRaises(SlotConflict):
			self._reserve("09:00")

	def test_unknown_booking(self):
		with self.assertRaises(BookingNotFound):
			transition(self.store, "nope", "confirm")

	def test_tenant_isolation(self):
		booking = self._reserve("10:00")

		with self.assertRaises(BookingNotFound):
			get_booking(self.store, booking.id, tenant_id="clinic-2")
		with self.assertRaises(BookingNotFound):
			transition(self.store, booking.id, "cancel", tenant_id="clinic-2")

		self.assertEqual(get_booking(self.store, booking.id, tenant_id="clinic-1").id, booking.id)


class TestReschedule(LifecycleTestCase):
	"""Tests for reschedule()."""

	def test_round_trip_leaves_single_row(self):
		booking = self._reserve("10:00")
		transition(self.store, booking.id, "confirm")

		moved = reschedule(self.store, booking.id, TUESDAY, "11:00", "11:30", sink=self.sink)
		back = reschedule(self.store, booking.id, MONDAY, "10:00", "10:30")

		self.assertEqual(moved.date, TUESDAY)
		self.assertEqual(moved.status, BookingStatus.PENDING)
		self.assertEqual((back.date, back.start_time), (MONDAY, TimeOfDay.parse("10:00")))
		self.assertEqual([b.id for b in self.store.all_bookings()], [booking.id])

		event = self.sink.of_type(BookingRescheduled)[0]
		self.assertEqual(event.old_date, MONDAY)
		self.assertEqual(event.old_start_time, TimeOfDay.parse("10:00"))
		self.assertEqual(event.date, TUESDAY)

	def test_overlap_with_itself_allowed(self):
		booking = self._reserve("10:00")

		moved = reschedule(self.store, booking.id, MONDAY, "10:15", "10:45")

		self.assertEqual(moved.start_time, TimeOfDay.parse("10:15"))

	def test_conflict_leaves_booking_untouched(self):
		first = self._reserve("10:00")
		second = self._reserve("11:00")

		with self.assertRaises(SlotConflict) as ctx:
			reschedule(self.store, second.id, MONDAY, "10:15", "10:45")

		self.assertEqual(ctx.exception.conflicting_bookings, [first.id])
		self.assertEqual(self.store.get_booking(second.id).start_time, TimeOfDay.parse("11:00"))

	def test_terminal_booking_cannot_move(self):
		booking = self._reserve("10:00")
		transition(self.store, booking.id, "cancel")

		with self.assertRaises(InvalidStateTransition):
			reschedule(self.store, booking.id, TUESDAY, "10:00", "10:30")

	def test_availability_enforced_on_request(self):
		booking = self._reserve("10:00")

		with self.assertRaises(OutsideAvailability):
			reschedule(self.store, booking.id, TUESDAY, "17:00", "17:30", enforce_availability=True)

		moved = reschedule(self.store, booking.id, TUESDAY, "17:00", "17:30")
		self.assertEqual(moved.start_time, TimeOfDay.parse("17:00"))

	def test_invalid_interval(self):
		booking = self._reserve("10:00")

		with self.assertRaises(InvalidTimeValue):
			reschedule(self.store, booking.id, TUESDAY, "10:30", "10:00")


class TestBookingMovedWhileLocking(unittest.TestCase):
	"""Tests for actions racing a reschedule of the same booking."""

	def _store_with_booking(self, targets):
		store = MovingStore([])
		store.add_rule(WeeklyRule("prof-1", 1, TimeOfDay.parse("09:00"), TimeOfDay.parse("12:00")))
		store.add_service(Service("svc-30", 30))
		booking = reserve(store, "prof-1", "svc-30", MONDAY, "10:00", tenant_id="clinic-1")
		store.targets = list(targets)
		return store, booking

	def test_cancel_follows_booking_to_new_date(self):
		store, booking = self._store_with_booking([NEXT_MONDAY])

		updated = transition(store, booking.id, "cancel")

		self.assertEqual(updated.status, BookingStatus.CANCELLED)
		self.assertEqual(updated.date, NEXT_MONDAY)
		self.assertEqual(store.get_booking(booking.id).status, BookingStatus.CANCELLED)

	def test_reschedule_follows_booking_to_new_date(self):
		store, booking = self._store_with_booking([NEXT_MONDAY])

		moved = reschedule(store, booking.id, TUESDAY, "11:00", "11:30")

		self.assertEqual((moved.date, moved.start_time), (TUESDAY, TimeOfDay.parse("11:00")))
		self.assertEqual(len(store.all_bookings()), 1)

	def test_booking_that_keeps_moving_fails_transiently(self):
		store, booking = self._store_with_booking([NEXT_MONDAY, MONDAY, NEXT_MONDAY])

		with self.assertRaises(TransactionFailed):
			transition(store, booking.id, "cancel")

		self.assertEqual(store.get_booking(booking.id).status, BookingStatus.PENDING)
