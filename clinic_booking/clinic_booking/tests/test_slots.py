"""
Tests for scheduling/slots.py

Tests slot generation for UI from a store: availability plus bookings.
"""

import unittest
from datetime import date

from clinic_booking.clinic_booking.scheduling.exceptions import InvalidDuration, InvalidTimeValue
from clinic_booking.clinic_booking.scheduling.models import Booking, BookingStatus, DateException, WeeklyRule
from clinic_booking.clinic_booking.scheduling.slots import get_available_slots, get_slots_for_range
from clinic_booking.clinic_booking.scheduling.timegrid import TimeOfDay
from clinic_booking.clinic_booking.stores.memory import MemoryBookingStore

MONDAY = date(2026, 1, 19)


class TestSlots(unittest.TestCase):
	"""Tests for slot generation functions."""

	def setUp(self):
		self.store = MemoryBookingStore()
		self.store.add_rule(WeeklyRule("prof-1", 1, TimeOfDay.parse("09:00"), TimeOfDay.parse("12:00")))

	def _book(self, booking_id, start, end, status=BookingStatus.PENDING, booking_date=MONDAY):
		with self.store.unit_of_work("prof-1", booking_date):
			self.store.insert_booking(Booking(
				id=booking_id,
				tenant_id="clinic-1",
				professional_id="prof-1",
				service_id="svc-30",
				client_id=None,
				date=booking_date,
				start_time=TimeOfDay.parse(start),
				end_time=TimeOfDay.parse(end),
				status=status,
			))

	def test_empty_day(self):
		slots = get_available_slots(self.store, "prof-1", MONDAY, 30)

		self.assertEqual(len(slots), 6)
		self.assertTrue(all(s.available for s in slots))

	def test_booked_slot_unavailable(self):
		self._book("b-1", "10:00", "10:30")

		slots = get_available_slots(self.store, "prof-1", "2026-01-19", 30)
		unavailable = [s.start_time.format() for s in slots if not s.available]

		self.assertEqual(len(slots), 6)
		self.assertEqual(unavailable, ["10:00"])

	def test_cancelled_booking_frees_slot(self):
		self._book("b-1", "10:00", "10:30", status=BookingStatus.CANCELLED)

		slots = get_available_slots(self.store, "prof-1", MONDAY, 30)

		self.assertTrue(all(s.available for s in slots))

	def test_blocked_date_returns_empty(self):
		self.store.set_exception(DateException("prof-1", MONDAY, is_available=False))

		self.assertEqual(get_available_slots(self.store, "prof-1", MONDAY, 30), [])

	def test_day_without_rules_returns_empty(self):
		self.assertEqual(get_available_slots(self.store, "prof-1", date(2026, 1, 20), 30), [])

	def test_repeated_reads_are_identical(self):
		self._book("b-1", "11:00", "11:30")

		first = get_available_slots(self.store, "prof-1", MONDAY, 30)
		second = get_available_slots(self.store, "prof-1", MONDAY, 30)

		self.assertEqual(first, second)

	def test_slot_durations_exact(self):
		for duration in (10, 25, 40, 60):
			for slot in get_available_slots(self.store, "prof-1", MONDAY, duration):
				self.assertEqual(slot.interval.duration, duration)

	def test_invalid_inputs(self):
		with self.assertRaises(InvalidDuration):
			get_available_slots(self.store, "prof-1", MONDAY, 0)
		with self.assertRaises(InvalidTimeValue):
			get_available_slots(self.store, "prof-1", "2026-02-31", 30)

	def test_range(self):
		"""Test a two-week range keeps only days with slots."""
		self._book("b-1", "09:00", "09:30", booking_date=date(2026, 1, 26))

		result = get_slots_for_range(self.store, "prof-1", "2026-01-18", "2026-01-31", 30)

		self.assertEqual(list(result.keys()), ["2026-01-19", "2026-01-26"])
		self.assertFalse(result["2026-01-26"][0].available)
		self.assertTrue(result["2026-01-19"][0].available)

	def test_slot_as_dict(self):
		slot = get_available_slots(self.store, "prof-1", MONDAY, 30)[0]

		self.assertEqual(slot.as_dict(), {"start_time": "09:00", "end_time": "09:30", "available": True})
