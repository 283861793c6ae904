"""
Tests for scheduling/overlap.py

Tests slot marking and conflict detection against active bookings.
"""

import unittest
from datetime import date

from clinic_booking.clinic_booking.scheduling.availability import generate_slots
from clinic_booking.clinic_booking.scheduling.models import Booking, BookingStatus
from clinic_booking.clinic_booking.scheduling.overlap import (
	active_intervals,
	check_overlap,
	find_overlapping,
	mark_availability,
)
from clinic_booking.clinic_booking.scheduling.timegrid import TimeInterval, TimeOfDay

MONDAY = date(2026, 1, 19)


def booking(booking_id, start, end, status=BookingStatus.PENDING):
	return Booking(
		id=booking_id,
		tenant_id="clinic-1",
		professional_id="prof-1",
		service_id="svc-30",
		client_id=None,
		date=MONDAY,
		start_time=TimeOfDay.parse(start),
		end_time=TimeOfDay.parse(end),
		status=status,
	)


class TestOverlap(unittest.TestCase):
	"""Tests for overlap detection functions."""

	def setUp(self):
		self.bookings = [
			booking("b-1", "10:00", "10:30", BookingStatus.CONFIRMED),
			booking("b-2", "11:00", "11:45"),
			booking("b-3", "09:00", "09:30", BookingStatus.CANCELLED),
		]

	def test_cancelled_bookings_do_not_count(self):
		intervals = active_intervals(self.bookings)

		self.assertEqual(intervals, [
			TimeInterval.from_values("10:00", "10:30"),
			TimeInterval.from_values("11:00", "11:45"),
		])

	def test_mark_availability(self):
		"""Test the 10:00 booking marks only its own slot, 11:00-11:45 marks two."""
		slots = generate_slots([TimeInterval.from_values("09:00", "12:00")], 30)

		marked = mark_availability(slots, active_intervals(self.bookings))

		self.assertEqual(
			[(s.start_time.format(), s.available) for s in marked],
			[
				("09:00", True),
				("09:30", True),
				("10:00", False),
				("10:30", True),
				("11:00", False),
				("11:30", False),
			],
		)

	def test_mark_availability_is_deterministic(self):
		windows = [TimeInterval.from_values("09:00", "12:00")]
		booked = active_intervals(self.bookings)

		first = mark_availability(generate_slots(windows, 15), booked)
		second = mark_availability(generate_slots(windows, 15), booked)

		self.assertEqual(first, second)

	def test_find_overlapping(self):
		conflicts = find_overlapping(self.bookings, TimeInterval.from_values("09:00", "11:15"))

		self.assertEqual([b.id for b in conflicts], ["b-1", "b-2"])

	def test_touching_interval_is_free(self):
		conflicts = find_overlapping(self.bookings, TimeInterval.from_values("10:30", "11:00"))

		self.assertEqual(conflicts, [])

	def test_exclude_booking(self):
		"""Test that a booking does not conflict with itself when rescheduled."""
		conflicts = find_overlapping(
			self.bookings,
			TimeInterval.from_values("10:15", "10:45"),
			exclude_booking="b-1",
		)

		self.assertEqual(conflicts, [])

	def test_check_overlap_summary(self):
		result = check_overlap(self.bookings, TimeInterval.from_values("11:30", "12:00"))

		self.assertTrue(result["has_overlap"])
		self.assertEqual(result["overlapping_bookings"], ["b-2"])

		result = check_overlap(self.bookings, TimeInterval.from_values("09:00", "09:30"))

		self.assertFalse(result["has_overlap"])
		self.assertEqual(result["overlapping_bookings"], [])
