"""
Tests for scheduling/clock.py and scheduling/settings.py
"""

import unittest
from datetime import date, datetime

from clinic_booking.clinic_booking.scheduling.clock import TenantClock
from clinic_booking.clinic_booking.scheduling.settings import BookingSettings, ReservationOrigin
from clinic_booking.clinic_booking.scheduling.timegrid import TimeOfDay

MONDAY = date(2026, 1, 19)


class TestTenantClock(unittest.TestCase):
	"""Tests for timezone-aware now and reminders."""

	def test_fixed_now_is_utc(self):
		clock = TenantClock("America/Bogota", now=datetime(2026, 1, 19, 15, 0))

		now = clock.now()

		self.assertEqual((now.hour, now.minute), (10, 0))
		self.assertEqual(now.tzinfo.zone, "America/Bogota")

	def test_invalid_timezone_falls_back_to_utc(self):
		clock = TenantClock("Mars/Olympus_Mons", now=datetime(2026, 1, 19, 15, 0))

		self.assertEqual(clock.now().hour, 15)

	def test_has_started(self):
		clock = TenantClock("America/Bogota", now=datetime(2026, 1, 19, 15, 0))

		self.assertTrue(clock.has_started(MONDAY, TimeOfDay.parse("10:00")))
		self.assertFalse(clock.has_started(MONDAY, TimeOfDay.parse("10:01")))

	def test_reminder_times_only_future(self):
		"""Test that the 24h reminder is skipped for a same-day booking."""
		clock = TenantClock("America/Bogota", now=datetime(2026, 1, 19, 13, 0))

		reminders = clock.reminder_times(MONDAY, TimeOfDay.parse("11:00"), (24, 1))

		self.assertEqual([hours for hours, _ in reminders], [1])
		self.assertEqual(reminders[0][1].hour, 10)

	def test_reminder_times_sorted(self):
		clock = TenantClock("UTC", now=datetime(2026, 1, 10, 0, 0))

		reminders = clock.reminder_times(MONDAY, TimeOfDay.parse("09:00"), (1, 48, 24))

		self.assertEqual([hours for hours, _ in reminders], [48, 24, 1])


class TestBookingSettings(unittest.TestCase):
	"""Tests for the reservation policy defaults."""

	def test_defaults(self):
		settings = BookingSettings()

		self.assertTrue(settings.enforce_availability_for(ReservationOrigin.PUBLIC))
		self.assertFalse(settings.enforce_availability_for("staff"))
		self.assertEqual(settings.default_slot_minutes, 30)
		self.assertEqual(settings.reminder_hours, (24, 1))

	def test_staff_policy_configurable(self):
		settings = BookingSettings(enforce_availability_staff=True)

		self.assertTrue(settings.enforce_availability_for(ReservationOrigin.STAFF))
