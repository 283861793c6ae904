"""
Tenant Clock

Wall-clock "now" in the tenant's configured timezone. Slot and conflict
math never uses it; the lifecycle does, to know whether an appointment
has started and which reminders would still be in the future.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

import pytz

from .timegrid import TimeOfDay

DEFAULT_REMINDER_HOURS = (24, 1)


class TenantClock:
	"""
	Reloj localizado a la zona horaria del tenant.

	Args:
		timezone: nombre IANA (p. ej. "America/Bogota"); inválido -> UTC
		now: instante fijo (naive = UTC) para tests o replays
	"""

	def __init__(self, timezone: str = "UTC", now: Optional[datetime] = None):
		try:
			self.tz = pytz.timezone(timezone or "UTC")
		except pytz.UnknownTimeZoneError:
			self.tz = pytz.UTC
		self._fixed_now = now

	def now(self) -> datetime:
		if self._fixed_now is None:
			return datetime.now(pytz.UTC).astimezone(self.tz)

		fixed = self._fixed_now
		if fixed.tzinfo is None:
			fixed = pytz.UTC.localize(fixed)
		return fixed.astimezone(self.tz)

	def localize(self, target_date: date, time_of_day: TimeOfDay) -> datetime:
		"""Combina fecha y hora locales del tenant en un datetime aware."""
		return self.tz.localize(datetime.combine(target_date, time_of_day.to_time()))

	def has_started(self, target_date: date, start_time: TimeOfDay) -> bool:
		return self.localize(target_date, start_time) <= self.now()

	def reminder_times(
		self,
		target_date: date,
		start_time: TimeOfDay,
		reminder_hours: Iterable[int] = DEFAULT_REMINDER_HOURS
	) -> List[Tuple[int, datetime]]:
		"""
		Recordatorios que todavía estarían en el futuro.

		Returns:
			list: [(horas_antes, momento_del_recordatorio), ...] ordenados
		"""
		appointment_time = self.localize(target_date, start_time)
		current_time = self.now()

		reminders = []
		for hours in reminder_hours:
			reminder_time = appointment_time - timedelta(hours=hours)
			if reminder_time > current_time:
				reminders.append((hours, reminder_time))

		return sorted(reminders, key=lambda r: r[1])
