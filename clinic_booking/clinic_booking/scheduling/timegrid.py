"""
Time Grid Model

Minute-resolution value types for wall-clock times and half-open
intervals. All arithmetic is integer; times are assumed to be already
localised to the tenant timezone.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Union

from .exceptions import InvalidTimeValue

MINUTES_PER_DAY = 1440

# Índice = day_of_week (0 = domingo)
WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?$")
_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


@dataclass(frozen=True, order=True)
class TimeOfDay:
	"""Minutos desde medianoche, en [0, 1440)."""

	minutes: int

	def __post_init__(self):
		if isinstance(self.minutes, bool) or not isinstance(self.minutes, int):
			raise InvalidTimeValue(f"Minutes must be an integer, got {self.minutes!r}")
		if not 0 <= self.minutes < MINUTES_PER_DAY:
			raise InvalidTimeValue(f"Time out of range: {self.minutes} minutes")

	@classmethod
	def of(cls, hour: int, minute: int = 0) -> "TimeOfDay":
		if not 0 <= minute < 60:
			raise InvalidTimeValue(f"Invalid minute: {minute}")
		return cls(hour * 60 + minute)

	@classmethod
	def parse(cls, value: str) -> "TimeOfDay":
		"""Parsea "HH:MM" o "HH:MM:SS" (los segundos se ignoran)."""
		match = _TIME_RE.match(str(value).strip())
		if not match:
			raise InvalidTimeValue(f"Invalid time format: {value!r}. Use HH:MM")
		hour, minute = int(match.group(1)), int(match.group(2))
		if hour > 23:
			raise InvalidTimeValue(f"Invalid hour: {hour}")
		return cls.of(hour, minute)

	@property
	def hour(self) -> int:
		return self.minutes // 60

	@property
	def minute(self) -> int:
		return self.minutes % 60

	def to_time(self) -> time:
		return time(self.hour, self.minute)

	def format(self) -> str:
		return f"{self.hour:02d}:{self.minute:02d}"

	def __str__(self) -> str:
		return self.format()


TimeValue = Union[TimeOfDay, time, timedelta, str]


def to_time_of_day(value: TimeValue) -> TimeOfDay:
	"""
	Convierte diferentes formatos de tiempo a TimeOfDay.

	Args:
		value: TimeOfDay, datetime.time, timedelta (desde medianoche, como
			devuelve MariaDB las columnas TIME) o string "HH:MM[:SS]"

	Returns:
		TimeOfDay

	Raises:
		InvalidTimeValue: si el valor no representa una hora del día válida
	"""
	if isinstance(value, TimeOfDay):
		return value
	elif isinstance(value, time):
		return TimeOfDay.of(value.hour, value.minute)
	elif isinstance(value, timedelta):
		total_seconds = int(value.total_seconds())
		if total_seconds < 0:
			raise InvalidTimeValue(f"Negative time: {value}")
		return TimeOfDay(total_seconds // 60)
	elif isinstance(value, str):
		return TimeOfDay.parse(value)
	else:
		raise InvalidTimeValue(f"Cannot convert {type(value).__name__} to time")


def add_minutes(value: TimeOfDay, minutes: int) -> TimeOfDay:
	"""Suma minutos; falla con InvalidTimeValue si el resultado sale del día."""
	return TimeOfDay(value.minutes + minutes)


def is_before(a: TimeOfDay, b: TimeOfDay) -> bool:
	return a.minutes < b.minutes


@dataclass(frozen=True, order=True)
class TimeInterval:
	"""Intervalo semiabierto [start, end) dentro de un mismo día."""

	start: TimeOfDay
	end: TimeOfDay

	def __post_init__(self):
		if not is_before(self.start, self.end):
			raise InvalidTimeValue(
				f"Start time ({self.start}) must be before end time ({self.end})"
			)

	@classmethod
	def from_values(cls, start: TimeValue, end: TimeValue) -> "TimeInterval":
		return cls(to_time_of_day(start), to_time_of_day(end))

	@property
	def duration(self) -> int:
		return self.end.minutes - self.start.minutes

	def contains(self, other: "TimeInterval") -> bool:
		return self.start <= other.start and other.end <= self.end

	def __str__(self) -> str:
		return f"{self.start}-{self.end}"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
	"""[s1, e1) y [s2, e2) se solapan sii s1 < e2 y s2 < e1."""
	return a.start.minutes < b.end.minutes and b.start.minutes < a.end.minutes


def parse_date(value: Union[date, datetime, str]) -> date:
	"""
	Normaliza una fecha (date, datetime o string YYYY-MM-DD).

	Raises:
		InvalidTimeValue: si el formato o los campos del calendario son inválidos
	"""
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value

	match = _DATE_RE.match(str(value).strip())
	if not match:
		raise InvalidTimeValue(f"Invalid date format: {value!r}. Use YYYY-MM-DD")

	try:
		return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
	except ValueError as e:
		raise InvalidTimeValue(f"Invalid date {value!r}: {e}") from e


def day_of_week(value: date) -> int:
	"""Día de la semana con 0 = domingo ... 6 = sábado."""
	return (value.weekday() + 1) % 7
