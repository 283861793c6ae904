"""
Scheduling Domain Model

Plain value objects shared by the resolver, the conflict checker, the
reservation transaction and the stores.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import InvalidAvailabilityException, InvalidTimeValue
from .timegrid import TimeInterval, TimeOfDay

MIN_SERVICE_MINUTES = 5
MAX_SERVICE_MINUTES = 480


class BookingStatus(str, Enum):
	PENDING = "pending"
	CONFIRMED = "confirmed"
	COMPLETED = "completed"
	CANCELLED = "cancelled"
	NO_SHOW = "no_show"

	@property
	def is_terminal(self) -> bool:
		return self in TERMINAL_STATUSES

	@property
	def is_active(self) -> bool:
		# Solo las canceladas liberan el horario
		return self is not BookingStatus.CANCELLED


TERMINAL_STATUSES = frozenset({
	BookingStatus.COMPLETED,
	BookingStatus.CANCELLED,
	BookingStatus.NO_SHOW,
})


class PaymentStatus(str, Enum):
	"""Independiente de BookingStatus (p. ej. confirmada y pago pendiente en clínica)."""

	PENDING = "pending"
	COMPLETED = "completed"
	FAILED = "failed"
	REFUNDED = "refunded"


class VisitType(str, Enum):
	IN_PERSON = "in_person"
	VIRTUAL = "virtual"


@dataclass(frozen=True)
class WeeklyRule:
	professional_id: str
	day_of_week: int
	start_time: TimeOfDay
	end_time: TimeOfDay
	is_active: bool = True
	name: Optional[str] = None

	def __post_init__(self):
		if not 0 <= self.day_of_week <= 6:
			raise InvalidTimeValue(f"day_of_week must be in [0, 6], got {self.day_of_week}")
		# Valida start < end
		TimeInterval(self.start_time, self.end_time)

	@property
	def interval(self) -> TimeInterval:
		return TimeInterval(self.start_time, self.end_time)


@dataclass(frozen=True)
class DateException:
	professional_id: str
	date: date
	is_available: bool
	start_time: Optional[TimeOfDay] = None
	end_time: Optional[TimeOfDay] = None
	reason: Optional[str] = None

	@property
	def has_override(self) -> bool:
		return self.start_time is not None or self.end_time is not None

	def override_interval(self) -> Optional[TimeInterval]:
		"""
		Ventana que reemplaza a las reglas semanales ese día.

		Returns:
			TimeInterval, o None si la excepción no trae horario

		Raises:
			InvalidAvailabilityException: si solo trae una hora o start >= end
		"""
		if not self.has_override:
			return None

		if self.start_time is None or self.end_time is None:
			raise InvalidAvailabilityException(
				f"Exception for {self.professional_id} on {self.date} needs both start and end time"
			)

		if self.start_time >= self.end_time:
			raise InvalidAvailabilityException(
				f"Exception for {self.professional_id} on {self.date}: "
				f"start ({self.start_time}) must be before end ({self.end_time})"
			)

		return TimeInterval(self.start_time, self.end_time)


@dataclass(frozen=True)
class Service:
	id: str
	duration_minutes: int
	name: Optional[str] = None
	price: Decimal = Decimal("0")
	currency: str = "USD"
	is_active: bool = True


@dataclass(frozen=True)
class Slot:
	start_time: TimeOfDay
	end_time: TimeOfDay
	available: bool = True

	@property
	def interval(self) -> TimeInterval:
		return TimeInterval(self.start_time, self.end_time)

	def as_dict(self) -> Dict[str, Any]:
		return {
			"start_time": self.start_time.format(),
			"end_time": self.end_time.format(),
			"available": self.available,
		}


@dataclass
class Booking:
	id: str
	tenant_id: str
	professional_id: str
	service_id: str
	client_id: Optional[str]
	date: date
	start_time: TimeOfDay
	end_time: TimeOfDay
	status: BookingStatus = BookingStatus.PENDING
	payment_status: PaymentStatus = PaymentStatus.PENDING
	visit_type: VisitType = VisitType.IN_PERSON
	notes: Optional[str] = None
	total_amount: Decimal = Decimal("0")
	currency: str = "USD"
	cancelled_at: Optional[datetime] = None
	cancelled_by: Optional[str] = None
	cancellation_reason: Optional[str] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	extra: Dict[str, Any] = field(default_factory=dict)

	@property
	def interval(self) -> TimeInterval:
		return TimeInterval(self.start_time, self.end_time)

	@property
	def is_active(self) -> bool:
		return self.status.is_active

	def copy(self, **changes) -> "Booking":
		return replace(self, extra=dict(self.extra), **changes)

	def as_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"tenant_id": self.tenant_id,
			"professional_id": self.professional_id,
			"service_id": self.service_id,
			"client_id": self.client_id,
			"date": self.date.isoformat(),
			"start_time": self.start_time.format(),
			"end_time": self.end_time.format(),
			"status": self.status.value,
			"payment_status": self.payment_status.value,
			"visit_type": self.visit_type.value,
			"notes": self.notes,
			"total_amount": str(self.total_amount),
			"currency": self.currency,
			"cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
			"cancelled_by": self.cancelled_by,
			"cancellation_reason": self.cancellation_reason,
		}
