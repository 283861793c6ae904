"""
Booking Domain Events

Events emitted after a booking mutation commits. Delivery belongs to the
sink (realtime updates, notification scheduling); the core never depends
on it succeeding.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from datetime import date
from typing import Any, ClassVar, Dict, List, Optional

from .timegrid import TimeOfDay


@dataclass(frozen=True)
class BookingEvent:
	name: ClassVar[str] = "booking:event"

	booking_id: str
	tenant_id: str
	professional_id: str
	date: date

	def as_dict(self) -> Dict[str, Any]:
		payload = {"event": self.name}
		for f in fields(self):
			value = getattr(self, f.name)
			if isinstance(value, date):
				value = value.isoformat()
			elif isinstance(value, TimeOfDay):
				value = value.format()
			payload[f.name] = value
		return payload


@dataclass(frozen=True)
class BookingCreated(BookingEvent):
	name: ClassVar[str] = "booking:created"

	start_time: TimeOfDay
	end_time: TimeOfDay


@dataclass(frozen=True)
class BookingConfirmed(BookingEvent):
	name: ClassVar[str] = "booking:confirmed"


@dataclass(frozen=True)
class BookingCancelled(BookingEvent):
	name: ClassVar[str] = "booking:cancelled"

	start_time: TimeOfDay
	end_time: TimeOfDay
	reason: Optional[str] = None


@dataclass(frozen=True)
class BookingRescheduled(BookingEvent):
	"""date/start/end son los nuevos valores; old_* los anteriores."""

	name: ClassVar[str] = "booking:rescheduled"

	start_time: TimeOfDay
	end_time: TimeOfDay
	old_date: date
	old_start_time: TimeOfDay
	old_end_time: TimeOfDay


@dataclass(frozen=True)
class BookingStatusChanged(BookingEvent):
	"""Completada o no-show."""

	name: ClassVar[str] = "booking:updated"

	status: str


class EventSink(ABC):
	"""Destino de los eventos de dominio."""

	@abstractmethod
	def publish(self, event: BookingEvent) -> None:
		pass


class NullEventSink(EventSink):
	def publish(self, event: BookingEvent) -> None:
		pass


class RecordingEventSink(EventSink):
	"""Guarda los eventos en memoria (tests y despliegues embebidos)."""

	def __init__(self):
		self.events: List[BookingEvent] = []

	def publish(self, event: BookingEvent) -> None:
		self.events.append(event)

	def of_type(self, event_type: type) -> List[BookingEvent]:
		return [e for e in self.events if isinstance(e, event_type)]


def publish_event(sink: Optional[EventSink], event: BookingEvent, logger) -> None:
	"""
	Publica un evento sin propagar fallos del sink.

	La mutación ya está commiteada: un fallo de entrega solo se registra.
	"""
	if sink is None:
		return

	try:
		sink.publish(event)
	except Exception as e:
		logger.error(f"Failed to publish {event.name} for booking {event.booking_id}: {str(e)}")
