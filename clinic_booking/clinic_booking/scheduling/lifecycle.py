"""
Booking Lifecycle State Machine

Valid status transitions of a booking and reschedule semantics:

	pending --confirm--> confirmed --complete--> completed
	   |                    |      --no_show---> no_show
	   +------cancel--------+----> cancelled

completed, cancelled and no_show are terminal. Rescheduling moves a
pending/confirmed booking to a free interval and resets it to pending.
"""

from contextlib import contextmanager
from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, Iterator, Optional, Tuple, Union

from .availability import resolve_day_windows
from .clock import TenantClock
from .events import (
	BookingCancelled,
	BookingConfirmed,
	BookingEvent,
	BookingRescheduled,
	BookingStatusChanged,
	EventSink,
	publish_event,
)
from .exceptions import (
	BookingNotFound,
	InvalidStateTransition,
	OutsideAvailability,
	SlotConflict,
	TransactionFailed,
)
from .models import Booking, BookingStatus
from .overlap import find_overlapping
from .timegrid import TimeInterval, TimeValue, parse_date


class Action(str, Enum):
	CONFIRM = "confirm"
	CANCEL = "cancel"
	COMPLETE = "complete"
	NO_SHOW = "no_show"


# action -> (estados de origen permitidos, estado destino)
TRANSITIONS: Dict[Action, Tuple[FrozenSet[BookingStatus], BookingStatus]] = {
	Action.CONFIRM: (frozenset({BookingStatus.PENDING}), BookingStatus.CONFIRMED),
	Action.CANCEL: (frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED}), BookingStatus.CANCELLED),
	Action.COMPLETE: (frozenset({BookingStatus.CONFIRMED}), BookingStatus.COMPLETED),
	Action.NO_SHOW: (frozenset({BookingStatus.CONFIRMED}), BookingStatus.NO_SHOW),
}

# Acciones que solo tienen sentido una vez empezada la cita
POST_APPOINTMENT_ACTIONS = frozenset({Action.COMPLETE, Action.NO_SHOW})

RESCHEDULABLE = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

# Reintentos cuando la reserva cambia de fecha entre la lectura y el lock
LOCK_ATTEMPTS = 3


def next_status(current: BookingStatus, action: Union[Action, str]) -> BookingStatus:
	"""
	Estado destino de aplicar una acción.

	Raises:
		InvalidStateTransition: si la acción no está permitida desde current
	"""
	try:
		action = Action(action)
	except ValueError:
		raise InvalidStateTransition(f"Unknown action: {action!r}", current_status=current.value)

	allowed_from, target = TRANSITIONS[action]
	if current not in allowed_from:
		raise InvalidStateTransition(
			f"Cannot {action.value} a booking in status '{current.value}'",
			current_status=current.value,
			action=action.value,
		)
	return target


def get_booking(store, booking_id: str, tenant_id: Optional[str] = None, for_update: bool = False) -> Booking:
	"""
	Obtiene una reserva, aislada por tenant si se indica.

	Raises:
		BookingNotFound: si no existe o es de otro tenant
	"""
	booking = store.get_booking(booking_id, for_update=for_update)
	if booking is None or (tenant_id is not None and booking.tenant_id != tenant_id):
		raise BookingNotFound(f"Booking {booking_id} not found")
	return booking


@contextmanager
def _locked_booking(store, booking_id: str, tenant_id: Optional[str], *extra_dates: date) -> Iterator[Booking]:
	"""
	Abre una unidad de trabajo sobre la fecha actual de la reserva (más
	extra_dates) y entrega la reserva releída bajo el lock.

	Si otra request la movió de fecha o de profesional entre la lectura y el
	lock, se suelta y se vuelve a intentar con la clave nueva.

	Raises:
		BookingNotFound, TransactionFailed
	"""
	for _attempt in range(LOCK_ATTEMPTS):
		booking = get_booking(store, booking_id, tenant_id=tenant_id)

		with store.unit_of_work(booking.professional_id, booking.date, *extra_dates):
			current = get_booking(store, booking_id, tenant_id=tenant_id, for_update=True)
			if (current.professional_id, current.date) == (booking.professional_id, booking.date):
				yield current
				return

		store.logger.info(
			f"Booking {booking_id} moved from {booking.date} to {current.date} while locking, retrying"
		)

	raise TransactionFailed(f"Booking {booking_id} kept moving while acquiring its lock")


def transition(
	store,
	booking_id: str,
	action: Union[Action, str],
	*,
	actor: Optional[str] = None,
	reason: Optional[str] = None,
	tenant_id: Optional[str] = None,
	clock: Optional[TenantClock] = None,
	sink: Optional[EventSink] = None
) -> Booking:
	"""
	Aplica una acción de estado a una reserva.

	Args:
		store: BookingStore
		booking_id: id de la reserva
		action: confirm | cancel | complete | no_show
		actor: usuario que ejecuta la acción (cancelled_by)
		reason: motivo de cancelación
		tenant_id: aislamiento por clínica
		clock: reloj del tenant (cancelled_at, guardas post-cita)
		sink: destino del evento

	Returns:
		Booking: la reserva actualizada

	Raises:
		BookingNotFound, InvalidStateTransition, TransactionFailed
	"""
	clock = clock or TenantClock()
	logger = store.logger

	# Releída bajo el lock: otra request pudo cambiar el estado
	with _locked_booking(store, booking_id, tenant_id) as current:
		target = next_status(current.status, action)
		action = Action(action)

		if action in POST_APPOINTMENT_ACTIONS and not clock.has_started(current.date, current.start_time):
			raise InvalidStateTransition(
				f"Cannot {action.value} booking {booking_id} before its start time",
				current_status=current.status.value,
				action=action.value,
			)

		changes = {"status": target}
		if target is BookingStatus.CANCELLED:
			changes.update(
				cancelled_at=clock.now(),
				cancelled_by=actor,
				cancellation_reason=reason,
			)

		updated = store.update_booking(current.copy(**changes))

	logger.info(f"Booking {booking_id}: {current.status.value} -> {updated.status.value}")
	publish_event(sink, _event_for(updated, action, reason), logger)

	return updated


def reschedule(
	store,
	booking_id: str,
	new_date: Union[date, str],
	new_start: TimeValue,
	new_end: TimeValue,
	*,
	tenant_id: Optional[str] = None,
	enforce_availability: bool = False,
	sink: Optional[EventSink] = None
) -> Booking:
	"""
	Mueve una reserva a otra fecha/horario.

	Algoritmo:
		1. Validar el nuevo intervalo (antes de tocar el store)
		2. Unidad de trabajo sobre la fecha vieja y la nueva
		3. Releer la reserva; solo pending/confirmed se pueden mover
		4. Conflict check en la nueva fecha excluyendo la propia reserva
		5. Actualizar fecha/horas y volver a pending (requiere re-confirmar)
		6. Publicar BookingRescheduled

	Raises:
		InvalidTimeValue, BookingNotFound, InvalidStateTransition,
		SlotConflict, OutsideAvailability, TransactionFailed
	"""
	new_date = parse_date(new_date)
	interval = TimeInterval.from_values(new_start, new_end)

	logger = store.logger

	with _locked_booking(store, booking_id, tenant_id, new_date) as current:

		if current.status not in RESCHEDULABLE:
			raise InvalidStateTransition(
				f"Cannot reschedule a booking in status '{current.status.value}'",
				current_status=current.status.value,
				action="reschedule",
			)

		others = store.get_active_bookings(current.professional_id, new_date)
		conflicts = find_overlapping(others, interval, exclude_booking=current.id)
		if conflicts:
			raise SlotConflict(
				f"{interval} on {new_date} is no longer available",
				conflicting_bookings=[b.id for b in conflicts],
			)

		if enforce_availability:
			windows = resolve_day_windows(store, current.professional_id, new_date) or []
			if not any(window.contains(interval) for window in windows):
				raise OutsideAvailability(
					f"{interval} on {new_date} is outside the professional's availability"
				)

		updated = store.update_booking(current.copy(
			date=new_date,
			start_time=interval.start,
			end_time=interval.end,
			status=BookingStatus.PENDING,
		))

	logger.info(
		f"Booking {booking_id} rescheduled from {current.date} {current.interval} "
		f"to {updated.date} {updated.interval}"
	)

	publish_event(sink, BookingRescheduled(
		booking_id=updated.id,
		tenant_id=updated.tenant_id,
		professional_id=updated.professional_id,
		date=updated.date,
		start_time=updated.start_time,
		end_time=updated.end_time,
		old_date=current.date,
		old_start_time=current.start_time,
		old_end_time=current.end_time,
	), logger)

	return updated


def _event_for(booking: Booking, action: Action, reason: Optional[str]) -> BookingEvent:
	common = {
		"booking_id": booking.id,
		"tenant_id": booking.tenant_id,
		"professional_id": booking.professional_id,
		"date": booking.date,
	}

	if action is Action.CONFIRM:
		return BookingConfirmed(**common)
	elif action is Action.CANCEL:
		return BookingCancelled(
			start_time=booking.start_time,
			end_time=booking.end_time,
			reason=reason,
			**common
		)
	else:
		return BookingStatusChanged(status=booking.status.value, **common)
