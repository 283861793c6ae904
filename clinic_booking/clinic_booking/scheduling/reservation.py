"""
Booking Reservation Transaction

Admits a new booking only if its interval does not overlap any active
booking of the professional on that date (and, when the policy asks for
it, only if it lies inside an availability window). The check and the
insert run inside one unit of work of the store, which is the only
serialisation point for a (professional, date).
"""

from datetime import date
from typing import Optional, Union

from .availability import resolve_day_windows
from .clock import TenantClock
from .events import BookingCreated, EventSink, publish_event
from .exceptions import OutsideAvailability, ServiceNotFound, SlotConflict
from .models import Booking, BookingStatus, PaymentStatus, VisitType
from .overlap import find_overlapping
from .timegrid import TimeInterval, TimeValue, add_minutes, parse_date, to_time_of_day


def reserve(
	store,
	professional_id: str,
	service_id: str,
	booking_date: Union[date, str],
	start_time: TimeValue,
	end_time: Optional[TimeValue] = None,
	client_ref: Optional[str] = None,
	*,
	tenant_id: str,
	enforce_availability: bool = True,
	visit_type: Union[VisitType, str] = VisitType.IN_PERSON,
	notes: Optional[str] = None,
	sink: Optional[EventSink] = None,
	clock: Optional[TenantClock] = None
) -> Booking:
	"""
	Reserva un intervalo para un profesional.

	Args:
		store: BookingStore
		professional_id: id del profesional
		service_id: id del servicio (aporta precio y, si falta end_time, la duración)
		booking_date: fecha (date o string YYYY-MM-DD)
		start_time / end_time: horas locales del tenant ("HH:MM", time, ...)
		client_ref: id del cliente (None para reservas sin cliente registrado)
		tenant_id: clínica dueña de la reserva
		enforce_availability: exigir que caiga dentro de una ventana
		sink: destino del evento BookingCreated
		clock: reloj del tenant (created_at)

	Returns:
		Booking: la reserva commiteada, status=pending

	Raises:
		InvalidTimeValue: horas/fecha mal formadas (antes de tocar el store)
		ServiceNotFound: servicio inexistente o inactivo
		SlotConflict: el intervalo se solapa con una reserva activa
		OutsideAvailability: fuera de disponibilidad con enforce_availability
		TransactionFailed: fallo transitorio del store; se puede reintentar

	Algoritmo:
		1. Validar entradas
		2. Abrir unidad de trabajo (exclusión mutua por profesional/fecha)
		3. Leer reservas activas y comprobar solapamiento
		4. Si aplica, comprobar que cae dentro de alguna ventana
		5. Insertar con status=pending y commit
		6. Publicar BookingCreated (fuera de la transacción)
	"""
	booking_date = parse_date(booking_date)
	start = to_time_of_day(start_time)
	visit_type = VisitType(visit_type)
	# Con end_time explícito el intervalo se valida antes de tocar el store
	interval = None if end_time is None else TimeInterval(start, to_time_of_day(end_time))

	service = store.get_service(service_id)
	if service is None or not service.is_active:
		raise ServiceNotFound(f"Service {service_id} not found")

	if interval is None:
		interval = TimeInterval(start, add_minutes(start, service.duration_minutes))

	clock = clock or TenantClock()
	logger = store.logger

	with store.unit_of_work(professional_id, booking_date):
		existing = store.get_active_bookings(professional_id, booking_date)
		conflicts = find_overlapping(existing, interval)

		if conflicts:
			logger.info(
				f"Slot conflict for {professional_id} on {booking_date} {interval}: "
				f"{[b.id for b in conflicts]}"
			)
			raise SlotConflict(
				f"{interval} on {booking_date} is no longer available",
				conflicting_bookings=[b.id for b in conflicts],
			)

		if enforce_availability:
			windows = resolve_day_windows(store, professional_id, booking_date) or []
			if not any(window.contains(interval) for window in windows):
				raise OutsideAvailability(
					f"{interval} on {booking_date} is outside the professional's availability"
				)

		booking = store.insert_booking(Booking(
			id=store.new_booking_id(),
			tenant_id=tenant_id,
			professional_id=professional_id,
			service_id=service.id,
			client_id=client_ref,
			date=booking_date,
			start_time=interval.start,
			end_time=interval.end,
			status=BookingStatus.PENDING,
			payment_status=PaymentStatus.PENDING,
			visit_type=visit_type,
			notes=notes,
			total_amount=service.price,
			currency=service.currency,
			created_at=clock.now(),
		))

	logger.info(f"Booking {booking.id} reserved for {professional_id} on {booking_date} {interval}")

	publish_event(sink, BookingCreated(
		booking_id=booking.id,
		tenant_id=booking.tenant_id,
		professional_id=booking.professional_id,
		date=booking.date,
		start_time=booking.start_time,
		end_time=booking.end_time,
	), logger)

	return booking
