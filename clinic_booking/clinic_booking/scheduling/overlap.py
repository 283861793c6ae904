"""
Overlap Detection Service

Detects scheduling conflicts (overlaps) between slots or a requested
interval and the active bookings of a professional on a date.
Cancelled bookings never count.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import Booking, Slot
from .timegrid import TimeInterval, overlaps


def active_intervals(bookings: Iterable[Booking]) -> List[TimeInterval]:
	"""Intervalos ocupados por reservas no canceladas."""
	return [b.interval for b in bookings if b.is_active]


def mark_availability(slots: Iterable[Slot], booked_intervals: Sequence[TimeInterval]) -> List[Slot]:
	"""
	Marca cada slot como disponible o no según los intervalos ocupados.

	Función pura: mismas entradas, mismas marcas.

	Args:
		slots: slots candidatos
		booked_intervals: [start, end) de las reservas no canceladas

	Returns:
		list[Slot]: nuevos slots con available = no existe intervalo que solape
	"""
	marked = []
	for slot in slots:
		interval = slot.interval
		is_booked = any(overlaps(interval, booked) for booked in booked_intervals)
		marked.append(Slot(start_time=slot.start_time, end_time=slot.end_time, available=not is_booked))
	return marked


def find_overlapping(
	bookings: Iterable[Booking],
	interval: TimeInterval,
	exclude_booking: Optional[str] = None
) -> List[Booking]:
	"""
	Reservas activas que se solapan con el intervalo.

	Args:
		bookings: reservas del profesional en la fecha
		interval: intervalo a validar
		exclude_booking: id de la reserva a excluir (reprogramaciones)

	Returns:
		list[Booking]: reservas en conflicto, ordenadas por inicio
	"""
	conflicts = [
		b for b in bookings
		if b.is_active
		and b.id != exclude_booking
		and overlaps(b.interval, interval)
	]
	return sorted(conflicts, key=lambda b: b.start_time)


def check_overlap(
	bookings: Iterable[Booking],
	interval: TimeInterval,
	exclude_booking: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Detecta overlaps con reservas existentes.

	Returns:
		dict: {
			"has_overlap": bool,
			"overlapping_bookings": [list of booking ids]
		}
	"""
	conflicts = find_overlapping(bookings, interval, exclude_booking=exclude_booking)
	return {
		"has_overlap": bool(conflicts),
		"overlapping_bookings": [b.id for b in conflicts],
	}
