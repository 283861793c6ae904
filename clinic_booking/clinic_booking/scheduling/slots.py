"""
Slot Generation Service

Generates discrete time slots for UI display, considering:
- Effective availability (weekly rules and exceptions)
- Existing non-cancelled bookings
"""

from datetime import date, timedelta
from typing import Dict, List, Union

from .availability import generate_slots, resolve_day_windows
from .models import Slot
from .overlap import active_intervals, mark_availability
from .timegrid import parse_date


def get_available_slots(
	store,
	professional_id: str,
	target_date: Union[date, str],
	duration_minutes: int
) -> List[Slot]:
	"""
	Genera los slots de un profesional para una fecha.

	Args:
		store: BookingStore
		professional_id: id del profesional
		target_date: fecha (date o string YYYY-MM-DD)
		duration_minutes: duración del servicio

	Returns:
		list[Slot]: ordenados, cada uno con su marca available

	Algoritmo:
		1. Resolver ventanas del día (None si bloqueado -> [])
		2. Generar slots discretos cada duration_minutes
		3. Marcar los que se solapan con reservas no canceladas
	"""
	target_date = parse_date(target_date)

	# Valida la duración antes de tocar el store
	candidates = generate_slots([], duration_minutes)

	windows = resolve_day_windows(store, professional_id, target_date)
	if not windows:
		return list(candidates)

	candidates = generate_slots(windows, duration_minutes)
	bookings = store.get_active_bookings(professional_id, target_date)

	return mark_availability(candidates, active_intervals(bookings))


def get_slots_for_range(
	store,
	professional_id: str,
	start_date: Union[date, str],
	end_date: Union[date, str],
	duration_minutes: int
) -> Dict[str, List[Slot]]:
	"""
	Genera slots para un rango de fechas.

	Returns:
		dict: {"2026-01-19": [Slot, ...], ...} solo con días que tienen slots
	"""
	start_date = parse_date(start_date)
	end_date = parse_date(end_date)

	result = {}
	current_date = start_date

	while current_date <= end_date:
		slots = get_available_slots(store, professional_id, current_date, duration_minutes)
		if slots:
			result[current_date.isoformat()] = slots
		current_date += timedelta(days=1)

	return result
