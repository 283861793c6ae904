"""
Availability Service

Resolves the bookable windows of a professional for a date, considering:
- Weekly rules (recurring blocks per day of week)
- Date exceptions (day off, or special hours overriding the rules)

and cuts those windows into fixed-duration slots.
"""

from datetime import date, timedelta
from typing import Dict, Iterator, List, Optional, Sequence, Union

from .exceptions import InvalidDuration
from .models import DateException, Slot, WeeklyRule
from .timegrid import TimeInterval, TimeOfDay, add_minutes, day_of_week, parse_date


def build_day_windows(
	rules: Sequence[WeeklyRule],
	exception: Optional[DateException] = None
) -> Optional[List[TimeInterval]]:
	"""
	Calcula las ventanas del día a partir de reglas y excepción.

	Args:
		rules: reglas semanales del profesional para ese día de la semana
		exception: excepción para esa fecha, si existe

	Returns:
		None si el día está bloqueado; si no, lista ordenada de ventanas
		(vacía si no hay reglas)

	Raises:
		InvalidAvailabilityException: si la excepción trae un override mal formado

	Algoritmo:
		1. Excepción con is_available=False -> None (bloqueado todo el día)
		2. Excepción con is_available=True y horario -> esa única ventana
		3. Si no, reglas activas del día, merge de las contiguas/solapadas
	"""
	if exception is not None:
		if not exception.is_available:
			return None

		override = exception.override_interval()
		if override is not None:
			return [override]

	intervals = [rule.interval for rule in rules if rule.is_active]
	return _merge_intervals(intervals)


def resolve_day_windows(
	store,
	professional_id: str,
	target_date: Union[date, str]
) -> Optional[List[TimeInterval]]:
	"""
	Obtiene las ventanas de disponibilidad de un profesional para una fecha.

	Args:
		store: BookingStore
		professional_id: id del profesional
		target_date: fecha (date o string YYYY-MM-DD)

	Returns:
		None si el profesional está bloqueado ese día; lista de ventanas si no
	"""
	target_date = parse_date(target_date)

	exception = store.get_date_exception(professional_id, target_date)
	if exception is not None and not exception.is_available:
		# Bloqueado: no hace falta leer las reglas
		return None

	rules = store.get_weekly_rules(professional_id, day_of_week(target_date))
	return build_day_windows(rules, exception)


def get_effective_availability(
	store,
	professional_id: str,
	start_date: Union[date, str],
	end_date: Union[date, str]
) -> Dict[str, List[TimeInterval]]:
	"""
	Obtiene disponibilidad efectiva para un rango de fechas.

	Returns:
		dict: {
			"2026-01-19": [TimeInterval, ...],
			...
		}
		Solo incluye los días con al menos una ventana.
	"""
	start_date = parse_date(start_date)
	end_date = parse_date(end_date)

	result = {}
	current_date = start_date

	while current_date <= end_date:
		windows = resolve_day_windows(store, professional_id, current_date)
		if windows:
			result[current_date.isoformat()] = windows
		current_date += timedelta(days=1)

	return result


def generate_slots(windows: Optional[Sequence[TimeInterval]], duration_minutes: int) -> Iterator[Slot]:
	"""
	Genera los slots candidatos de duración fija dentro de cada ventana.

	Un slot [t, t + duración) se produce mientras t + duración <= fin de la
	ventana (un slot que termina justo en el fin es válido). Nunca se
	produce un slot parcial al final.

	Args:
		windows: ventanas del día (None o vacío -> ningún slot)
		duration_minutes: duración del servicio

	Returns:
		iterador de Slot con available=True; se recalcula en cada llamada

	Raises:
		InvalidDuration: si duration_minutes <= 0 (al llamar, no al iterar)
	"""
	if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
		raise InvalidDuration(f"Slot duration must be a positive number of minutes, got {duration_minutes!r}")

	return _iter_slots(list(windows or []), duration_minutes)


def _iter_slots(windows: List[TimeInterval], duration_minutes: int) -> Iterator[Slot]:
	for window in windows:
		current = window.start.minutes
		while current + duration_minutes <= window.end.minutes:
			start = TimeOfDay(current)
			yield Slot(start_time=start, end_time=add_minutes(start, duration_minutes))
			current += duration_minutes


def _merge_intervals(intervals: List[TimeInterval]) -> List[TimeInterval]:
	"""
	Une intervalos adyacentes o solapados.

	Args:
		intervals: lista de TimeInterval

	Returns:
		list: intervalos merged, ordenados por inicio
	"""
	if not intervals:
		return []

	intervals = sorted(intervals)
	merged = [intervals[0]]

	for current in intervals[1:]:
		last_merged = merged[-1]

		# Si current se solapa o es adyacente a last_merged, merge
		if current.start <= last_merged.end:
			if current.end > last_merged.end:
				merged[-1] = TimeInterval(last_merged.start, current.end)
		else:
			merged.append(current)

	return merged
