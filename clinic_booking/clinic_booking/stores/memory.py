"""
In-Process Booking Store

Keeps rules, exceptions, services and bookings in memory. Mutual exclusion
is a keyed threading.Lock per (professional_id, date), so it is only valid
for single-process deployments and for tests.
"""

import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional, Tuple

from clinic_booking.clinic_booking.scheduling.models import (
	Booking,
	DateException,
	Service,
	WeeklyRule,
)
from .base import BookingStore

LockKey = Tuple[str, date]


class _UnitOfWork:
	"""Registro de escrituras para poder deshacerlas si el bloque falla."""

	def __init__(self, keys: List[LockKey]):
		self.keys = keys
		# booking_id -> copia original (None si fue insertada en esta unidad)
		self.undo: Dict[str, Optional[Booking]] = {}


class MemoryBookingStore(BookingStore):
	"""Store transaccional en memoria."""

	def __init__(self):
		self._rules: List[WeeklyRule] = []
		self._exceptions: Dict[LockKey, DateException] = {}
		self._services: Dict[str, Service] = {}
		self._bookings: Dict[str, Booking] = {}

		self._data_lock = threading.RLock()
		self._registry_lock = threading.Lock()
		# clave -> [lock, unidades que lo usan o esperan]; se borra al llegar a 0
		self._key_locks: Dict[LockKey, list] = {}
		self._local = threading.local()

	# ===== CONFIGURATION =====

	def add_rule(self, rule: WeeklyRule) -> WeeklyRule:
		with self._data_lock:
			self._rules.append(rule)
		return rule

	def set_exception(self, exception: DateException) -> DateException:
		"""Crea o reemplaza la excepción de (profesional, fecha)."""
		with self._data_lock:
			self._exceptions[(exception.professional_id, exception.date)] = exception
		return exception

	def remove_exception(self, professional_id: str, target_date: date) -> None:
		with self._data_lock:
			self._exceptions.pop((professional_id, target_date), None)

	def add_service(self, service: Service) -> Service:
		with self._data_lock:
			self._services[service.id] = service
		return service

	def all_bookings(self) -> List[Booking]:
		with self._data_lock:
			return [b.copy() for b in self._bookings.values()]

	# ===== READS =====

	def get_weekly_rules(self, professional_id: str, day_of_week: int) -> List[WeeklyRule]:
		with self._data_lock:
			rules = [
				r for r in self._rules
				if r.professional_id == professional_id
				and r.day_of_week == day_of_week
				and r.is_active
			]
		return sorted(rules, key=lambda r: r.start_time)

	def get_date_exception(self, professional_id: str, target_date: date) -> Optional[DateException]:
		with self._data_lock:
			return self._exceptions.get((professional_id, target_date))

	def get_service(self, service_id: str) -> Optional[Service]:
		with self._data_lock:
			return self._services.get(service_id)

	def get_booking(self, booking_id: str, for_update: bool = False) -> Optional[Booking]:
		# for_update no hace falta aquí: las escrituras ya están serializadas por clave
		with self._data_lock:
			booking = self._bookings.get(booking_id)
			return booking.copy() if booking else None

	def get_active_bookings(self, professional_id: str, target_date: date) -> List[Booking]:
		with self._data_lock:
			bookings = [
				b.copy() for b in self._bookings.values()
				if b.professional_id == professional_id
				and b.date == target_date
				and b.is_active
			]
		return sorted(bookings, key=lambda b: b.start_time)

	# ===== UNIT OF WORK =====

	def _retain_locks(self, keys: List[LockKey]) -> List[threading.Lock]:
		with self._registry_lock:
			locks = []
			for key in keys:
				entry = self._key_locks.setdefault(key, [threading.Lock(), 0])
				entry[1] += 1
				locks.append(entry[0])
		return locks

	def _release_locks(self, keys: List[LockKey]) -> None:
		with self._registry_lock:
			for key in keys:
				entry = self._key_locks[key]
				entry[1] -= 1
				if entry[1] == 0:
					del self._key_locks[key]

	@contextmanager
	def unit_of_work(self, professional_id: str, *dates: date) -> Iterator["MemoryBookingStore"]:
		if getattr(self._local, "unit", None) is not None:
			raise RuntimeError("Nested units of work are not supported")

		# Orden fijo de adquisición para evitar deadlocks entre fechas
		keys = sorted({(professional_id, d) for d in dates}, key=lambda k: k[1])
		locks = self._retain_locks(keys)

		for lock in locks:
			lock.acquire()

		unit = _UnitOfWork(keys)
		self._local.unit = unit
		try:
			yield self
		except BaseException:
			self._rollback(unit)
			self.logger.info(f"Rolled back unit of work for {professional_id} {[str(d) for d in dates]}")
			raise
		finally:
			self._local.unit = None
			for lock in reversed(locks):
				lock.release()
			self._release_locks(keys)

	def _rollback(self, unit: _UnitOfWork) -> None:
		with self._data_lock:
			for booking_id, original in unit.undo.items():
				if original is None:
					self._bookings.pop(booking_id, None)
				else:
					self._bookings[booking_id] = original

	def _current_unit(self) -> _UnitOfWork:
		unit = getattr(self._local, "unit", None)
		if unit is None:
			raise RuntimeError("Booking writes must run inside unit_of_work()")
		return unit

	def _check_key(self, unit: _UnitOfWork, booking: Booking) -> None:
		if (booking.professional_id, booking.date) not in unit.keys:
			raise RuntimeError(
				f"Unit of work does not hold the lock for {booking.professional_id} on {booking.date}"
			)

	# ===== WRITES =====

	def insert_booking(self, booking: Booking) -> Booking:
		unit = self._current_unit()
		self._check_key(unit, booking)

		with self._data_lock:
			if booking.id in self._bookings:
				raise ValueError(f"Booking {booking.id} already exists")
			now = datetime.now()
			stored = booking.copy(created_at=booking.created_at or now, updated_at=now)
			unit.undo.setdefault(stored.id, None)
			self._bookings[stored.id] = stored

		return stored.copy()

	def update_booking(self, booking: Booking) -> Booking:
		unit = self._current_unit()
		self._check_key(unit, booking)

		with self._data_lock:
			original = self._bookings.get(booking.id)
			if original is None:
				raise KeyError(booking.id)
			unit.undo.setdefault(booking.id, original)
			stored = booking.copy(updated_at=datetime.now())
			self._bookings[stored.id] = stored

		return stored.copy()
