"""
Scheduling Errors

Error taxonomy of the booking core. The API layer translates these into
Frappe exceptions (see api/booking_api.py).
"""

from typing import List, Optional


class BookingError(Exception):
	"""Base de todos los errores del motor de reservas."""
	pass


class InvalidTimeValue(BookingError):
	"""Hora fuera de [00:00, 24:00) o fecha con campos de calendario inválidos."""
	pass


class InvalidDuration(BookingError):
	"""Duración de slot menor o igual a cero."""
	pass


class InvalidAvailabilityException(BookingError):
	"""Excepción de disponibilidad con horario de override mal formado."""
	pass


class SlotConflict(BookingError):
	"""
	El intervalo pedido se solapa con una reserva activa.

	Es un error esperado: el cliente debe elegir otro horario o reintentar.
	"""

	def __init__(self, message: str, conflicting_bookings: Optional[List[str]] = None):
		super().__init__(message)
		self.conflicting_bookings = conflicting_bookings or []


class OutsideAvailability(SlotConflict):
	"""El intervalo pedido no cae dentro de ninguna ventana de disponibilidad."""
	pass


class InvalidStateTransition(BookingError):
	"""Transición de estado no permitida desde el estado actual."""

	def __init__(self, message: str, current_status: Optional[str] = None, action: Optional[str] = None):
		super().__init__(message)
		self.current_status = current_status
		self.action = action


class BookingNotFound(BookingError):
	"""La reserva no existe (o pertenece a otro tenant)."""
	pass


class ServiceNotFound(BookingError):
	"""El servicio no existe o está inactivo."""
	pass


class TransactionFailed(BookingError):
	"""
	Fallo transitorio del store (conexión, deadlock, lock timeout).

	Es seguro reintentar la operación completa desde el principio.
	"""
	pass
