"""
Booking Store Factory

Factory pattern to get the store for a deployment target.
"""

from .base import BookingStore


def get_store(backend: str = "frappe") -> BookingStore:
	"""
	Factory para obtener el store correcto según backend.

	Args:
		backend: "frappe" (base de datos del site, multi-instancia) o
			"memory" (lock en proceso, una sola instancia)

	Returns:
		BookingStore: instancia del store

	Raises:
		ValueError: si el backend no es soportado
	"""
	if backend == "frappe":
		from .frappe_store import FrappeBookingStore
		return FrappeBookingStore()
	elif backend == "memory":
		from .memory import MemoryBookingStore
		return MemoryBookingStore()
	else:
		raise ValueError(f"Unsupported store backend: {backend}")
