"""
Base Booking Store

Defines the interface that every persistence backend of the scheduling
core must implement.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from typing import List, Optional

from clinic_booking.clinic_booking.scheduling.models import (
	Booking,
	DateException,
	Service,
	WeeklyRule,
)


class BookingStore(ABC):
	"""
	Interfaz base para stores de reservas.

	Las lecturas pueden hacerse fuera de una unidad de trabajo. Las escrituras
	(insert_booking, update_booking) solo dentro de unit_of_work().
	"""

	@property
	def logger(self) -> logging.Logger:
		"""Logger usado por el core para registrar commits y conflictos."""
		return logging.getLogger("clinic_booking")

	@abstractmethod
	def get_weekly_rules(self, professional_id: str, day_of_week: int) -> List[WeeklyRule]:
		"""Reglas semanales activas del profesional para ese día (0 = domingo)."""
		pass

	@abstractmethod
	def get_date_exception(self, professional_id: str, target_date: date) -> Optional[DateException]:
		"""Excepción del profesional para esa fecha (a lo sumo una)."""
		pass

	@abstractmethod
	def get_service(self, service_id: str) -> Optional[Service]:
		pass

	@abstractmethod
	def get_booking(self, booking_id: str, for_update: bool = False) -> Optional[Booking]:
		"""
		Obtiene una reserva.

		Args:
			booking_id: id de la reserva
			for_update: bloquear la fila hasta el fin de la unidad de trabajo
		"""
		pass

	@abstractmethod
	def get_active_bookings(self, professional_id: str, target_date: date) -> List[Booking]:
		"""
		Reservas no canceladas del profesional en esa fecha.

		Dentro de unit_of_work() el resultado no puede quedar obsoleto hasta el
		commit: ninguna otra unidad de trabajo sobre la misma clave puede
		insertar en paralelo.
		"""
		pass

	@abstractmethod
	def unit_of_work(self, professional_id: str, *dates: date) -> AbstractContextManager:
		"""
		Abre una unidad de trabajo atómica con exclusión mutua por
		(professional_id, fecha) para cada fecha dada.

		Todo o nada: si el bloque lanza una excepción no queda ningún cambio.
		Fallos transitorios del backend se propagan como TransactionFailed.
		"""
		pass

	@abstractmethod
	def insert_booking(self, booking: Booking) -> Booking:
		pass

	@abstractmethod
	def update_booking(self, booking: Booking) -> Booking:
		pass

	def new_booking_id(self) -> str:
		return str(uuid.uuid4())
