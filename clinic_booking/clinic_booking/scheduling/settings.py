"""
Booking Settings

Runtime options of the booking core. On a site they are loaded from the
"Clinic Booking Settings" single DocType (see
doctype/clinic_booking_settings); elsewhere the defaults apply.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .clock import DEFAULT_REMINDER_HOURS


class ReservationOrigin(str, Enum):
	PUBLIC = "public"
	STAFF = "staff"


@dataclass(frozen=True)
class BookingSettings:
	enforce_availability_public: bool = True
	enforce_availability_staff: bool = False
	default_slot_minutes: int = 30
	reminder_hours: Tuple[int, ...] = DEFAULT_REMINDER_HOURS
	publish_realtime: bool = True

	def enforce_availability_for(self, origin: ReservationOrigin) -> bool:
		"""
		Si la reserva debe caer dentro de una ventana de disponibilidad.

		Por defecto: sí para el flujo público, no para el personal de la
		clínica (puede reservar a cualquier hora).
		"""
		if ReservationOrigin(origin) is ReservationOrigin.STAFF:
			return self.enforce_availability_staff
		return self.enforce_availability_public
