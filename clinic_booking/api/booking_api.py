"""
Booking API Endpoints

Whitelisted functions for the public booking page and the clinic staff.
Public endpoints allow guest access with security protections:
- Rate limiting by IP address
- Honeypot validation for bot detection
- Input validation before any database access

Scheduling errors are translated into Frappe exceptions with an HTTP
status the frontend can act on (409 = pick another slot, 503 = retry).
"""

import frappe
from frappe import _
from typing import Any, Dict, List, Optional

from clinic_booking.clinic_booking import scheduling
from clinic_booking.clinic_booking.doctype.clinic.clinic import get_clinic_clock
from clinic_booking.clinic_booking.doctype.clinic_booking_settings.clinic_booking_settings import (
	get_booking_settings,
)
from clinic_booking.clinic_booking.notifications.booking import FrappeEventSink
from clinic_booking.clinic_booking.scheduling.exceptions import (
	BookingError,
	BookingNotFound,
	InvalidStateTransition,
	OutsideAvailability,
	ServiceNotFound,
	SlotConflict,
	TransactionFailed,
)
from clinic_booking.clinic_booking.scheduling.settings import ReservationOrigin
from clinic_booking.clinic_booking.stores.factory import get_store

from clinic_booking.api.shared import (
	check_honeypot,
	check_rate_limit,
	sanitize_string,
	validate_date_string,
	validate_docname,
	validate_time_string,
)


class SlotConflictError(frappe.ValidationError):
	http_status_code = 409


class InvalidTransitionError(frappe.ValidationError):
	http_status_code = 409


class BookingUnavailableError(frappe.ValidationError):
	http_status_code = 503


# ===================
# Helpers
# ===================

def _get_professional(professional: str) -> Dict[str, Any]:
	row = frappe.db.get_value(
		"Clinic Professional", professional, ["name", "clinic", "is_active"], as_dict=True
	)
	if not row or not row.is_active:
		frappe.throw(_("Professional '{0}' no existe").format(professional), frappe.DoesNotExistError)
	return row


def _get_service_duration(service: str, clinic: str) -> int:
	row = frappe.db.get_value(
		"Clinic Service", service, ["clinic", "duration_minutes", "is_active"], as_dict=True
	)
	if not row or not row.is_active or row.clinic != clinic:
		frappe.throw(_("Service '{0}' no existe").format(service), frappe.DoesNotExistError)
	return row.duration_minutes


def _resolve_duration(service: Optional[str], clinic: str) -> int:
	if service:
		return _get_service_duration(validate_docname(service, "service"), clinic)
	return get_booking_settings().default_slot_minutes


def _event_sink(clinic: str) -> FrappeEventSink:
	settings = get_booking_settings()
	return FrappeEventSink(
		publish_realtime=settings.publish_realtime,
		clock=get_clinic_clock(clinic),
		reminder_hours=settings.reminder_hours,
	)


def _require_staff_clinic(clinic: str) -> str:
	"""El personal solo opera sobre reservas de clínicas que puede leer."""
	clinic = validate_docname(clinic, "clinic")
	if not frappe.has_permission("Clinic", "read", clinic):
		frappe.throw(_("No tiene acceso a la clínica {0}").format(clinic), frappe.PermissionError)
	return clinic


def _throw_booking_error(e: BookingError) -> None:
	"""Traduce un error del motor de reservas a una excepción de Frappe."""
	if isinstance(e, OutsideAvailability):
		frappe.throw(_("El horario elegido está fuera de la disponibilidad del profesional"), SlotConflictError)
	elif isinstance(e, SlotConflict):
		frappe.throw(_("Este horario ya no está disponible, por favor elija otro"), SlotConflictError)
	elif isinstance(e, InvalidStateTransition):
		frappe.throw(_("Transición de estado no permitida: {0}").format(str(e)), InvalidTransitionError)
	elif isinstance(e, (BookingNotFound, ServiceNotFound)):
		frappe.throw(_("{0}").format(str(e)), frappe.DoesNotExistError)
	elif isinstance(e, TransactionFailed):
		frappe.throw(_("No se pudo completar la reserva, intente de nuevo"), BookingUnavailableError)
	else:
		frappe.throw(_("Datos inválidos: {0}").format(str(e)), frappe.ValidationError)


# ===================
# Slots (public)
# ===================

@frappe.whitelist(allow_guest=True, methods=['GET'])
def get_available_slots(professional: str, date: str, service: Optional[str] = None) -> List[Dict[str, Any]]:
	"""
	Obtiene los slots de un profesional para una fecha.

	Rate limited: 30 requests per minute per IP.

	Args:
		professional: nombre del Clinic Professional
		date: fecha (YYYY-MM-DD)
		service: Clinic Service (define la duración); si falta se usa
			default_slot_minutes de Clinic Booking Settings

	Returns:
		list[dict]: [{"start_time": "09:00", "end_time": "09:30", "available": True}, ...]

	Example:
		```javascript
		frappe.call({
			method: "clinic_booking.api.bookings.get_available_slots",
			args: {professional: "a1b2c3d4e5", date: "2026-01-19", service: "f6g7h8i9j0"},
			callback: function(r) {
				console.log(r.message);
			}
		});
		```
	"""
	check_rate_limit("get_available_slots")

	professional = validate_docname(professional, "professional")
	date = validate_date_string(date, "date")

	try:
		clinic = _get_professional(professional).clinic
		duration = _resolve_duration(service, clinic)

		slots = scheduling.get_available_slots(get_store(), professional, date, duration)
		return [slot.as_dict() for slot in slots]

	except BookingError as e:
		_throw_booking_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_available_slots: {str(e)}", "Booking API Error")
		frappe.throw(_("Error al obtener slots disponibles"))


@frappe.whitelist(allow_guest=True, methods=['GET'])
def get_slots_for_range(
	professional: str,
	from_date: str,
	to_date: str,
	service: Optional[str] = None
) -> Dict[str, List[Dict[str, Any]]]:
	"""
	Obtiene slots para un rango de fechas (máximo 31 días).

	Rate limited: 20 requests per minute per IP.

	Returns:
		dict: {"2026-01-19": [slot, ...], ...} solo con días que tienen slots
	"""
	check_rate_limit("get_slots_for_range")

	professional = validate_docname(professional, "professional")
	from_date = validate_date_string(from_date, "from_date")
	to_date = validate_date_string(to_date, "to_date")

	try:
		start_date = frappe.utils.getdate(from_date)
		end_date = frappe.utils.getdate(to_date)

		if start_date > end_date:
			frappe.throw(_("from_date debe ser menor o igual que to_date"))
		if frappe.utils.date_diff(end_date, start_date) > 31:
			frappe.throw(_("El rango no puede superar 31 días"))

		clinic = _get_professional(professional).clinic
		duration = _resolve_duration(service, clinic)

		by_day = scheduling.get_slots_for_range(get_store(), professional, start_date, end_date, duration)
		return {day: [slot.as_dict() for slot in slots] for day, slots in by_day.items()}

	except BookingError as e:
		_throw_booking_error(e)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in get_slots_for_range: {str(e)}", "Booking API Error")
		frappe.throw(_("Error al obtener slots disponibles"))


# ===================
# Reservations
# ===================

@frappe.whitelist(allow_guest=True, methods=['POST'])
def create_booking(
	professional: str,
	service: str,
	date: str,
	start_time: str,
	client: Optional[str] = None,
	visit_type: str = "in_person",
	notes: Optional[str] = None,
	website: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Reserva un slot desde la página pública.

	La hora de fin la define la duración del servicio. Solo se admiten
	horarios dentro de la disponibilidad del profesional (configurable en
	Clinic Booking Settings).

	Rate limited: 5 requests per minute per IP.

	Args:
		professional: Clinic Professional
		service: Clinic Service
		date: fecha (YYYY-MM-DD)
		start_time: hora local de la clínica (HH:MM)
		client: Contact del cliente
		visit_type: in_person | virtual
		notes: notas del cliente
		website: honeypot (debe venir vacío)

	Returns:
		dict: la reserva creada (status pending)

	Raises:
		SlotConflictError (409): el horario ya fue tomado
	"""
	check_rate_limit("create_booking")
	check_honeypot(website)

	professional = validate_docname(professional, "professional")
	service = validate_docname(service, "service")
	date = validate_date_string(date, "date")
	start_time = validate_time_string(start_time, "start_time")
	if client:
		client = validate_docname(client, "client")
	notes = sanitize_string(notes, max_length=1000)

	try:
		clinic = _get_professional(professional).clinic
		_get_service_duration(service, clinic)
		settings = get_booking_settings()

		booking = scheduling.reserve(
			get_store(),
			professional,
			service,
			date,
			start_time,
			client_ref=client,
			tenant_id=clinic,
			enforce_availability=settings.enforce_availability_for(ReservationOrigin.PUBLIC),
			visit_type=visit_type,
			notes=notes,
			sink=_event_sink(clinic),
			clock=get_clinic_clock(clinic),
		)
		return booking.as_dict()

	except BookingError as e:
		_throw_booking_error(e)
	except ValueError:
		frappe.throw(_("visit_type inválido"), frappe.ValidationError)
	except frappe.ValidationError:
		raise
	except Exception as e:
		frappe.log_error(f"Error in create_booking: {str(e)}", "Booking API Error")
		frappe.throw(_("Error al crear la reserva"))


@frappe.whitelist(methods=['POST'])
def create_staff_booking(
	professional: str,
	service: str,
	date: str,
	start_time: str,
	end_time: Optional[str] = None,
	client: Optional[str] = None,
	visit_type: str = "in_person",
	notes: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Reserva hecha por el personal de la clínica.

	Puede indicar end_time y, por defecto, reservar fuera de la
	disponibilidad publicada. Nunca puede solaparse con otra reserva.
	"""
	professional = validate_docname(professional, "professional")
	service = validate_docname(service, "service")
	date = validate_date_string(date, "date")
	start_time = validate_time_string(start_time, "start_time")
	if end_time:
		end_time = validate_time_string(end_time, "end_time")

	try:
		clinic = _require_staff_clinic(_get_professional(professional).clinic)
		_get_service_duration(service, clinic)
		settings = get_booking_settings()

		booking = scheduling.reserve(
			get_store(),
			professional,
			service,
			date,
			start_time,
			end_time,
			client_ref=client,
			tenant_id=clinic,
			enforce_availability=settings.enforce_availability_for(ReservationOrigin.STAFF),
			visit_type=visit_type,
			notes=sanitize_string(notes, max_length=1000),
			sink=_event_sink(clinic),
			clock=get_clinic_clock(clinic),
		)
		return booking.as_dict()

	except BookingError as e:
		_throw_booking_error(e)
	except ValueError:
		frappe.throw(_("visit_type inválido"), frappe.ValidationError)
	except (frappe.ValidationError, frappe.PermissionError):
		raise
	except Exception as e:
		frappe.log_error(f"Error in create_staff_booking: {str(e)}", "Booking API Error")
		frappe.throw(_("Error al crear la reserva"))


@frappe.whitelist(methods=['POST'])
def transition_booking(
	clinic: str,
	booking: str,
	action: str,
	reason: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Aplica una acción de estado: confirm | cancel | complete | no_show.

	Raises:
		InvalidTransitionError (409): la acción no aplica al estado actual
	"""
	clinic = _require_staff_clinic(clinic)
	booking = validate_docname(booking, "booking")

	try:
		updated = scheduling.transition(
			get_store(),
			booking,
			action,
			actor=frappe.session.user,
			reason=sanitize_string(reason),
			tenant_id=clinic,
			clock=get_clinic_clock(clinic),
			sink=_event_sink(clinic),
		)
		return updated.as_dict()

	except BookingError as e:
		_throw_booking_error(e)
	except (frappe.ValidationError, frappe.PermissionError):
		raise
	except Exception as e:
		frappe.log_error(f"Error in transition_booking: {str(e)}", "Booking API Error")
		frappe.throw(_("Error al actualizar la reserva"))


@frappe.whitelist(methods=['POST'])
def reschedule_booking(
	clinic: str,
	booking: str,
	date: str,
	start_time: str,
	end_time: str
) -> Dict[str, Any]:
	"""
	Mueve una reserva pending/confirmed a otro horario libre.

	La reserva vuelve a pending y debe confirmarse de nuevo.
	"""
	clinic = _require_staff_clinic(clinic)
	booking = validate_docname(booking, "booking")
	date = validate_date_string(date, "date")
	start_time = validate_time_string(start_time, "start_time")
	end_time = validate_time_string(end_time, "end_time")

	try:
		settings = get_booking_settings()
		updated = scheduling.reschedule(
			get_store(),
			booking,
			date,
			start_time,
			end_time,
			tenant_id=clinic,
			enforce_availability=settings.enforce_availability_for(ReservationOrigin.STAFF),
			sink=_event_sink(clinic),
		)
		return updated.as_dict()

	except BookingError as e:
		_throw_booking_error(e)
	except (frappe.ValidationError, frappe.PermissionError):
		raise
	except Exception as e:
		frappe.log_error(f"Error in reschedule_booking: {str(e)}", "Booking API Error")
		frappe.throw(_("Error al reprogramar la reserva"))


# ===================
# Reads (staff)
# ===================

@frappe.whitelist(methods=['GET'])
def get_booking(clinic: str, booking: str) -> Dict[str, Any]:
	"""Detalle de una reserva de la clínica."""
	clinic = _require_staff_clinic(clinic)
	booking = validate_docname(booking, "booking")

	try:
		return scheduling.get_booking(get_store(), booking, tenant_id=clinic).as_dict()
	except BookingError as e:
		_throw_booking_error(e)


@frappe.whitelist(methods=['GET'])
def get_day_bookings(clinic: str, professional: str, date: str) -> List[Dict[str, Any]]:
	"""Reservas no canceladas de un profesional en una fecha, ordenadas por hora."""
	clinic = _require_staff_clinic(clinic)
	professional = validate_docname(professional, "professional")
	date = validate_date_string(date, "date")

	if _get_professional(professional).clinic != clinic:
		frappe.throw(_("Professional '{0}' no existe").format(professional), frappe.DoesNotExistError)

	try:
		bookings = get_store().get_active_bookings(professional, frappe.utils.getdate(date))
		return [b.as_dict() for b in bookings]
	except Exception as e:
		frappe.log_error(f"Error in get_day_bookings: {str(e)}", "Booking API Error")
		frappe.throw(_("Error al obtener reservas"))
