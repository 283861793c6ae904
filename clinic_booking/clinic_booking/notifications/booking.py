"""
Booking Notification Service

Delivers booking domain events on a site:
  - realtime update to the desk/portal (frappe.publish_realtime)
  - background jobs for every handler registered by other apps through
    the `booking_event_handlers` hook (payments, emails, reminders)

Handlers receive the event payload as a dict and run after commit.
"""

import frappe

from clinic_booking.clinic_booking.scheduling.clock import TenantClock
from clinic_booking.clinic_booking.scheduling.events import (
	BookingCreated,
	BookingEvent,
	BookingRescheduled,
	EventSink,
)


class FrappeEventSink(EventSink):
	"""
	Sink de eventos sobre la infraestructura de Frappe.

	Args:
		publish_realtime: emitir el evento por socket.io
		clock: reloj del tenant, para adjuntar los recordatorios pendientes
		reminder_hours: horas de antelación de los recordatorios
	"""

	def __init__(self, publish_realtime: bool = True, clock: TenantClock = None, reminder_hours=()):
		self.publish_realtime = publish_realtime
		self.clock = clock
		self.reminder_hours = tuple(reminder_hours)

	def publish(self, event: BookingEvent) -> None:
		payload = self.build_payload(event)

		if self.publish_realtime:
			frappe.publish_realtime(
				event.name,
				payload,
				doctype="Booking",
				docname=event.booking_id,
				after_commit=True,
			)

		for hook_path in frappe.get_hooks("booking_event_handlers"):
			frappe.enqueue(
				"clinic_booking.clinic_booking.notifications.booking.run_event_handler",
				queue="short",
				enqueue_after_commit=True,
				hook_path=hook_path,
				payload=payload,
			)

	def build_payload(self, event: BookingEvent) -> dict:
		payload = event.as_dict()

		# Los recordatorios solo aplican a reservas con horario nuevo
		if self.clock and isinstance(event, (BookingCreated, BookingRescheduled)):
			payload["reminders"] = [
				{"hours_before": hours, "send_at": send_at.isoformat()}
				for hours, send_at in self.clock.reminder_times(
					event.date, event.start_time, self.reminder_hours
				)
			]

		return payload


def run_event_handler(hook_path: str, payload: dict) -> None:
	"""
	Ejecuta un handler registrado en `booking_event_handlers`.

	Corre como background job; un handler que falla no afecta a los demás.
	"""
	try:
		frappe.get_attr(hook_path)(payload)
	except Exception as e:
		frappe.log_error(
			message=f"Error in booking_event_handlers hook {hook_path} "
				f"for {payload.get('event')} {payload.get('booking_id')}: {str(e)}",
			title="Booking Event Handler Failed"
		)
