app_name = "clinic_booking"
app_title = "Clinic Booking"
app_publisher = "Sebastian Ortiz Valencia"
app_description = "Agendamiento de citas multi-clínica: disponibilidad, slots y reservas sin doble asignación"
app_email = "sebastianortiz989@gmail.com"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Includes in <head>
# ------------------

# include js, css files in header of web template
# web_include_js = "/assets/clinic_booking/js/booking_page.js"

# Installation
# ------------

# before_install = "clinic_booking.install.before_install"
# after_install = "clinic_booking.install.after_install"

# Permissions
# -----------
# Permissions evaluated in scripted ways

# permission_query_conditions = {
# 	"Booking": "clinic_booking.permissions.booking_query_conditions",
# }

# Document Events
# ---------------
# Hook on document methods and events

# doc_events = {
# 	"Booking": {
# 		"on_update": "method",
# 	}
# }

# Booking Events
# --------------
# Dotted paths of functions called (as background jobs, after commit) with
# the payload of every booking event: booking:created, booking:confirmed,
# booking:cancelled, booking:rescheduled, booking:updated.
# Other apps extend this list from their own hooks.py (payments, emails,
# reminders).

booking_event_handlers = []

# Testing
# -------

# before_tests = "clinic_booking.install.before_tests"

# Request Events
# ----------------
# before_request = ["clinic_booking.utils.before_request"]
# after_request = ["clinic_booking.utils.after_request"]

# User Data Protection
# --------------------

# user_data_fields = [
# 	{
# 		"doctype": "Booking",
# 		"filter_by": "owner",
# 		"redact_fields": ["notes"],
# 		"partial": 1,
# 	},
# ]

# Automatically update python controller files with type annotations for this app.
# export_python_type_annotations = True
