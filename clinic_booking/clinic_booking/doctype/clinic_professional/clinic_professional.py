# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Clinic Professional DocType

A bookable professional. Its row is the lock every reservation of the
professional takes (see stores/frappe_store.py).
"""

import frappe
from frappe import _
from frappe.model.document import Document


class ClinicProfessional(Document):
	def validate(self) -> None:
		if not self.clinic:
			frappe.throw(_("Clinic es requerido"))

		if not self.full_name:
			frappe.throw(_("Full Name es requerido"))
