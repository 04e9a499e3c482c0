"""
API Blueprints Package

All HTTP route handlers for the application, organized by entity.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

- auth_routes.py    : Register, login, profile, password reset (/api/auth/*)
- customers.py      : Customers (/api/customers)
- vehicles.py       : Vehicles (/api/vehicles)
- service_orders.py : Service orders (/api/services)
- estimations.py    : Estimations (/api/estimations)
- invoices.py       : Invoices (/api/invoices)
- reminders.py      : Reminders (/api/reminders)
- users.py          : Staff accounts, admin only (/api/users)
- dashboard.py      : Dashboard statistics (/api/dashboard/stats)
- whatsapp.py       : WhatsApp notifications and webhook (/api/whatsapp/*)
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
