"""
Motor Care CRM - Application Package

This package contains the HTTP layer:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Shared request helpers

The app factory and core Flask setup remain in app_init.py at the project root.
Repositories and domain services live in the root services/ package.
"""

import logging

logger = logging.getLogger(__name__)

# Import blueprints
from app.api.auth_routes import auth_bp
from app.api.customers import customers_bp
from app.api.vehicles import vehicles_bp
from app.api.service_orders import service_orders_bp
from app.api.estimations import estimations_bp
from app.api.invoices import invoices_bp
from app.api.reminders import reminders_bp
from app.api.users import users_bp
from app.api.dashboard import dashboard_bp
from app.api.whatsapp import whatsapp_bp

BLUEPRINTS = (
    auth_bp,
    customers_bp,
    vehicles_bp,
    service_orders_bp,
    estimations_bp,
    invoices_bp,
    reminders_bp,
    users_bp,
    dashboard_bp,
    whatsapp_bp,
)


def register_blueprints(app):
    """
    Register all API blueprints under API_PREFIX.

    Args:
        app: Flask application instance
    """
    prefix = app.config.get('API_PREFIX', '/api')
    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=prefix)
    logger.info(f"Registered {len(BLUEPRINTS)} blueprints under {prefix}")


__all__ = ['register_blueprints', 'BLUEPRINTS', 'auth_bp', 'customers_bp', 'vehicles_bp',
           'service_orders_bp', 'estimations_bp', 'invoices_bp', 'reminders_bp', 'users_bp',
           'dashboard_bp', 'whatsapp_bp']
