"""
Application Initialization Module
Properly initializes Flask app with all infrastructure components
"""
from flask import Flask
from config import get_config, get_app_env, validate_secret_config, validate_storage_config
from logging_config import setup_logging
from security import setup_security
from health_checks import register_health_checks
from database.connection import configure_engine, init_db
from database.seed import seed_database
from services.email_service import EmailService
from services.exceptions import MessagingError
from services.whatsapp_service import WhatsAppService, READY_MESSAGE
import logging

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_name: 'development', 'production' or 'testing'; defaults to FLASK_ENV

    Returns:
        Configured Flask application instance
    """
    from app import register_blueprints

    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("Initializing Motor Care CRM API")
    logger.info("=" * 60)
    logger.info(f"Environment: {config_name or get_app_env()}")
    logger.info(f"Debug mode: {app.debug}")

    # Fail fast in production without a database or token secret
    validate_storage_config(app.config)
    validate_secret_config(app.config)

    initialize_database(app)

    # Setup security (CORS, rate limit, headers, error handlers)
    limiter = setup_security(app, app.config)

    register_blueprints(app)
    register_health_checks(app, limiter)

    app.email_service = EmailService(app.config)
    app.whatsapp_service = initialize_whatsapp_service(app)

    logger.info("Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_database(app):
    """
    Bind the engine to DATABASE_URL, create missing tables and seed the admin

    Args:
        app: Flask application instance
    """
    configure_engine(app.config['DATABASE_URL'], **app.config.get('SQLALCHEMY_ENGINE_OPTIONS', {}))
    init_db()
    if app.config.get('SEED_ADMIN'):
        seed_database()


def initialize_whatsapp_service(app):
    """
    Build the WhatsApp service and send the startup message to TEST_WHATSAPP_NUMBER

    Args:
        app: Flask application instance

    Returns:
        WhatsAppService instance
    """
    service = WhatsAppService.from_config(app.config)

    test_number = app.config.get('TEST_WHATSAPP_NUMBER')
    if service.is_connected() and test_number:
        try:
            service.send_message(test_number, READY_MESSAGE)
        except MessagingError as e:
            logger.warning(f"Startup WhatsApp message failed: {e.message}")

    return service


def get_whatsapp_service(app):
    """
    Get the WhatsApp service instance from the app

    Args:
        app: Flask application instance

    Returns:
        WhatsAppService instance
    """
    if not hasattr(app, 'whatsapp_service'):
        logger.warning("WhatsApp service not initialized, creating new instance")
        app.whatsapp_service = WhatsAppService.from_config(app.config)

    return app.whatsapp_service
