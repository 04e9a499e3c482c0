"""
Security Utilities & Middleware
Provides CORS, rate limiting, security headers, request logging and the
JSON error handlers for the API.
"""
import os
import secrets
from typing import Dict, Any
from flask import Flask, request, jsonify, Response
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException
import logging

from services.exceptions import ServiceError
from validators import ValidationError

logger = logging.getLogger(__name__)

# Paths excluded from request logging
QUIET_PATHS = ('/api/health', '/api/ping', '/api/ready')


class SecurityConfig:
    """Checks on the signing secrets"""

    MIN_SECRET_LENGTH = 32

    @staticmethod
    def generate_secret_key() -> str:
        """Hex-encoded 256-bit random key"""
        return secrets.token_hex(32)

    @classmethod
    def is_strong(cls, secret: str) -> bool:
        return bool(secret) and len(secret) >= cls.MIN_SECRET_LENGTH

    @classmethod
    def ensure_secret_key(cls, config: Dict[str, Any]) -> str:
        """
        Return SECRET_KEY, or a generated key when it is missing or short

        Args:
            config: Application configuration dictionary
        """
        secret_key = config.get('SECRET_KEY')
        if cls.is_strong(secret_key):
            return secret_key

        if not config.get('DEBUG'):
            logger.error("SECRET_KEY is missing or shorter than 32 characters; generating one")
        return cls.generate_secret_key()

    @classmethod
    def check_jwt_secret(cls, config: Dict[str, Any]) -> bool:
        """
        Warn about a weak JWT_SECRET; the configured value is always used.
        """
        if cls.is_strong(config.get('JWT_SECRET')):
            return True
        logger.warning(f"JWT_SECRET is shorter than {cls.MIN_SECRET_LENGTH} characters")
        return False


def setup_security_headers(app: Flask):
    """
    Add security headers to all responses

    Args:
        app: Flask application instance
    """
    @app.after_request
    def add_security_headers(response: Response) -> Response:
        """Add security headers to response"""
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-XSS-Protection'] = '1; mode=block'

        # HTTPS only outside development
        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        # JSON API: nothing to load
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'

        return response

    logger.info("Security headers configured")


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the dashboard origins

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])
    cors_methods = config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'])
    cors_headers = config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization'])

    if not app.debug and '*' in cors_origins:
        logger.warning("Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        origins=cors_origins,
        methods=cors_methods,
        allow_headers=cors_headers,
        supports_credentials=True,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def setup_rate_limiting(app: Flask, config: Dict[str, Any]) -> Limiter:
    """
    Apply the per-IP request cap from RATELIMIT_* settings

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=[config.get('RATELIMIT_DEFAULT', '100 per 15 minutes')],
        storage_uri=config.get('RATELIMIT_STORAGE_URL', 'memory://'),
        enabled=config.get('RATELIMIT_ENABLED', True)
    )

    logger.info(
        f"Rate limiting {'enabled' if limiter.enabled else 'disabled'}: "
        f"{config.get('RATELIMIT_DEFAULT')}"
    )
    return limiter


def error_response(message: str, status: int):
    return jsonify({'success': False, 'message': message}), status


def setup_error_handlers(app: Flask):
    """
    Register JSON error handlers that don't expose stack traces

    Args:
        app: Flask application instance
    """

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        """Handle input validation failures"""
        return error_response(error.message, 400)

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        """Handle not-found, conflict, auth and messaging errors"""
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        return error_response(error.message, error.status_code)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        """Handle unique/foreign-key violations"""
        logger.warning(f"Integrity error on {request.method} {request.path}: {error.orig}")
        return error_response('Could not save record: it conflicts with existing data', 409)

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found"""
        return error_response('Route not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 Method Not Allowed"""
        return error_response('The method is not allowed for the requested URL', 405)

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        """Handle 429 Too Many Requests"""
        return error_response('Too many requests from this IP, please try again later', 429)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        """Any other werkzeug HTTP error"""
        return error_response(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def internal_server_error(error):
        """Handle unexpected exceptions"""
        logger.error(f"Internal server error: {error}", exc_info=True)
        message = str(error) if app.debug else 'Server error'
        return error_response(message, 500)

    logger.info("Error handlers registered")


def setup_request_logging(app: Flask):
    """
    Setup request/response logging for security monitoring

    Args:
        app: Flask application instance
    """
    @app.before_request
    def log_request():
        """Log incoming requests"""
        if request.path in QUIET_PATHS:
            return

        logger.info(
            f"Request: {request.method} {request.path} "
            f"from {request.remote_addr} "
            f"User-Agent: {request.user_agent.string[:100]}"
        )

    @app.after_request
    def log_response(response: Response) -> Response:
        """Log outgoing responses"""
        if request.path in QUIET_PATHS:
            return response

        logger.info(
            f"Response: {request.method} {request.path} "
            f"status={response.status_code} "
            f"size={response.content_length}"
        )

        return response

    logger.info("Request logging configured")


def validate_environment_variables(required_vars: list, app: Flask):
    """
    Validate that required environment variables are set

    Args:
        required_vars: List of required environment variable names
        app: Flask application instance
    """
    missing_vars = [var for var in required_vars if not os.environ.get(var)]

    for var in missing_vars:
        logger.warning(f"Missing environment variable: {var}")

    if missing_vars and not app.debug:
        logger.error(f"Missing required environment variables in production: {missing_vars}")

    return len(missing_vars) == 0


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    logger.info("Configuring application security...")

    app.secret_key = SecurityConfig.ensure_secret_key(config)
    SecurityConfig.check_jwt_secret(config)

    setup_cors(app, config)
    limiter = setup_rate_limiting(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug:
        validate_environment_variables(['SECRET_KEY', 'JWT_SECRET', 'DATABASE_URL'], app)

    logger.info("Security configuration complete")
    return limiter
