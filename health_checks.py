"""
Health Check & Monitoring Endpoints
Provides liveness, readiness and process metrics for deployment health checks
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, current_app, jsonify
import logging

from database.connection import check_db_connection

logger = logging.getLogger(__name__)

# Create Blueprint for health check routes
health_bp = Blueprint('health', __name__)

# Track application start time
START_TIME = time.time()


def get_system_metrics() -> Dict[str, Any]:
    """
    Get basic system metrics

    Returns:
        Dictionary of system metrics
    """
    try:
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': round(process.memory_info().rss / 1024 / 1024, 2),
            'memory_percent': round(process.memory_percent(), 2),
            'threads': process.num_threads(),
        }
    except psutil.Error as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    """
    Get application uptime

    Returns:
        Dictionary with uptime information
    """
    uptime_seconds = time.time() - START_TIME

    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'uptime_hours': round(uptime_seconds / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def check_database() -> Dict[str, Any]:
    try:
        check_db_connection()
        return {'healthy': True}
    except RuntimeError as e:
        return {'healthy': False, 'error': str(e)}


def check_integrations(app) -> Dict[str, bool]:
    """
    Check which outbound integrations are configured

    Args:
        app: Flask application instance
    """
    whatsapp = getattr(app, 'whatsapp_service', None)
    email = getattr(app, 'email_service', None)
    return {
        'whatsapp': bool(whatsapp and whatsapp.is_connected()),
        'email': bool(email and email.email_enabled)
    }


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint
    Returns 200 if application is running
    """
    return jsonify({
        'status': 'ok',
        'timestamp': datetime.utcnow().isoformat(),
        'service': current_app.config.get('SERVICE_NAME', 'motorcare-crm')
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness probe endpoint
    Returns 200 once the database answers, 503 otherwise
    """
    database = check_database()
    is_ready = database['healthy']

    return jsonify({
        'status': 'ready' if is_ready else 'not_ready',
        'timestamp': datetime.utcnow().isoformat(),
        'checks': {
            'database': database,
            'integrations': check_integrations(current_app)
        }
    }), 200 if is_ready else 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """
    Basic metrics endpoint
    Returns process metrics and uptime
    """
    return jsonify({
        'timestamp': datetime.utcnow().isoformat(),
        'service': current_app.config.get('SERVICE_NAME', 'motorcare-crm'),
        'environment': os.environ.get('FLASK_ENV', 'production'),
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'integrations': check_integrations(current_app),
        'python_version': sys.version.split()[0]
    }), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    """
    Simple ping endpoint
    Returns immediate response for basic connectivity tests
    """
    return 'pong', 200


def register_health_checks(app, limiter=None):
    """
    Register health check blueprint with Flask app

    Args:
        app: Flask application instance
        limiter: Rate limiter; health routes are exempt from it
    """
    if limiter is not None:
        limiter.exempt(health_bp)
    app.register_blueprint(health_bp, url_prefix=app.config.get('API_PREFIX', '/api'))
    logger.info("Health check endpoints registered")
