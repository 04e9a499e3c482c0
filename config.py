"""
Centralized Configuration for the Motor Care CRM backend
Manages environment-specific settings, secrets, and service configurations.
"""
import os
from datetime import timedelta


class StoragePolicyError(RuntimeError):
    """Raised when the storage configuration is not allowed in this environment"""


class SecretPolicyError(RuntimeError):
    """Raised when a signing secret is missing in this environment"""


def _env_bool(name, default='false'):
    return os.environ.get(name, default).strip().lower() == 'true'


def _database_url(default=None):
    url = os.environ.get('DATABASE_URL', default)
    # Render/Heroku style URLs
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def parse_duration(value, default_seconds=7 * 24 * 3600):
    """
    Parse a duration such as '7d', '12h', '30m', '45s' or a plain number of seconds

    Args:
        value: Duration string or number

    Returns:
        timedelta
    """
    if value is None or value == '':
        return timedelta(seconds=default_seconds)
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = str(value).strip().lower()
    units = {'d': 'days', 'h': 'hours', 'm': 'minutes', 's': 'seconds'}
    try:
        if text[-1] in units:
            return timedelta(**{units[text[-1]]: int(text[:-1])})
        return timedelta(seconds=int(text))
    except (ValueError, IndexError):
        return timedelta(seconds=default_seconds)


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB JSON bodies
    API_PREFIX = '/api'
    SERVICE_NAME = 'motorcare-crm'

    # Token Settings
    JWT_SECRET = os.environ.get('JWT_SECRET') or SECRET_KEY
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_IN = parse_duration(os.environ.get('JWT_EXPIRE', '7d'))

    # Password reset
    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')
    RESET_TOKEN_EXPIRE_MINUTES = int(os.environ.get('RESET_TOKEN_EXPIRE_MINUTES', '10'))

    # CORS Settings
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', 'http://localhost:3000').split(',')]
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization']

    # Database Settings
    DATABASE_URL = _database_url()
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Rate Limiting
    RATELIMIT_ENABLED = _env_bool('RATELIMIT_ENABLED', 'true')
    RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', '100 per 15 minutes')
    RATELIMIT_STORAGE_URL = os.environ.get('REDIS_URL', 'memory://')

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')
    LOG_SQL = _env_bool('LOG_SQL')

    # Outbound e-mail
    EMAIL_HOST = os.environ.get('EMAIL_HOST', '')
    EMAIL_PORT = int(os.environ.get('EMAIL_PORT', '587'))
    EMAIL_USER = os.environ.get('EMAIL_USER', '')
    EMAIL_PASSWORD = os.environ.get('EMAIL_PASSWORD', '')
    EMAIL_USE_TLS = _env_bool('EMAIL_USE_TLS', 'true')
    EMAIL_FROM = os.environ.get('EMAIL_FROM', 'Motor Care <noreply@motorcare.local>')

    # WhatsApp Cloud API
    WHATSAPP_ENABLED = _env_bool('WHATSAPP_ENABLED')
    WHATSAPP_API_URL = os.environ.get('WHATSAPP_API_URL', 'https://graph.facebook.com/v19.0')
    WHATSAPP_PHONE_NUMBER_ID = os.environ.get('WHATSAPP_PHONE_NUMBER_ID', '')
    WHATSAPP_ACCESS_TOKEN = os.environ.get('WHATSAPP_ACCESS_TOKEN', '')
    WHATSAPP_VERIFY_TOKEN = os.environ.get('WHATSAPP_VERIFY_TOKEN', '')
    WHATSAPP_APP_SECRET = os.environ.get('WHATSAPP_APP_SECRET', '')
    WHATSAPP_TIMEOUT = int(os.environ.get('WHATSAPP_TIMEOUT', '15'))  # seconds
    TEST_WHATSAPP_NUMBER = os.environ.get('TEST_WHATSAPP_NUMBER', '')

    # Billing defaults
    INVOICE_TAX_RATE = float(os.environ.get('INVOICE_TAX_RATE', '0.1'))
    ESTIMATION_CGST_RATE = float(os.environ.get('ESTIMATION_CGST_RATE', '0.09'))
    ESTIMATION_SGST_RATE = float(os.environ.get('ESTIMATION_SGST_RATE', '0.09'))

    # Seeded administrator
    SEED_ADMIN = _env_bool('SEED_ADMIN', 'true')


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    DATABASE_URL = _database_url('sqlite:///motorcare.db')


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    PREFERRED_URL_SCHEME = 'https'
    # No per-process fallback: tokens must verify across workers and restarts
    JWT_SECRET = os.environ.get('JWT_SECRET', '')
    SEED_ADMIN = _env_bool('SEED_ADMIN', 'false')


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    SECRET_KEY = 'test-secret-key-minimum-32-chars-long-for-security'
    JWT_SECRET = 'test-jwt-secret-minimum-32-chars-long-for-security'
    DATABASE_URL = 'sqlite://'
    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URL = 'memory://'
    WHATSAPP_ENABLED = False
    EMAIL_HOST = ''
    EMAIL_USER = ''
    SEED_ADMIN = False
    LOG_FILE = None


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_app_env():
    return os.environ.get('FLASK_ENV', 'development')


def get_config(name=None):
    """Get configuration based on FLASK_ENV environment variable"""
    env = name or get_app_env()
    return config_by_name.get(env, DevelopmentConfig)


def validate_storage_config(config):
    """
    Fail fast when production runs without a database.

    Raises:
        StoragePolicyError: If production mode without DATABASE_URL
    """
    if not config.get('TESTING') and not config.get('DEBUG') and not config.get('DATABASE_URL'):
        raise StoragePolicyError(
            "DATABASE_URL must be configured in production."
        )


def validate_secret_config(config):
    """
    Fail fast when production runs without an explicit JWT_SECRET.

    Raises:
        SecretPolicyError: If production mode without JWT_SECRET
    """
    if not config.get('TESTING') and not config.get('DEBUG') and not config.get('JWT_SECRET'):
        raise SecretPolicyError(
            "JWT_SECRET must be configured in production."
        )
