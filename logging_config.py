"""
Centralized Logging Configuration
Console output always; a rotating file under logs/ when LOG_FILE is set.
"""
import logging
import logging.handlers
from pathlib import Path

LOG_DIR = Path('logs')
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Chatty libraries kept at WARNING unless LOG_SQL is on
NOISY_LOGGERS = ('werkzeug', 'urllib3', 'flask_limiter')


def _file_handler(log_file, level, formatter):
    LOG_DIR.mkdir(exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        LOG_DIR / log_file,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(app):
    """
    Configure the root logger for the CRM API

    Args:
        app: Flask application instance

    Returns:
        The root logger
    """
    config = app.config
    log_level = getattr(logging, str(config['LOG_LEVEL']).upper(), logging.INFO)
    formatter = logging.Formatter(config['LOG_FORMAT'])

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Tests log to the console only
    log_file = config.get('LOG_FILE')
    if log_file and not config.get('TESTING'):
        root_logger.addHandler(_file_handler(log_file, log_level, formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    sql_level = logging.INFO if config.get('LOG_SQL') else logging.WARNING
    logging.getLogger('sqlalchemy.engine').setLevel(sql_level)

    app.logger.info(f"Logging initialized at {logging.getLevelName(log_level)} level"
                    + (f", file logs/{log_file}" if log_file and not config.get('TESTING') else ''))
    return root_logger
