"""
Database package for the Motor Care CRM.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    configure_engine,
    get_engine,
    get_session_factory,
    get_db_session,
    init_db,
    drop_db,
    reset_engine,
    check_db_connection
)

from database.models import (
    User,
    Customer,
    Vehicle,
    ServiceOrder,
    Estimation,
    Invoice,
    Reminder,
    Counter
)

__all__ = [
    # Connection
    'Base',
    'configure_engine',
    'get_engine',
    'get_session_factory',
    'get_db_session',
    'init_db',
    'drop_db',
    'reset_engine',
    'check_db_connection',
    # Models
    'User',
    'Customer',
    'Vehicle',
    'ServiceOrder',
    'Estimation',
    'Invoice',
    'Reminder',
    'Counter'
]
