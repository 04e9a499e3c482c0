"""
Database seeding for the Motor Care CRM.
Creates the default admin user if no admin exists yet.
"""

import logging
from werkzeug.security import generate_password_hash
from database.connection import get_db_session, init_db
from database.models import User

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "Admin"
DEFAULT_ADMIN_EMAIL = "admin@example.com"
DEFAULT_ADMIN_PASSWORD = "password123"


def seed_default_admin(session):
    """Create default admin user if none exists."""
    admin = session.query(User).filter_by(role='admin').first()
    if admin:
        logger.info(f"Admin user already exists: {admin.email}")
        return admin

    admin = User(
        name=DEFAULT_ADMIN_NAME,
        email=DEFAULT_ADMIN_EMAIL,
        password_hash=generate_password_hash(DEFAULT_ADMIN_PASSWORD, method='pbkdf2:sha256'),
        role='admin',
        is_active=True
    )
    session.add(admin)
    session.flush()
    logger.warning(f"Created default admin user: {admin.email} (change the password!)")
    return admin


def seed_database():
    """
    Seed the database with default data if empty.
    Call this at application startup.
    """
    try:
        with get_db_session() as session:
            seed_default_admin(session)
        logger.info("Database seeding completed successfully")
        return True
    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        raise


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    init_db()
    seed_database()
