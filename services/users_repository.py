"""
Users Repository - Database access layer for staff accounts.
"""

import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash, check_password_hash

from database.models import User, utcnow
from services.pagination import paginate, search_filter
from validators import ValidationError, raise_for, sanitize_string, validate_user_data

logger = logging.getLogger(__name__)

RESET_TOKEN_BYTES = 20


def hash_password(password: str) -> str:
    return generate_password_hash(password, method='pbkdf2:sha256')


def hash_reset_token(token: str) -> str:
    """Reset tokens are stored as their SHA-256 hex digest."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def normalize_email(email) -> Optional[str]:
    email = sanitize_string(email)
    return email.lower() if isinstance(email, str) else email


class UsersRepository:
    """Repository for user database operations."""

    def __init__(self, session: Session):
        self.session = session

    def list_users(self, search: str = None, role: str = None,
                   page: int = 1, limit: int = 25) -> Dict:
        """List users, newest first, searching name and email."""
        query = self.session.query(User)
        if role:
            query = query.filter(User.role == role)
        criteria = search_filter(search, User.name, User.email)
        if criteria is not None:
            query = query.filter(criteria)
        query = query.order_by(User.created_at.desc())
        return paginate(query, page, limit, lambda u: u.to_dict())

    def get_user(self, user_id: str) -> Optional[Dict]:
        """Get a user by ID."""
        user = self.session.get(User, user_id)
        return user.to_dict() if user else None

    def get_user_model(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (returns model for auth)."""
        return self.session.query(User).filter(User.email == normalize_email(email)).first()

    def create_user(self, data: Dict) -> User:
        """
        Create a new user.

        Raises:
            ValidationError: On invalid data or an email already in use
        """
        data = dict(data, email=normalize_email(data.get('email')))
        if not data.get('role'):
            data.pop('role', None)
        raise_for(validate_user_data(data))

        if self.get_user_by_email(data['email']):
            raise ValidationError("User already exists", 'email')

        user = User(
            name=sanitize_string(data['name']),
            email=data['email'],
            password_hash=hash_password(data['password']),
            role=data.get('role', 'receptionist'),
            is_active=bool(data.get('isActive', True))
        )
        self.session.add(user)
        self.session.flush()
        logger.info(f"Created user: {user.id} ({user.role})")
        return user

    def update_user(self, user_id: str, data: Dict) -> Optional[Dict]:
        """
        Update a user's name, email, role or active flag.
        Passwords are never changed here.
        """
        user = self.session.get(User, user_id)
        if not user:
            return None

        data = {k: v for k, v in data.items() if k != 'password'}
        if 'email' in data:
            data['email'] = normalize_email(data['email'])
        state = {'name': user.name, 'email': user.email, 'role': user.role}
        state.update({k: data[k] for k in ('name', 'email', 'role') if k in data})
        raise_for(validate_user_data(state, require_password=False))

        if state['email'] != user.email and self.get_user_by_email(state['email']):
            raise ValidationError("Email already in use", 'email')

        user.name = sanitize_string(state['name'])
        user.email = state['email']
        user.role = state['role']
        if 'isActive' in data:
            user.is_active = bool(data['isActive'])
        self.session.flush()
        logger.info(f"Updated user: {user_id}")
        return user.to_dict()

    def delete_user(self, user_id: str) -> bool:
        """Hard delete a user; records they created keep existing without the link."""
        user = self.session.get(User, user_id)
        if not user:
            return False
        self.session.delete(user)
        self.session.flush()
        logger.info(f"Deleted user: {user_id}")
        return True

    def verify_password(self, user: User, password: str) -> bool:
        """Verify a user's password."""
        return bool(password) and check_password_hash(user.password_hash, password)

    def set_password(self, user: User, password: str) -> None:
        user.password_hash = hash_password(password)
        self.session.flush()

    def update_last_login(self, user: User) -> None:
        """Update user's last login timestamp."""
        user.last_login = utcnow()
        self.session.flush()

    def create_reset_token(self, user: User, expire_minutes: int = 10) -> str:
        """
        Issue a single-use password reset token.

        Returns:
            The raw token; only its hash is stored
        """
        token = secrets.token_hex(RESET_TOKEN_BYTES)
        user.reset_password_token = hash_reset_token(token)
        user.reset_password_expire = utcnow() + timedelta(minutes=expire_minutes)
        self.session.flush()
        return token

    def clear_reset_token(self, user: User) -> None:
        user.reset_password_token = None
        user.reset_password_expire = None
        self.session.flush()

    def get_user_by_reset_token(self, token: str) -> Optional[User]:
        """Find the user holding an unexpired reset token."""
        if not token:
            return None
        return self.session.query(User).filter(
            User.reset_password_token == hash_reset_token(token),
            User.reset_password_expire > utcnow()
        ).first()

