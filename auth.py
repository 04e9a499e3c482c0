"""
User Authentication and Authorization Module
Issues and verifies bearer tokens (JWT, HS256) and guards routes by role.

Protected routes expect ``Authorization: Bearer <token>``. The decorators
load the caller from the database and expose it as ``g.current_user``
(a dict) and ``g.current_user_id``.
"""
from datetime import datetime, timezone
from functools import wraps
import logging

import jwt
from flask import current_app, g, request

from database.connection import get_db_session
from database.models import User
from services.exceptions import AuthenticationError, PermissionDeniedError

logger = logging.getLogger(__name__)


def issue_token(user_id, role=None):
    """
    Sign a token for a user.

    Args:
        user_id: The user's id, stored in the 'id' claim
        role: Informational role claim

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    payload = {
        'id': user_id,
        'role': role,
        'iat': now,
        'exp': now + current_app.config['JWT_EXPIRES_IN'],
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET'],
        algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256')
    )


def decode_token(token):
    """
    Verify signature and expiry.

    Returns:
        The claims dict, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            current_app.config['JWT_SECRET'],
            algorithms=[current_app.config.get('JWT_ALGORITHM', 'HS256')]
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected invalid token: {e}")
        return None


def get_bearer_token():
    """Extract the token from the Authorization header."""
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def authenticate_request():
    """
    Resolve the caller of the current request.

    Returns:
        (user_dict, None) on success, (None, error_message) otherwise
    """
    token = get_bearer_token()
    if not token:
        return None, 'Not authorized, no token'

    claims = decode_token(token)
    if not claims or not claims.get('id'):
        return None, 'Not authorized, token failed'

    with get_db_session() as session:
        user = session.get(User, claims['id'])
        if not user:
            return None, 'Not authorized, user not found'
        if not user.is_active:
            return None, 'Account is inactive'
        return user.to_dict(), None


# Decorators for route protection
def login_required(f):
    """Decorator to require a valid bearer token for a route"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user, error = authenticate_request()
        if error:
            raise AuthenticationError(error)
        g.current_user = user
        g.current_user_id = user['id']
        return f(*args, **kwargs)
    return decorated_function


def role_required(*roles):
    """Decorator to require one of the given roles for a route"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user, error = authenticate_request()
            if error:
                raise AuthenticationError(error)
            if user['role'] not in roles:
                logger.warning(f"User {user['id']} ({user['role']}) denied access to {request.path}")
                raise PermissionDeniedError(
                    f"User role {user['role']} is not authorized to access this route"
                )
            g.current_user = user
            g.current_user_id = user['id']
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """Decorator to require the admin role"""
    return role_required('admin')(f)
