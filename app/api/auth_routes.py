"""
Authentication Routes Blueprint

Handles registration, login, the caller's profile and password recovery:
- /api/auth/register, /api/auth/login
- /api/auth/me
- /api/auth/update-password
- /api/auth/forgot-password, /api/auth/reset-password/<token>
"""

from flask import Blueprint, current_app, g, jsonify, request
import logging

from auth import issue_token, login_required
from database.connection import get_db_session
from services.exceptions import AuthenticationError, NotFoundError
from services.users_repository import UsersRepository
from app.utils import get_json_body
from validators import ValidationError, raise_for, validate_email, validate_password

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth_bp', __name__)

FORGOT_PASSWORD_MESSAGE = 'If that email exists, a password reset link has been sent to your email.'


def _token_response(user, status=200):
    token = issue_token(user.id, user.role)
    return jsonify({
        'success': True,
        'token': token,
        'user': user.to_summary()
    }), status


# ============================================================================
# REGISTER / LOGIN
# ============================================================================

@auth_bp.route('/auth/register', methods=['POST'])
def register():
    """Create an account and return a token for it"""
    data = get_json_body()
    with get_db_session() as session:
        user = UsersRepository(session).create_user(data)
        logger.info(f"User registered: {user.email}")
        return _token_response(user, 201)


@auth_bp.route('/auth/login', methods=['POST'])
def login():
    """Exchange email and password for a token"""
    data = get_json_body()
    raise_for(validate_email(data.get('email')))
    if not data.get('password'):
        raise ValidationError('Password is required', 'password')

    with get_db_session() as session:
        users = UsersRepository(session)
        user = users.get_user_by_email(data['email'])
        if not user:
            raise AuthenticationError('Invalid credentials')
        if not user.is_active:
            raise AuthenticationError('Account is inactive')
        if not users.verify_password(user, data['password']):
            logger.warning(f"Failed login for {user.email}")
            raise AuthenticationError('Invalid credentials')

        users.update_last_login(user)
        logger.info(f"User logged in: {user.email}")
        return _token_response(user)


# ============================================================================
# PROFILE
# ============================================================================

@auth_bp.route('/auth/me', methods=['GET', 'PUT'])
@login_required
def me():
    """Get or update the caller's name and email"""
    with get_db_session() as session:
        users = UsersRepository(session)
        if request.method == 'PUT':
            data = get_json_body()
            changes = {key: data[key] for key in ('name', 'email') if key in data}
            user = users.update_user(g.current_user_id, changes)
        else:
            user = users.get_user(g.current_user_id)
        if not user:
            raise NotFoundError('User')
        return jsonify({'success': True, 'user': user})


@auth_bp.route('/auth/update-password', methods=['PUT'])
@login_required
def update_password():
    """Change the caller's password after checking the current one"""
    data = get_json_body()
    if not data.get('currentPassword'):
        raise ValidationError('Current password is required', 'currentPassword')
    raise_for(validate_password(data.get('newPassword'), 'new password'))

    with get_db_session() as session:
        users = UsersRepository(session)
        user = users.get_user_model(g.current_user_id)
        if not user:
            raise NotFoundError('User')
        if not users.verify_password(user, data['currentPassword']):
            raise AuthenticationError('Current password is incorrect')
        users.set_password(user, data['newPassword'])

    logger.info(f"Password updated for user {g.current_user_id}")
    return jsonify({'success': True, 'message': 'Password updated successfully'})


# ============================================================================
# PASSWORD RECOVERY
# ============================================================================

@auth_bp.route('/auth/forgot-password', methods=['POST'])
def forgot_password():
    """
    Issue a reset token and e-mail the link.

    The response never reveals whether the address exists. In debug mode,
    when e-mail is unavailable, the token and link are echoed back instead.
    """
    data = get_json_body()
    raise_for(validate_email(data.get('email')))

    expire_minutes = current_app.config.get('RESET_TOKEN_EXPIRE_MINUTES', 10)
    with get_db_session() as session:
        users = UsersRepository(session)
        user = users.get_user_by_email(data['email'])
        if not user:
            return jsonify({'success': True, 'message': FORGOT_PASSWORD_MESSAGE})
        reset_token = users.create_reset_token(user, expire_minutes)
        email = user.email

    reset_url = f"{current_app.config['FRONTEND_URL'].rstrip('/')}/reset-password/{reset_token}"
    email_service = current_app.email_service

    sent = email_service.email_enabled and email_service.send_password_reset(email, reset_url, expire_minutes)
    if not sent and current_app.debug:
        logger.info("Email not sent; returning the reset link in the response")
        reason = 'failed' if email_service.email_enabled else 'not configured'
        return jsonify({
            'success': True,
            'message': f'Password reset link generated (email service {reason})',
            'resetToken': reset_token,
            'resetUrl': reset_url
        })

    return jsonify({'success': True, 'message': FORGOT_PASSWORD_MESSAGE})


@auth_bp.route('/auth/reset-password/<token>', methods=['PUT'])
def reset_password(token):
    """Set a new password with a single-use reset token"""
    data = get_json_body()
    raise_for(validate_password(data.get('password')))

    with get_db_session() as session:
        users = UsersRepository(session)
        user = users.get_user_by_reset_token(token)
        if not user:
            raise ValidationError('Invalid or expired reset token')
        users.set_password(user, data['password'])
        users.clear_reset_token(user)
        logger.info(f"Password reset for user {user.id}")

    return jsonify({'success': True, 'message': 'Password reset successful'})
