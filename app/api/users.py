"""
User Management Routes Blueprint (admin only)

- /api/users - list (search, role, pagination) and create
- /api/users/<id> - read, update and delete
"""

import logging
from flask import Blueprint, g, request, jsonify

from auth import admin_required
from database.connection import get_db_session
from services.exceptions import NotFoundError
from services.users_repository import UsersRepository
from app.utils import get_json_body, pagination_args
from validators import ValidationError

logger = logging.getLogger(__name__)

# Create blueprint
users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/users', methods=['GET', 'POST'])
@admin_required
def handle_users():
    """List staff accounts or create one"""
    with get_db_session() as session:
        repo = UsersRepository(session)
        if request.method == 'GET':
            result = repo.list_users(
                search=request.args.get('search'),
                role=request.args.get('role'),
                **pagination_args()
            )
            return jsonify(result)

        user = repo.create_user(get_json_body())
        logger.info(f"Admin {g.current_user_id} created user {user.id}")
        return jsonify({'success': True, 'data': user.to_dict()}), 201


@users_bp.route('/users/<user_id>', methods=['GET', 'PUT', 'DELETE'])
@admin_required
def handle_user(user_id):
    """Single staff account; passwords are not changed here"""
    with get_db_session() as session:
        repo = UsersRepository(session)
        if request.method == 'GET':
            user = repo.get_user(user_id)
        elif request.method == 'PUT':
            user = repo.update_user(user_id, get_json_body())
        else:
            if user_id == g.current_user_id:
                raise ValidationError('Cannot delete yourself')
            if not repo.delete_user(user_id):
                raise NotFoundError('User')
            return jsonify({'success': True, 'message': 'User deleted successfully'})

        if not user:
            raise NotFoundError('User')
        return jsonify({'success': True, 'data': user})
