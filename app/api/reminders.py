"""
Reminder Routes Blueprint

- /api/reminders - list (search, status, type, pagination) and create
- /api/reminders/<id> - read, update and delete
"""

import logging
from flask import Blueprint, g, request, jsonify

from auth import login_required
from database.connection import get_db_session
from services.crm_repository import CRMRepository
from services.exceptions import NotFoundError
from app.utils import get_json_body, pagination_args

logger = logging.getLogger(__name__)

# Create blueprint
reminders_bp = Blueprint('reminders_bp', __name__)


@reminders_bp.route('/reminders', methods=['GET', 'POST'])
@login_required
def handle_reminders():
    """List reminders, soonest first, or schedule one"""
    with get_db_session() as session:
        repo = CRMRepository(session, user_id=g.current_user_id)
        if request.method == 'GET':
            result = repo.list_reminders(
                search=request.args.get('search'),
                status=request.args.get('status'),
                reminder_type=request.args.get('type'),
                **pagination_args()
            )
            return jsonify(result)

        reminder = repo.create_reminder(get_json_body())
        return jsonify({'success': True, 'data': reminder}), 201


@reminders_bp.route('/reminders/<reminder_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def handle_reminder(reminder_id):
    """Single reminder"""
    with get_db_session() as session:
        repo = CRMRepository(session, user_id=g.current_user_id)
        if request.method == 'GET':
            reminder = repo.get_reminder(reminder_id)
        elif request.method == 'PUT':
            reminder = repo.update_reminder(reminder_id, get_json_body())
        else:
            if not repo.delete_reminder(reminder_id):
                raise NotFoundError('Reminder')
            return jsonify({'success': True, 'message': 'Reminder deleted successfully'})

        if not reminder:
            raise NotFoundError('Reminder')
        return jsonify({'success': True, 'data': reminder})
