"""
Estimation Routes Blueprint

- /api/estimations - list (search, status, pagination) and create
- /api/estimations/<id> - read, update and delete
"""

import logging
from flask import Blueprint, request, jsonify

from auth import login_required
from database.connection import get_db_session
from services.exceptions import NotFoundError
from app.utils import billing_repository, get_json_body, pagination_args

logger = logging.getLogger(__name__)

# Create blueprint
estimations_bp = Blueprint('estimations_bp', __name__)


@estimations_bp.route('/estimations', methods=['GET', 'POST'])
@login_required
def handle_estimations():
    """List estimations or create one with an EST number"""
    with get_db_session() as session:
        repo = billing_repository(session)
        if request.method == 'GET':
            result = repo.list_estimations(
                search=request.args.get('search'),
                status=request.args.get('status'),
                **pagination_args()
            )
            return jsonify(result)

        estimation = repo.create_estimation(get_json_body())
        return jsonify({'success': True, 'data': estimation}), 201


@estimations_bp.route('/estimations/<estimation_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def handle_estimation(estimation_id):
    """Single estimation"""
    with get_db_session() as session:
        repo = billing_repository(session)
        if request.method == 'GET':
            estimation = repo.get_estimation(estimation_id)
        elif request.method == 'PUT':
            estimation = repo.update_estimation(estimation_id, get_json_body())
        else:
            if not repo.delete_estimation(estimation_id):
                raise NotFoundError('Estimation')
            return jsonify({'success': True, 'message': 'Estimation deleted successfully'})

        if not estimation:
            raise NotFoundError('Estimation')
        return jsonify({'success': True, 'data': estimation})
