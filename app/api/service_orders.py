"""
Service Order Routes Blueprint

- /api/services - list (search, status, pagination) and create
- /api/services/<id> - read, update and delete

Creating or updating a service order copies its vehicle model, phone,
address and notes onto the customer and vehicle records.
"""

import logging
from flask import Blueprint, request, jsonify

from auth import login_required
from database.connection import get_db_session
from services.crm_repository import CRMRepository
from services.exceptions import NotFoundError
from app.utils import get_json_body, pagination_args

logger = logging.getLogger(__name__)

# Create blueprint
service_orders_bp = Blueprint('service_orders_bp', __name__)


@service_orders_bp.route('/services', methods=['GET', 'POST'])
@login_required
def handle_services():
    """List service orders or open a new one"""
    with get_db_session() as session:
        repo = CRMRepository(session)
        if request.method == 'GET':
            result = repo.list_services(
                search=request.args.get('search'),
                status=request.args.get('status'),
                **pagination_args()
            )
            return jsonify(result)

        service = repo.create_service(get_json_body())
        return jsonify({'success': True, 'data': service}), 201


@service_orders_bp.route('/services/<service_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def handle_service(service_id):
    """Single service order, populated with customer, vehicle and technician"""
    with get_db_session() as session:
        repo = CRMRepository(session)
        if request.method == 'GET':
            service = repo.get_service(service_id)
        elif request.method == 'PUT':
            service = repo.update_service(service_id, get_json_body())
        else:
            if not repo.delete_service(service_id):
                raise NotFoundError('Service')
            return jsonify({'success': True, 'message': 'Service deleted successfully'})

        if not service:
            raise NotFoundError('Service')
        return jsonify({'success': True, 'data': service})
