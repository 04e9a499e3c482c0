"""
Vehicle Routes Blueprint

- /api/vehicles - list (search, customer filter, pagination) and create
- /api/vehicles/<id> - read, update and delete
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
vehicles_bp = Blueprint('vehicles_bp', __name__)


@vehicles_bp.route('/vehicles', methods=['GET', 'POST'])
@login_required
def handle_vehicles():
    """List vehicles or register one for a customer"""
    with get_db_session() as session:
        repo = CRMRepository(session)
        if request.method == 'GET':
            result = repo.list_vehicles(
                search=request.args.get('search'),
                customer_id=request.args.get('customer'),
                **pagination_args()
            )
            return jsonify(result)

        vehicle = repo.create_vehicle(get_json_body())
        return jsonify({'success': True, 'data': vehicle}), 201


@vehicles_bp.route('/vehicles/<vehicle_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def handle_vehicle(vehicle_id):
    """Single vehicle with its owner"""
    with get_db_session() as session:
        repo = CRMRepository(session)
        if request.method == 'GET':
            vehicle = repo.get_vehicle(vehicle_id)
        elif request.method == 'PUT':
            vehicle = repo.update_vehicle(vehicle_id, get_json_body())
        else:
            if not repo.delete_vehicle(vehicle_id):
                raise NotFoundError('Vehicle')
            return jsonify({'success': True, 'message': 'Vehicle deleted successfully'})

        if not vehicle:
            raise NotFoundError('Vehicle')
        return jsonify({'success': True, 'data': vehicle})
