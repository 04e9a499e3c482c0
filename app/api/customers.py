"""
Customer Routes Blueprint

- /api/customers - list (search, pagination) and create
- /api/customers/<id> - read, update and delete
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
customers_bp = Blueprint('customers_bp', __name__)


@customers_bp.route('/customers', methods=['GET', 'POST'])
@login_required
def handle_customers():
    """List customers or create one (drafts need only a name)"""
    with get_db_session() as session:
        repo = CRMRepository(session)
        if request.method == 'GET':
            result = repo.list_customers(search=request.args.get('search'), **pagination_args())
            return jsonify(result)

        customer = repo.create_customer(get_json_body())
        return jsonify({'success': True, 'data': customer}), 201


@customers_bp.route('/customers/<customer_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def handle_customer(customer_id):
    """Single customer with its vehicles"""
    with get_db_session() as session:
        repo = CRMRepository(session)
        if request.method == 'GET':
            customer = repo.get_customer(customer_id)
        elif request.method == 'PUT':
            customer = repo.update_customer(customer_id, get_json_body())
        else:
            if not repo.delete_customer(customer_id):
                raise NotFoundError('Customer')
            return jsonify({'success': True, 'message': 'Customer deleted successfully'})

        if not customer:
            raise NotFoundError('Customer')
        return jsonify({'success': True, 'data': customer})
