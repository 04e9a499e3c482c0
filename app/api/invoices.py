"""
Invoice Routes Blueprint

- /api/invoices - list (search, status, pagination) and create
- /api/invoices/<id> - read, update and delete
"""

import logging
from flask import Blueprint, request, jsonify

from auth import login_required
from database.connection import get_db_session
from services.exceptions import NotFoundError
from app.utils import billing_repository, get_json_body, pagination_args

logger = logging.getLogger(__name__)

# Create blueprint
invoices_bp = Blueprint('invoices_bp', __name__)


@invoices_bp.route('/invoices', methods=['GET', 'POST'])
@login_required
def handle_invoices():
    """List invoices or create one with an INV number"""
    with get_db_session() as session:
        repo = billing_repository(session)
        if request.method == 'GET':
            result = repo.list_invoices(
                search=request.args.get('search'),
                status=request.args.get('status'),
                **pagination_args()
            )
            return jsonify(result)

        invoice = repo.create_invoice(get_json_body())
        return jsonify({'success': True, 'data': invoice}), 201


@invoices_bp.route('/invoices/<invoice_id>', methods=['GET', 'PUT', 'DELETE'])
@login_required
def handle_invoice(invoice_id):
    """Single invoice with its customer, vehicle and service orders"""
    with get_db_session() as session:
        repo = billing_repository(session)
        if request.method == 'GET':
            invoice = repo.get_invoice(invoice_id)
        elif request.method == 'PUT':
            invoice = repo.update_invoice(invoice_id, get_json_body())
        else:
            if not repo.delete_invoice(invoice_id):
                raise NotFoundError('Invoice')
            return jsonify({'success': True, 'message': 'Invoice deleted successfully'})

        if not invoice:
            raise NotFoundError('Invoice')
        return jsonify({'success': True, 'data': invoice})
