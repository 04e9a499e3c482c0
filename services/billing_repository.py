"""
Billing Repository - Database access layer for estimations and invoices.
Numbers new documents and keeps their line-item totals consistent.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from database.models import Customer, Vehicle, ServiceOrder, Estimation, Invoice, utcnow
from services.crm_repository import clean_payload, get_reference, merged_state, reference_id
from services.pagination import paginate, search_filter
from services.sequence import ESTIMATION_PREFIX, INVOICE_PREFIX, generate_number
from services.totals import (
    DEFAULT_CGST_RATE, DEFAULT_SGST_RATE, DEFAULT_TAX_RATE,
    calculate_estimation_totals, calculate_invoice_totals, to_decimal
)
from validators import (
    parse_datetime, raise_for, sanitize_string,
    validate_estimation_data, validate_invoice_data
)

logger = logging.getLogger(__name__)

# Legacy status sent by older clients
INVOICE_STATUS_ALIASES = {'unpaid': 'draft'}


def _item_descriptions(items: List[Dict]) -> str:
    return '\n'.join(item.get('description') or '' for item in items)


class BillingRepository:
    """Repository for estimation and invoice database operations."""

    def __init__(self, session: Session, tax_rate: float = DEFAULT_TAX_RATE,
                 cgst_rate: float = DEFAULT_CGST_RATE, sgst_rate: float = DEFAULT_SGST_RATE):
        self.session = session
        self.tax_rate = tax_rate
        self.cgst_rate = cgst_rate
        self.sgst_rate = sgst_rate

    def _resolve_parties(self, record, data: Dict):
        if 'customer' in data:
            record.customer = get_reference(self.session, Customer, data['customer'], 'Customer')
        if 'vehicle' in data:
            record.vehicle = get_reference(self.session, Vehicle, data['vehicle'], 'Vehicle')

    # =========================================================================
    # ESTIMATIONS
    # =========================================================================

    def _apply_estimation_totals(self, estimation: Estimation, data: Dict):
        """Recompute from the supplied items, using supplied or stored rates."""
        totals = calculate_estimation_totals(
            data['items'],
            cgst_rate=data.get('cgstRate', estimation.cgst_rate),
            sgst_rate=data.get('sgstRate', estimation.sgst_rate),
            discount=data.get('discount', estimation.discount),
        )
        estimation.items = totals['items']
        estimation.item_descriptions = _item_descriptions(totals['items'])
        estimation.subtotal = totals['subtotal']
        estimation.cgst_rate = totals['cgstRate']
        estimation.sgst_rate = totals['sgstRate']
        estimation.cgst_amount = totals['cgstAmount']
        estimation.sgst_amount = totals['sgstAmount']
        estimation.discount = totals['discount']
        estimation.total = totals['total']

    def _apply_estimation_fields(self, estimation: Estimation, data: Dict):
        if 'validUntil' in data:
            estimation.valid_until = parse_datetime(data['validUntil'], 'validUntil')
        if 'status' in data:
            estimation.status = data['status']
        if 'notes' in data:
            estimation.notes = sanitize_string(data['notes']) or ''
        if data.get('estimationNumber'):
            estimation.estimation_number = sanitize_string(data['estimationNumber'])

    def list_estimations(self, search: str = None, status: str = None,
                         page: int = 1, limit: int = 25) -> Dict:
        """List estimations, newest first, searching number and item descriptions."""
        query = self.session.query(Estimation)
        if status:
            query = query.filter(Estimation.status == status)
        criteria = search_filter(search, Estimation.estimation_number, Estimation.item_descriptions)
        if criteria is not None:
            query = query.filter(criteria)
        query = query.order_by(Estimation.created_at.desc())
        return paginate(query, page, limit, lambda e: e.to_dict())

    def get_estimation(self, estimation_id: str) -> Optional[Dict]:
        """Get an estimation by ID, fully populated."""
        estimation = self.session.get(Estimation, estimation_id)
        return estimation.to_dict(detail=True) if estimation else None

    def create_estimation(self, data: Dict) -> Dict:
        """
        Create an estimation.

        The number is issued from the EST counter unless the caller supplied
        one; totals are always computed from the items (an empty list is allowed).
        """
        data = clean_payload(data, refs=('customer', 'vehicle'), defaulted=('status',))
        raise_for(validate_estimation_data(data))

        estimation = Estimation(
            status='draft', notes='',
            cgst_rate=self.cgst_rate, sgst_rate=self.sgst_rate, discount=0
        )
        self._resolve_parties(estimation, data)
        self._apply_estimation_fields(estimation, data)
        self._apply_estimation_totals(estimation, dict(data, items=data.get('items') or []))

        if not estimation.estimation_number:
            estimation.estimation_number = generate_number(self.session, ESTIMATION_PREFIX)

        self.session.add(estimation)
        self.session.flush()
        logger.info(f"Created estimation: {estimation.estimation_number} ({estimation.id})")
        return estimation.to_dict(detail=True)

    def update_estimation(self, estimation_id: str, data: Dict) -> Optional[Dict]:
        """
        Update an estimation.

        Totals are recomputed only when items are supplied. Rates or discount
        sent without items are stored as given and the totals stay as they were.
        """
        estimation = self.session.get(Estimation, estimation_id)
        if not estimation:
            return None

        data = clean_payload(data, refs=('customer', 'vehicle'), defaulted=('status',))
        current = estimation.to_dict()
        current.update(customer=estimation.customer_id, vehicle=estimation.vehicle_id)
        state = merged_state(current, data, ['customer', 'vehicle', 'validUntil', 'status', 'items'])
        raise_for(validate_estimation_data(state))

        self._resolve_parties(estimation, data)
        self._apply_estimation_fields(estimation, data)
        if 'items' in data and data['items'] is not None:
            self._apply_estimation_totals(estimation, data)
        else:
            for key, column in (('cgstRate', 'cgst_rate'), ('sgstRate', 'sgst_rate'),
                                ('discount', 'discount')):
                if key in data:
                    setattr(estimation, column, float(to_decimal(data[key])))

        self.session.flush()
        logger.info(f"Updated estimation: {estimation_id}")
        return estimation.to_dict(detail=True)

    def delete_estimation(self, estimation_id: str) -> bool:
        """Delete an estimation."""
        estimation = self.session.get(Estimation, estimation_id)
        if not estimation:
            return False
        self.session.delete(estimation)
        self.session.flush()
        logger.info(f"Deleted estimation: {estimation_id}")
        return True

    # =========================================================================
    # INVOICES
    # =========================================================================

    def _clean_invoice_payload(self, data: Dict) -> Dict:
        data = clean_payload(data, refs=('customer', 'vehicle'), defaulted=('status',))
        if 'status' in data:
            data['status'] = INVOICE_STATUS_ALIASES.get(data['status'], data['status'])
        return data

    def _apply_invoice_totals(self, invoice: Invoice, data: Dict):
        totals = calculate_invoice_totals(
            data['items'],
            tax_rate=data.get('taxRate', invoice.tax_rate),
            discount=data.get('discount', invoice.discount),
        )
        invoice.items = totals['items']
        invoice.subtotal = totals['subtotal']
        invoice.tax_rate = totals['taxRate']
        invoice.tax_amount = totals['taxAmount']
        invoice.discount = totals['discount']
        invoice.total = totals['total']

    def _apply_invoice_fields(self, invoice: Invoice, data: Dict):
        if 'services' in data:
            service_ids = [reference_id(s) for s in data['services'] or []]
            invoice.services = [
                get_reference(self.session, ServiceOrder, service_id, 'Service')
                for service_id in service_ids if service_id
            ]
        if 'dueDate' in data:
            invoice.due_date = parse_datetime(data['dueDate'], 'dueDate')
        if 'paidAt' in data:
            invoice.paid_at = parse_datetime(data['paidAt'], 'paidAt')
        if 'notes' in data:
            invoice.notes = sanitize_string(data['notes']) or ''
        if data.get('invoiceNumber'):
            invoice.invoice_number = sanitize_string(data['invoiceNumber'])

        if 'status' in data:
            previous_status = invoice.status
            invoice.status = data['status']
            if invoice.status == 'paid' and not data.get('paidAt'):
                if previous_status != 'paid' or invoice.paid_at is None:
                    invoice.paid_at = utcnow()

    def list_invoices(self, search: str = None, status: str = None,
                      page: int = 1, limit: int = 25) -> Dict:
        """List invoices, newest first, searching the invoice number."""
        query = self.session.query(Invoice)
        if status:
            query = query.filter(Invoice.status == status)
        criteria = search_filter(search, Invoice.invoice_number)
        if criteria is not None:
            query = query.filter(criteria)
        query = query.order_by(Invoice.created_at.desc())
        return paginate(query, page, limit, lambda i: i.to_dict())

    def get_invoice(self, invoice_id: str) -> Optional[Dict]:
        """Get an invoice by ID with customer, vehicle and services."""
        invoice = self.session.get(Invoice, invoice_id)
        return invoice.to_dict(detail=True) if invoice else None

    def create_invoice(self, data: Dict) -> Dict:
        """Create an invoice numbered from the INV counter unless one was supplied."""
        data = self._clean_invoice_payload(data)
        raise_for(validate_invoice_data(data, require_items=True))

        invoice = Invoice(status='draft', notes='', tax_rate=self.tax_rate, discount=0)
        self._resolve_parties(invoice, data)
        self._apply_invoice_fields(invoice, data)
        self._apply_invoice_totals(invoice, data)

        if not invoice.invoice_number:
            invoice.invoice_number = generate_number(self.session, INVOICE_PREFIX)

        self.session.add(invoice)
        self.session.flush()
        logger.info(f"Created invoice: {invoice.invoice_number} ({invoice.id})")
        return invoice.to_dict(detail=True)

    def update_invoice(self, invoice_id: str, data: Dict) -> Optional[Dict]:
        """
        Update an invoice.

        Moving the status to paid stamps paidAt unless the payload supplies
        one. Totals are recomputed only when items are supplied.
        """
        invoice = self.session.get(Invoice, invoice_id)
        if not invoice:
            return None

        data = self._clean_invoice_payload(data)
        current = invoice.to_dict()
        current.update(customer=invoice.customer_id, vehicle=invoice.vehicle_id)
        state = merged_state(current, data, ['customer', 'vehicle', 'status', 'services', 'items'])
        raise_for(validate_invoice_data(state))

        self._resolve_parties(invoice, data)
        self._apply_invoice_fields(invoice, data)
        if 'items' in data and data['items'] is not None:
            self._apply_invoice_totals(invoice, data)
        else:
            for key, column in (('taxRate', 'tax_rate'), ('discount', 'discount')):
                if key in data:
                    setattr(invoice, column, float(to_decimal(data[key])))

        self.session.flush()
        logger.info(f"Updated invoice: {invoice_id}")
        return invoice.to_dict(detail=True)

    def delete_invoice(self, invoice_id: str) -> bool:
        """Delete an invoice; linked service orders keep existing without it."""
        invoice = self.session.get(Invoice, invoice_id)
        if not invoice:
            return False
        self.session.delete(invoice)
        self.session.flush()
        logger.info(f"Deleted invoice: {invoice_id}")
        return True
