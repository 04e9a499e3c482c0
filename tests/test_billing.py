"""
Tests for invoices and estimations
"""
import re
import pytest

INVOICE_NUMBER = re.compile(r'^INV-\d{4}-\d{6}$')
ESTIMATION_NUMBER = re.compile(r'^EST-\d{4}-\d{6}$')


@pytest.fixture
def invoice(client, auth_headers, invoice_payload):
    response = client.post('/api/invoices', headers=auth_headers, json=invoice_payload)
    assert response.status_code == 201
    return response.get_json()['data']


@pytest.fixture
def estimation_payload(customer, vehicle):
    return {
        'customer': customer['id'],
        'vehicle': vehicle['id'],
        'items': [
            {'description': 'Brake pads', 'quantity': 2, 'unitPrice': 100},
            {'description': 'Labour', 'unitPrice': 0}
        ],
        'validUntil': '2030-02-01'
    }


@pytest.mark.integration
class TestInvoices:
    """Tests for /api/invoices"""

    def test_create_computes_totals(self, invoice):
        """Test the 50 + 10% tax example"""
        assert INVOICE_NUMBER.match(invoice['invoiceNumber'])
        assert invoice['subtotal'] == 50
        assert invoice['taxAmount'] == 5
        assert invoice['total'] == 55
        assert invoice['items'][0]['totalPrice'] == 50
        assert invoice['status'] == 'draft'

    def test_detail_populates_customer(self, client, auth_headers, invoice, customer):
        response = client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers)
        data = response.get_json()['data']
        assert data['customer']['name'] == customer['name']
        assert data['vehicle']['plateNumber'] == 'MH12AB1234'

    def test_requires_items(self, client, auth_headers, invoice_payload):
        response = client.post('/api/invoices', headers=auth_headers,
                               json=dict(invoice_payload, items=[]))
        assert response.status_code == 400
        assert response.get_json()['message'] == 'At least one item is required'

    def test_unpaid_is_stored_as_draft(self, client, auth_headers, invoice_payload):
        response = client.post('/api/invoices', headers=auth_headers,
                               json=dict(invoice_payload, status='unpaid'))
        assert response.status_code == 201
        assert response.get_json()['data']['status'] == 'draft'

    def test_zero_tax_rate_is_kept(self, client, auth_headers, invoice_payload):
        response = client.post('/api/invoices', headers=auth_headers,
                               json=dict(invoice_payload, taxRate=0))
        data = response.get_json()['data']
        assert data['taxRate'] == 0
        assert data['total'] == 50

    def test_numbers_increase(self, client, auth_headers, invoice_payload):
        first = client.post('/api/invoices', headers=auth_headers, json=invoice_payload).get_json()['data']
        second = client.post('/api/invoices', headers=auth_headers, json=invoice_payload).get_json()['data']
        assert int(second['invoiceNumber'][-6:]) == int(first['invoiceNumber'][-6:]) + 1

    def test_update_without_items_keeps_totals(self, client, auth_headers, invoice):
        """Test that a rate change alone does not recompute"""
        response = client.put(f"/api/invoices/{invoice['id']}", headers=auth_headers,
                              json={'taxRate': 0.2, 'notes': 'Rate revised'})
        data = response.get_json()['data']
        assert data['taxRate'] == 0.2
        assert data['total'] == 55
        assert data['notes'] == 'Rate revised'

    def test_update_with_items_recomputes(self, client, auth_headers, invoice):
        response = client.put(f"/api/invoices/{invoice['id']}", headers=auth_headers, json={
            'items': [{'description': 'Tyres', 'quantity': 4, 'unitPrice': 25}],
            'discount': 10
        })
        data = response.get_json()['data']
        assert data['subtotal'] == 100
        assert data['taxAmount'] == 10
        assert data['total'] == 100

    def test_paid_stamps_paid_at(self, client, auth_headers, invoice):
        response = client.put(f"/api/invoices/{invoice['id']}", headers=auth_headers,
                              json={'status': 'paid'})
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['status'] == 'paid'
        assert data['paidAt'] is not None

    def test_link_service_orders(self, client, auth_headers, invoice, service_order):
        response = client.put(f"/api/invoices/{invoice['id']}", headers=auth_headers,
                              json={'services': [service_order['id']]})
        assert [s['id'] for s in response.get_json()['data']['services']] == [service_order['id']]

    def test_unknown_service_reference(self, client, auth_headers, invoice):
        response = client.put(f"/api/invoices/{invoice['id']}", headers=auth_headers,
                              json={'services': ['missing']})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Service not found'

    def test_search_by_number_and_delete(self, client, auth_headers, invoice):
        found = client.get(f"/api/invoices?search={invoice['invoiceNumber']}", headers=auth_headers)
        assert found.get_json()['pagination']['total'] == 1

        response = client.delete(f"/api/invoices/{invoice['id']}", headers=auth_headers)
        assert response.get_json()['message'] == 'Invoice deleted successfully'
        assert client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).status_code == 404


@pytest.mark.integration
class TestEstimations:
    """Tests for /api/estimations"""

    def test_create_splits_tax(self, client, auth_headers, estimation_payload):
        """Test CGST and SGST at the default 9% each"""
        response = client.post('/api/estimations', headers=auth_headers, json=estimation_payload)
        assert response.status_code == 201
        data = response.get_json()['data']
        assert ESTIMATION_NUMBER.match(data['estimationNumber'])
        assert data['subtotal'] == 200
        assert data['cgstAmount'] == 18
        assert data['sgstAmount'] == 18
        assert data['total'] == 236
        assert data['items'][1]['quantity'] == 1

    def test_requires_valid_until(self, client, auth_headers, estimation_payload):
        payload = dict(estimation_payload)
        del payload['validUntil']
        response = client.post('/api/estimations', headers=auth_headers, json=payload)
        assert response.status_code == 400

    def test_empty_items_allowed(self, client, auth_headers, estimation_payload):
        response = client.post('/api/estimations', headers=auth_headers,
                               json=dict(estimation_payload, items=[]))
        assert response.status_code == 201
        assert response.get_json()['data']['total'] == 0

    def test_search_item_descriptions(self, client, auth_headers, estimation_payload):
        client.post('/api/estimations', headers=auth_headers, json=estimation_payload)
        client.post('/api/estimations', headers=auth_headers, json=dict(
            estimation_payload, items=[{'description': 'Wheel alignment', 'unitPrice': 40}]
        ))

        response = client.get('/api/estimations?search=brake', headers=auth_headers)
        data = response.get_json()['data']
        assert len(data) == 1
        assert data[0]['items'][0]['description'] == 'Brake pads'

    def test_accept_and_rates(self, client, auth_headers, estimation_payload):
        created = client.post('/api/estimations', headers=auth_headers,
                              json=estimation_payload).get_json()['data']
        response = client.put(f"/api/estimations/{created['id']}", headers=auth_headers, json={
            'status': 'accepted', 'cgstRate': 0.06, 'sgstRate': 0.06, 'items': estimation_payload['items']
        })
        data = response.get_json()['data']
        assert data['status'] == 'accepted'
        assert data['cgstAmount'] == 12
        assert data['total'] == 224

    def test_numbering_independent_of_invoices(self, client, auth_headers, invoice, estimation_payload):
        data = client.post('/api/estimations', headers=auth_headers,
                           json=estimation_payload).get_json()['data']
        assert data['estimationNumber'].endswith('-000001')
