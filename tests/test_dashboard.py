"""
Tests for dashboard statistics
"""
from datetime import datetime, timedelta
import pytest

from services.dashboard_service import DashboardService


@pytest.mark.integration
class TestDashboardStats:
    """Tests for /api/dashboard/stats"""

    def test_requires_login(self, client):
        assert client.get('/api/dashboard/stats').status_code == 401

    def test_empty_database(self, client, auth_headers):
        response = client.get('/api/dashboard/stats', headers=auth_headers)
        assert response.status_code == 200
        stats = response.get_json()['data']
        assert stats['totalCustomers'] == 0
        assert stats['totalRevenue'] == 0
        assert stats['revenueByMonth'] == []
        assert stats['upcomingReminders'] == []

    def test_counts_and_revenue(self, client, auth_headers, customer, service_order, invoice_payload):
        """Test that only paid invoices count towards revenue"""
        paid = client.post('/api/invoices', headers=auth_headers, json=invoice_payload).get_json()['data']
        client.put(f"/api/invoices/{paid['id']}", headers=auth_headers, json={'status': 'paid'})
        client.post('/api/invoices', headers=auth_headers, json=dict(invoice_payload, status='sent'))

        soon = (datetime.utcnow() + timedelta(days=2)).isoformat()
        later = (datetime.utcnow() + timedelta(days=30)).isoformat()
        for title, when in (('Soon', soon), ('Later', later)):
            client.post('/api/reminders', headers=auth_headers, json={
                'customer': customer['id'], 'title': title, 'scheduledDate': when
            })

        stats = client.get('/api/dashboard/stats', headers=auth_headers).get_json()['data']
        assert stats['totalCustomers'] == 1
        assert stats['totalVehicles'] == 1
        assert stats['totalServices'] == 1
        assert stats['totalInvoices'] == 2
        assert stats['totalPendingServices'] == 1
        assert stats['totalPendingInvoices'] == 1
        assert stats['totalRevenue'] == 55
        assert len(stats['revenueByMonth']) == 1
        assert stats['revenueByMonth'][0]['revenue'] == 55
        assert [r['title'] for r in stats['upcomingReminders']] == ['Soon']
        assert [s['id'] for s in stats['pendingServices']] == [service_order['id']]
        assert len(stats['pendingInvoices']) == 1


@pytest.mark.integration
class TestRevenueWindow:
    """Tests for the six month revenue window"""

    def test_old_invoices_excluded(self, client, auth_headers, db_session, invoice_payload):
        from database.models import Invoice

        created = client.post('/api/invoices', headers=auth_headers,
                              json=dict(invoice_payload, status='paid')).get_json()['data']
        invoice = db_session.get(Invoice, created['id'])
        invoice.created_at = datetime.utcnow() - timedelta(days=400)
        db_session.flush()

        service = DashboardService(db_session)
        assert service.total_revenue() == 55
        assert service.revenue_by_month() == []
