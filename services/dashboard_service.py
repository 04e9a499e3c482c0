"""
Dashboard Service - aggregate figures for the admin dashboard.

Counts, paid revenue, revenue per month for the last six months, reminders
due in the coming week and the most recent pending work.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from database.models import Customer, Vehicle, ServiceOrder, Invoice, Reminder, utcnow
from services.totals import money, to_decimal

logger = logging.getLogger(__name__)

PENDING_INVOICE_STATUSES = ('draft', 'sent')
REVENUE_MONTHS = 6
REMINDER_WINDOW_DAYS = 7
LIST_LIMIT = 10


class DashboardService:
    """Computes dashboard statistics from the database."""

    def __init__(self, session: Session, now: Optional[datetime] = None):
        self.session = session
        self.now = now or utcnow()

    def _count(self, model, *criteria) -> int:
        query = self.session.query(func.count(model.id))
        if criteria:
            query = query.filter(*criteria)
        return query.scalar() or 0

    def total_revenue(self) -> float:
        """Sum of totals over paid invoices."""
        total = self.session.query(func.sum(Invoice.total)).filter(
            Invoice.status == 'paid'
        ).scalar()
        return money(to_decimal(total))

    def revenue_by_month(self) -> List[Dict]:
        """
        Paid revenue grouped by the month the invoice was created.

        Covers invoices created in the last six months, ascending by
        (year, month); months without paid invoices are omitted.
        """
        since = self.now - relativedelta(months=REVENUE_MONTHS)
        rows = self.session.query(Invoice.created_at, Invoice.total).filter(
            Invoice.status == 'paid',
            Invoice.created_at >= since
        ).order_by(Invoice.created_at.asc()).all()

        buckets = OrderedDict()
        for created_at, total in rows:
            key = (created_at.year, created_at.month)
            buckets[key] = buckets.get(key, Decimal('0')) + to_decimal(total)

        return [
            {'year': year, 'month': month, 'revenue': money(revenue)}
            for (year, month), revenue in sorted(buckets.items())
        ]

    def upcoming_reminders(self) -> List[Dict]:
        """Pending reminders scheduled within the next seven days."""
        reminders = self.session.query(Reminder).filter(
            Reminder.status == 'pending',
            Reminder.scheduled_date >= self.now,
            Reminder.scheduled_date <= self.now + timedelta(days=REMINDER_WINDOW_DAYS)
        ).order_by(Reminder.scheduled_date.asc()).limit(LIST_LIMIT).all()
        return [r.to_dict() for r in reminders]

    def pending_services(self) -> List[Dict]:
        services = self.session.query(ServiceOrder).filter(
            ServiceOrder.status == 'pending'
        ).order_by(ServiceOrder.created_at.desc()).limit(LIST_LIMIT).all()
        return [s.to_dict() for s in services]

    def pending_invoices(self) -> List[Dict]:
        invoices = self.session.query(Invoice).filter(
            Invoice.status.in_(PENDING_INVOICE_STATUSES)
        ).order_by(Invoice.created_at.desc()).limit(LIST_LIMIT).all()
        return [i.to_dict() for i in invoices]

    def get_stats(self) -> Dict:
        """All dashboard figures in one payload."""
        stats = {
            'totalCustomers': self._count(Customer),
            'totalVehicles': self._count(Vehicle),
            'totalServices': self._count(ServiceOrder),
            'totalInvoices': self._count(Invoice),
            'totalPendingServices': self._count(ServiceOrder, ServiceOrder.status == 'pending'),
            'totalPendingInvoices': self._count(Invoice, Invoice.status.in_(PENDING_INVOICE_STATUSES)),
            'totalRevenue': self.total_revenue(),
            'revenueByMonth': self.revenue_by_month(),
            'upcomingReminders': self.upcoming_reminders(),
            'pendingServices': self.pending_services(),
            'pendingInvoices': self.pending_invoices(),
        }
        logger.debug(f"Dashboard stats: {stats['totalCustomers']} customers, "
                     f"{stats['totalPendingServices']} pending services")
        return stats
