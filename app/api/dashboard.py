"""
Dashboard Routes Blueprint

- /api/dashboard/stats: counts, revenue and the work waiting for attention
"""

import logging
from flask import Blueprint, jsonify

from auth import login_required
from database.connection import get_db_session
from services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)

# Create blueprint
dashboard_bp = Blueprint('dashboard_bp', __name__)


@dashboard_bp.route('/dashboard/stats', methods=['GET'])
@login_required
def get_dashboard_stats():
    """Aggregate statistics for the dashboard landing page"""
    with get_db_session() as session:
        stats = DashboardService(session).get_stats()
    return jsonify({'success': True, 'data': stats})
