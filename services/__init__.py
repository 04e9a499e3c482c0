"""
Services package for the Motor Care CRM.
Contains repository classes for database access and the domain services.
"""

from services.crm_repository import CRMRepository
from services.billing_repository import BillingRepository
from services.users_repository import UsersRepository
from services.dashboard_service import DashboardService
from services.email_service import EmailService
from services.whatsapp_service import WhatsAppService

__all__ = [
    'CRMRepository',
    'BillingRepository',
    'UsersRepository',
    'DashboardService',
    'EmailService',
    'WhatsAppService'
]
