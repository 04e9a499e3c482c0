"""
WhatsApp Service - customer notifications and a small inbound command bot.

Outbound messages go through the WhatsApp Cloud API (Meta Graph) with
``requests``. The service is created once by the app factory and attached to
the Flask app as ``app.whatsapp_service``; tests replace its ``client`` with
a fake transport.

Inbound commands (matched case-insensitively against the whole message):
- hi / hello: greeting and command list
- status / my services: pending and in-progress service orders
- invoice / invoices: sent and overdue invoices
- reminders / reminder: upcoming pending reminders
- help: command menu
"""

import hashlib
import hmac
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import requests
from sqlalchemy.orm import Session

from database.models import ServiceOrder, Invoice, Reminder, utcnow
from services.crm_repository import CRMRepository, only_digits
from services.exceptions import MessagingError, NotFoundError
from validators import ValidationError

logger = logging.getLogger(__name__)

READY_MESSAGE = 'Hello! CRM WhatsApp automation is ready.'
NOT_REGISTERED_MESSAGE = 'Sorry, your number is not registered in our system. Please contact our office.'
FALLBACK_MESSAGE = 'I didn\'t understand that. Type "help" to see available commands.'
HELP_MESSAGE = (
    "📋 Available Commands:\n\n"
    "• status - Check your service status\n"
    "• invoice - View pending invoices\n"
    "• reminders - Check upcoming reminders\n"
    "• help - Show this menu"
)

STATUS_COMMANDS = ('status', 'my services')
INVOICE_COMMANDS = ('invoice', 'invoices')
REMINDER_COMMANDS = ('reminders', 'reminder')
GREETINGS = ('hi', 'hello')

INBOUND_LIST_LIMIT = 5
SIGNATURE_PREFIX = 'sha256='


def format_date(value: Optional[datetime], empty: str = 'Not set') -> str:
    return value.strftime('%d %b %Y') if value else empty


def format_datetime(value: Optional[datetime], empty: str = 'Not scheduled') -> str:
    return value.strftime('%d %b %Y %H:%M') if value else empty


def format_amount(value) -> str:
    return f"${float(value or 0):.2f}"


def describe_vehicle(vehicle) -> str:
    if not vehicle:
        return 'N/A'
    return ' '.join(part for part in (vehicle.make, vehicle.model) if part) or 'N/A'


class WhatsAppClient:
    """Thin transport over the WhatsApp Cloud API messages endpoint."""

    def __init__(self, api_url: str, phone_number_id: str, access_token: str,
                 timeout: int = 15, http: requests.Session = None):
        self.url = f"{api_url.rstrip('/')}/{phone_number_id}/messages"
        self.access_token = access_token
        self.timeout = timeout
        self.http = http or requests.Session()

    def send_text(self, number: str, text: str) -> Dict:
        """
        Send a plain text message.

        Args:
            number: Recipient in international format, digits only
            text: Message body

        Returns:
            Parsed API response

        Raises:
            MessagingError: On transport errors or a non-2xx response
        """
        headers = {
            'Authorization': f'Bearer {self.access_token}',
            'Content-Type': 'application/json'
        }
        payload = {
            'messaging_product': 'whatsapp',
            'to': number,
            'type': 'text',
            'text': {'preview_url': False, 'body': text}
        }
        try:
            response = self.http.post(self.url, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise MessagingError(f"WhatsApp request failed: {e}")

        if response.status_code not in (200, 201):
            raise MessagingError(f"WhatsApp API error {response.status_code}: {response.text[:200]}")
        return response.json()


class WhatsAppService:
    """Customer messaging over WhatsApp."""

    def __init__(self, client: Optional[WhatsAppClient] = None, enabled: bool = False):
        self.client = client
        self.enabled = enabled

    @classmethod
    def from_config(cls, config: Dict) -> 'WhatsAppService':
        """Build the service; the client exists only when enabled and configured."""
        enabled = bool(config.get('WHATSAPP_ENABLED'))
        client = None
        if enabled and config.get('WHATSAPP_PHONE_NUMBER_ID') and config.get('WHATSAPP_ACCESS_TOKEN'):
            client = WhatsAppClient(
                api_url=config['WHATSAPP_API_URL'],
                phone_number_id=config['WHATSAPP_PHONE_NUMBER_ID'],
                access_token=config['WHATSAPP_ACCESS_TOKEN'],
                timeout=config.get('WHATSAPP_TIMEOUT', 15)
            )
            logger.info("✅ WhatsApp client initialized")
        elif enabled:
            logger.warning("WhatsApp enabled but WHATSAPP_PHONE_NUMBER_ID / WHATSAPP_ACCESS_TOKEN are missing")
        return cls(client=client, enabled=enabled)

    def is_connected(self) -> bool:
        return self.client is not None

    def status(self) -> Dict:
        return {'connected': self.is_connected(), 'enabled': self.enabled}

    # =========================================================================
    # OUTBOUND
    # =========================================================================

    def send_message(self, number: str, text: str) -> Dict:
        """
        Send text to a phone number; separators and '+' are stripped.

        Raises:
            ValidationError: If the number has no digits
            MessagingError: If the client is missing or the send failed
        """
        digits = only_digits(number)
        if not digits:
            raise ValidationError('Phone number is required', 'number')
        if self.client is None:
            raise MessagingError('WhatsApp client not initialized')

        try:
            result = self.client.send_text(digits, text)
        except MessagingError as e:
            logger.error(f"❌ Failed to send message to {digits}: {e.message}")
            raise
        logger.info(f"✅ Message sent to {digits}")
        return result

    def _customer_number(self, customer) -> str:
        number = only_digits(customer.phone if customer else None)
        if not number:
            raise ValidationError('Customer phone number is missing', 'phone')
        return number

    def send_invoice_notification(self, session: Session, invoice_id: str) -> str:
        """Notify the customer of a new invoice, or thank them when it is paid."""
        invoice = session.get(Invoice, invoice_id)
        if not invoice or not invoice.customer:
            raise NotFoundError('Invoice')
        number = self._customer_number(invoice.customer)

        if invoice.status == 'paid':
            message = (
                "✅ Payment Received!\n\n"
                "Thank you for your payment!\n\n"
                f"Invoice #: {invoice.invoice_number}\n"
                f"Amount: {format_amount(invoice.total)}\n"
                f"Paid Date: {format_date(invoice.paid_at or utcnow())}\n"
                "\nWe appreciate your business! 🎉"
            )
        else:
            message = (
                "📄 New Invoice\n\n"
                f"Invoice #: {invoice.invoice_number}\n"
                f"Amount: {format_amount(invoice.total)}\n"
                f"Due Date: {format_date(invoice.due_date)}\n"
                "\nThank you for your business!"
            )

        self.send_message(number, message)
        logger.info(f"Invoice notification sent to {invoice.customer.name}")
        return message

    def send_payment_reminder(self, session: Session, invoice_id: str) -> str:
        """Remind the customer of an unpaid invoice, with days overdue."""
        invoice = session.get(Invoice, invoice_id)
        if not invoice or not invoice.customer:
            raise NotFoundError('Invoice')
        number = self._customer_number(invoice.customer)

        days_overdue = (utcnow() - invoice.due_date).days if invoice.due_date else 0
        message = (
            "🔔 Payment Reminder\n\n"
            f"Invoice #: {invoice.invoice_number}\n"
            f"Amount: {format_amount(invoice.total)}\n"
            f"Due Date: {format_date(invoice.due_date)}\n"
            f"{f'Days Overdue: {days_overdue}' if days_overdue > 0 else 'Due Today'}\n"
            "\nPlease make payment at your earliest convenience."
        )

        self.send_message(number, message)
        logger.info(f"Payment reminder sent to {invoice.customer.name}")
        return message

    def send_service_completion_notification(self, session: Session, service_id: str) -> str:
        """Tell the customer their vehicle is ready for pickup."""
        service = session.get(ServiceOrder, service_id)
        if not service or not service.customer:
            raise NotFoundError('Service')
        number = self._customer_number(service.customer)

        message = (
            "🎉 Service Complete!\n\n"
            f"Your {service.service_type} is ready for pickup.\n"
            f"Vehicle: {describe_vehicle(service.vehicle)}\n"
            "Thank you for choosing us!"
        )

        self.send_message(number, message)
        logger.info(f"Service completion notification sent to {service.customer.name}")
        return message

    def send_appointment_confirmation(self, session: Session, service_id: str) -> str:
        """Confirm the scheduled slot of a service order."""
        service = session.get(ServiceOrder, service_id)
        if not service or not service.customer:
            raise NotFoundError('Service')
        number = self._customer_number(service.customer)

        message = (
            "✅ Appointment Confirmed\n\n"
            f"Service: {service.service_type}\n"
            f"Date: {format_datetime(service.scheduled_at)}\n"
            f"Vehicle: {describe_vehicle(service.vehicle)}\n"
            "\nWe look forward to serving you!"
        )

        self.send_message(number, message)
        logger.info(f"Appointment confirmation sent to {service.customer.name}")
        return message

    def send_reminder_notification(self, session: Session, reminder_id: str) -> str:
        """Send a reminder's title, date and type to its customer."""
        reminder = session.get(Reminder, reminder_id)
        if not reminder or not reminder.customer:
            raise NotFoundError('Reminder')
        number = self._customer_number(reminder.customer)

        message = (
            "📅 Reminder\n\n"
            f"Title: {reminder.title}\n"
            f"Date: {format_date(reminder.scheduled_date)}\n"
            f"Type: {reminder.reminder_type}\n"
            + (f"Description: {reminder.description}\n" if reminder.description else '')
            + "\nPlease be prepared for this reminder."
        )

        self.send_message(number, message)
        logger.info(f"Reminder notification sent to {reminder.customer.name}")
        return message

    # =========================================================================
    # INBOUND
    # =========================================================================

    def build_reply(self, session: Session, from_number: str, text: str) -> str:
        """Compose the answer to an inbound message without sending it."""
        customer = CRMRepository(session).find_customer_by_phone(from_number)
        if not customer:
            return NOT_REGISTERED_MESSAGE

        command = (text or '').strip().lower()
        if command in GREETINGS:
            return (f"Hello {customer.name}! 👋 How can we help you today?\n\n"
                    "Commands: status, invoice, reminders, help")
        if command in STATUS_COMMANDS:
            return self._status_reply(session, customer)
        if command in INVOICE_COMMANDS:
            return self._invoice_reply(session, customer)
        if command in REMINDER_COMMANDS:
            return self._reminder_reply(session, customer)
        if command == 'help':
            return HELP_MESSAGE
        return FALLBACK_MESSAGE

    def handle_incoming(self, session: Session, from_number: str, text: str) -> str:
        """
        Answer an inbound message and send the reply back to the sender.

        Returns:
            The reply text
        """
        logger.info(f"📩 Received: {text!r} from {from_number}")
        reply = self.build_reply(session, from_number, text)
        self.send_message(from_number, reply)
        return reply

    def _status_reply(self, session: Session, customer) -> str:
        services = session.query(ServiceOrder).filter(
            ServiceOrder.customer_id == customer.id,
            ServiceOrder.status.in_(('pending', 'in-progress'))
        ).order_by(ServiceOrder.scheduled_at.asc()).limit(INBOUND_LIST_LIMIT).all()

        if not services:
            return 'You have no pending services at the moment. ✅'

        lines = ["🔧 Your Service Status:\n"]
        for index, service in enumerate(services, 1):
            lines.append(f"{index}. {service.service_type}")
            lines.append(f"   Status: {service.status}")
            lines.append(f"   Scheduled: {format_date(service.scheduled_at, 'Not scheduled')}")
            if service.vehicle:
                lines.append(f"   Vehicle: {describe_vehicle(service.vehicle)}")
            lines.append('')
        return '\n'.join(lines)

    def _invoice_reply(self, session: Session, customer) -> str:
        invoices = session.query(Invoice).filter(
            Invoice.customer_id == customer.id,
            Invoice.status.in_(('sent', 'overdue'))
        ).order_by(Invoice.due_date.asc()).limit(INBOUND_LIST_LIMIT).all()

        if not invoices:
            return 'You have no pending invoices. ✅'

        lines = ["💰 Your Pending Invoices:\n"]
        for index, invoice in enumerate(invoices, 1):
            lines.append(f"{index}. Invoice #{invoice.invoice_number}")
            lines.append(f"   Amount: {format_amount(invoice.total)}")
            lines.append(f"   Due: {format_date(invoice.due_date)}")
            lines.append(f"   Status: {invoice.status}")
            lines.append('')
        return '\n'.join(lines)

    def _reminder_reply(self, session: Session, customer) -> str:
        reminders = session.query(Reminder).filter(
            Reminder.customer_id == customer.id,
            Reminder.status == 'pending',
            Reminder.scheduled_date >= utcnow()
        ).order_by(Reminder.scheduled_date.asc()).limit(INBOUND_LIST_LIMIT).all()

        if not reminders:
            return 'You have no upcoming reminders. ✅'

        lines = ["📅 Your Upcoming Reminders:\n"]
        for index, reminder in enumerate(reminders, 1):
            lines.append(f"{index}. {reminder.title}")
            lines.append(f"   Date: {format_date(reminder.scheduled_date)}")
            lines.append(f"   Type: {reminder.reminder_type}")
            lines.append('')
        return '\n'.join(lines)


def extract_text_messages(payload: Dict) -> List[Dict]:
    """
    Pull (from, text) pairs out of a Cloud API webhook payload.

    Non-text messages and status callbacks are ignored.
    """
    messages = []
    for entry in _as_list(payload.get('entry')):
        for change in _as_list(entry.get('changes')):
            value = change.get('value') or {}
            for message in _as_list(value.get('messages')):
                if message.get('type') != 'text':
                    continue
                body = (message.get('text') or {}).get('body')
                if message.get('from') and body is not None:
                    messages.append({'from': message['from'], 'text': body})
    return messages


def _as_list(value) -> Iterable[Dict]:
    return [item for item in value if isinstance(item, dict)] if isinstance(value, list) else []


def verify_signature(app_secret: str, body: bytes, signature: Optional[str]) -> bool:
    """
    Check the X-Hub-Signature-256 header of a webhook delivery.

    The header is 'sha256=' followed by the hex HMAC-SHA256 of the raw body,
    keyed with the app secret. Without a configured secret nothing verifies.
    """
    if not app_secret or not signature or not signature.startswith(SIGNATURE_PREFIX):
        return False
    expected = hmac.new(app_secret.encode('utf-8'), body or b'', hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature[len(SIGNATURE_PREFIX):].strip().lower())
