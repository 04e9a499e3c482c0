"""
WhatsApp Routes Blueprint

Outbound notifications and the Cloud API webhook:
- /api/whatsapp/test - send a free-form message
- /api/whatsapp/invoice/<id>, /payment-reminder/<id> - invoice messages
- /api/whatsapp/service/<id>, /appointment/<id> - service order messages
- /api/whatsapp/reminder/<id> - reminder message
- /api/whatsapp/status - client state
- /api/whatsapp/webhook - verification handshake and inbound messages
"""

import logging
from flask import Blueprint, current_app, request, jsonify

from auth import login_required
from database.connection import get_db_session
from services.exceptions import MessagingError
from services.whatsapp_service import extract_text_messages, verify_signature
from app.utils import get_json_body
from app_init import get_whatsapp_service
from validators import ValidationError

logger = logging.getLogger(__name__)

# Create blueprint
whatsapp_bp = Blueprint('whatsapp_bp', __name__)

DEFAULT_TEST_MESSAGE = 'Test message from CRM'


def get_whatsapp():
    """WhatsApp service attached to the app at startup"""
    return get_whatsapp_service(current_app._get_current_object())


def _notify(method_name, record_id, message):
    with get_db_session() as session:
        getattr(get_whatsapp(), method_name)(session, record_id)
    return jsonify({'success': True, 'message': message})


# ============================================================================
# OUTBOUND
# ============================================================================

@whatsapp_bp.route('/whatsapp/test', methods=['POST'])
@login_required
def send_test_message():
    """Send a message to any number"""
    data = get_json_body()
    if not data.get('number'):
        raise ValidationError('Phone number is required', 'number')

    get_whatsapp().send_message(data['number'], data.get('message') or DEFAULT_TEST_MESSAGE)
    return jsonify({'success': True, 'message': 'Message sent successfully'})


@whatsapp_bp.route('/whatsapp/invoice/<invoice_id>', methods=['POST'])
@login_required
def send_invoice_notification(invoice_id):
    return _notify('send_invoice_notification', invoice_id, 'Invoice notification sent')


@whatsapp_bp.route('/whatsapp/payment-reminder/<invoice_id>', methods=['POST'])
@login_required
def send_payment_reminder(invoice_id):
    return _notify('send_payment_reminder', invoice_id, 'Payment reminder sent')


@whatsapp_bp.route('/whatsapp/service/<service_id>', methods=['POST'])
@login_required
def send_service_completion(service_id):
    return _notify('send_service_completion_notification', service_id,
                   'Service completion notification sent')


@whatsapp_bp.route('/whatsapp/appointment/<service_id>', methods=['POST'])
@login_required
def send_appointment_confirmation(service_id):
    return _notify('send_appointment_confirmation', service_id, 'Appointment confirmation sent')


@whatsapp_bp.route('/whatsapp/reminder/<reminder_id>', methods=['POST'])
@login_required
def send_reminder_notification(reminder_id):
    return _notify('send_reminder_notification', reminder_id, 'Reminder notification sent')


@whatsapp_bp.route('/whatsapp/status', methods=['GET'])
@login_required
def get_status():
    """Whether messaging is enabled and a client is available"""
    return jsonify(dict(get_whatsapp().status(), success=True))


# ============================================================================
# WEBHOOK
# ============================================================================

@whatsapp_bp.route('/whatsapp/webhook', methods=['GET'])
def verify_webhook():
    """Answer the Cloud API subscription handshake"""
    verify_token = current_app.config.get('WHATSAPP_VERIFY_TOKEN')
    if (request.args.get('hub.mode') == 'subscribe' and verify_token
            and request.args.get('hub.verify_token') == verify_token):
        logger.info("WhatsApp webhook verified")
        return request.args.get('hub.challenge', ''), 200

    logger.warning("WhatsApp webhook verification failed")
    return jsonify({'success': False, 'message': 'Verification failed'}), 403


@whatsapp_bp.route('/whatsapp/webhook', methods=['POST'])
def receive_webhook():
    """
    Reply to inbound text messages.

    Deliveries must carry a valid X-Hub-Signature-256 for WHATSAPP_APP_SECRET,
    otherwise the request is rejected with 401. Signed deliveries are always
    acknowledged with 200 so the platform does not redeliver; a body that is
    not a JSON object is ignored and a reply that cannot be sent is logged.
    """
    signature = request.headers.get('X-Hub-Signature-256')
    if not verify_signature(current_app.config.get('WHATSAPP_APP_SECRET'),
                            request.get_data(), signature):
        logger.warning(f"Rejected unsigned WhatsApp webhook from {request.remote_addr}")
        return jsonify({'success': False, 'message': 'Invalid signature'}), 401

    payload = request.get_json(silent=True)
    messages = extract_text_messages(payload if isinstance(payload, dict) else {})
    replied = 0
    for message in messages:
        with get_db_session() as session:
            try:
                get_whatsapp().handle_incoming(session, message['from'], message['text'])
                replied += 1
            except (MessagingError, ValidationError) as e:
                logger.error(f"Could not reply to {message['from']}: {e.message}")

    return jsonify({'success': True, 'received': len(messages), 'replied': replied})
