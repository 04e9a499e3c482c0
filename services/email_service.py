"""
Email Service - outbound e-mail over SMTP.

Currently used for password reset links. Sending is enabled only when an
SMTP host and user are configured.
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Dict

logger = logging.getLogger(__name__)


class EmailService:
    """Sends transactional e-mail through the configured SMTP server."""

    def __init__(self, config: Dict):
        self.smtp_host = config.get('EMAIL_HOST', '')
        self.smtp_port = int(config.get('EMAIL_PORT', 587))
        self.smtp_user = config.get('EMAIL_USER', '')
        self.smtp_password = config.get('EMAIL_PASSWORD', '')
        self.use_tls = config.get('EMAIL_USE_TLS', True)
        self.from_email = config.get('EMAIL_FROM') or self.smtp_user
        self.email_enabled = bool(self.smtp_host and self.smtp_user)

    def send(self, to: str, subject: str, text: str, html: str = None) -> bool:
        """
        Send one message.

        Returns:
            True on success, False when disabled or the SMTP exchange failed
        """
        if not self.email_enabled:
            logger.info(f"Email not configured, skipped message to {to}")
            return False

        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = self.from_email
        msg['To'] = to
        msg.attach(MIMEText(text, 'plain'))
        if html:
            msg.attach(MIMEText(html, 'html'))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to}: {e}")
            return False

        logger.info(f"Sent email '{subject}' to {to}")
        return True

    def send_password_reset(self, to: str, reset_url: str, expire_minutes: int = 10) -> bool:
        """Send the password reset link."""
        text = f"""
Password Reset Request

You requested to reset your password. Open the link below to choose a new one:

{reset_url}

This link will expire in {expire_minutes} minutes.
If you didn't request this, please ignore this email.
"""

        html = f"""
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background: #f97316; color: white; padding: 20px; text-align: center; }}
        .content {{ padding: 20px; background: #f9f9f9; }}
        .button {{ display: inline-block; padding: 12px 24px; background: #f97316; color: white; text-decoration: none; border-radius: 5px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h2 style="margin: 0;">Motor Care</h2></div>
        <div class="content">
            <h3>Password Reset Request</h3>
            <p>You requested to reset your password. Click the button below to reset it:</p>
            <p style="text-align: center;"><a href="{reset_url}" class="button">Reset Password</a></p>
            <p style="word-break: break-all; color: #666;">{reset_url}</p>
            <p><strong>This link will expire in {expire_minutes} minutes.</strong></p>
            <p>If you didn't request this, please ignore this email.</p>
        </div>
    </div>
</body>
</html>
"""
        return self.send(to, 'Password Reset Request - Motor Care', text, html)
