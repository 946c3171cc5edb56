"""Transactional email through the Resend HTTP API."""
import html
import logging
import requests
from flask import current_app

logger = logging.getLogger(__name__)

RESEND_API_URL = 'https://api.resend.com/emails'


class MailError(Exception):
    """Raised when an email could not be delivered to the provider."""
    pass


def get_invitation_email_template(name, invitation_url, token):
    link = f"{invitation_url}?token={token}"
    return f"""
  <h1>You're invited, {html.escape(name or '')}!</h1>
  <p>You have been invited to the Nomadic Skills Survey platform. The invitation expires in 7 days.</p>
  <a href="{html.escape(link, quote=True)}">Accept invitation</a>
"""


def get_welcome_email_template(name):
    return f"""
  <h1>Welcome, {html.escape(name or '')}!</h1>
  <p>Thank you for joining our platform. We're excited to have you on board.</p>
"""


class MailService:
    """Thin client for the Resend ``/emails`` endpoint."""

    def __init__(self, api_key=None, sender='onboarding@smms.dev', timeout=30):
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(api_key=config.get('RESEND_API_KEY'), sender=config.get('MAIL_FROM') or 'onboarding@smms.dev')

    def send_email(self, to, subject, html_body):
        """Send one email.

        Returns the provider response body, or None when no API key is set.

        Raises:
            MailError: If the provider rejects the message or cannot be reached
        """
        if not self.api_key:
            logger.info(f"Mail disabled (no RESEND_API_KEY); skipping '{subject}' to {to}")
            return None

        try:
            response = requests.post(
                RESEND_API_URL,
                json={'from': self.sender, 'to': to, 'subject': subject, 'html': html_body},
                headers={'Authorization': f'Bearer {self.api_key}'},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise MailError(f"Failed to send email: {e}") from e

        logger.info(f"Sent '{subject}' to {to}")
        return response.json() if response.content else None

    def send_invitation(self, user, invitation_url):
        return self.send_email(
            user.email,
            'You have been invited',
            get_invitation_email_template(user.full_name, invitation_url, user.invitation_token)
        )

    def send_welcome(self, user):
        return self.send_email(user.email, 'Welcome', get_welcome_email_template(user.full_name))


def get_mail_service():
    """Mail service configured from the current app."""
    return MailService.from_config(current_app.config)
