from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings
from django.db import models


def _pii_cipher() -> Optional[Fernet]:
    key = (getattr(settings, 'PII_ENCRYPTION_KEY', '') or '').strip()
    if not key:
        return None
    try:
        return Fernet(key.encode('utf-8'))
    except ValueError:
        # A malformed key behaves like no key.
        return None


def seal_pii(value: Optional[str]) -> str:
    cipher = _pii_cipher()
    if value is None or cipher is None:
        return value or ''
    return cipher.encrypt(value.encode('utf-8')).decode('utf-8')


def open_pii(token: Optional[str]) -> str:
    """Reverse of ``seal_pii``; a token sealed under another key reads as ''."""
    cipher = _pii_cipher()
    if token is None or cipher is None:
        return token or ''
    try:
        return cipher.decrypt(token.encode('utf-8')).decode('utf-8')
    except (InvalidToken, ValueError):
        return ''


class ContactSubmission(models.Model):
    """Message sent through the public contact form.

    Email and message body are stored encrypted when PII_ENCRYPTION_KEY is set.
    """
    name = models.CharField(max_length=200)
    email_encrypted = models.TextField(blank=True, default='')
    message_encrypted = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['created_at'], name='feedback_contact_created_idx')]
        ordering = ['-created_at']

    @property
    def email(self) -> str:
        return open_pii(self.email_encrypted)

    @email.setter
    def email(self, value: str) -> None:
        self.email_encrypted = seal_pii(value or '')

    @property
    def message(self) -> str:
        return open_pii(self.message_encrypted)

    @message.setter
    def message(self, value: str) -> None:
        self.message_encrypted = seal_pii(value or '')

    def to_row(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'message': self.message,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class GuidanceRecord(models.Model):
    """A scenario a visitor asked about and the guidance that came back."""
    scenario = models.TextField()
    reply = models.TextField(blank=True, default='')
    rules_used = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['created_at'], name='feedback_guid_created_idx')]
        ordering = ['-created_at']

    def to_row(self) -> dict:
        return {
            'id': self.id,
            'scenario': self.scenario,
            'reply': self.reply,
            'rules_used': list(self.rules_used or []),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
