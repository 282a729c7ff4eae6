"""Outbound email transports."""
from abc import ABC, abstractmethod
from typing import Optional

import resend

from ..app.errors import UpstreamError
from .logger import get_logger

logger = get_logger(__name__)


class MailTransport(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        """Deliver one message or raise ``UpstreamError``."""
        ...


class ResendTransport(MailTransport):
    def __init__(self, api_key: str, sender: str):
        self.api_key = api_key
        self.sender = sender

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        if not to:
            raise UpstreamError("Recipient address missing", code="MailFailed")
        resend.api_key = self.api_key
        params = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "text": text,
        }
        if html:
            params["html"] = html
        try:
            resend.Emails.send(params)
        except Exception as e:
            raise UpstreamError(f"Mail delivery failed: {e}", code="MailFailed") from e


class NullTransport(MailTransport):
    """Used when no mail provider is configured; logs the subject and drops the message."""

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        logger.info("Mail transport disabled, dropping '%s'", subject)
