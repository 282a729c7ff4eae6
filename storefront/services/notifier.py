"""Notification sender.

``Notifier.notify`` never raises: a failed delivery is logged and recorded in
``failures`` so callers (and tests) can see what was attempted without the
parent operation being affected. Only the latest ``MAX_RECORDED_FAILURES``
failures are kept.
"""
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from ..utils.logger import get_logger
from ..utils.mailer import MailTransport

logger = get_logger(__name__)

MAX_RECORDED_FAILURES = 50


@dataclass
class Notification:
    to: Optional[str]
    subject: str
    text: str
    html: Optional[str] = None
    kind: str = "generic"


@dataclass
class NotificationFailure:
    notification: Notification
    error: str


class Notifier(ABC):
    def __init__(self):
        self.failures: Deque[NotificationFailure] = deque(maxlen=MAX_RECORDED_FAILURES)

    @abstractmethod
    def deliver(self, notification: Notification) -> None:
        ...

    def notify(self, notification: Notification) -> bool:
        try:
            self.deliver(notification)
            return True
        except Exception as e:
            logger.error("Failed to send %s notification '%s': %s", notification.kind, notification.subject, e)
            self.failures.append(NotificationFailure(notification=notification, error=str(e)))
            return False


class EmailNotifier(Notifier):
    def __init__(self, transport: MailTransport):
        super().__init__()
        self.transport = transport

    def deliver(self, notification: Notification) -> None:
        if not notification.to:
            raise ValueError("notification has no recipient")
        self.transport.send(notification.to, notification.subject, notification.text, notification.html)
