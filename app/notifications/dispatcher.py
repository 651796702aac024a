# app/notifications/dispatcher.py
"""
Desktop notification delivery through plyer.

Delivery is best-effort. Callers go through ``notify_safely`` so that a
failed notification can never change the outcome of the operation that
triggered it.
"""

import logging
from typing import Optional, Protocol

from plyer import notification

from app.config import Settings
from app.errors import NotificationError
from app.notifications.events import NotificationEvent

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    def dispatch(self, event: NotificationEvent) -> None: ...


class NotificationDispatcher:
    def __init__(self, app_name: str, enabled: bool = True, timeout: int = 10) -> None:
        self.app_name = app_name
        self.enabled = enabled
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationDispatcher":
        return cls(app_name=settings.app_name, enabled=settings.notifications_enabled)

    def dispatch(self, event: NotificationEvent) -> None:
        if not self.enabled:
            logger.debug("Notifications disabled, skipping %r", event.title)
            return

        try:
            notification.notify(
                title=event.title,
                message=event.message,
                app_name=self.app_name,
                timeout=self.timeout,
            )
        except NotImplementedError:
            # No notification backend on this platform
            logger.debug("Notifications unsupported here, skipping %r", event.title)
            return
        except Exception as exc:
            raise NotificationError(f"Could not deliver {event.title!r}: {exc}") from exc

        logger.info("Notification sent: %s", event.title)


def notify_safely(dispatcher: Optional[Dispatcher], event: NotificationEvent) -> bool:
    """Deliver ``event``; log and discard any failure.

    Returns True when the dispatcher accepted the event.
    """
    if dispatcher is None:
        return False

    try:
        dispatcher.dispatch(event)
    except Exception as exc:
        logger.warning("Dropped %s notification: %s", event.title, exc)
        return False

    return True
