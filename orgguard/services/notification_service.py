from __future__ import annotations

from typing import Callable

from orgguard.core.logger import get_logger

logger = get_logger(__name__)

Notifier = Callable[..., dict]


def send_notification(channel: str, message: str, metadata: dict | None = None) -> dict:
    logger.info('Notification channel=%s message=%s metadata=%s', channel, message, metadata or {})
    return {'success': True, 'channel': channel, 'message': message}
