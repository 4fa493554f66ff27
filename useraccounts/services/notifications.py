"""
Outbound notifications for the out-of-process mailer.

The auth flow calls :meth:`Notifier.notify` synchronously; delivery happens
elsewhere. With :class:`CeleryNotifier`, each event is published as a task
message on the mailer's queue and nothing waits for it.
"""

import logging
from typing import Any, Dict, Optional

from celery import Celery
from kombu.exceptions import OperationalError

from .. import domain

logger = logging.getLogger(__name__)

AFTER_SIGNUP = 'Users.afterSignup'
SEND_VERIFICATION = 'Users.sendVerification'
SEND_RECOVERY = 'Users.sendRecovery'
EVENTS = (AFTER_SIGNUP, SEND_VERIFICATION, SEND_RECOVERY)


def payload_for(user: domain.User) -> Dict[str, Any]:
    """Data the mailer needs to build a verification or recovery link."""
    return {
        'user_id': user.user_id,
        'email': user.email,
        'token': user.token,
        'verified': user.verified
    }


class Notifier(object):
    """Base notifier. Drops every event."""

    def notify(self, event_name: str, payload: Dict[str, Any]) -> None:
        """Emit ``event_name``. Must not raise for delivery problems."""
        if event_name not in EVENTS:
            raise ValueError(f'Unknown event: {event_name}')
        logger.debug('Dropped notification %s', event_name)


class CeleryNotifier(Notifier):
    """Publishes events as task messages for the mailer worker."""

    def __init__(self, celery_app: Celery, task_name: str = 'mailer.send',
                 queue: Optional[str] = 'mailer') -> None:
        self._celery = celery_app
        self._task_name = task_name
        self._queue = queue

    def notify(self, event_name: str, payload: Dict[str, Any]) -> None:
        """Publish ``(event_name, payload)`` on the mailer queue."""
        if event_name not in EVENTS:
            raise ValueError(f'Unknown event: {event_name}')
        try:
            self._celery.send_task(self._task_name,
                                   args=(event_name, payload),
                                   queue=self._queue)
        except OperationalError as e:
            logger.error('Could not publish %s for user %s: %s',
                         event_name, payload.get('user_id'), e)
            return
        logger.info('Published %s for user %s', event_name,
                    payload.get('user_id'))
