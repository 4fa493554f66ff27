"""Holds the authenticated identity for the current interaction."""

import logging
from typing import Any, MutableMapping, Optional

from .. import domain

logger = logging.getLogger(__name__)

USER_KEY = 'user_id'


class SessionManager(object):
    """
    The authenticated-identity pointer for one browsing session.

    Backed by any mutable mapping; in the web app this is the signed Flask
    session. Only the user ID is kept here, never the user record.
    """

    def __init__(self, store: MutableMapping[str, Any]) -> None:
        self._store = store

    def set_user(self, user: domain.User) -> None:
        """Mark ``user`` as the authenticated identity."""
        if user.user_id is None:
            raise ValueError('Cannot authenticate a user that does not exist')
        self._store[USER_KEY] = int(user.user_id)
        logger.debug('Session established for user %s', user.user_id)

    def current_user(self) -> Optional[int]:
        """The authenticated user ID, if any."""
        user_id = self._store.get(USER_KEY)
        return int(user_id) if user_id is not None else None

    def clear(self) -> None:
        """Destroy the interaction's authenticated state entirely."""
        self._store.clear()
