"""
Cookie-backed credentials for one client interaction.

Two credentials live here, each with its own expiry:

- the bearer token cookie, holding a signed ``{id, exp}`` token;
- the remember cookie, holding a signed token bound to the user's password.

The store does not talk to HTTP directly. It reads from the cookies sent with
the request, and records what should be sent back; the route layer applies
those instructions to the response (see :func:`.routes.ui.set_cookies`).
"""

import logging
from typing import Dict, Iterator, Mapping, NamedTuple, Optional

from .. import domain
from .tokens import TokenService

logger = logging.getLogger(__name__)


class CookieInstruction(NamedTuple):
    """A cookie to set (or, with an empty value, to expire) on a response."""

    name: str
    value: str
    max_age: Optional[int]
    """Seconds until expiry. ``None`` means a browser-session cookie."""

    @property
    def deleted(self) -> bool:
        """Whether this instruction removes the cookie."""
        return self.max_age == 0


class CredentialStore(object):
    """Reads and writes the remember and bearer credentials."""

    def __init__(self, tokens: TokenService, incoming: Mapping[str, str],
                 bearer_name: str = 'Jwt', remember_name: str = 'User',
                 session_duration: int = 7200,
                 remember_duration: int = 2592000) -> None:
        """
        Set up the store for one interaction.

        Parameters
        ----------
        tokens : :class:`.TokenService`
        incoming : mapping
            Cookies sent by the client.
        bearer_name : str
            Cookie name for the bearer token.
        remember_name : str
            Cookie name for the remember credential.
        session_duration : int
            Default bearer token lifetime, in seconds.
        remember_duration : int
            Remember credential lifetime, in seconds. Extended bearer tokens
            use the same lifetime.

        """
        self._tokens = tokens
        self._incoming = incoming
        self._outgoing: Dict[str, CookieInstruction] = {}
        self.bearer_name = bearer_name
        self.remember_name = remember_name
        self.session_duration = session_duration
        self.remember_duration = remember_duration

    def write_remember(self, user: domain.User,
                       ttl: Optional[int] = None) -> str:
        """Store a remember credential for ``user``."""
        ttl = self.remember_duration if ttl is None else ttl
        value = self._tokens.issue_remember_token(user, ttl)
        self._set(self.remember_name, value, ttl)
        logger.debug('Wrote remember credential for user %s, ttl %s',
                     user.user_id, ttl)
        return value

    def write_bearer(self, user_id: int, ttl: Optional[int] = None,
                     persistent: bool = False) -> str:
        """
        Store a signed bearer token for ``user_id``.

        Parameters
        ----------
        user_id : int
        ttl : int
            Token lifetime. Defaults to the session duration, or to the
            remember duration when ``persistent`` is set.
        persistent : bool
            If set, the cookie outlives the browsing session and expires
            with the token. Otherwise it is a browser-session cookie.

        """
        if ttl is None:
            ttl = self.remember_duration if persistent \
                else self.session_duration
        value = self._tokens.issue_bearer_token(user_id, ttl)
        self._set(self.bearer_name, value, ttl if persistent else None)
        logger.debug('Wrote bearer token for user %s, ttl %s', user_id, ttl)
        return value

    def delete(self, name: str) -> None:
        """Remove a named credential."""
        self._outgoing[name] = CookieInstruction(name, '', 0)

    def read(self, name: str) -> Optional[str]:
        """Get a credential value, taking this interaction's writes first."""
        if name in self._outgoing:
            instruction = self._outgoing[name]
            return None if instruction.deleted else instruction.value
        return self._incoming.get(name) or None

    def cookies(self) -> Iterator[CookieInstruction]:
        """Pending cookie instructions for the response."""
        return iter(list(self._outgoing.values()))

    def _set(self, name: str, value: str, max_age: Optional[int]) -> None:
        self._outgoing[name] = CookieInstruction(name, value, max_age)
