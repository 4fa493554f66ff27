"""
Flask integration for the account state machine.

:class:`Auth` builds an :class:`.AuthFlow` for each request, resolves the
authenticated identity before the view runs (falling back on the bearer and
remember cookies when the session is empty), and writes any credential
changes back to the response.
"""

import logging
from typing import Optional

from flask import Flask, Response, current_app, g, request, session

from .controllers.flow import AuthFlow
from .exceptions import ConfigurationError
from .services.credentials import CredentialStore
from .services.notifications import Notifier
from .services.sessions import SessionManager
from .services.tokens import TokenService
from .services.users import UserStore

logger = logging.getLogger(__name__)

EXTENSION = 'useraccounts'


class Auth(object):
    """
    Attaches the auth flow and current identity to the request.

    Intended for use in a Flask application factory, for example:

    .. code-block:: python

       from flask import Flask
       from useraccounts.auth import Auth


       def create_web_app() -> Flask:
           app = Flask('someapp')
           app.config.from_object('someapp.config')
           Auth(app)
           return app

    The signing secret is read from ``JWT_SECRET`` when the extension is
    installed; a missing or short secret, or a missing ``SECRET_KEY``, stops
    the application from starting.
    """

    def __init__(self, app: Optional[Flask] = None,
                 notifier: Optional[Notifier] = None) -> None:
        self.notifier = notifier or Notifier()
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Install request hooks on ``app``."""
        app.config.setdefault('SESSION_DURATION', 7200)
        app.config.setdefault('REMEMBER_DURATION', 2592000)
        app.config.setdefault('BEARER_COOKIE_NAME', 'Jwt')
        app.config.setdefault('REMEMBER_COOKIE_NAME', 'User')
        app.config.setdefault('AUTH_COOKIE_DOMAIN', None)
        app.config.setdefault('AUTH_COOKIE_SECURE', True)

        if not app.config.get('SECRET_KEY'):
            raise ConfigurationError('SECRET_KEY is required to sign sessions')
        self.tokens = TokenService(app.config.get('JWT_SECRET'))
        self.users = UserStore(self.tokens.generate_one_time_token)
        app.extensions[EXTENSION] = self
        app.before_request(self.load_session)
        app.after_request(self.apply_credentials)

    def load_session(self) -> None:
        """Resolve the authenticated user for this request."""
        # An app context can outlive a request, so never reuse a flow.
        g.auth_flow = _build_flow()
        g.user_id = g.auth_flow.resume()

    def apply_credentials(self, response: Response) -> Response:
        """Write credential changes made during the request."""
        flow: Optional[AuthFlow] = g.pop('auth_flow', None)
        if flow is not None:
            set_cookies(response, flow.credentials)
        return response


def current_flow() -> AuthFlow:
    """Get/create the :class:`.AuthFlow` for this request."""
    if 'auth_flow' not in g:
        g.auth_flow = _build_flow()
    return g.auth_flow  # type: ignore


def _build_flow() -> AuthFlow:
    ext: Auth = current_app.extensions[EXTENSION]
    config = current_app.config
    credentials = CredentialStore(
        ext.tokens, request.cookies,
        bearer_name=config['BEARER_COOKIE_NAME'],
        remember_name=config['REMEMBER_COOKIE_NAME'],
        session_duration=int(config['SESSION_DURATION']),
        remember_duration=int(config['REMEMBER_DURATION'])
    )
    return AuthFlow(ext.users, ext.tokens, credentials,
                    SessionManager(session), ext.notifier)


def set_cookies(response: Response, credentials: CredentialStore) -> None:
    """Update a :class:`.Response` with pending credential cookies."""
    domain = current_app.config['AUTH_COOKIE_DOMAIN']
    params = dict(httponly=True, domain=domain)
    if current_app.config['AUTH_COOKIE_SECURE']:
        # Lax, to allow links to authenticated views using GET requests.
        params.update({'secure': True, 'samesite': 'Lax'})
    for cookie in credentials.cookies():
        if cookie.deleted:
            logger.debug('Unset cookie %s', cookie.name)
            response.delete_cookie(cookie.name, domain=domain,
                                   httponly=True)
            continue
        logger.debug('Set cookie %s, max_age %s', cookie.name,
                     cookie.max_age)
        response.set_cookie(cookie.name, cookie.value,
                            max_age=cookie.max_age, **params)
