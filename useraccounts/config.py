"""Flask configuration."""

import os

#################### General config for app ####################
BASE_SERVER = os.environ.get('BASE_SERVER', 'localhost')
"""Base server, used to build default redirect URLs and the cookie domain."""

DEFAULT_LOGIN_REDIRECT_URL = os.environ.get(
    'DEFAULT_LOGIN_REDIRECT_URL',
    '/edit'
)
"""Where to send the user after a successful sign-in, sign-up or verify."""

DEFAULT_LOGOUT_REDIRECT_URL = os.environ.get(
    'DEFAULT_LOGOUT_REDIRECT_URL',
    '/'
)
"""Where to send the user after signing out."""

LOGLEVEL = int(os.environ.get('LOGLEVEL', 20))

#################### Credentials ####################
JWT_SECRET = os.environ.get('JWT_SECRET')
"""Signing key for bearer and remember tokens.

There is no default: the application refuses to start without
one (see :func:`useraccounts.factory.create_web_app`)."""

SESSION_DURATION = int(os.environ.get('SESSION_DURATION', '7200'))
"""Lifetime in seconds of the default bearer token.

The cookie carrying it is a browser-session cookie."""

REMEMBER_DURATION = int(os.environ.get('REMEMBER_DURATION', '2592000'))
"""Lifetime in seconds of the remember credential and of the extended bearer
token issued alongside it."""

BEARER_COOKIE_NAME = os.environ.get('BEARER_COOKIE_NAME', 'Jwt')
REMEMBER_COOKIE_NAME = os.environ.get('REMEMBER_COOKIE_NAME', 'User')

AUTH_COOKIE_DOMAIN = os.environ.get('AUTH_COOKIE_DOMAIN', None)
AUTH_COOKIE_SECURE = bool(int(os.environ.get('AUTH_COOKIE_SECURE', '1')))
"""When set, credential cookies are sent with ``secure`` and
``samesite=lax``."""

SECRET_KEY = os.environ.get('SECRET_KEY')
"""Sets the `Flask` secret key used to sign the interaction session.

Required, and shared by every worker: a session signed by one worker must
be readable by the others."""

#################### Database ####################
SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///useraccounts.db')
SQLALCHEMY_TRACK_MODIFICATIONS = False

CREATE_DB = bool(int(os.environ.get('CREATE_DB', 0)))

#################### Notifications ####################
NOTIFICATION_QUEUE = os.environ.get('NOTIFICATION_QUEUE', 'mailer')
"""Broker queue consumed by the out-of-process mailer."""

NOTIFICATION_TASK = os.environ.get('NOTIFICATION_TASK', 'mailer.send')
"""Name of the mailer task that receives ``(event_name, payload)``."""
