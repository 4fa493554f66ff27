"""Testing helpers."""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional
from unittest import mock

from flask import Flask

from ..auth import EXTENSION
from ..factory import create_web_app
from ..services import users
from ..services.notifications import Notifier

SECRET = 'test-signing-secret-0123456789abcdef'


def app_config(**overrides: Any) -> Dict[str, Any]:
    """Configuration for an app backed by an in-memory database."""
    config = {
        'TESTING': True,
        'JWT_SECRET': SECRET,
        'SECRET_KEY': 'test-flask-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'AUTH_COOKIE_SECURE': False,
        'CREATE_DB': False,
        'SESSION_DURATION': 500,
        'REMEMBER_DURATION': 5000,
    }
    config.update(overrides)
    return config


@contextmanager
def temporary_app(config: Optional[Dict[str, Any]] = None) \
        -> Generator[Flask, None, None]:
    """
    Provide an app with freshly created tables, inside an app context.

    The notifier is replaced with a mock, available as ``app.notifier``.
    """
    app = create_web_app(app_config(**(config or {})))
    app.notifier = mock.MagicMock(spec=Notifier)     # type: ignore
    app.extensions[EXTENSION].notifier = app.notifier
    with app.app_context():
        users.create_all()
        try:
            yield app
        finally:
            users.db.session.remove()
            users.drop_all()
