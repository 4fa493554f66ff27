"""Application factory for the accounts app."""

import logging
from typing import Any, Dict, Optional

from celery import Celery
from flask import Flask

from . import app_logging
from .auth import Auth
from .routes import ui
from .services import users
from .services.notifications import CeleryNotifier

logger = logging.getLogger(__name__)

celery_app = Celery('useraccounts')
celery_app.config_from_object('useraccounts.celeryconfig')


def create_web_app(config: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Initialize and configure the accounts application.

    Parameters
    ----------
    config : dict
        Overrides applied on top of :mod:`useraccounts.config`.

    Raises
    ------
    :class:`.ConfigurationError`
        If ``SECRET_KEY`` or a usable ``JWT_SECRET`` is not configured.

    """
    app = Flask('useraccounts')
    app.config.from_object('useraccounts.config')
    if config:
        app.config.update(config)
    app_logging.setup_logger(app.config.get('LOGLEVEL'))

    users.init_app(app)
    notifier = CeleryNotifier(celery_app,
                              task_name=app.config['NOTIFICATION_TASK'],
                              queue=app.config['NOTIFICATION_QUEUE'])
    Auth(app, notifier=notifier)    # Refuses to start without a secret.
    app.register_blueprint(ui.blueprint)

    if app.config['CREATE_DB']:
        with app.app_context():
            users.create_all()

    logger.info('Accounts application configured')
    return app
