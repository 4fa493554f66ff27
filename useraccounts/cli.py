"""
Command-line helpers. For dev/test purposes only.

.. code-block:: bash

   $ export SECRET_KEY=dev JWT_SECRET=foosecretfoosecret
   $ useraccounts create-db
   $ useraccounts create-user --email a@b.com
   $ useraccounts generate-token --user-id 1

Use the same secret as the running app, or the token will be rejected.
"""

import click

from .factory import create_web_app
from .services import passwords, users
from .services.tokens import TokenService
from . import domain


@click.group()
def cli() -> None:
    """Manage user accounts."""


@cli.command('create-db')
def create_db() -> None:
    """Create all tables in the configured database."""
    app = create_web_app()
    with app.app_context():
        users.create_all()
    click.echo('Created tables')


@cli.command('create-user')
@click.option('--email', prompt='E-mail address')
@click.option('--password', prompt='Password', hide_input=True,
              confirmation_prompt=True)
@click.option('--verified/--unverified', default=False)
def create_user(email: str, password: str, verified: bool) -> None:
    """Create a new user."""
    app = create_web_app()
    with app.app_context():
        tokens = TokenService(app.config['JWT_SECRET'])
        store = users.UserStore(tokens.generate_one_time_token)
        user = store.save(domain.User(
            email=email,
            password_hash=passwords.hash_password(password),
            verified=verified,
            token=None if verified else tokens.generate_one_time_token()
        ))
    click.echo(f'Created user {user.user_id}')


@cli.command('generate-token')
@click.option('--user-id', prompt='Numeric user ID', type=int)
@click.option('--ttl', default=7200, show_default=True,
              help='Lifetime in seconds')
def generate_token(user_id: int, ttl: int) -> None:
    """Print a signed bearer token for a user."""
    app = create_web_app()
    tokens = TokenService(app.config['JWT_SECRET'])
    click.echo(tokens.issue_bearer_token(user_id, ttl))
