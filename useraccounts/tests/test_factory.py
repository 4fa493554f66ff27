"""Tests for application setup and the command-line helpers."""

from unittest import TestCase, mock

from click.testing import CliRunner

from .. import cli
from ..auth import EXTENSION
from ..exceptions import ConfigurationError
from ..factory import create_web_app
from ..services import passwords, users
from ..services.tokens import TokenService
from .util import SECRET, app_config


class TestCreateWebApp(TestCase):
    """The app will not start without a signing secret."""

    def test_missing_secret(self):
        """No secret, no app."""
        with self.assertRaises(ConfigurationError):
            create_web_app(app_config(JWT_SECRET=None))

    def test_short_secret(self):
        """A short secret is as good as none."""
        with self.assertRaises(ConfigurationError):
            create_web_app(app_config(JWT_SECRET='short'))

    def test_missing_session_key(self):
        """Sessions cannot be signed without a configured key."""
        with self.assertRaises(ConfigurationError):
            create_web_app(app_config(SECRET_KEY=None))

    def test_configured(self):
        """The extension and routes are installed."""
        app = create_web_app(app_config())
        self.assertIn(EXTENSION, app.extensions)
        self.assertIn('ui', app.blueprints)


class TestCLI(TestCase):
    """Dev helpers for creating users and tokens."""

    def setUp(self):
        self.app = create_web_app(app_config())
        with self.app.app_context():
            users.create_all()
        self._factory = mock.patch.object(cli, 'create_web_app',
                                          return_value=self.app)
        self._factory.start()
        self._iterations = mock.patch.object(passwords, 'ITERATIONS', 1000)
        self._iterations.start()
        self.runner = CliRunner()

    def tearDown(self):
        self._iterations.stop()
        self._factory.stop()
        with self.app.app_context():
            users.drop_all()

    def test_create_user(self):
        """A verified user can sign in with the given password."""
        result = self.runner.invoke(cli.cli, [
            'create-user', '--email', 'jane@somewhere.org',
            '--password', 'longenough', '--verified'
        ])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Created user', result.output)
        with self.app.app_context():
            store = users.UserStore(lambda: 'tok')
            user = store.find_by_email('jane@somewhere.org')
            self.assertTrue(user.verified)
            self.assertIsNone(user.token)
            self.assertTrue(passwords.check_password('longenough',
                                                     user.password_hash))

    def test_generate_token(self):
        """The printed token verifies with the app's secret."""
        result = self.runner.invoke(cli.cli, ['generate-token',
                                              '--user-id', '4',
                                              '--ttl', '60'])
        self.assertEqual(result.exit_code, 0, result.output)
        claims = TokenService(SECRET).verify_bearer_token(
            result.output.strip()
        )
        self.assertEqual(claims.id, 4)
