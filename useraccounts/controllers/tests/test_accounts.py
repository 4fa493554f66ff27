"""Tests for :mod:`useraccounts.controllers.accounts`."""

from http import HTTPStatus as status
from unittest import TestCase, mock

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import NotFound as HTTPNotFound, Unauthorized

from .. import accounts
from ..flow import AuthFlow
from ...domain import User
from ...exceptions import InvalidCredentials, ModifiedConcurrently, \
    NotAuthenticated, NotFound, Unavailable, ValidationError

EMAIL = 'jane@somewhere.org'


def mock_flow():
    return mock.MagicMock(spec=AuthFlow)


def a_user(**kwargs):
    kwargs.setdefault('email', EMAIL)
    kwargs.setdefault('password_hash', 'hashed')
    kwargs.setdefault('user_id', 1)
    kwargs.setdefault('token', 'tok')
    return User(**kwargs)


class TestSignup(TestCase):
    """Tests for :func:`.accounts.signup`."""

    def test_get(self):
        """GET returns an empty form."""
        data, code, headers = accounts.signup('GET', None, mock_flow(), '/')
        self.assertEqual(code, status.OK)
        self.assertIn('form', data)
        self.assertEqual(headers, {})

    def test_invalid(self):
        """Bad e-mail and short password are rejected before the flow."""
        flow = mock_flow()
        form_data = MultiDict({'email': 'notanemail', 'password': 'short'})
        data, code, _ = accounts.signup('POST', form_data, flow, '/')
        self.assertEqual(code, status.BAD_REQUEST)
        self.assertIn('email', data['form'].errors)
        self.assertIn('password', data['form'].errors)
        flow.signup.assert_not_called()

    def test_success(self):
        """The user is redirected, and the hash is not sent back."""
        flow = mock_flow()
        flow.signup.return_value = a_user()
        form_data = MultiDict({'email': EMAIL, 'password': 'longenough'})
        data, code, headers = accounts.signup('POST', form_data, flow,
                                              '/edit')
        self.assertEqual(code, status.SEE_OTHER)
        self.assertEqual(headers, {'Location': '/edit'})
        self.assertEqual(data['message'], accounts.SIGNUP_OK)
        self.assertNotIn('password_hash', data['user'])
        self.assertNotIn('token', data['user'])
        flow.signup.assert_called_once_with(EMAIL, 'longenough')

    def test_refused(self):
        """The store refused the new account."""
        flow = mock_flow()
        flow.signup.side_effect = ValidationError('taken')
        form_data = MultiDict({'email': EMAIL, 'password': 'longenough'})
        data, code, _ = accounts.signup('POST', form_data, flow, '/edit')
        self.assertEqual(code, status.BAD_REQUEST)
        self.assertEqual(data['error'], accounts.SIGNUP_FAILED)

    @mock.patch('retry.api.time.sleep')
    def test_database_down(self, mock_sleep):
        """The operation is retried, then the error propagates."""
        flow = mock_flow()
        flow.signup.side_effect = Unavailable('down')
        form_data = MultiDict({'email': EMAIL, 'password': 'longenough'})
        with self.assertRaises(Unavailable):
            accounts.signup('POST', form_data, flow, '/edit')
        self.assertEqual(flow.signup.call_count, 3)


class TestSignin(TestCase):
    """Tests for :func:`.accounts.signin`."""

    def test_unverified(self):
        """Unverified users get a reminder."""
        flow = mock_flow()
        flow.signin.return_value = a_user(verified=False)
        form_data = MultiDict({'email': EMAIL, 'password': 'longenough'})
        data, code, headers = accounts.signin('POST', form_data, flow, '/x')
        self.assertEqual(code, status.SEE_OTHER)
        self.assertEqual(headers['Location'], '/x')
        self.assertEqual(data['message'], accounts.SIGNIN_UNVERIFIED)
        flow.signin.assert_called_once_with(EMAIL, 'longenough',
                                            remember=False)

    def test_verified_with_remember(self):
        """The remember box is passed along."""
        flow = mock_flow()
        flow.signin.return_value = a_user(verified=True)
        form_data = MultiDict({'email': EMAIL, 'password': 'longenough',
                               'remember': 'y'})
        data, code, _ = accounts.signin('POST', form_data, flow, '/x')
        self.assertEqual(code, status.SEE_OTHER)
        self.assertNotIn('message', data)
        flow.signin.assert_called_once_with(EMAIL, 'longenough',
                                            remember=True)

    def test_bad_credentials(self):
        """One message for every kind of failure."""
        flow = mock_flow()
        flow.signin.side_effect = InvalidCredentials('nope')
        form_data = MultiDict({'email': EMAIL, 'password': 'wrong'})
        data, code, _ = accounts.signin('POST', form_data, flow, '/x')
        self.assertEqual(code, status.BAD_REQUEST)
        self.assertEqual(data['error'], accounts.SIGNIN_FAILED)

    def test_missing_fields(self):
        """Both fields are required."""
        flow = mock_flow()
        _, code, _ = accounts.signin('POST', MultiDict({}), flow, '/x')
        self.assertEqual(code, status.BAD_REQUEST)
        flow.signin.assert_not_called()


class TestSignout(TestCase):
    """Tests for :func:`.accounts.signout`."""

    def test_signout(self):
        """Always redirects."""
        flow = mock_flow()
        data, code, headers = accounts.signout(flow, '/')
        self.assertEqual(code, status.SEE_OTHER)
        self.assertEqual(headers, {'Location': '/'})
        self.assertEqual(data['message'], accounts.SIGNOUT_OK)
        flow.signout.assert_called_once_with()


class TestEdit(TestCase):
    """Tests for :func:`.accounts.edit`."""

    def test_not_signed_in(self):
        """Anonymous clients are turned away."""
        flow = mock_flow()
        flow.edit.side_effect = NotAuthenticated('no')
        with self.assertRaises(Unauthorized):
            accounts.edit('GET', None, flow, '/')

    def test_gone(self):
        """The record disappeared."""
        flow = mock_flow()
        flow.edit.side_effect = NotFound('gone')
        with self.assertRaises(HTTPNotFound):
            accounts.edit('GET', None, flow, '/')

    def test_get(self):
        """The form is filled in with the current address."""
        flow = mock_flow()
        flow.edit.return_value = a_user()
        data, code, _ = accounts.edit('GET', None, flow, '/')
        self.assertEqual(code, status.OK)
        self.assertEqual(data['form'].email.data, EMAIL)
        self.assertNotIn('password_hash', data['user'])

    def test_passwords_differ(self):
        """The confirmation must match."""
        flow = mock_flow()
        flow.edit.return_value = a_user()
        form_data = MultiDict({'password': 'longenough',
                               'confirm_password': 'different1'})
        data, code, _ = accounts.edit('POST', form_data, flow, '/')
        self.assertEqual(code, status.BAD_REQUEST)
        self.assertIn('confirm_password', data['form'].errors)
        flow.update.assert_not_called()

    def test_change_password(self):
        """The new password goes to the flow for the current user."""
        flow = mock_flow()
        flow.edit.return_value = a_user()
        flow.update.return_value = a_user()
        form_data = MultiDict({'password': 'longenough',
                               'confirm_password': 'longenough'})
        data, code, headers = accounts.edit('POST', form_data, flow, '/e')
        self.assertEqual(code, status.SEE_OTHER)
        self.assertEqual(headers['Location'], '/e')
        self.assertEqual(data['message'], accounts.UPDATE_OK)
        user_id, patch = flow.update.call_args[0]
        self.assertEqual(user_id, 1)
        self.assertEqual(patch['password'], 'longenough')

    def test_refused(self):
        """The store refused the change."""
        flow = mock_flow()
        flow.edit.return_value = a_user()
        flow.update.side_effect = ValidationError('taken')
        form_data = MultiDict({'email': 'john@somewhere.org'})
        data, code, _ = accounts.edit('POST', form_data, flow, '/e')
        self.assertEqual(code, status.BAD_REQUEST)
        self.assertEqual(data['error'], accounts.UPDATE_FAILED)


class TestVerify(TestCase):
    """Tests for :func:`.accounts.verify`."""

    def test_verify(self):
        """Success redirects with a message."""
        flow = mock_flow()
        flow.verify.return_value = a_user(verified=True, token=None)
        data, code, _ = accounts.verify(1, 'tok', flow, '/')
        self.assertEqual(code, status.SEE_OTHER)
        self.assertEqual(data['message'], accounts.VERIFY_OK)
        flow.verify.assert_called_once_with(1, 'tok')

    def test_no_match(self):
        """A bad link is a 404."""
        flow = mock_flow()
        flow.verify.side_effect = NotFound('no')
        with self.assertRaises(HTTPNotFound):
            accounts.verify(1, 'tok', flow, '/')

    def test_conflict(self):
        """A write that keeps losing to other writers is a bad request."""
        flow = mock_flow()
        flow.verify.side_effect = ModifiedConcurrently('changed')
        data, code, _ = accounts.verify(1, 'tok', flow, '/')
        self.assertEqual(code, status.BAD_REQUEST)
        self.assertEqual(data, {'error': accounts.VERIFY_FAILED})


class TestSendVerification(TestCase):
    """Tests for :func:`.accounts.send_verification`."""

    def test_send(self):
        """Acknowledged."""
        flow = mock_flow()
        data, code, _ = accounts.send_verification(flow)
        self.assertEqual(code, status.OK)
        self.assertEqual(data['message'], accounts.VERIFICATION_SENT)

    def test_not_signed_in(self):
        """Anonymous clients are turned away."""
        flow = mock_flow()
        flow.send_verification.side_effect = NotAuthenticated('no')
        with self.assertRaises(Unauthorized):
            accounts.send_verification(flow)


class TestSendRecovery(TestCase):
    """Tests for :func:`.accounts.send_recovery`."""

    def test_same_response(self):
        """Known and unknown addresses are indistinguishable."""
        responses = []
        for result in [a_user(), None]:
            flow = mock_flow()
            flow.send_recovery.return_value = result
            form_data = MultiDict({'email': EMAIL})
            data, code, headers = accounts.send_recovery('POST', form_data,
                                                         flow, '/')
            data.pop('form')
            responses.append((data, code, headers))
        self.assertEqual(responses[0], responses[1])
        self.assertEqual(responses[0][0]['message'], accounts.RECOVERY_SENT)


class TestResetPassword(TestCase):
    """Tests for :func:`.accounts.reset_password`."""

    def test_get(self):
        """The form is shown without touching the token."""
        flow = mock_flow()
        _, code, _ = accounts.reset_password('GET', 1, 'tok', None, flow, '/')
        self.assertEqual(code, status.OK)
        flow.reset_password.assert_not_called()

    def test_reset(self):
        """A matching new password is passed to the flow."""
        flow = mock_flow()
        flow.reset_password.return_value = a_user(token=None)
        form_data = MultiDict({'password': 'longenough',
                               'confirm_password': 'longenough'})
        data, code, _ = accounts.reset_password('POST', 1, 'tok', form_data,
                                                flow, '/')
        self.assertEqual(code, status.SEE_OTHER)
        self.assertEqual(data['message'], accounts.RESET_OK)
        flow.reset_password.assert_called_once_with(1, 'tok', 'longenough')

    def test_bad_link(self):
        """A bad link is a 404."""
        flow = mock_flow()
        flow.reset_password.side_effect = NotFound('no')
        form_data = MultiDict({'password': 'longenough',
                               'confirm_password': 'longenough'})
        with self.assertRaises(HTTPNotFound):
            accounts.reset_password('POST', 1, 'tok', form_data, flow, '/')
