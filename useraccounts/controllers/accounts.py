"""
Controllers for account actions.

Each controller takes the request method and form data along with the
:class:`.AuthFlow` for the current interaction, and returns response data,
a status code, and headers. Cookie changes made through the flow's
credential store are applied to the response by the :class:`.auth.Auth`
extension, so controllers never touch cookies directly.

User-facing failures are reported in the response data under ``error``;
missing sessions and records raise HTTP exceptions.
"""

import logging
from http import HTTPStatus as status
from typing import Any, Callable, Dict, Optional, Tuple

from retry import retry
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import NotFound as HTTPNotFound, Unauthorized

from .. import domain
from ..exceptions import InvalidCredentials, NotAuthenticated, NotFound, \
    Unavailable, ValidationError
from .flow import AuthFlow
from .forms import EditForm, RecoveryForm, ResetPasswordForm, SigninForm, \
    SignupForm

logger = logging.getLogger(__name__)

ResponseData = Tuple[Dict[str, Any], int, Dict[str, str]]

SIGNUP_OK = 'Please check your e-mail to validate your account'
SIGNUP_FAILED = 'An error occured while creating the account'
SIGNIN_UNVERIFIED = 'Login successful. Please validate your email address.'
SIGNIN_FAILED = 'Your username or password is incorrect.'
SIGNOUT_OK = 'You are now signed out.'
UPDATE_OK = 'Password has been updated successfully.'
UPDATE_FAILED = 'Error while resetting password'
VERIFY_OK = 'Email address validated successfully'
VERIFY_FAILED = 'Error while validating email'
VERIFICATION_SENT = 'A new verification e-mail has been sent.'
RECOVERY_SENT = 'An email was sent with password recovery instructions.'
RESET_OK = 'Your password has been reset.'


# Retries cover database outages only; each attempt is a fresh transaction.
@retry(Unavailable, tries=3, delay=0.5, backoff=2)
def _do(operation: Callable, *args: Any, **kwargs: Any) -> Any:
    return operation(*args, **kwargs)


def _see_other(data: Dict[str, Any], next_page: str) -> ResponseData:
    return data, status.SEE_OTHER, {'Location': next_page}


def signup(method: str, form_data: Optional[MultiDict], flow: AuthFlow,
           next_page: str) -> ResponseData:
    """Handle requests for the registration view."""
    if method == 'GET':
        return {'form': SignupForm()}, status.OK, {}

    form = SignupForm(form_data)
    data: Dict[str, Any] = {'form': form}
    if not form.validate():
        logger.debug('Registration form not valid')
        return data, status.BAD_REQUEST, {}

    try:
        user = _do(flow.signup, form.email.data, form.password.data)
    except ValidationError as e:
        logger.debug('Registration failed: %s', e)
        data['error'] = SIGNUP_FAILED
        return data, status.BAD_REQUEST, {}

    data.update({'message': SIGNUP_OK, 'user': user.public()})
    return _see_other(data, next_page)


def signin(method: str, form_data: Optional[MultiDict], flow: AuthFlow,
           next_page: str) -> ResponseData:
    """Handle requests for the sign-in view."""
    if method == 'GET':
        return {'form': SigninForm()}, status.OK, {}

    form = SigninForm(form_data)
    data: Dict[str, Any] = {'form': form}
    if not form.validate():
        logger.debug('Sign-in form not valid')
        return data, status.BAD_REQUEST, {}

    try:
        user = _do(flow.signin, form.email.data, form.password.data,
                   remember=bool(form.remember.data))
    except InvalidCredentials:
        data['error'] = SIGNIN_FAILED
        return data, status.BAD_REQUEST, {}

    data['user'] = user.public()
    if not user.verified:
        data['message'] = SIGNIN_UNVERIFIED
    return _see_other(data, next_page)


def signout(flow: AuthFlow, next_page: str) -> ResponseData:
    """Sign the user out, whether or not they were signed in."""
    flow.signout()
    return _see_other({'message': SIGNOUT_OK}, next_page)


def edit(method: str, form_data: Optional[MultiDict], flow: AuthFlow,
         next_page: str) -> ResponseData:
    """Handle requests to view or change the signed-in user's account."""
    try:
        user = _do(flow.edit)
    except NotAuthenticated as e:
        raise Unauthorized('You must be signed in') from e
    except NotFound as e:
        raise HTTPNotFound('User could not be found') from e

    if method == 'GET':
        form = EditForm(data={'email': user.email})
        return {'form': form, 'user': user.public()}, status.OK, {}

    form = EditForm(form_data)
    data: Dict[str, Any] = {'form': form, 'user': user.public()}
    if not form.validate():
        return data, status.BAD_REQUEST, {}

    patch = {'email': form.email.data, 'password': form.password.data}
    try:
        user = _do(flow.update, user.user_id, patch)
    except ValidationError as e:
        logger.debug('Update failed for user %s: %s', user.user_id, e)
        data['error'] = UPDATE_FAILED
        return data, status.BAD_REQUEST, {}
    except NotFound as e:
        raise HTTPNotFound('User could not be found') from e

    data.update({'message': UPDATE_OK, 'user': user.public()})
    return _see_other(data, next_page)


def verify(user_id: int, token: str, flow: AuthFlow,
           next_page: str) -> ResponseData:
    """Handle a click on the link in a verification e-mail."""
    try:
        user = _do(flow.verify, user_id, token)
    except NotFound as e:
        raise HTTPNotFound(VERIFY_FAILED) from e
    except ValidationError as e:
        logger.debug('Verification failed for user %s: %s', user_id, e)
        return {'error': VERIFY_FAILED}, status.BAD_REQUEST, {}
    return _see_other({'message': VERIFY_OK, 'user': user.public()},
                      next_page)


def send_verification(flow: AuthFlow) -> ResponseData:
    """Send another verification e-mail to the signed-in user."""
    try:
        _do(flow.send_verification)
    except NotAuthenticated as e:
        raise Unauthorized('You must be signed in') from e
    except NotFound as e:
        raise HTTPNotFound('User could not be found') from e
    return {'message': VERIFICATION_SENT}, status.OK, {}


def send_recovery(method: str, form_data: Optional[MultiDict],
                  flow: AuthFlow, next_page: str) -> ResponseData:
    """
    Handle requests for a password recovery e-mail.

    The response is the same whether or not the address is registered.
    """
    if method == 'GET':
        return {'form': RecoveryForm()}, status.OK, {}

    form = RecoveryForm(form_data)
    data: Dict[str, Any] = {'form': form}
    if not form.validate():
        return data, status.BAD_REQUEST, {}

    _do(flow.send_recovery, form.email.data)
    data['message'] = RECOVERY_SENT
    return _see_other(data, next_page)


def reset_password(method: str, user_id: int, token: str,
                   form_data: Optional[MultiDict], flow: AuthFlow,
                   next_page: str) -> ResponseData:
    """Handle the form behind the link in a recovery e-mail."""
    if method == 'GET':
        form = ResetPasswordForm()
        return {'form': form, 'user_id': user_id}, status.OK, {}

    form = ResetPasswordForm(form_data)
    data: Dict[str, Any] = {'form': form, 'user_id': user_id}
    if not form.validate():
        return data, status.BAD_REQUEST, {}

    try:
        user: domain.User = _do(flow.reset_password, user_id, token,
                                form.password.data)
    except NotFound as e:
        raise HTTPNotFound(UPDATE_FAILED) from e
    except ValidationError as e:
        logger.debug('Password reset failed for user %s: %s', user_id, e)
        data['error'] = UPDATE_FAILED
        return data, status.BAD_REQUEST, {}

    data.update({'message': RESET_OK, 'user': user.public()})
    return _see_other(data, next_page)
