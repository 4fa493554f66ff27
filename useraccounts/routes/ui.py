"""Provides Flask integration for the account actions."""

import logging
from functools import wraps
from http import HTTPStatus as status
from typing import Any, Callable, Dict

from flask import Blueprint, Response, current_app, g, jsonify, \
    make_response, redirect, request

from ..auth import current_flow
from ..controllers import accounts

logger = logging.getLogger(__name__)
blueprint = Blueprint('ui', __name__, url_prefix='')


def anonymous_only(func: Callable) -> Callable:
    """Redirect signed-in users away from sign-up/sign-in."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if g.get('user_id') is not None:
            next_page = _next_page()
            return make_response(redirect(next_page,
                                          code=status.SEE_OTHER))
        return func(*args, **kwargs)
    return wrapper


def _next_page(default_key: str = 'DEFAULT_LOGIN_REDIRECT_URL') -> str:
    """Only relative paths are accepted, to avoid open redirects."""
    default: str = current_app.config[default_key]
    next_page = request.args.get('next_page', default)
    if not next_page.startswith('/') or next_page.startswith('//'):
        return default
    return next_page


def _respond(data: Dict[str, Any], code: int,
             headers: Dict[str, str]) -> Response:
    form = data.pop('form', None)
    if form is not None and form.errors:
        data['errors'] = form.errors
    # Redirects carry the same JSON body, with the target in Location.
    response = make_response(jsonify(data), code)
    response.headers.extend(headers)
    return response


@blueprint.after_request
def apply_response_headers(response: Response) -> Response:
    """Prevent UI redress attacks."""
    response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
    response.headers['X-Frame-Options'] = 'DENY'
    return response


@blueprint.route('/signup', methods=['GET', 'POST'])
@anonymous_only
def signup() -> Response:
    """Interface for creating new accounts."""
    data, code, headers = accounts.signup(request.method, request.form,
                                          current_flow(), _next_page())
    return _respond(data, code, headers)


@blueprint.route('/signin', methods=['GET', 'POST'])
@anonymous_only
def signin() -> Response:
    """User can sign in with e-mail address and password."""
    data, code, headers = accounts.signin(request.method, request.form,
                                          current_flow(), _next_page())
    return _respond(data, code, headers)


@blueprint.route('/signout', methods=['GET'])
def signout() -> Response:
    """Sign out, and drop the remember and bearer cookies."""
    next_page = _next_page('DEFAULT_LOGOUT_REDIRECT_URL')
    data, code, headers = accounts.signout(current_flow(), next_page)
    return _respond(data, code, headers)


@blueprint.route('/edit', methods=['GET', 'POST'])
def edit() -> Response:
    """Change the signed-in user's e-mail address or password."""
    data, code, headers = accounts.edit(request.method, request.form,
                                        current_flow(), _next_page())
    return _respond(data, code, headers)


@blueprint.route('/verify/<int:user_id>/<token>', methods=['GET'])
def verify(user_id: int, token: str) -> Response:
    """Target of the link in verification e-mails."""
    data, code, headers = accounts.verify(user_id, token, current_flow(),
                                          _next_page())
    return _respond(data, code, headers)


@blueprint.route('/send_verification', methods=['POST'])
def send_verification() -> Response:
    """Send the signed-in user another verification e-mail."""
    data, code, headers = accounts.send_verification(current_flow())
    return _respond(data, code, headers)


@blueprint.route('/send_recovery', methods=['GET', 'POST'])
def send_recovery() -> Response:
    """Request a password recovery e-mail."""
    data, code, headers = accounts.send_recovery(request.method,
                                                 request.form,
                                                 current_flow(),
                                                 _next_page())
    return _respond(data, code, headers)


@blueprint.route('/recover/<int:user_id>/<token>', methods=['GET', 'POST'])
def reset_password(user_id: int, token: str) -> Response:
    """Target of the link in recovery e-mails."""
    data, code, headers = accounts.reset_password(request.method, user_id,
                                                  token, request.form,
                                                  current_flow(),
                                                  _next_page())
    return _respond(data, code, headers)
