"""
Random one-time tokens and signed bearer tokens.

Bearer tokens are JWTs signed with HS256, carrying only ``{id, exp}``.
Remember tokens are JWTs signed with a key derived from the same secret, so
that neither kind of token is accepted in place of the other.
"""

import hashlib
import hmac
import logging
import secrets
import time
from typing import Optional

import jwt
from jwt.utils import base64url_decode, base64url_encode

from .. import domain
from ..exceptions import ConfigurationError, InvalidToken

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'
MIN_SECRET_LENGTH = 16
ONE_TIME_TOKEN_BYTES = 32


class TokenService(object):
    """Issues and verifies tokens with the deployment's signing key."""

    def __init__(self, secret: Optional[str]) -> None:
        """Hold the signing key; refuse to run without a usable one."""
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError('A signing secret of at least '
                                     f'{MIN_SECRET_LENGTH} characters is '
                                     'required')
        self._secret = secret
        self._remember_secret = self._derive('remember')

    def generate_one_time_token(self) -> str:
        """Generate an unpredictable token for verification/recovery links."""
        return secrets.token_urlsafe(ONE_TIME_TOKEN_BYTES)

    def issue_bearer_token(self, user_id: int, ttl: int) -> str:
        """
        Sign ``{id: user_id, exp: now + ttl}``.

        Parameters
        ----------
        user_id : int
        ttl : int
            Lifetime of the token, in seconds.

        Returns
        -------
        str

        """
        claims = {'id': int(user_id), 'exp': int(time.time()) + int(ttl)}
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify_bearer_token(self, raw: str) -> domain.BearerClaims:
        """
        Check the signature and expiry of a bearer token.

        Raises
        ------
        :class:`InvalidToken`
            If the token is forged, malformed or expired.

        """
        data = self._decode(raw, self._secret, ['id', 'exp'])
        return domain.BearerClaims(id=data['id'], exp=data['exp'])

    def issue_remember_token(self, user: domain.User, ttl: int) -> str:
        """Sign a remember credential bound to the user's current password."""
        if user.user_id is None:
            raise ValueError('User must exist to be remembered')
        claims = {
            'id': int(user.user_id),
            'exp': int(time.time()) + int(ttl),
            'pwd': self.password_fingerprint(user)
        }
        return jwt.encode(claims, self._remember_secret, algorithm=ALGORITHM)

    def verify_remember_token(self, raw: str) -> domain.RememberClaims:
        """Check the signature and expiry of a remember credential."""
        data = self._decode(raw, self._remember_secret, ['id', 'exp', 'pwd'])
        if not isinstance(data['pwd'], str):
            raise InvalidToken('Token payload malformed')
        return domain.RememberClaims(id=data['id'], exp=data['exp'],
                                     pwd=data['pwd'])

    def password_fingerprint(self, user: domain.User) -> str:
        """Keyed digest of the password hash; changes with the password."""
        return hmac.new(self._remember_secret.encode('utf-8'),
                        (user.password_hash or '').encode('utf-8'),
                        hashlib.sha256).hexdigest()

    def remembers(self, claims: domain.RememberClaims,
                  user: domain.User) -> bool:
        """Whether a remember credential still matches ``user``."""
        return claims.id == user.user_id and \
            hmac.compare_digest(claims.pwd, self.password_fingerprint(user))

    def _derive(self, purpose: str) -> str:
        return hmac.new(self._secret.encode('utf-8'),
                        purpose.encode('utf-8'),
                        hashlib.sha256).hexdigest()

    def _decode(self, raw: str, secret: str, required: list) -> dict:
        if not isinstance(raw, str) or not _is_canonical(raw):
            raise InvalidToken('Token is malformed')
        try:
            data = dict(jwt.decode(raw, secret, algorithms=[ALGORITHM],
                                   options={'require': required}))
        except jwt.exceptions.ExpiredSignatureError as e:
            raise InvalidToken('Token has expired') from e
        except jwt.exceptions.InvalidTokenError as e:
            raise InvalidToken('Not a valid token') from e
        for claim in ('id', 'exp'):
            if type(data[claim]) is not int:
                raise InvalidToken('Token payload malformed')
        return data


def _is_canonical(raw: str) -> bool:
    """
    Whether the signature segment is in canonical base64url form.

    The decoder ignores trailing bits of the last character, so more than one
    encoding maps to the same signature. Only the one we produce is accepted.
    """
    parts = raw.split('.')
    if len(parts) != 3:
        return False
    signature = parts[2]
    try:
        decoded = base64url_decode(signature.encode('ascii'))
    except (ValueError, UnicodeEncodeError):
        return False
    return base64url_encode(decoded).decode('ascii') == signature
