"""Password hashing."""

import hashlib
import hmac
import secrets
from base64 import b64encode, b64decode
from typing import Optional

from ..exceptions import PasswordAuthenticationFailed

ALGORITHM = 'pbkdf2_sha256'
ITERATIONS = 260000
SALT_BYTES = 16


def _hash_salt_and_password(salt: bytes, password: str,
                            iterations: Optional[int] = None) -> bytes:
    iterations = ITERATIONS if iterations is None else iterations
    return hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt,
                               iterations)


def hash_password(password: str) -> str:
    """
    Generate a secure hash of a password.

    The result has the form ``pbkdf2_sha256$<iterations>$<salt>$<hash>``,
    with salt and hash base64-encoded.
    """
    salt = secrets.token_bytes(SALT_BYTES)
    hashed = _hash_salt_and_password(salt, password)
    return '$'.join([ALGORITHM, str(ITERATIONS),
                     b64encode(salt).decode('ascii'),
                     b64encode(hashed).decode('ascii')])


def check_password(password: str, encrypted: str) -> bool:
    """
    Check a password against an encrypted hash.

    Raises
    ------
    :class:`PasswordAuthenticationFailed`
        If the password does not match, or ``encrypted`` is not a hash this
        module produced.

    """
    try:
        algorithm, iterations, salt, expected = encrypted.split('$')
        if algorithm != ALGORITHM:
            raise ValueError(f'Unsupported algorithm {algorithm}')
        pass_hashed = _hash_salt_and_password(b64decode(salt), password,
                                              int(iterations))
        expected_hashed = b64decode(expected)
    except (ValueError, TypeError, AttributeError) as e:
        raise PasswordAuthenticationFailed('Malformed password hash') from e
    if not hmac.compare_digest(pass_hashed, expected_hashed):
        raise PasswordAuthenticationFailed('Incorrect password')
    return True


# Stand-in for a missing user, so that a lookup miss costs as much as a
# wrong password.
_DUMMY_HASH = hash_password(secrets.token_urlsafe(16))


def burn_check(password: str) -> None:
    """Spend the same work as :func:`check_password`, on a dummy hash."""
    _, iterations, salt, _ = _DUMMY_HASH.split('$')
    _hash_salt_and_password(b64decode(salt), password, int(iterations))
