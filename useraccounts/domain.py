"""Defines user and credential concepts for the accounts service."""

from typing import Any, NamedTuple, Optional
from datetime import datetime

from pytz import UTC


class User(NamedTuple):
    """Represents a user account."""

    email: str
    """The user's e-mail address. Unique."""

    password_hash: Optional[str] = None
    """
    Derived from the submitted password.

    The plaintext password never leaves the request that sets it.
    """

    user_id: Optional[int] = None
    """Unique identifier for the user. If ``None``, the user does not exist."""

    verified: bool = False
    """Whether or not the user's e-mail address has been verified."""

    token: Optional[str] = None
    """
    Current one-time token, mailed out in verification and recovery links.

    ``None`` once the token has been used.
    """

    version: Optional[int] = None
    """Row version this record was read at. Saves of an older version fail."""

    def public(self) -> dict:
        """Everything except the password hash, token and row version."""
        data = to_dict(self)
        for key in ('password_hash', 'token', 'version'):
            data.pop(key, None)
        return data


class BearerClaims(NamedTuple):
    """Claims carried by a signed bearer token."""

    id: int
    """The authenticated user ID."""

    exp: int
    """UNIX time at which the token expires."""

    @property
    def expires(self) -> datetime:
        """Expiry as an aware datetime."""
        return datetime.fromtimestamp(self.exp, tz=UTC)


class RememberClaims(NamedTuple):
    """Claims carried by the persistent remember credential."""

    id: int
    exp: int
    pwd: str
    """Fingerprint of the password hash at the time of issue."""


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    Datetimes are cast to ISO-8601 strings; child NamedTuples are cast
    recursively.
    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}

    def _cast(value: Any) -> Any:
        if hasattr(value, '_asdict'):
            return to_dict(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, list):
            return [_cast(o) for o in value]
        return value

    return {key: _cast(value) for key, value in obj._asdict().items()}
