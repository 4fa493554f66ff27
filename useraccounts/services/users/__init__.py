"""
Persistence for user records.

:class:`UserStore` is the only thing that reads or writes the ``users``
table. Each write happens in its own transaction with the row locked, and the
row's ``version`` column catches writers that slipped past the lock (e.g. on
SQLite, which has no ``SELECT ... FOR UPDATE``).

Records are read and written as :class:`.domain.User` snapshots that carry
the row version they were read at. Saving a snapshot whose version is no
longer current raises :class:`.ModifiedConcurrently` instead of overwriting
the newer row.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional

from flask import Flask
from retry import retry
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.orm.session import Session

from ... import domain
from ...exceptions import ModifiedConcurrently, NotFound, Unavailable, \
    ValidationError
from .models import db, DBUser

logger = logging.getLogger(__name__)


def init_app(app: Flask) -> None:
    """Attach the database session to the application."""
    db.init_app(app)


def create_all() -> None:
    """Create all tables in the database."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in the database."""
    db.drop_all()


@contextmanager
def transaction() -> Generator[Session, None, None]:
    """Context manager for database transaction."""
    try:
        yield db.session
        if db.session.new or db.session.dirty or db.session.deleted:
            db.session.commit()
    except OperationalError as e:
        logger.error('Commit failed, rolling back: %s', str(e))
        db.session.rollback()
        raise Unavailable('Database is temporarily unavailable') from e
    except Exception as e:
        logger.error('Commit failed, rolling back: %s', str(e))
        db.session.rollback()
        raise


def normalize_email(email: Optional[str]) -> str:
    """Canonical form used for storage and lookup."""
    return (email or '').strip().lower()


class UserStore(object):
    """User records in the accounts database."""

    def __init__(self, generate_token: Callable[[], str]) -> None:
        """
        Parameters
        ----------
        generate_token : callable
            Produces new one-time token values for :meth:`regenerate_token`.

        """
        self._generate_token = generate_token

    def find_by_id(self, user_id: Optional[int]) -> Optional[domain.User]:
        """Load a user by ID."""
        if user_id is None:
            return None
        db_user = self._query(lambda s: s.query(DBUser)
                              .filter(DBUser.user_id == int(user_id))
                              .first())
        return db_user.to_domain() if db_user else None

    def find_by_email(self, email: str) -> Optional[domain.User]:
        """Load a user by e-mail address."""
        email = normalize_email(email)
        if not email:
            return None
        db_user = self._query(lambda s: s.query(DBUser)
                              .filter(DBUser.email == email)
                              .first())
        return db_user.to_domain() if db_user else None

    def find_by_id_and_token(self, user_id: int,
                             token: str) -> Optional[domain.User]:
        """
        Load a user matching both ``user_id`` and one-time ``token``.

        This is a single query. A cleared token never matches.
        """
        if not token:
            return None
        db_user = self._query(lambda s: s.query(DBUser)
                              .filter(DBUser.user_id == int(user_id))
                              .filter(DBUser.token == token)
                              .first())
        return db_user.to_domain() if db_user else None

    def save(self, user: domain.User) -> domain.User:
        """
        Create or update a user record.

        Parameters
        ----------
        user : :class:`.domain.User`
            If ``user_id`` is ``None``, a new record is created. Otherwise
            ``version`` should be the row version the record was read at;
            the update is refused if the row has changed since.

        Returns
        -------
        :class:`.domain.User`
            The stored record, with ``user_id`` and the new ``version`` set.

        Raises
        ------
        :class:`.ValidationError`
            Missing e-mail or password hash, or the e-mail is already in use.
        :class:`.ModifiedConcurrently`
            ``user`` is a stale copy of the record.
        :class:`.NotFound`
            Updating a record that no longer exists.

        """
        if not normalize_email(user.email):
            raise ValidationError('An e-mail address is required')
        if not user.password_hash:
            raise ValidationError('A password is required')
        fields = dict(
            email=normalize_email(user.email),
            password_enc=user.password_hash,
            verified=bool(user.verified),
            token=user.token
        )
        try:
            if user.user_id is None:
                saved = self._create(fields)
            else:
                saved = self._update(user.user_id, fields,
                                     expected_version=user.version)
        except IntegrityError as e:
            logger.debug('Integrity error saving user %s: %s',
                         user.user_id, e)
            raise ValidationError('E-mail address is already in use') from e
        except StaleDataError as e:
            raise ModifiedConcurrently('User was modified concurrently') \
                from e
        logger.debug('Saved user %s', saved.user_id)
        return saved

    def regenerate_token(self, user: domain.User) -> domain.User:
        """
        Replace the one-time token of ``user`` with a fresh one.

        Only the token column is written, so a stale ``user`` is fine here.

        Returns
        -------
        :class:`.domain.User`
            The stored record, carrying the new token.

        Raises
        ------
        :class:`.NotFound`
            The record no longer exists.

        """
        if user.user_id is None:
            raise NotFound('User does not exist')
        try:
            saved = self._update(user.user_id,
                                 {'token': self._generate_token()})
        except StaleDataError as e:
            raise ModifiedConcurrently('User was modified concurrently') \
                from e
        logger.debug('Regenerated token for user %s', saved.user_id)
        return saved

    @retry(StaleDataError, tries=3, delay=0.05, backoff=2)
    def regenerate_token_for_email(self,
                                   email: str) -> Optional[domain.User]:
        """
        Look up a user by e-mail and replace their one-time token.

        Lookup and write happen in one transaction with the row locked, and
        a miss costs the same locking query as a hit.

        Returns
        -------
        :class:`.domain.User` or None
            The stored record carrying the new token, or ``None`` if no user
            has this address.

        """
        token = self._generate_token()
        with transaction() as session:
            db_user = self._locked(session,
                                   DBUser.email == normalize_email(email))
            if db_user is None:
                session.rollback()
                return None
            db_user.token = token
            session.add(db_user)
            session.commit()
            logger.debug('Regenerated token for user %s', db_user.user_id)
            return db_user.to_domain()

    def _create(self, fields: dict) -> domain.User:
        with transaction() as session:
            db_user = DBUser(**fields)
            session.add(db_user)
            session.commit()
            return db_user.to_domain()

    @retry(StaleDataError, tries=3, delay=0.05, backoff=2)
    def _update(self, user_id: int, fields: dict,
                expected_version: Optional[int] = None) -> domain.User:
        with transaction() as session:
            db_user = self._locked(session, DBUser.user_id == int(user_id))
            if db_user is None:
                raise NotFound('User does not exist')
            if expected_version is not None \
                    and db_user.version != expected_version:
                logger.debug('User %s is at version %s, not %s', user_id,
                             db_user.version, expected_version)
                raise ModifiedConcurrently('User was modified concurrently')
            for field, value in fields.items():
                setattr(db_user, field, value)
            session.add(db_user)
            session.commit()
            return db_user.to_domain()

    def _locked(self, session: Session, criterion: Any) -> Optional[DBUser]:
        try:
            return session.query(DBUser) \
                .filter(criterion) \
                .with_for_update() \
                .populate_existing() \
                .first()
        except OperationalError as e:
            session.rollback()
            raise Unavailable('Database is temporarily unavailable') from e

    def _query(self, fn: Callable[[Session], Optional[DBUser]]) \
            -> Optional[DBUser]:
        try:
            return fn(db.session)
        except OperationalError as e:
            db.session.rollback()
            raise Unavailable('Database is temporarily unavailable') from e
