"""
The account state machine.

From the point of view of one browsing client, a user is anonymous or
authenticated; independently, their e-mail address is verified or not.
:class:`AuthFlow` implements every transition between these states by
combining the user store, the token service, the cookie-backed credentials,
the interaction session and the outbound notifier.

Operations raise the exceptions in :mod:`useraccounts.exceptions` on
failure and leave the session and credentials untouched when they do.
Operations that read a record and then save it are retried from the read
when another interaction changed the record in between.
"""

import logging
from typing import Any, Dict, Optional

from retry import retry

from .. import domain
from ..exceptions import InvalidCredentials, InvalidToken, \
    ModifiedConcurrently, NotAuthenticated, NotFound, \
    PasswordAuthenticationFailed
from ..services import passwords
from ..services.credentials import CredentialStore
from ..services.notifications import Notifier, payload_for, AFTER_SIGNUP, \
    SEND_RECOVERY, SEND_VERIFICATION
from ..services.sessions import SessionManager
from ..services.tokens import TokenService
from ..services.users import UserStore, normalize_email

logger = logging.getLogger(__name__)


class AuthFlow(object):
    """Signup, signin, signout, edit, verify, and token (re)issuance."""

    def __init__(self, users: UserStore, tokens: TokenService,
                 credentials: CredentialStore, sessions: SessionManager,
                 notifier: Notifier) -> None:
        self.users = users
        self.tokens = tokens
        self.credentials = credentials
        self.sessions = sessions
        self.notifier = notifier

    def signup(self, email: str, password: str) -> domain.User:
        """
        Register a new, unverified user and sign them in.

        Raises
        ------
        :class:`.ValidationError`
            The store refused the record (e.g. the e-mail is taken). No
            session is established.

        """
        user = self.users.save(domain.User(
            email=email,
            password_hash=passwords.hash_password(password),
            verified=False,
            token=self.tokens.generate_one_time_token()
        ))
        self.sessions.set_user(user)
        logger.info('Registered user %s', user.user_id)
        self.notifier.notify(AFTER_SIGNUP, payload_for(user))
        return user

    def signin(self, email: str, password: str,
               remember: bool = False) -> domain.User:
        """
        Authenticate with e-mail and password.

        A bearer token with the default lifetime is always written. When
        ``remember`` is set, a remember credential is written too, and the
        bearer token is re-issued with the extended lifetime.

        Raises
        ------
        :class:`.InvalidCredentials`
            Unknown e-mail or wrong password; the two are indistinguishable.

        """
        user = self.users.find_by_email(email)
        if user is None or user.user_id is None:
            passwords.burn_check(password)
            logger.debug('Sign in failed: no such user')
            raise InvalidCredentials('Invalid username or password')
        try:
            passwords.check_password(password, user.password_hash or '')
        except PasswordAuthenticationFailed as e:
            logger.debug('Sign in failed for user %s', user.user_id)
            raise InvalidCredentials('Invalid username or password') from e

        self.sessions.set_user(user)
        self.credentials.write_bearer(user.user_id)
        if remember:
            self.credentials.write_remember(user)
            self.credentials.write_bearer(user.user_id, persistent=True)
        logger.info('User %s signed in (remember=%s)', user.user_id, remember)
        return user

    def signout(self) -> None:
        """End the session and remove both cookie credentials. Idempotent."""
        user_id = self.sessions.current_user()
        self.sessions.clear()
        self.credentials.delete(self.credentials.remember_name)
        self.credentials.delete(self.credentials.bearer_name)
        if user_id is not None:
            logger.info('User %s signed out', user_id)

    def edit(self) -> domain.User:
        """Load the authenticated user's record for editing."""
        return self._authenticated_user()

    @retry(ModifiedConcurrently, tries=3, delay=0.05, backoff=2)
    def update(self, user_id: Optional[int],
               patch: Dict[str, Any]) -> domain.User:
        """
        Apply ``patch`` to the authenticated user's record.

        A new e-mail address must be verified again: the record goes back to
        unverified, and a verification e-mail with a fresh token is sent.

        Parameters
        ----------
        user_id : int
            Must be the authenticated identity.
        patch : dict
            May contain ``email`` and/or ``password`` (plaintext, hashed
            here). Other keys are ignored.

        Raises
        ------
        :class:`.NotAuthenticated`
        :class:`.NotFound`
            The record was deleted since the session was established.
        :class:`.ValidationError`
            The store refused the change; the session is left as it was.

        """
        user = self._authenticated_user(user_id)
        changes: Dict[str, Any] = {}
        email_changed = bool(patch.get('email')) \
            and normalize_email(patch['email']) != user.email
        if email_changed:
            changes.update(email=patch['email'], verified=False,
                           token=self.tokens.generate_one_time_token())
        if patch.get('password'):
            changes['password_hash'] = \
                passwords.hash_password(patch['password'])
        user = self.users.save(user._replace(**changes))

        self.sessions.set_user(user)
        # A new password revokes the remember credential; keep this client's.
        if 'password_hash' in changes \
                and self.credentials.read(self.credentials.remember_name):
            self.credentials.write_remember(user)
        if email_changed:
            self.notifier.notify(SEND_VERIFICATION, payload_for(user))
        logger.info('Updated user %s', user.user_id)
        return user

    @retry(ModifiedConcurrently, tries=3, delay=0.05, backoff=2)
    def verify(self, user_id: int, token: str) -> domain.User:
        """
        Mark the e-mail address verified, given the mailed one-time token.

        The token is consumed on success.

        Raises
        ------
        :class:`.NotFound`
            No user has exactly this ID and token.

        """
        user = self.users.find_by_id_and_token(user_id, token)
        if user is None:
            logger.debug('Verification failed for user %s', user_id)
            raise NotFound('Error while validating email')
        user = self.users.save(user._replace(verified=True, token=None))
        self.sessions.set_user(user)
        logger.info('Verified user %s', user.user_id)
        return user

    def send_verification(self,
                          user_id: Optional[int] = None) -> domain.User:
        """Issue a fresh one-time token and ask for a verification e-mail."""
        user = self._authenticated_user(user_id)
        user = self.users.regenerate_token(user)
        self.notifier.notify(SEND_VERIFICATION, payload_for(user))
        return user

    def send_recovery(self, email: str) -> Optional[domain.User]:
        """
        Issue a fresh one-time token and ask for a recovery e-mail.

        Unknown addresses are a silent no-op, so that callers cannot tell
        which addresses are registered. Both cases run the same locked
        lookup in the store.
        """
        user = self.users.regenerate_token_for_email(email)
        if user is None:
            logger.debug('Recovery requested for unknown address')
            return None
        self.notifier.notify(SEND_RECOVERY, payload_for(user))
        return user

    @retry(ModifiedConcurrently, tries=3, delay=0.05, backoff=2)
    def reset_password(self, user_id: int, token: str,
                       password: str) -> domain.User:
        """
        Complete password recovery with the mailed one-time token.

        The token is consumed, and the user is signed in.

        Raises
        ------
        :class:`.NotFound`
            No user has exactly this ID and token.

        """
        user = self.users.find_by_id_and_token(user_id, token)
        if user is None:
            logger.debug('Password reset failed for user %s', user_id)
            raise NotFound('Error while resetting password')
        user = self.users.save(user._replace(
            password_hash=passwords.hash_password(password),
            token=None
        ))
        self.sessions.set_user(user)
        logger.info('Password reset for user %s', user.user_id)
        return user

    def resume(self) -> Optional[int]:
        """
        Re-establish the session from cookie credentials, if possible.

        The bearer token is tried first, then the remember credential. A
        credential that fails verification is deleted.

        Returns
        -------
        int or None
            The authenticated user ID.

        """
        current = self.sessions.current_user()
        if current is not None:
            return current

        bearer = self.credentials.read(self.credentials.bearer_name)
        if bearer:
            try:
                claims = self.tokens.verify_bearer_token(bearer)
            except InvalidToken as e:
                logger.debug('Discarding bearer token: %s', e)
                self.credentials.delete(self.credentials.bearer_name)
            else:
                user = self.users.find_by_id(claims.id)
                if user is not None:
                    self.sessions.set_user(user)
                    return user.user_id
                self.credentials.delete(self.credentials.bearer_name)

        remember = self.credentials.read(self.credentials.remember_name)
        if remember:
            try:
                remembered = self.tokens.verify_remember_token(remember)
            except InvalidToken as e:
                logger.debug('Discarding remember credential: %s', e)
                self.credentials.delete(self.credentials.remember_name)
                return None
            user = self.users.find_by_id(remembered.id)
            if user is None or not self.tokens.remembers(remembered, user):
                logger.debug('Remember credential no longer valid')
                self.credentials.delete(self.credentials.remember_name)
                return None
            self.sessions.set_user(user)
            self.credentials.write_bearer(user.user_id, persistent=True)
            logger.info('User %s re-authenticated from remember credential',
                        user.user_id)
            return user.user_id
        return None

    def _authenticated_user(self,
                            user_id: Optional[int] = None) -> domain.User:
        current = self.sessions.current_user()
        if current is None or (user_id is not None and user_id != current):
            raise NotAuthenticated('You must be signed in')
        user = self.users.find_by_id(current)
        if user is None:
            raise NotFound('User could not be found')
        return user
