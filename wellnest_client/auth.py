"""
Session store: who is signed in, kept in memory and in durable storage
"""

from typing import Any, Callable, Dict, List, Optional
import json
import re

from .client import WellNestClient
from .exceptions import APIError, ValidationError
from .logging_utils import get_logger
from .models import (
    OTP_LENGTH,
    LoginCredentials,
    RegistrationDetails,
    RegistrationReceipt,
    Role,
    Session,
)
from .storage import SessionStorage, TOKEN_KEY, USER_KEY

logger = get_logger("auth")

SessionListener = Callable[[Optional[Session]], None]

OTP_PATTERN = re.compile(r"[0-9]{%d}" % OTP_LENGTH)


class SessionStore:
    """Single source of truth for the signed-in identity.

    Successful mutations write durable storage and the in-memory session in
    one synchronous step, then notify subscribers. Failed operations leave
    both untouched.
    """

    def __init__(self, client: WellNestClient, storage: SessionStorage):
        self.client = client
        self.storage = storage
        self._session: Optional[Session] = None
        self._listeners: List[SessionListener] = []
        # True until restore_from_storage() has run
        self.loading = True

        client.token_provider = self.get_token
        client.on_unauthorized = self.invalidate

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def role(self) -> Optional[Role]:
        return self._session.role if self._session else None

    def get_token(self) -> Optional[str]:
        return self._session.token if self._session else None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    def _set_session(self, session: Optional[Session]) -> None:
        if session is None:
            self.storage.clear()
        else:
            self.storage.write(session.token, session.identity_record())
        self._session = session
        self._notify()

    @staticmethod
    def _session_from_payload(payload: Dict[str, Any]) -> Session:
        if not payload.get("token"):
            raise APIError("Server response did not include a session token",
                           response_data=payload)
        try:
            return Session.from_auth_payload(payload)
        except ValueError as e:
            raise APIError(f"Malformed session in server response: {e}", response_data=payload)

    async def login(self, username: str, password: str) -> Session:
        """Sign in with username (or email) and password"""
        credentials = LoginCredentials(username=username, password=password)
        credentials.check()

        payload = await self.client.login(credentials.username.strip(), credentials.password)
        session = self._session_from_payload(payload)
        self._set_session(session)

        logger.info("Signed in as %s (%s)", session.username, session.role.value)
        return session

    async def register(self, details: RegistrationDetails) -> RegistrationReceipt:
        """Create an account and trigger the verification email.

        No session is created until verify_email() succeeds.
        """
        details.check()

        response = await self.client.register(details)
        logger.info("Registration accepted for %s; awaiting email verification", details.email)
        return RegistrationReceipt(email=details.email, message=response.message)

    async def verify_email(self, email: str, otp: str) -> Session:
        """Redeem the emailed code and sign in"""
        if not OTP_PATTERN.fullmatch(otp or ""):
            raise ValidationError(f"Please enter the {OTP_LENGTH}-digit OTP")

        payload = await self.client.verify_email(email, otp)
        session = self._session_from_payload(payload)
        self._set_session(session)

        logger.info("Email verified for %s", session.email)
        return session

    async def resend_verification_code(self, email: str) -> None:
        await self.client.resend_otp(email)
        logger.info("Verification code re-sent to %s", email)

    def logout(self) -> None:
        """Forget the session everywhere; safe to call repeatedly"""
        was_signed_in = self._session is not None
        self._set_session(None)
        if was_signed_in:
            logger.info("Signed out")

    def invalidate(self) -> None:
        """Drop a session the server no longer accepts"""
        if self._session is not None:
            logger.warning("Session for %s was rejected by the server", self._session.username)
        self.logout()

    def restore_from_storage(self) -> Optional[Session]:
        """Rehydrate from durable storage without contacting the API"""
        session = self._read_stored_session()
        self._session = session
        self.loading = False
        self._notify()
        return session

    def _read_stored_session(self) -> Optional[Session]:
        entries = self.storage.read()
        token = entries.get(TOKEN_KEY)
        user = entries.get(USER_KEY)
        if not token or not user:
            return None

        try:
            identity = json.loads(user) if isinstance(user, str) else user
            if not isinstance(identity, dict):
                raise ValueError("identity record is not an object")
            session = Session.from_auth_payload({**identity, "token": token})
        except ValueError as e:
            logger.warning("Discarding malformed stored session: %s", e)
            return None

        if session.is_expired():
            logger.info("Stored session for %s has expired", session.username)
            return None
        return session
