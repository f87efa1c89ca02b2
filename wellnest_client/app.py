"""
Application wiring: client, storage, session store and navigation
"""

from typing import Callable, List, Optional

from .auth import SessionStore
from .client import WellNestClient
from .config import Settings, get_settings
from .exceptions import WellNestError
from .logging_utils import get_logger
from .models import Session
from .notifications import Notification
from .otp import PasswordResetFlow, RegistrationFlow
from .routing import RouteDecision, evaluate_route, normalize_path, ROOT
from .storage import FileSessionStorage, SessionStorage

logger = get_logger("app")

MAX_REDIRECTS = 5


class Navigator:
    """Current page, re-checked on every navigation and session change"""

    def __init__(self, store: SessionStore):
        self.store = store
        self.requested_path = ROOT
        self.current_path: Optional[str] = None
        self.decision = RouteDecision.loading()
        self.history: List[str] = []
        self._listeners: List[Callable[[RouteDecision], None]] = []
        self._unsubscribe = store.subscribe(self._on_session_change)

    def on_change(self, listener: Callable[[RouteDecision], None]) -> None:
        self._listeners.append(listener)

    def navigate(self, path: str) -> RouteDecision:
        """Resolve ``path`` through the guard, following redirects"""
        self.requested_path = normalize_path(path)
        return self._resolve()

    def _on_session_change(self, session: Optional[Session]) -> None:
        target = self.current_path or self.requested_path
        self.requested_path = target
        self._resolve()

    def _resolve(self) -> RouteDecision:
        path = self.requested_path
        decision = evaluate_route(path, self.store.session, self.store.loading)

        hops = 0
        while decision.is_redirect and hops < MAX_REDIRECTS:
            logger.debug("Redirect %s -> %s", path, decision.path)
            path = decision.path
            decision = evaluate_route(path, self.store.session, self.store.loading)
            hops += 1

        if decision.is_redirect:
            raise RuntimeError(f"Redirect loop while resolving {self.requested_path}")

        self.decision = decision
        if decision.path is not None and decision.path != self.current_path:
            self.current_path = decision.path
            self.history.append(decision.path)

        for listener in list(self._listeners):
            listener(decision)
        return decision

    def close(self) -> None:
        self._unsubscribe()


class WellNestApp:
    """Everything a front end needs, built from settings"""

    def __init__(self, settings: Optional[Settings] = None,
                 storage: Optional[SessionStorage] = None,
                 client: Optional[WellNestClient] = None):
        self.settings = settings or get_settings()
        self.client = client or WellNestClient(
            self.settings.api.base_url, timeout=self.settings.api.timeout
        )
        self.storage = storage or FileSessionStorage(self.settings.storage.session_file)
        self.store = SessionStore(self.client, self.storage)
        self.navigator = Navigator(self.store)

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def start(self) -> Optional[Session]:
        """Rehydrate the session; the guard stops showing the loading state"""
        return self.store.restore_from_storage()

    async def close(self) -> None:
        self.navigator.close()
        await self.client.close()

    def registration_flow(self, **kwargs) -> RegistrationFlow:
        kwargs.setdefault("cooldown_seconds", self.settings.otp.resend_cooldown_seconds)
        return RegistrationFlow(self.store, **kwargs)

    def password_reset_flow(self, **kwargs) -> PasswordResetFlow:
        kwargs.setdefault("cooldown_seconds", self.settings.otp.resend_cooldown_seconds)
        return PasswordResetFlow(self.client, **kwargs)

    async def sign_in(self, username: str, password: str) -> Notification:
        """Login screen submit: errors come back as a notification"""
        try:
            session = await self.store.login(username, password)
        except WellNestError as e:
            return Notification.from_error(e)

        self.navigator.navigate(ROOT)
        return Notification.success(f"Welcome back, {session.full_name or session.username}!")

    def sign_out(self) -> Notification:
        self.store.logout()
        return Notification.info("You have been signed out")
