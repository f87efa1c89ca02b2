"""
Route guard: decide whether a requested page renders or redirects
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
from urllib.parse import urlsplit

from .models import Role, Session


LOGIN = "/login"
REGISTER = "/register"
FORGOT_PASSWORD = "/forgot-password"
ADMIN_LOGIN = "/admin/login"
ADMIN_DASHBOARD = "/admin/dashboard"
DASHBOARD = "/dashboard"
PROFILE = "/profile"
TRAINER_DASHBOARD = "/trainer-dashboard"
SELECT_TRAINER = "/select-trainer"
ROOT = "/"


class Access(Enum):
    """Who may open a page"""
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


ROUTES: Dict[str, Access] = {
    LOGIN: Access.PUBLIC,
    REGISTER: Access.PUBLIC,
    FORGOT_PASSWORD: Access.PUBLIC,
    ADMIN_LOGIN: Access.PUBLIC,
    ADMIN_DASHBOARD: Access.ADMIN,
    DASHBOARD: Access.AUTHENTICATED,
    PROFILE: Access.AUTHENTICATED,
    TRAINER_DASHBOARD: Access.AUTHENTICATED,
    SELECT_TRAINER: Access.AUTHENTICATED,
}


class Outcome(Enum):
    RENDER = "render"
    REDIRECT = "redirect"
    LOADING = "loading"


@dataclass(frozen=True)
class RouteDecision:
    """What to show for a navigation; ``path`` is empty while loading"""
    outcome: Outcome
    path: Optional[str] = None

    @classmethod
    def render(cls, path: str) -> "RouteDecision":
        return cls(Outcome.RENDER, path)

    @classmethod
    def redirect(cls, path: str) -> "RouteDecision":
        return cls(Outcome.REDIRECT, path)

    @classmethod
    def loading(cls) -> "RouteDecision":
        return cls(Outcome.LOADING)

    @property
    def is_redirect(self) -> bool:
        return self.outcome is Outcome.REDIRECT


def normalize_path(path: str) -> str:
    """Drop query string, fragment and trailing slash"""
    clean = urlsplit(path or ROOT).path or ROOT
    if not clean.startswith("/"):
        clean = "/" + clean
    if len(clean) > 1:
        clean = clean.rstrip("/") or ROOT
    return clean


def landing_page(session: Optional[Session]) -> str:
    """Where the root path sends a visitor"""
    if session is None:
        return LOGIN
    if session.role is Role.ADMIN:
        return ADMIN_DASHBOARD
    return DASHBOARD


def evaluate_route(path: str, session: Optional[Session], loading: bool = False) -> RouteDecision:
    """Pure decision for one navigation.

    Admin pages send anonymous visitors to the admin login and signed-in
    non-admins to the regular dashboard. Unknown paths behave like the root.
    """
    if loading:
        return RouteDecision.loading()

    requested = normalize_path(path)
    access = ROUTES.get(requested)

    if access is None:
        return RouteDecision.redirect(landing_page(session))

    if access is Access.ADMIN:
        if session is None:
            return RouteDecision.redirect(ADMIN_LOGIN)
        if session.role is not Role.ADMIN:
            return RouteDecision.redirect(DASHBOARD)
        return RouteDecision.render(requested)

    if access is Access.AUTHENTICATED and session is None:
        return RouteDecision.redirect(LOGIN)

    return RouteDecision.render(requested)
