"""
WellNest Python client

Async client for the WellNest fitness coaching API: sign-in and email
verification, role-based page routing, trainer selection, fitness profiles
and trainer misconduct reports.
"""

from .client import WellNestClient
from .models import *
from .exceptions import *
from .auth import SessionStore
from .routing import RouteDecision, evaluate_route
from .otp import OtpBuffer, ResendCooldown, RegistrationFlow, PasswordResetFlow
from .storage import FileSessionStorage, MemorySessionStorage
from .app import Navigator, WellNestApp

__version__ = "1.0.0"

__all__ = [
    "WellNestClient",
    "SessionStore",
    "WellNestApp",
    "Navigator",
    "RouteDecision",
    "evaluate_route",
    "OtpBuffer",
    "ResendCooldown",
    "RegistrationFlow",
    "PasswordResetFlow",
    "FileSessionStorage",
    "MemorySessionStorage",
    # Exceptions
    "WellNestError",
    "FailureKind",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "VerificationError",
    "NotFoundError",
    "NetworkError",
    "APIError",
    # Models
    "Role",
    "Session",
    "RegistrationDetails",
    "FitnessProfile",
    "UserProfile",
    "Trainer",
    "Trainee",
    "Report",
    "ReportStatus",
    "AdminStats",
]
