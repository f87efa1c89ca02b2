"""User-facing notifications produced by the auth flows"""

from dataclasses import dataclass
from enum import Enum

from .exceptions import FailureKind, WellNestError


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


EMAIL_NOT_VERIFIED_HINT = "Please verify your email first. A new OTP has been sent."


@dataclass(frozen=True)
class Notification:
    """A transient, dismissible message for the user"""
    level: NotificationLevel
    message: str

    @classmethod
    def success(cls, message: str) -> "Notification":
        return cls(NotificationLevel.SUCCESS, message)

    @classmethod
    def info(cls, message: str) -> "Notification":
        return cls(NotificationLevel.INFO, message)

    @classmethod
    def error(cls, message: str) -> "Notification":
        return cls(NotificationLevel.ERROR, message)

    @classmethod
    def from_error(cls, error: WellNestError) -> "Notification":
        # The server re-sends the code on this path; point the user at their inbox
        if error.kind is FailureKind.EMAIL_NOT_VERIFIED:
            return cls(NotificationLevel.WARNING, EMAIL_NOT_VERIFIED_HINT)
        return cls(NotificationLevel.ERROR, error.message)
