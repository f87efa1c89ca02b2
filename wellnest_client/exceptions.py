"""
Exception classes for the WellNest client
"""

from enum import Enum
from typing import Optional, Dict, Any


class FailureKind(str, Enum):
    """Why an operation failed"""
    INVALID_CREDENTIALS = "InvalidCredentials"
    EMAIL_NOT_VERIFIED = "EmailNotVerified"
    DUPLICATE_USERNAME = "DuplicateUsername"
    DUPLICATE_EMAIL = "DuplicateEmail"
    INVALID_OTP = "InvalidOtp"
    EXPIRED_OTP = "ExpiredOtp"
    VALIDATION = "ValidationError"
    NOT_FOUND = "NotFound"
    PERMISSION_DENIED = "PermissionDenied"
    NETWORK = "NetworkError"
    API = "ApiError"


class WellNestError(Exception):
    """Base exception for all client errors"""

    default_kind = FailureKind.API

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response_data: Optional[Dict[str, Any]] = None,
                 kind: Optional[FailureKind] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        self.kind = kind or self.default_kind


class ValidationError(WellNestError):
    """Raised when input is rejected, locally or by the server"""

    default_kind = FailureKind.VALIDATION

    def __init__(self, message: str, validation_errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.validation_errors = validation_errors or []


class AuthenticationError(WellNestError):
    """Raised when credentials are rejected or the email is unverified"""

    default_kind = FailureKind.INVALID_CREDENTIALS


class AuthorizationError(WellNestError):
    """Raised when the session lacks permission for the requested action"""

    default_kind = FailureKind.PERMISSION_DENIED


class ConflictError(WellNestError):
    """Raised when a username or email is already registered"""

    default_kind = FailureKind.DUPLICATE_USERNAME


class VerificationError(WellNestError):
    """Raised when a one-time code is rejected"""

    default_kind = FailureKind.INVALID_OTP


class NotFoundError(WellNestError):
    """Raised when the requested record does not exist"""

    default_kind = FailureKind.NOT_FOUND


class APIError(WellNestError):
    """Raised for general API errors"""
    pass


class NetworkError(WellNestError):
    """Raised for transport failures and unstructured error responses"""

    default_kind = FailureKind.NETWORK


class InvalidTransitionError(WellNestError):
    """Raised when a flow step is attempted from the wrong state"""
    pass
