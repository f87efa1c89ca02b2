"""
HTTP client for the WellNest REST API
"""

from typing import Any, Callable, Dict, List, Optional, Type
import httpx

from .models import (
    AdminStats,
    ApiResponse,
    FitnessProfile,
    RegistrationDetails,
    Report,
    ReportStatus,
    Trainee,
    Trainer,
    UserProfile,
    UserSummary,
    parse_list,
)
from .exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    FailureKind,
    NetworkError,
    NotFoundError,
    ValidationError,
    VerificationError,
    WellNestError,
)
from .logging_utils import get_logger

logger = get_logger("client")

MIN_REPORT_MESSAGE_LENGTH = 10


def _classify_error(status_code: int, message: str, body: Dict[str, Any],
                    default_error: Type[WellNestError]) -> WellNestError:
    """Map a failed response onto the client's error taxonomy"""
    lowered = message.lower()
    kwargs = {"status_code": status_code, "response_data": body}

    if "email not verified" in lowered:
        return AuthenticationError(message, kind=FailureKind.EMAIL_NOT_VERIFIED, **kwargs)
    if "already taken" in lowered:
        return ConflictError(message, kind=FailureKind.DUPLICATE_USERNAME, **kwargs)
    if "already registered" in lowered:
        return ConflictError(message, kind=FailureKind.DUPLICATE_EMAIL, **kwargs)
    if status_code == 409:
        kind = FailureKind.DUPLICATE_EMAIL if "email" in lowered else FailureKind.DUPLICATE_USERNAME
        return ConflictError(message, kind=kind, **kwargs)
    if "otp" in lowered and ("invalid" in lowered or "expired" in lowered):
        kind = (FailureKind.EXPIRED_OTP
                if "expired" in lowered and "invalid" not in lowered
                else FailureKind.INVALID_OTP)
        return VerificationError(message, kind=kind, **kwargs)
    if status_code == 401:
        return AuthenticationError(message, **kwargs)
    if status_code == 403:
        return AuthorizationError(message, **kwargs)
    if status_code == 404 or "not found" in lowered or "no account found" in lowered:
        return NotFoundError(message, **kwargs)
    if status_code == 422 or body.get("errors"):
        return ValidationError(message, validation_errors=body.get("errors") or body.get("detail"),
                               **kwargs)
    return default_error(message, **kwargs)


class WellNestClient:
    """Thin async wrapper over the WellNest REST API.

    The client never persists anything. Authenticated calls read the bearer
    token from ``token_provider``; a 401 on such a call fires
    ``on_unauthorized`` before the error is raised.
    """

    def __init__(self, base_url: str, timeout: float = 30.0,
                 token_provider: Optional[Callable[[], Optional[str]]] = None,
                 on_unauthorized: Optional[Callable[[], None]] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self._http_client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self._ensure_http_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_http_client(self):
        if not self._http_client:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)

    async def close(self):
        """Close the underlying connection pool"""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _auth_headers(self) -> Dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        if not token:
            raise AuthenticationError("You must be signed in to do that")
        return {"Authorization": f"Bearer {token}"}

    async def _make_request(self, method: str, endpoint: str,
                            json_data: Optional[Dict] = None,
                            params: Optional[Dict] = None,
                            require_auth: bool = True,
                            default_error: Type[WellNestError] = APIError) -> ApiResponse:
        """Send a request and unwrap the ``{success, message, data}`` envelope"""
        headers = self._auth_headers() if require_auth else {}
        await self._ensure_http_client()

        try:
            response = await self._http_client.request(
                method=method,
                url=f"{self.base_url}{endpoint}",
                json=json_data,
                params=params,
                headers=headers
            )
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            raise NetworkError(f"Network error: {e}")

        logger.debug("%s %s -> %s", method, endpoint, response.status_code)

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = None

        if not isinstance(body, dict):
            if response.is_success:
                return ApiResponse(success=True, data=body)
            raise NetworkError(f"Request failed with status {response.status_code}",
                               status_code=response.status_code)

        envelope = ApiResponse.model_validate(body)
        if response.is_success:
            if "success" not in body:
                return ApiResponse(success=True, data=body)
            if envelope.success:
                return envelope

        if response.status_code == 401 and require_auth and self.on_unauthorized:
            logger.warning("%s %s rejected the session token", method, endpoint)
            self.on_unauthorized()

        message = envelope.message or f"Request failed with status {response.status_code}"
        raise _classify_error(response.status_code, message, body, default_error)

    # Authentication methods
    async def register(self, details: RegistrationDetails) -> ApiResponse:
        """Create an unverified account; the server emails a code"""
        return await self._make_request(
            "POST", "/auth/register",
            json_data=details.to_wire(),
            require_auth=False,
            default_error=ValidationError
        )

    async def verify_email(self, email: str, otp: str) -> Dict[str, Any]:
        """Redeem the sign-up code; returns the auth payload"""
        response = await self._make_request(
            "POST", "/auth/verify-email",
            json_data={"email": email, "otp": otp},
            require_auth=False,
            default_error=VerificationError
        )
        return response.data or {}

    async def resend_otp(self, email: str) -> ApiResponse:
        """Email a fresh sign-up code"""
        return await self._make_request(
            "POST", "/auth/resend-otp",
            json_data={"email": email},
            require_auth=False
        )

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """Exchange credentials for the auth payload"""
        response = await self._make_request(
            "POST", "/auth/login",
            json_data={"username": username, "password": password},
            require_auth=False,
            default_error=AuthenticationError
        )
        return response.data or {}

    async def forgot_password(self, email: str) -> ApiResponse:
        """Email a password reset code"""
        return await self._make_request(
            "POST", "/auth/forgot-password",
            json_data={"email": email},
            require_auth=False
        )

    async def verify_reset_otp(self, email: str, otp: str) -> ApiResponse:
        """Check a password reset code without consuming it"""
        return await self._make_request(
            "POST", "/auth/verify-reset-otp",
            json_data={"email": email, "otp": otp},
            require_auth=False,
            default_error=VerificationError
        )

    async def reset_password(self, email: str, otp: str, new_password: str) -> ApiResponse:
        """Set a new password using the reset code"""
        return await self._make_request(
            "POST", "/auth/reset-password",
            json_data={"email": email, "otp": otp, "newPassword": new_password},
            require_auth=False
        )

    # Trainer methods
    async def get_available_trainers(self) -> List[Trainer]:
        response = await self._make_request("GET", "/trainers")
        return parse_list(Trainer, response.data)

    async def select_trainer(self, trainer_id: str) -> str:
        """Pick today's trainer; returns the server's confirmation message"""
        if not trainer_id:
            raise ValidationError("Please select a trainer")
        response = await self._make_request(
            "POST", "/trainers/select",
            json_data={"trainerId": trainer_id}
        )
        return response.message or "Trainer selected"

    async def get_my_trainees(self) -> List[Trainee]:
        response = await self._make_request("GET", "/trainers/my-trainees")
        return parse_list(Trainee, response.data)

    async def get_my_trainer_today(self) -> Optional[Trainer]:
        response = await self._make_request("GET", "/trainers/my-trainer-today")
        return Trainer.model_validate(response.data) if response.data else None

    # Profile methods
    async def get_profile(self) -> UserProfile:
        response = await self._make_request("GET", "/profile")
        return UserProfile.model_validate(response.data)

    async def save_fitness_profile(self, profile: FitnessProfile) -> FitnessProfile:
        response = await self._make_request(
            "POST", "/profile/fitness",
            json_data=profile.to_wire()
        )
        return FitnessProfile.model_validate(response.data or {})

    # Report methods
    async def create_report(self, trainer_id: str, message: str) -> Report:
        """File a misconduct report against a trainer"""
        if not trainer_id:
            raise ValidationError("Please select a trainer")
        if len(message.strip()) < MIN_REPORT_MESSAGE_LENGTH:
            raise ValidationError(
                f"Please provide a detailed message (at least {MIN_REPORT_MESSAGE_LENGTH} characters)"
            )
        response = await self._make_request(
            "POST", "/reports",
            json_data={"trainerId": trainer_id, "message": message.strip()}
        )
        return Report.model_validate(response.data)

    async def get_my_reports(self) -> List[Report]:
        response = await self._make_request("GET", "/reports/my-reports")
        return parse_list(Report, response.data)

    async def get_all_reports(self) -> List[Report]:
        response = await self._make_request("GET", "/reports")
        return parse_list(Report, response.data)

    async def get_pending_reports(self) -> List[Report]:
        response = await self._make_request("GET", "/reports/pending")
        return parse_list(Report, response.data)

    async def get_reports_by_trainer(self, trainer_id: str) -> List[Report]:
        response = await self._make_request("GET", f"/reports/trainer/{trainer_id}")
        return parse_list(Report, response.data)

    async def update_report_status(self, report_id: str, status: ReportStatus) -> Report:
        response = await self._make_request(
            "PATCH", f"/reports/{report_id}/status",
            params={"status": ReportStatus(status).value}
        )
        return Report.model_validate(response.data)

    async def delete_report(self, report_id: str) -> str:
        response = await self._make_request("DELETE", f"/reports/{report_id}")
        return response.message or "Report deleted"

    # Admin methods
    async def get_admin_stats(self) -> AdminStats:
        response = await self._make_request("GET", "/admin/stats")
        return AdminStats.model_validate(response.data or {})

    async def get_all_customers(self) -> List[UserSummary]:
        response = await self._make_request("GET", "/admin/customers")
        return parse_list(UserSummary, response.data)

    async def get_all_trainers(self) -> List[UserSummary]:
        response = await self._make_request("GET", "/admin/trainers")
        return parse_list(UserSummary, response.data)

    async def delete_user(self, user_id: str) -> str:
        response = await self._make_request("DELETE", f"/admin/users/{user_id}")
        return response.message or "User deleted"
