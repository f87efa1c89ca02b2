"""
Data models for the WellNest client
"""

from typing import Annotated, Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum
import jwt

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import ValidationError


MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3
OTP_LENGTH = 6


class Role(str, Enum):
    """Account roles"""
    USER = "USER"
    TRAINER = "TRAINER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Accept both ``ADMIN`` and the server's ``ROLE_ADMIN`` spelling"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Role must be a string, got {type(value).__name__}")
        name = value.strip().upper()
        if name.startswith("ROLE_"):
            name = name[len("ROLE_"):]
        return cls(name)


WireRole = Annotated[Role, BeforeValidator(Role.parse)]


class ReportStatus(str, Enum):
    """Misconduct report lifecycle"""
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"


class WireModel(BaseModel):
    """Base for records exchanged with the API (camelCase on the wire)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class Session(WireModel):
    """Authenticated identity plus its bearer token"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              extra="ignore", frozen=True)

    user_id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    full_name: str
    email: str
    role: WireRole
    token: str = Field(..., min_length=1)

    @field_validator("user_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @classmethod
    def from_auth_payload(cls, data: Dict[str, Any]) -> "Session":
        """Build from the ``data`` object of a login/verify response.

        The server names the user id ``id``; stored records use ``userId``.
        """
        payload = dict(data)
        if "userId" not in payload and "id" in payload:
            payload["userId"] = payload["id"]
        # Accounts created without a display name come back with fullName null
        if payload.get("fullName") is None:
            payload["fullName"] = ""
        return cls.model_validate(payload)

    def identity_record(self) -> Dict[str, Any]:
        """Identity fields without the token, as kept in durable storage"""
        return {
            "userId": self.user_id,
            "username": self.username,
            "fullName": self.full_name,
            "email": self.email,
            "role": self.role.value,
        }

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def expires_at(self) -> Optional[datetime]:
        """Expiry claim of a JWT token; None for opaque tokens"""
        try:
            payload = jwt.decode(self.token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None
        exp = payload.get("exp")
        if not isinstance(exp, (int, float)):
            return None
        return datetime.fromtimestamp(exp, tz=timezone.utc)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= expires_at


class LoginCredentials(WireModel):
    """Username (or email) and password"""
    username: str
    password: str

    def check(self) -> None:
        if not self.username.strip() or not self.password:
            raise ValidationError("Username and password are required")


class RegistrationDetails(WireModel):
    """Sign-up form values"""
    username: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    full_name: str = ""
    role: WireRole = Role.USER

    def check(self) -> None:
        """Reject the form locally, before any network call"""
        if self.password != self.confirm_password:
            raise ValidationError("Passwords do not match")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(self.username.strip()) < MIN_USERNAME_LENGTH:
            raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
        if "@" not in self.email:
            raise ValidationError("Email must be valid")
        if self.role is Role.ADMIN:
            raise ValidationError("Admin accounts cannot be self-registered")

    def to_wire(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "email": self.email,
            "password": self.password,
            "fullName": self.full_name,
            "role": self.role.value,
        }


class RegistrationReceipt(BaseModel):
    """Result of a successful sign-up: a code was emailed, no session yet"""
    otp_sent: bool = True
    email: str
    message: Optional[str] = None


class FitnessProfile(WireModel):
    """Fitness details a trainee shares with their trainer"""
    id: Optional[str] = None
    age: Optional[int] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    gender: Optional[str] = None
    fitness_goal: Optional[str] = None
    activity_level: Optional[str] = None
    medical_notes: Optional[str] = None


class UserProfile(WireModel):
    """Account details plus the optional fitness profile"""
    id: str
    username: str
    email: str
    full_name: Optional[str] = None
    role: WireRole
    fitness_profile: Optional[FitnessProfile] = None


class Trainer(WireModel):
    """A trainer available for selection"""
    id: str
    full_name: Optional[str] = None
    username: str
    active_trainee_count: int = 0


class Trainee(WireModel):
    """A trainee card on the trainer dashboard"""
    id: str
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    assignment_date: Optional[str] = None
    age: Optional[int] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    gender: Optional[str] = None
    fitness_goal: Optional[str] = None
    activity_level: Optional[str] = None
    medical_notes: Optional[str] = None
    has_profile: bool = False


class Report(WireModel):
    """Misconduct report filed by a customer against a trainer"""
    id: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    trainer_id: str
    trainer_name: Optional[str] = None
    trainer_email: Optional[str] = None
    message: str
    status: ReportStatus = ReportStatus.PENDING
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None


class UserSummary(WireModel):
    """Row of the admin customer/trainer listings"""
    id: str
    username: str
    email: str
    full_name: Optional[str] = None
    role: WireRole
    email_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assigned_clients: Optional[int] = None


class AdminStats(WireModel):
    """Admin dashboard counters"""
    total_users: int = 0
    total_trainers: int = 0
    pending_reports: int = 0
    total_reports: int = 0
    active_assignments: int = 0


class ApiResponse(BaseModel):
    """Envelope every endpoint answers with"""
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    message: Optional[str] = None
    data: Any = None


def parse_list(model: type, items: Optional[List[Dict[str, Any]]]) -> list:
    return [model.model_validate(item) for item in (items or [])]
