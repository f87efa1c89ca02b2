"""
Tests for the WellNestClient
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from wellnest_client.client import WellNestClient
from wellnest_client.exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    FailureKind,
    NetworkError,
    NotFoundError,
    ValidationError,
    VerificationError,
)
from wellnest_client.models import RegistrationDetails, ReportStatus, Role

BASE_URL = "https://api.test.com/api"


def envelope(data=None, message=None, success=True):
    return {"success": success, "message": message, "data": data}


@pytest.fixture
def client():
    """Client with a scripted transport and a signed-in token"""
    client = WellNestClient(BASE_URL + "/", token_provider=lambda: "tok-123")
    client._http_client = AsyncMock()
    return client


def respond(client, status_code, body=None, content=None):
    if content is not None:
        response = httpx.Response(status_code, content=content)
    else:
        response = httpx.Response(status_code, json=body)
    client._http_client.request.return_value = response
    return response


def sent(client):
    return client._http_client.request.call_args.kwargs


@pytest.mark.asyncio
async def test_client_initialization():
    """Test client initialization"""
    client = WellNestClient("https://api.test.com/api/")
    assert client.base_url == "https://api.test.com/api"
    assert client.timeout == 30.0
    await client.close()


@pytest.mark.asyncio
async def test_context_manager():
    """Test client as context manager"""
    async with WellNestClient(BASE_URL) as client:
        assert client._http_client is not None
    assert client._http_client is None


@pytest.mark.asyncio
async def test_login_unwraps_envelope(client):
    """Test login posts credentials and returns the auth payload"""
    respond(client, 200, envelope({"token": "t", "role": "ROLE_USER"}, "Login successful"))

    payload = await client.login("alice", "secret1")

    assert payload == {"token": "t", "role": "ROLE_USER"}
    call = sent(client)
    assert call["method"] == "POST"
    assert call["url"] == f"{BASE_URL}/auth/login"
    assert call["json"] == {"username": "alice", "password": "secret1"}
    assert call["headers"] == {}


@pytest.mark.asyncio
async def test_register_sends_wire_fields(client):
    respond(client, 200, envelope(message="Registration successful"))
    details = RegistrationDetails(username="bob", email="b@c.com", password="secret1",
                                  confirm_password="secret1", full_name="Bob",
                                  role=Role.TRAINER)

    response = await client.register(details)

    assert response.message == "Registration successful"
    assert sent(client)["json"] == {
        "username": "bob",
        "email": "b@c.com",
        "password": "secret1",
        "fullName": "Bob",
        "role": "TRAINER",
    }


@pytest.mark.asyncio
async def test_reset_password_payload(client):
    respond(client, 200, envelope(message="Password reset successful"))
    await client.reset_password("a@b.com", "123456", "newpass")
    assert sent(client)["url"] == f"{BASE_URL}/auth/reset-password"
    assert sent(client)["json"] == {"email": "a@b.com", "otp": "123456", "newPassword": "newpass"}


@pytest.mark.asyncio
async def test_authenticated_call_sends_bearer_token(client):
    respond(client, 200, envelope([{"id": "t1", "username": "coach", "fullName": "Coach",
                                    "activeTraineeCount": 2}]))

    trainers = await client.get_available_trainers()

    assert sent(client)["headers"] == {"Authorization": "Bearer tok-123"}
    assert trainers[0].id == "t1"
    assert trainers[0].active_trainee_count == 2


@pytest.mark.asyncio
async def test_authenticated_call_without_token():
    client = WellNestClient(BASE_URL)
    client._http_client = AsyncMock()

    with pytest.raises(AuthenticationError):
        await client.get_profile()
    client._http_client.request.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code,message,error_class,kind", [
    (401, "Invalid credentials", AuthenticationError, FailureKind.INVALID_CREDENTIALS),
    (401, "Email not verified", AuthenticationError, FailureKind.EMAIL_NOT_VERIFIED),
    (400, "Username is already taken", ConflictError, FailureKind.DUPLICATE_USERNAME),
    (400, "Email is already registered", ConflictError, FailureKind.DUPLICATE_EMAIL),
    (400, "Invalid or expired OTP", VerificationError, FailureKind.INVALID_OTP),
    (400, "OTP has expired", VerificationError, FailureKind.EXPIRED_OTP),
    (403, "Access denied", AuthorizationError, FailureKind.PERMISSION_DENIED),
    (404, "No account found with this email", NotFoundError, FailureKind.NOT_FOUND),
    (500, "Something broke", APIError, FailureKind.API),
])
async def test_error_mapping(client, status_code, message, error_class, kind):
    respond(client, status_code, envelope(message=message, success=False))

    with pytest.raises(error_class) as exc_info:
        await client.forgot_password("a@b.com")

    assert exc_info.value.message == message
    assert exc_info.value.kind is kind
    assert exc_info.value.status_code == status_code


@pytest.mark.asyncio
async def test_login_failure_defaults_to_invalid_credentials(client):
    respond(client, 400, envelope(message="Bad credentials", success=False))
    with pytest.raises(AuthenticationError) as exc_info:
        await client.login("alice", "nope")
    assert exc_info.value.kind is FailureKind.INVALID_CREDENTIALS


@pytest.mark.asyncio
async def test_unsuccessful_envelope_with_ok_status(client):
    respond(client, 200, envelope(message="Invalid OTP", success=False))
    with pytest.raises(VerificationError):
        await client.verify_email("a@b.com", "000000")


@pytest.mark.asyncio
async def test_field_errors_become_validation_error(client):
    respond(client, 400, {"success": False, "message": "Validation failed",
                          "errors": {"email": "must be valid"}})
    with pytest.raises(ValidationError) as exc_info:
        await client.resend_otp("bad")
    assert exc_info.value.validation_errors == {"email": "must be valid"}


@pytest.mark.asyncio
async def test_unstructured_error_is_network_error(client):
    respond(client, 502, content=b"<html>Bad Gateway</html>")
    with pytest.raises(NetworkError) as exc_info:
        await client.get_admin_stats()
    assert exc_info.value.message == "Request failed with status 502"


@pytest.mark.asyncio
async def test_transport_failure_is_network_error(client):
    client._http_client.request.side_effect = httpx.ConnectError("Connection refused")
    with pytest.raises(NetworkError) as exc_info:
        await client.login("alice", "secret1")
    assert exc_info.value.kind is FailureKind.NETWORK


@pytest.mark.asyncio
async def test_unauthorized_response_fires_callback(client):
    client.on_unauthorized = MagicMock()
    respond(client, 401, envelope(message="Token expired", success=False))

    with pytest.raises(AuthenticationError):
        await client.get_my_reports()
    client.on_unauthorized.assert_called_once_with()


@pytest.mark.asyncio
async def test_failed_login_does_not_fire_unauthorized(client):
    client.on_unauthorized = MagicMock()
    respond(client, 401, envelope(message="Invalid credentials", success=False))

    with pytest.raises(AuthenticationError):
        await client.login("alice", "nope")
    client.on_unauthorized.assert_not_called()


@pytest.mark.asyncio
async def test_bare_body_is_wrapped(client):
    respond(client, 200, {"totalUsers": 4, "totalTrainers": 2, "pendingReports": 1})
    stats = await client.get_admin_stats()
    assert stats.total_users == 4
    assert stats.pending_reports == 1


@pytest.mark.asyncio
async def test_trainer_today_may_be_empty(client):
    respond(client, 200, envelope(None, "No trainer selected"))
    assert await client.get_my_trainer_today() is None


@pytest.mark.asyncio
async def test_select_trainer_requires_id(client):
    with pytest.raises(ValidationError) as exc_info:
        await client.select_trainer("")
    assert exc_info.value.message == "Please select a trainer"
    client._http_client.request.assert_not_called()


@pytest.mark.asyncio
async def test_profile_parses_nested_fitness(client):
    respond(client, 200, envelope({
        "id": "u-1", "username": "alice", "email": "a@b.com", "fullName": "Alice",
        "role": "ROLE_USER",
        "fitnessProfile": {"age": 30, "weight": 60.5, "fitnessGoal": "Strength"},
    }))
    profile = await client.get_profile()
    assert profile.role is Role.USER
    assert profile.fitness_profile.fitness_goal == "Strength"


@pytest.mark.asyncio
@pytest.mark.parametrize("message", ["", "too short", "   short   "])
async def test_report_message_needs_detail(client, message):
    with pytest.raises(ValidationError):
        await client.create_report("t1", message)
    client._http_client.request.assert_not_called()


@pytest.mark.asyncio
async def test_create_report(client):
    respond(client, 200, envelope({"id": "r1", "trainerId": "t1",
                                   "message": "Trainer was rude", "status": "PENDING"}))
    report = await client.create_report("t1", "  Trainer was rude  ")
    assert sent(client)["json"] == {"trainerId": "t1", "message": "Trainer was rude"}
    assert report.status is ReportStatus.PENDING


@pytest.mark.asyncio
async def test_update_report_status_uses_query_param(client):
    respond(client, 200, envelope({"id": "r1", "trainerId": "t1", "message": "Trainer was rude",
                                   "status": "RESOLVED"}))
    report = await client.update_report_status("r1", ReportStatus.RESOLVED)

    call = sent(client)
    assert call["method"] == "PATCH"
    assert call["url"] == f"{BASE_URL}/reports/r1/status"
    assert call["params"] == {"status": "RESOLVED"}
    assert report.status is ReportStatus.RESOLVED


@pytest.mark.asyncio
async def test_delete_user_returns_message(client):
    respond(client, 200, envelope(message="User deleted successfully"))
    assert await client.delete_user("u-9") == "User deleted successfully"
    assert sent(client)["method"] == "DELETE"
    assert sent(client)["url"] == f"{BASE_URL}/admin/users/u-9"


@pytest.mark.asyncio
async def test_admin_listing(client):
    respond(client, 200, envelope([
        {"id": "u-2", "username": "tom", "email": "t@x.com", "role": "TRAINER",
         "emailVerified": True, "assignedClients": 3},
    ]))
    trainers = await client.get_all_trainers()
    assert trainers[0].role is Role.TRAINER
    assert trainers[0].assigned_clients == 3
