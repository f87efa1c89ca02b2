"""
Builders for auth payloads and sessions used across the tests.
"""

from wellnest_client.models import Role, Session


def make_auth_payload(role: str = "ROLE_USER", **overrides):
    """``data`` object of a login / verify-email response"""
    payload = {
        "token": "tok-123",
        "type": "Bearer",
        "id": "u-1",
        "username": "alice",
        "email": "a@b.com",
        "fullName": "Alice Smith",
        "role": role,
    }
    payload.update(overrides)
    return payload


def make_session(role: Role = Role.USER, **overrides) -> Session:
    return Session.from_auth_payload(make_auth_payload(role=role.value, **overrides))
