"""
Shared pytest fixtures for the WellNest client tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from wellnest_client.auth import SessionStore
from wellnest_client.client import WellNestClient
from wellnest_client.models import ApiResponse
from wellnest_client.storage import MemorySessionStorage
from tests.factories import make_auth_payload


@pytest.fixture
def storage():
    """Empty in-memory session storage"""
    return MemorySessionStorage()


@pytest.fixture
def fake_client():
    """WellNestClient double with scripted async endpoints"""
    client = MagicMock(spec=WellNestClient)
    client.token_provider = None
    client.on_unauthorized = None
    client.login = AsyncMock(return_value=make_auth_payload())
    client.verify_email = AsyncMock(return_value=make_auth_payload())
    client.register = AsyncMock(return_value=ApiResponse(
        success=True, message="Registration successful. Please verify your email"
    ))
    client.resend_otp = AsyncMock(return_value=ApiResponse(success=True))
    client.forgot_password = AsyncMock(return_value=ApiResponse(success=True))
    client.reset_password = AsyncMock(return_value=ApiResponse(success=True))
    return client


@pytest.fixture
def store(fake_client, storage):
    """Session store over the fake client, already restored (anonymous)"""
    session_store = SessionStore(fake_client, storage)
    session_store.restore_from_storage()
    return session_store
