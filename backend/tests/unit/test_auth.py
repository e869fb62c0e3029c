import pytest
from fastapi import HTTPException

from sanga.infra import jwt as jwt_helper
from sanga.infra.auth import get_admin_user, get_current_user, user_from_handshake, verify_access_jwt
from sanga.settings import settings


def test_access_token_round_trip():
	token = jwt_helper.encode_access({"sub": "alice", "name": "Alice", "roles": ["admin"]})
	user = verify_access_jwt(token)
	assert user.id == "alice"
	assert user.display_name == "Alice"
	assert user.has_role("admin")


def test_expired_token_rejected():
	token = jwt_helper.encode_access({"sub": "alice"}, ttl_seconds=-60)
	with pytest.raises(HTTPException) as exc_info:
		verify_access_jwt(token)
	assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_dev_headers_only_in_dev(monkeypatch):
	user = await get_current_user(x_user_id="bob", x_user_name="Bob", x_user_photo=None, x_user_roles="admin, mod", credentials=None)
	assert user.roles == ("admin", "mod")

	monkeypatch.setattr(settings, "environment", "production")
	with pytest.raises(HTTPException) as exc_info:
		await get_current_user(x_user_id="bob", x_user_name=None, x_user_photo=None, x_user_roles=None, credentials=None)
	assert exc_info.value.detail == "invalid_token"


@pytest.mark.asyncio
async def test_admin_guard():
	user = await get_current_user(x_user_id="bob", x_user_name=None, x_user_photo=None, x_user_roles=None, credentials=None)
	with pytest.raises(HTTPException) as exc_info:
		await get_admin_user(user)
	assert exc_info.value.status_code == 403


def test_handshake_accepts_token_or_dev_identity():
	token = jwt_helper.encode_access({"sub": "carol"})
	assert user_from_handshake({"token": token}, {}).id == "carol"
	assert user_from_handshake(None, {"authorization": f"Bearer {token}"}).id == "carol"
	assert user_from_handshake({"userId": "dave"}, {}).id == "dave"
	assert user_from_handshake({"token": "garbage"}, {}) is None
	assert user_from_handshake(None, {}) is None
