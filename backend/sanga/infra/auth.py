"""Authentication helpers for FastAPI endpoints and socket handshakes.

- Bearer JWTs (HS256, settings.secret_key) are always accepted.
- X-User-* headers are only respected in development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sanga.infra import jwt as jwt_helper
from sanga.infra.store import is_valid_key
from sanga.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	display_name: Optional[str] = None
	photo_url: Optional[str] = None
	roles: Tuple[str, ...] = ()

	def has_role(self, role: str) -> bool:
		return role in self.roles

	@property
	def name(self) -> str:
		return self.display_name or self.id


_bearer_scheme = HTTPBearer(auto_error=False)


def _require_valid_id(user: AuthenticatedUser) -> AuthenticatedUser:
	if not is_valid_key(user.id):
		raise HTTPException(status_code=422, detail="invalid_user_id")
	return user


def _parse_roles(claim: object) -> Tuple[str, ...]:
	if isinstance(claim, (list, tuple)):
		return tuple(str(r).strip() for r in claim if str(r).strip())
	if isinstance(claim, str):
		return tuple(part.strip() for part in claim.split(",") if part.strip())
	return ()


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser."""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# Normalise all decode failures to invalid_token for the API surface
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	name = payload.get("name") or payload.get("display_name")
	photo = payload.get("picture") or payload.get("photo_url")
	return AuthenticatedUser(
		id=str(payload["sub"]).strip(),
		display_name=str(name) if name is not None else None,
		photo_url=str(photo) if photo else None,
		roles=_parse_roles(payload.get("roles") or payload.get("role")),
	)


def user_from_handshake(auth: Optional[dict], headers: dict[str, str]) -> Optional[AuthenticatedUser]:
	"""Resolve the user for a socket connection; None when unauthenticated."""
	auth = auth or {}
	token = auth.get("token")
	bearer = headers.get("authorization", "")
	if not token and bearer.lower().startswith("bearer "):
		token = bearer.split(" ", 1)[1]
	user: Optional[AuthenticatedUser] = None
	if token:
		try:
			user = verify_access_jwt(token)
		except HTTPException:
			return None
	elif settings.is_dev():
		user_id = auth.get("userId") or headers.get("x-user-id")
		if user_id:
			user = AuthenticatedUser(
				id=str(user_id),
				display_name=auth.get("userName") or headers.get("x-user-name"),
				roles=_parse_roles(auth.get("roles") or headers.get("x-user-roles")),
			)
	if user is None or not is_valid_key(user.id):
		return None
	return user


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
	x_user_photo: Optional[str] = Header(default=None, alias="X-User-Photo"),
	x_user_roles: Optional[str] = Header(default=None, alias="X-User-Roles"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments, headers are
	ignored and a valid Bearer JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return _require_valid_id(verify_access_jwt(credentials.credentials))

	if settings.is_dev() and x_user_id:
		return _require_valid_id(
			AuthenticatedUser(
				id=x_user_id,
				display_name=x_user_name,
				photo_url=x_user_photo,
				roles=_parse_roles(x_user_roles),
			)
		)

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


async def get_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	if user.has_role("admin"):
		return user
	raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")
