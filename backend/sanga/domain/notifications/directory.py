"""User directory used as the fan-out target list for announcements."""

from __future__ import annotations

from typing import List, Optional

from sanga.domain.notifications.models import USERS_ROOT, Clock, utcnow
from sanga.domain.notifications.schemas import UserProfile
from sanga.infra.store import DocumentStore, join, key


async def upsert_profile(
	store: DocumentStore,
	user_id: str,
	*,
	display_name: Optional[str] = None,
	photo_url: Optional[str] = None,
	clock: Clock = utcnow,
) -> UserProfile:
	profile = UserProfile(user_id=user_id, display_name=display_name, photo_url=photo_url, updated_at=clock())
	await store.write(join(USERS_ROOT, key(user_id)), profile.model_dump(mode="json"))
	return profile


async def list_user_ids(store: DocumentStore) -> List[str]:
	raw = await store.read(USERS_ROOT)
	if not isinstance(raw, dict):
		return []
	return sorted(raw.keys())
