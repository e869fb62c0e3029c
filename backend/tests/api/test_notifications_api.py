import pytest


@pytest.mark.asyncio
async def test_notification_bell(api_client, headers_for):
	alice = headers_for("alice", "Alice")
	bob = headers_for("bob", "Bob")
	await api_client.post("/connections/requests", json={"to_user_id": "bob", "to_user_name": "Bob"}, headers=alice)

	listed = await api_client.get("/notifications", headers=bob)
	[notification] = listed.json()
	assert notification["type"] == "connection_request"
	assert notification["message"] == "Alice wants to connect with you"

	count = await api_client.get("/notifications/unread-count", headers=bob)
	assert count.json() == {"unread": 1}

	marked = await api_client.post(f"/notifications/{notification['id']}/read", headers=bob)
	assert marked.json() == {"ok": True}
	assert (await api_client.get("/notifications/unread-count", headers=bob)).json() == {"unread": 0}
	assert (await api_client.post("/notifications/read-all", headers=bob)).json() == {"updated": 0}

	deleted = await api_client.delete(f"/notifications/{notification['id']}", headers=bob)
	assert deleted.status_code == 200
	gone = await api_client.post(f"/notifications/{notification['id']}/read", headers=bob)
	assert gone.status_code == 404
	assert gone.json()["detail"] == "notification_not_found"


@pytest.mark.asyncio
async def test_admin_broadcast_requires_role(api_client, headers_for):
	for user_id in ("alice", "bob", "carol"):
		resp = await api_client.put("/profiles/me", json={"display_name": user_id.title()}, headers=headers_for(user_id))
		assert resp.status_code == 200

	denied = await api_client.post("/admin/notifications/broadcast", json={"message": "Hi"}, headers=headers_for("alice"))
	assert denied.status_code == 403
	assert denied.json()["detail"] == "insufficient_role"

	admin = headers_for("guru", "Guru", roles="admin")
	sent = await api_client.post("/admin/notifications/broadcast", json={"message": "Mangala arati at 4:30"}, headers=admin)
	assert sent.status_code == 200
	body = sent.json()
	assert (body["recipients"], body["delivered"], body["failed"]) == (3, 3, 0)

	[notification] = (await api_client.get("/notifications", headers=headers_for("carol"))).json()
	assert notification["title"] == "📢 Admin Announcement"
	assert notification["priority"] == "high"


@pytest.mark.asyncio
async def test_admin_review_decision(api_client, headers_for):
	admin = headers_for("guru", roles="admin")
	resp = await api_client.post(
		"/admin/notifications/review",
		json={
			"user_id": "alice",
			"kind": "festival",
			"approved": False,
			"request_id": "fest-9",
			"request_title": "Rama Navami",
			"admin_comment": "Date is wrong.",
		},
		headers=admin,
	)
	assert resp.status_code == 200
	assert resp.json()["title"] == "Festival Request Declined"

	[notification] = (await api_client.get("/notifications", headers=headers_for("alice"))).json()
	assert notification["message"] == 'Your festival request "Rama Navami" was not approved. Date is wrong.'
	assert notification["admin_comment"] == "Date is wrong."


@pytest.mark.asyncio
async def test_admin_review_inbox(api_client, headers_for):
	radha = headers_for("radha", "Radha")
	admin = headers_for("guru", "Guru", roles="admin")

	created = await api_client.post(
		"/notifications/submissions",
		json={"kind": "festival", "request_id": "fest-1", "title": "Gaura Purnima"},
		headers=radha,
	)
	assert created.status_code == 201
	assert created.json()["requester_name"] == "Radha"
	assert created.json()["type"] == "festival_request"

	assert (await api_client.get("/admin/notifications", headers=radha)).status_code == 403
	inbox = await api_client.get("/admin/notifications", headers=admin)
	[entry] = inbox.json()
	assert entry["title"] == "Gaura Purnima"
	assert entry["read"] is False

	marked = await api_client.post(f"/admin/notifications/{entry['id']}/read", headers=admin)
	assert marked.json() == {"ok": True}
	assert (await api_client.get("/admin/notifications", headers=admin)).json()[0]["read"] is True

	missing = await api_client.post("/admin/notifications/unknown/read", headers=admin)
	assert missing.status_code == 404
	assert missing.json()["detail"] == "notification_not_found"
