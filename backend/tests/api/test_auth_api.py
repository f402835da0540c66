from urllib.parse import parse_qs, urlsplit

import pytest
from httpx import AsyncClient


def _token_from(link: str) -> str:
	return parse_qs(urlsplit(link).query)["token"][0]


@pytest.mark.asyncio
async def test_magic_link_round_trip_in_dev_mode(api_client: AsyncClient, dev_mode):
	resp = await api_client.post("/auth/magic-link", json={"email": "Jane@Example.com "})
	assert resp.status_code == 200
	body = resp.json()
	assert body["success"] is True
	assert body["devMode"] is True

	verify = await api_client.post("/auth/verify", json={"token": _token_from(body["magicLink"])})
	assert verify.status_code == 200
	data = verify.json()
	assert data["student"] == {"id": "recJane", "email": "jane@example.com", "name": "Jane Doe", "firstName": "Janie"}
	assert data["session"]["token"]
	assert isinstance(data["session"]["expiresAt"], int)
	assert verify.headers["X-Request-Id"]


@pytest.mark.asyncio
async def test_verify_twice_is_unauthorized(api_client: AsyncClient, dev_mode):
	body = (await api_client.post("/auth/magic-link", json={"email": "jane@example.com"})).json()
	token = _token_from(body["magicLink"])

	assert (await api_client.post("/auth/verify", json={"token": token})).status_code == 200
	second = await api_client.post("/auth/verify", json={"token": token})
	assert second.status_code == 401
	assert second.json()["detail"] == "invalid_token"


@pytest.mark.asyncio
async def test_expired_link_is_rejected(api_client: AsyncClient, dev_mode, clock):
	body = (await api_client.post("/auth/magic-link", json={"email": "jane@example.com"})).json()
	clock.advance(minutes=16)

	resp = await api_client.post("/auth/verify", json={"token": _token_from(body["magicLink"])})
	assert resp.status_code == 401
	assert resp.json()["error"] == "Link has expired. Please request a new one."


@pytest.mark.asyncio
async def test_magic_link_emails_when_mailer_configured(api_client: AsyncClient, portal_app, mailer):
	portal_app.state.mailer = mailer

	resp = await api_client.post("/auth/magic-link", json={"email": "jane@example.com"})

	assert resp.status_code == 200
	assert resp.json() == {"success": True, "message": "Magic link sent to your email"}
	assert mailer.sent[0][0] == "jane@example.com"


@pytest.mark.asyncio
async def test_mailer_failure_is_500_with_details(api_client: AsyncClient, portal_app, mailer):
	mailer.fail = True
	portal_app.state.mailer = mailer

	resp = await api_client.post("/auth/magic-link", json={"email": "jane@example.com"})

	assert resp.status_code == 500
	assert resp.json()["details"] == "smtp down"


@pytest.mark.asyncio
async def test_link_not_exposed_without_dev_flag(api_client: AsyncClient):
	resp = await api_client.post("/auth/magic-link", json={"email": "jane@example.com"})
	assert resp.status_code == 503
	assert "magicLink" not in resp.json()


@pytest.mark.asyncio
async def test_magic_link_validation(api_client: AsyncClient, dev_mode):
	assert (await api_client.post("/auth/magic-link", json={})).status_code == 400
	assert (await api_client.post("/auth/magic-link", json={"email": 42})).status_code == 400
	missing = await api_client.post("/auth/magic-link", json={"email": "ghost@example.com"})
	assert missing.status_code == 404


@pytest.mark.asyncio
async def test_bad_email_reported_before_delivery_check(api_client: AsyncClient):
	blank = await api_client.post("/auth/magic-link", json={"email": "  "})
	assert blank.status_code == 400
	assert blank.json()["detail"] == "email_required"
	missing = await api_client.post("/auth/magic-link", json={"email": "ghost@example.com"})
	assert missing.status_code == 404


@pytest.mark.asyncio
async def test_verify_requires_token(api_client: AsyncClient):
	resp = await api_client.post("/auth/verify", json={})
	assert resp.status_code == 400
	assert resp.json()["error"] == "Token is required"


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"kwargs",
	[
		{},
		{"json": {}},
		{"json": {"email": "jane@example.com"}},
		{"content": b"not json", "headers": {"content-type": "application/json"}},
	],
)
async def test_dev_login_forbidden_without_flag(api_client: AsyncClient, kwargs):
	resp = await api_client.post("/auth/dev-login", **kwargs)
	assert resp.status_code == 403
	assert resp.json()["error"] == "Dev login not available in production"


@pytest.mark.asyncio
async def test_dev_login_in_dev_mode(api_client: AsyncClient, dev_mode):
	resp = await api_client.post("/auth/dev-login", json={"email": "SAM@example.com"})
	assert resp.status_code == 200
	body = resp.json()
	assert body["student"]["id"] == "recSam"
	assert body["session"]["token"]

	unknown = await api_client.post("/auth/dev-login", json={"email": "ghost@example.com"})
	assert unknown.status_code == 404
