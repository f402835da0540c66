import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from portal.domain.auth.tokens import InMemoryTokenStore
from portal.domain.errors import UpstreamFailure
from portal.infra.records import MEETINGS, MENTORS, STUDENTS, InMemoryRecordStore
from portal.settings import settings


class FakeClock:
	def __init__(self, now: datetime) -> None:
		self.now = now

	def __call__(self) -> datetime:
		return self.now

	def advance(self, **kwargs) -> None:
		self.now = self.now + timedelta(**kwargs)


class FakeMailer:
	def __init__(self) -> None:
		self.sent: list[tuple[str, str, str]] = []
		self.fail = False

	async def send(self, to: str, subject: str, html: str) -> None:
		if self.fail:
			raise UpstreamFailure("email_delivery_failed", "Failed to send magic link", details="smtp down")
		self.sent.append((to, subject, html))


class FakeCompletionClient:
	def __init__(self, reply: str = "Let's start with your story.") -> None:
		self.reply = reply
		self.calls: list[tuple[str, list]] = []

	async def complete(self, system_prompt, messages) -> str:
		self.calls.append((system_prompt, list(messages)))
		return self.reply


@pytest.fixture
def clock():
	return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def token_store():
	return InMemoryTokenStore()


@pytest.fixture
def record_store():
	store = InMemoryRecordStore()
	store.add(MENTORS, {"Name": "Priya Shah", "Current/Upcoming Company": "Goldman Sachs", "Mentor Active Status": "Active"}, record_id="recMentorRM")
	store.add(MENTORS, {"Name": "Alex Chen", "Current/Upcoming Company": "McKinsey", "Mentor Active Status": "Active"}, record_id="recMentorLead")
	store.add(MENTORS, {"Name": "Old Timer", "Mentor Active Status": "Inactive"}, record_id="recMentorOld")
	store.add(MEETINGS, {"Meeting Date": "2026-01-10", "Mentors Attended": ["recMentorLead"]}, record_id="recMeet1")
	store.add(MEETINGS, {"Meeting Date": "2026-02-14"}, record_id="recMeet2")
	store.add(
		STUDENTS,
		{
			"Student's Email": "jane@example.com",
			"Name": "Jane Doe",
			"Preferred First Name": "Janie",
			"Recruitment Manager": ["recMentorRM"],
			"Lead Mentor": ["recMentorLead"],
			"Student-Mentor Meetings": ["recMeet1", "recMeet2"],
		},
		record_id="recJane",
	)
	store.add(STUDENTS, {"Student's Email": "sam@example.com", "Student ID": "S-0042"}, record_id="recSam")
	return store


@pytest.fixture
def mailer():
	return FakeMailer()


@pytest.fixture
def completion_client():
	return FakeCompletionClient()


@pytest_asyncio.fixture
async def fake_redis():
	client = FakeRedis(decode_responses=True)
	try:
		yield client
	finally:
		await client.flushall()


@pytest.fixture
def portal_app(record_store, token_store, clock):
	from portal.main import app

	app.state.settings = settings.model_copy(update={"dev_mode": False, "app_url": "https://portal.example.com"})
	app.state.record_store = record_store
	app.state.token_store = token_store
	app.state.mailer = None
	app.state.completion_client = None
	app.state.clock = clock
	return app


@pytest.fixture
def dev_mode(portal_app):
	portal_app.state.settings = portal_app.state.settings.model_copy(update={"dev_mode": True})
	return portal_app


@pytest_asyncio.fixture
async def api_client(portal_app):
	transport = ASGITransport(app=portal_app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
