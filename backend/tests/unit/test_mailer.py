from __future__ import annotations

import aiosmtplib
import pytest

from portal.domain.errors import UpstreamFailure
from portal.infra import mailer as mailer_mod
from portal.infra.mailer import SmtpMailer, mask_email, render_magic_link_email


def test_render_escapes_name_and_link():
	html = render_magic_link_email("<Jane>", "https://portal.example.com/?token=a&b", 15)
	assert "Hi &lt;Jane&gt;!" in html
	assert 'href="https://portal.example.com/?token=a&amp;b"' in html
	assert "expire in 15 minutes" in html


def test_mask_email_is_stable_and_case_insensitive():
	assert mask_email("Jane@Example.com") == mask_email("jane@example.com")
	assert "jane" not in mask_email("jane@example.com")
	assert len(mask_email("jane@example.com")) == 12


@pytest.mark.asyncio
@pytest.mark.parametrize("port,start_tls,use_tls", [(587, True, False), (465, False, True), (25, False, False)])
async def test_smtp_tls_mode_follows_port(monkeypatch, port, start_tls, use_tls):
	calls = []

	async def fake_send(msg, **kwargs):
		calls.append((msg, kwargs))

	monkeypatch.setattr(mailer_mod.aiosmtplib, "send", fake_send)
	smtp = SmtpMailer(host="smtp.example.com", port=port, from_email="portal@example.com")
	await smtp.send("jane@example.com", "Hello", "<p>hi</p>")

	msg, kwargs = calls[0]
	assert msg["To"] == "jane@example.com"
	assert msg["Subject"] == "Hello"
	assert kwargs["start_tls"] is start_tls
	assert kwargs["use_tls"] is use_tls


@pytest.mark.asyncio
async def test_smtp_failure_raises_upstream_failure(monkeypatch):
	async def fake_send(msg, **kwargs):
		raise aiosmtplib.SMTPException("relay refused")

	monkeypatch.setattr(mailer_mod.aiosmtplib, "send", fake_send)
	smtp = SmtpMailer(host="smtp.example.com", port=587, from_email="portal@example.com")
	with pytest.raises(UpstreamFailure) as excinfo:
		await smtp.send("jane@example.com", "Hello", "<p>hi</p>")
	assert excinfo.value.status_code == 500
	assert excinfo.value.reason == "email_delivery_failed"
	assert "relay refused" in excinfo.value.details
