"""Outbound email for magic links."""

from __future__ import annotations

import hashlib
import logging
from email.message import EmailMessage
from html import escape
from typing import Optional, Protocol

import aiosmtplib

from portal.domain.errors import UpstreamFailure

logger = logging.getLogger(__name__)

MAGIC_LINK_SUBJECT = "Sign in to WSG Student Portal"


def mask_email(email: str) -> str:
	return hashlib.sha256(email.lower().encode("utf-8")).hexdigest()[:12]


class Mailer(Protocol):
	async def send(self, to: str, subject: str, html: str) -> None:
		...


class SmtpMailer:
	"""Send mail over SMTP (Resend, SES, Mailpit...)."""

	def __init__(
		self,
		*,
		host: str,
		port: int,
		from_email: str,
		username: Optional[str] = None,
		password: Optional[str] = None,
		tls: bool = True,
		timeout: float = 15.0,
	) -> None:
		self.host = host
		self.port = port
		self.from_email = from_email
		self.username = username
		self.password = password
		self.tls = tls
		self.timeout = timeout

	async def send(self, to: str, subject: str, html: str) -> None:
		msg = EmailMessage()
		msg["From"] = self.from_email
		msg["To"] = to
		msg["Subject"] = subject
		msg.set_content(html, subtype="html")

		# STARTTLS on 587, implicit TLS on 465.
		start_tls = self.tls and int(self.port) == 587
		use_tls = self.tls and int(self.port) == 465
		try:
			await aiosmtplib.send(
				msg,
				hostname=self.host,
				port=self.port,
				username=self.username,
				password=self.password,
				start_tls=start_tls,
				use_tls=use_tls,
				timeout=self.timeout,
			)
		except (aiosmtplib.SMTPException, OSError) as exc:
			logger.error("Failed to send email to %s: %s", mask_email(to), str(exc))
			raise UpstreamFailure("email_delivery_failed", "Failed to send magic link", details=str(exc)) from exc
		logger.info("Email sent to %s", mask_email(to))


def render_magic_link_email(first_name: str, link: str, ttl_minutes: int) -> str:
	name = escape(first_name)
	href = escape(link, quote=True)
	return f"""
	<div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 480px; margin: 0 auto; padding: 40px 20px;">
		<h2 style="color: #0a1628; margin-bottom: 24px;">Hi {name}!</h2>
		<p style="color: #525252; font-size: 16px; line-height: 1.6;">
			Click the button below to sign in to your WSG Student Portal. This link will expire in {ttl_minutes} minutes.
		</p>
		<a href="{href}" style="display: inline-block; background: #0a1628; color: white; padding: 14px 28px; border-radius: 8px; text-decoration: none; font-weight: 500; margin: 24px 0;">
			Sign In to Portal
		</a>
		<p style="color: #a3a3a3; font-size: 14px; margin-top: 32px;">
			If you didn't request this email, you can safely ignore it.
		</p>
	</div>
	"""
