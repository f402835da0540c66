"""Observability package bootstrap."""

from __future__ import annotations

from fastapi import FastAPI

from portal.obs import logging as obs_logging
from portal.obs import middleware

_logging_configured = False


def init(app: FastAPI) -> None:
	global _logging_configured
	if not _logging_configured:
		obs_logging.configure_logging()
		_logging_configured = True
	middleware.install(app)


__all__ = ["init"]
