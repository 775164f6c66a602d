#!/usr/bin/env python3
#
# awgman/utils/deps.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""FastAPI dependency helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
	from ..api.download_tokens import TokenManager
	from ..api.peer_lifecycle import PeerLifecycle
	from .config import Config


def get_config(request: Request) -> "Config":
	"""Get the application configuration from app state."""
	return request.app.state.cfg


def get_lifecycle(request: Request) -> "PeerLifecycle":
	"""Client transaction service bound to this app's store and applier."""
	return request.app.state.lifecycle


def get_tokens(request: Request) -> "TokenManager":
	"""Download token manager bound to this app's store."""
	return request.app.state.tokens
