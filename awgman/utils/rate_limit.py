#!/usr/bin/env python3
#
# awgman/utils/rate_limit.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Per-client rate limiting (slowapi) and client address resolution."""

from __future__ import annotations

from fastapi import Request
from slowapi import Limiter

# Only a reverse proxy on this host may set X-Forwarded-For / X-Real-IP
_TRUSTED_PROXIES = {"127.0.0.1", "::1"}

# The public download path is the only unauthenticated one worth guessing at
RATE_LIMIT_DOWNLOAD = "30/minute"


def client_ip(request: Request) -> str:
	"""Peer address of the request, or the forwarded one behind a local proxy."""
	direct_ip = request.client.host if request.client else "unknown"
	if direct_ip not in _TRUSTED_PROXIES:
		return direct_ip
	forwarded_for = request.headers.get("X-Forwarded-For")
	if forwarded_for:
		return forwarded_for.split(",")[0].strip()
	return request.headers.get("X-Real-IP", direct_ip).strip()


limiter = Limiter(key_func=client_ip)

__all__ = [
	"RATE_LIMIT_DOWNLOAD",
	"client_ip",
	"limiter",
]
