#!/usr/bin/env python3
#
# awgman/api/auth.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Bearer-token guard for the administrative routes."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..utils.crypto import tokens_equal
from ..utils.deps import get_config
from ..utils.rate_limit import client_ip

_log = logging.getLogger(__name__)

__all__ = ["require_admin"]

# auto_error=False: a missing header must yield 401 (not FastAPI's 403)
_bearer = HTTPBearer(auto_error=False)


def require_admin(
	request: Request,
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> None:
	"""Router dependency: pass only requests carrying the configured admin token.

	There is exactly one credential. It is compared in constant time and
	any mismatch, including a missing header, ends the request with 401.
	"""
	presented = (credentials.credentials or "").strip() if credentials else ""
	if presented and tokens_equal(presented, get_config(request).admin_token):
		return
	_log.warning("AUTH_FAILED ip=%s path=%s", client_ip(request), request.url.path)
	raise HTTPException(
		status_code=401,
		detail="unauthorized",
		headers={"WWW-Authenticate": "Bearer"},
	)
