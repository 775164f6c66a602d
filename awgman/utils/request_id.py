#!/usr/bin/env python3
#
# awgman/utils/request_id.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Request ID middleware for tracing."""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

_log = logging.getLogger(__name__)

# Accept caller-supplied IDs only if they are short and header-safe
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
	"""Tag each request with an ID and log it with status and duration.

	Download tokens are part of the /dl/ path, so that path is logged
	without its token.
	"""

	async def dispatch(self, request: Request, call_next: Callable) -> Response:
		supplied = request.headers.get("X-Request-ID", "")
		request_id = supplied if _REQUEST_ID_RE.fullmatch(supplied) else str(uuid.uuid4())
		request.state.request_id = request_id

		started = time.monotonic()
		response = await call_next(request)
		elapsed_ms = (time.monotonic() - started) * 1000

		path = request.url.path
		if path.startswith("/dl/"):
			path = "/dl/<token>"
		_log.debug(
			"REQUEST id=%s method=%s path=%s status=%d duration_ms=%.1f",
			request_id, request.method, path, response.status_code, elapsed_ms,
		)

		response.headers["X-Request-ID"] = request_id
		return response
