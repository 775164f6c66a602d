#!/usr/bin/env python3
#
# awgman/api/download.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Public, token-gated config download route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from ..utils.deps import get_tokens
from ..utils.rate_limit import RATE_LIMIT_DOWNLOAD, limiter
from .download_tokens import TokenManager
from .peer_lifecycle import ConfigDownload, DownloadOutcome

router = APIRouter(tags=["download"])

__all__ = ["router", "config_attachment"]

_STATUS_BY_OUTCOME = {
	DownloadOutcome.NOT_FOUND: 404,
	DownloadOutcome.GONE: 410,
}


def config_attachment(result: ConfigDownload) -> Response:
	"""Turn a download result into an attachment or the matching error status."""
	if not result.ok:
		status = _STATUS_BY_OUTCOME.get(result.outcome, 500)
		detail = "not found" if status == 404 else "gone"
		raise HTTPException(status_code=status, detail=detail)
	return Response(
		content=result.content,
		media_type="text/plain",
		headers={
			"Content-Disposition": f'attachment; filename="{result.filename}"',
			"Cache-Control": "no-store",
		},
	)


@router.get("/dl/{token}")
@limiter.limit(RATE_LIMIT_DOWNLOAD)
def redeem_link(
	request: Request,
	token: str,
	tokens: TokenManager = Depends(get_tokens),
):
	"""Redeem a one-time link and return the client config (no credential required)."""
	token = token.strip()
	if not token:
		raise HTTPException(status_code=404, detail="not found")
	return config_attachment(tokens.redeem(token))
