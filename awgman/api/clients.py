#!/usr/bin/env python3
#
# awgman/api/clients.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Client management API routes (admin bearer token required)."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import Response

from ..db.allocator import AllocationError, PoolExhaustedError
from ..db.snapshots import SnapshotError
from ..models.clients import ClientCreate, ClientPublic, LinkCreate, LinkResponse
from ..utils.crypto import KeyGenerationError
from ..utils.deps import get_lifecycle, get_tokens
from ..utils.time import format_rfc3339
from .auth import require_admin
from .download import config_attachment
from .download_tokens import DOWNLOAD_PATH_PREFIX, TokenManager
from .peer_lifecycle import ClientNotFoundError, PeerLifecycle
from .wireguard_apply import ApplyError

_log = logging.getLogger(__name__)

router = APIRouter(tags=["clients"], dependencies=[Depends(require_admin)])

__all__ = ["router"]


@router.get(
	"/clients",
	response_model=list[ClientPublic],
	response_model_exclude_none=True,
)
def list_clients(lifecycle: PeerLifecycle = Depends(get_lifecycle)):
	"""List all clients (public projection, no private keys)."""
	try:
		return lifecycle.list_clients()
	except SnapshotError as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post(
	"/clients",
	status_code=201,
	response_model=ClientPublic,
	response_model_exclude_none=True,
)
def create_client(
	payload: ClientCreate,
	lifecycle: PeerLifecycle = Depends(get_lifecycle),
):
	"""Create a client: allocate an address, generate keys, persist, apply."""
	try:
		return lifecycle.create_client(payload.name, payload.expires_at)
	except PoolExhaustedError as exc:
		raise HTTPException(status_code=409, detail=str(exc))
	except AllocationError as exc:
		raise HTTPException(status_code=500, detail=f"address allocation failed: {exc}")
	except ApplyError as exc:
		raise HTTPException(status_code=500, detail=f"apply failed: {exc}")
	except (KeyGenerationError, SnapshotError) as exc:
		_log.error("CLIENT_CREATE_FAILED name=%s error=%s", payload.name, exc)
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/clients/{client_id}", status_code=204)
def delete_client(
	client_id: str,
	lifecycle: PeerLifecycle = Depends(get_lifecycle),
):
	"""Delete a client and re-apply the gateway config."""
	try:
		lifecycle.delete_client(client_id)
	except ClientNotFoundError:
		raise HTTPException(status_code=404, detail="not found")
	except ApplyError as exc:
		raise HTTPException(status_code=500, detail=f"apply failed: {exc}")
	except SnapshotError as exc:
		raise HTTPException(status_code=500, detail=str(exc))
	return Response(status_code=204)


@router.get("/clients/{client_id}/config")
def get_client_config(
	client_id: str,
	lifecycle: PeerLifecycle = Depends(get_lifecycle),
):
	"""Download a client's config directly (admin only, not single-use)."""
	try:
		result = lifecycle.client_config(client_id)
	except SnapshotError as exc:
		raise HTTPException(status_code=500, detail=str(exc))
	return config_attachment(result)


@router.post("/clients/{client_id}/link", response_model=LinkResponse)
def create_link(
	client_id: str,
	payload: Optional[LinkCreate] = Body(None),
	tokens: TokenManager = Depends(get_tokens),
):
	"""Issue a one-time download link for a client."""
	ttl_seconds = payload.ttl_seconds if payload else None
	try:
		issued = tokens.issue(client_id, ttl_seconds)
	except ClientNotFoundError:
		raise HTTPException(status_code=404, detail="not found")
	except SnapshotError as exc:
		raise HTTPException(status_code=500, detail=str(exc))
	return LinkResponse(
		url_path=f"{DOWNLOAD_PATH_PREFIX}{issued.token}",
		expires_at=format_rfc3339(issued.expires_at),
	)
