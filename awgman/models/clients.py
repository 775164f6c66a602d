#!/usr/bin/env python3
#
# awgman/models/clients.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Gateway, client and download-token Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils.config import MAX_TOKEN_TTL_SECONDS
from ..utils.time import parse_utc


class _CamelModel(BaseModel):
	"""Base model whose JSON keys are camelCase (matches the persisted files and the UI)."""
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	def to_json_dict(self) -> dict[str, Any]:
		return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------

class ServerState(_CamelModel):
	"""Gateway keypair plus allocator state. Created once, never deleted."""
	server_private_key: str
	server_public_key: str
	subnet_cidr: str
	server_ip: str
	next_host: int = 2


class Client(_CamelModel):
	"""A provisioned peer, including its private key."""
	id: str
	name: str
	public_key: str
	private_key: str
	address: str
	created_at: datetime
	expires_at: Optional[datetime] = None

	def to_public(self) -> "ClientPublic":
		return ClientPublic(
			id=self.id,
			name=self.name,
			public_key=self.public_key,
			address=self.address,
			created_at=self.created_at,
			expires_at=self.expires_at,
		)


class ClientPublic(_CamelModel):
	"""Public client representation (never carries the private key)."""
	id: str
	name: str
	public_key: str
	address: str
	created_at: datetime
	expires_at: Optional[datetime] = None


class DownloadToken(_CamelModel):
	"""One-time, time-limited grant for a client's config download."""
	token: str
	client_id: str
	expires_at: datetime
	used: bool = False


# ---------------------------------------------------------------------------
# Request / response payloads
# ---------------------------------------------------------------------------

class ClientCreate(_CamelModel):
	"""Client creation payload."""
	name: str = Field(..., max_length=128)
	expires_at: Optional[datetime] = Field(
		None,
		description="Absolute expiry (RFC 3339). Omitted or empty means never.",
	)

	@field_validator("name")
	@classmethod
	def name_required(cls, v: str) -> str:
		v = v.strip()
		if not v:
			raise ValueError("name required")
		return v

	@field_validator("expires_at", mode="before")
	@classmethod
	def expires_rfc3339(cls, v: Any) -> Optional[datetime]:
		if v is None:
			return None
		if not isinstance(v, str):
			raise ValueError("expiresAt must be RFC3339")
		if not v.strip():
			return None
		parsed = parse_utc(v)
		if parsed is None:
			raise ValueError("expiresAt must be RFC3339")
		return parsed


class LinkCreate(_CamelModel):
	"""One-time link request. Non-positive or missing TTL falls back to the default."""
	ttl_seconds: Optional[int] = Field(None, le=MAX_TOKEN_TTL_SECONDS)


class LinkResponse(_CamelModel):
	"""Issued link: public path plus absolute expiry."""
	url_path: str
	expires_at: str
