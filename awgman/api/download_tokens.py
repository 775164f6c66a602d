#!/usr/bin/env python3
#
# awgman/api/download_tokens.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""One-time download token issuance and redemption."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..db.state import StateStore
from ..models.clients import DownloadToken
from ..utils.config import MAX_TOKEN_TTL_SECONDS, Config
from ..utils.crypto import new_token
from ..utils.time import is_expired, utcnow
from .peer_lifecycle import (
	ClientNotFoundError,
	ConfigDownload,
	DownloadOutcome,
	find_client,
	render_download,
)

_log = logging.getLogger(__name__)

__all__ = ["TokenManager", "DOWNLOAD_PATH_PREFIX"]

DOWNLOAD_PATH_PREFIX = "/dl/"


def effective_ttl(ttl_seconds: Optional[int], default_ttl: int) -> int:
	"""Missing or non-positive TTL falls back to the default; huge ones are capped."""
	if ttl_seconds is None or ttl_seconds <= 0:
		return default_ttl
	return min(ttl_seconds, MAX_TOKEN_TTL_SECONDS)


def prune_tokens(tokens: list[DownloadToken], retention_seconds: int, now: datetime) -> list[DownloadToken]:
	"""Drop tokens that expired more than ``retention_seconds`` ago.

	A retention of 0 keeps every token, so lookups of old links keep
	answering "gone" instead of "not found".
	"""
	if retention_seconds <= 0:
		return tokens
	cutoff = now - timedelta(seconds=retention_seconds)
	return [t for t in tokens if t.expires_at >= cutoff]


class TokenManager:
	"""Issues and redeems single-use config download tokens."""

	def __init__(self, store: StateStore, cfg: Config) -> None:
		self.store = store
		self.cfg = cfg

	def issue(self, client_id: str, ttl_seconds: Optional[int] = None) -> DownloadToken:
		"""Issue a token for an existing client.

		The client's own expiry is not checked here; redemption refuses
		expired clients.

		Raises:
			ClientNotFoundError: If the client does not exist.
		"""
		ttl = effective_ttl(ttl_seconds, self.cfg.token_default_ttl)
		with self.store.lock:
			if find_client(self.store.load_clients(), client_id) is None:
				raise ClientNotFoundError(client_id)

			now = utcnow()
			tokens = self.store.load_tokens()
			kept = prune_tokens(tokens, self.cfg.token_retention, now)
			if len(kept) != len(tokens):
				_log.info("TOKENS_PRUNED count=%d", len(tokens) - len(kept))

			issued = DownloadToken(
				token=new_token(),
				client_id=client_id,
				expires_at=(now + timedelta(seconds=ttl)).replace(microsecond=0),
				used=False,
			)
			kept.append(issued)
			self.store.save_tokens(kept)

		_log.info("LINK_ISSUED client_id=%s token=%s... ttl=%d", client_id, issued.token[:8], ttl)
		return issued

	def redeem(self, token: str) -> ConfigDownload:
		"""Consume a token and render its client's config.

		Lookup, the used/expiry checks and marking the token used happen in
		one critical section, so concurrent redemptions of the same token
		cannot both succeed. The token is consumed before the client checks.
		"""
		now = utcnow()
		with self.store.lock:
			tokens = self.store.load_tokens()
			entry = next((t for t in tokens if t.token == token), None)
			if entry is None:
				return self._refused(token, DownloadOutcome.NOT_FOUND, "not found")
			if entry.used:
				return self._refused(token, DownloadOutcome.GONE, "used")
			if is_expired(entry.expires_at, now):
				return self._refused(token, DownloadOutcome.GONE, "expired")

			entry.used = True
			self.store.save_tokens(tokens)

			state = self.store.read_server_state()
			client = find_client(self.store.load_clients(), entry.client_id)

		if client is None:
			return self._refused(token, DownloadOutcome.GONE, "client deleted")
		result = render_download(client, state, self.cfg, now)
		if not result.ok:
			return self._refused(token, result.outcome, "client expired")

		_log.info("LINK_REDEEMED client_id=%s token=%s...", client.id, token[:8])
		return result

	@staticmethod
	def _refused(token: str, outcome: DownloadOutcome, reason: str) -> ConfigDownload:
		_log.info("LINK_REFUSED token=%s... reason=%s", token[:8], reason)
		return ConfigDownload(outcome, reason=reason)
