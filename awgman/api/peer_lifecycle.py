#!/usr/bin/env python3
#
# awgman/api/peer_lifecycle.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Client create/delete/list transactions.

Every operation runs entirely under the store lock: load snapshots,
mutate in memory, persist, and for create/delete render and apply the
full gateway peer set before the lock is released.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..db.allocator import allocate_next_address
from ..db.state import StateStore
from ..models.clients import Client, ClientPublic, ServerState
from ..utils.config import Config
from ..utils.crypto import generate_keypair, new_client_id
from ..utils.time import is_expired, utcnow
from .wireguard_apply import ApplyError, ConfigApplier
from .wireguard_config import load_overrides, render_client_config, render_gateway_config

_log = logging.getLogger(__name__)

__all__ = [
	"ClientNotFoundError",
	"DownloadOutcome",
	"ConfigDownload",
	"PeerLifecycle",
	"attachment_filename",
]


class ClientNotFoundError(Exception):
	"""Raised when no client with the given id exists."""

	pass


class DownloadOutcome(enum.Enum):
	"""Terminal result of a config download attempt."""

	OK = "ok"
	NOT_FOUND = "not_found"
	GONE = "gone"


@dataclass
class ConfigDownload:
	"""Result of a config download: rendered text on OK, reason otherwise."""

	outcome: DownloadOutcome
	filename: Optional[str] = None
	content: Optional[str] = None
	reason: str = ""

	@property
	def ok(self) -> bool:
		return self.outcome is DownloadOutcome.OK


def attachment_filename(name: str) -> str:
	"""Lower-case the name, replace chars outside [a-z0-9_-] with '-', add .conf."""
	safe = re.sub(r"[^a-z0-9_-]", "-", name.strip().lower()).strip("-")
	return f"{safe or 'client'}.conf"


def find_client(clients: list[Client], client_id: str) -> Optional[Client]:
	for client in clients:
		if client.id == client_id:
			return client
	return None


def render_download(client: Client, state: ServerState, cfg: Config, now: datetime) -> ConfigDownload:
	"""Render a client's config unless the client has expired."""
	if is_expired(client.expires_at, now):
		return ConfigDownload(DownloadOutcome.GONE, reason="expired")
	content = render_client_config(
		client,
		state,
		endpoint=cfg.endpoint,
		overrides=load_overrides(cfg.data_dir),
	)
	return ConfigDownload(
		DownloadOutcome.OK,
		filename=attachment_filename(client.name),
		content=content,
	)


class PeerLifecycle:
	"""Serialized client transactions over one StateStore."""

	def __init__(self, store: StateStore, cfg: Config, applier: ConfigApplier) -> None:
		self.store = store
		self.cfg = cfg
		self.applier = applier

	def _apply(self, state: ServerState, clients: list[Client]) -> None:
		"""Render and push the full peer set (caller holds the lock).

		Raises:
			ApplyError: The record change stays committed; the next successful
				apply re-pushes the whole state.
		"""
		config_text = render_gateway_config(state, clients, self.cfg.listen_port)
		try:
			self.applier.apply(self.cfg.interface, config_text)
		except ApplyError as exc:
			_log.error("CONFIG_APPLY_FAILED interface=%s error=%s", self.cfg.interface, exc)
			raise
		_log.info(
			"CONFIG_APPLIED interface=%s peers=%d",
			self.cfg.interface,
			config_text.count("[Peer]"),
		)

	def apply_current(self) -> None:
		"""Re-push the stored peer set (used at startup)."""
		with self.store.lock:
			state = self.store.read_server_state()
			clients = self.store.load_clients()
			self._apply(state, clients)

	def list_clients(self) -> list[ClientPublic]:
		with self.store.lock:
			clients = self.store.load_clients()
		return [c.to_public() for c in clients]

	def create_client(self, name: str, expires_at: Optional[datetime] = None) -> ClientPublic:
		"""Allocate, generate keys, persist and apply.

		The advanced allocator cursor is persisted before anything else can
		fail, so a failed creation wastes its address instead of risking a
		duplicate.

		Raises:
			PoolExhaustedError / AllocationError: Nothing persisted.
			KeyGenerationError / SnapshotError: Cursor persisted, no client.
			ApplyError: Client persisted, live gateway not updated.
		"""
		with self.store.lock:
			state = self.store.read_server_state()
			clients = self.store.load_clients()

			address = allocate_next_address(state)
			self.store.write_server_state(state)

			private_key, public_key = generate_keypair()
			client = Client(
				id=new_client_id(),
				name=name,
				public_key=public_key,
				private_key=private_key,
				address=address,
				created_at=utcnow(),
				expires_at=expires_at,
			)
			clients.append(client)
			self.store.save_clients(clients)
			_log.info("CLIENT_CREATED id=%s name=%s address=%s", client.id, client.name, client.address)

			self._apply(state, clients)
		return client.to_public()

	def delete_client(self, client_id: str) -> None:
		"""Remove a client and re-apply. Its address is not returned to the pool.

		Raises:
			ClientNotFoundError: Nothing changed.
			ApplyError: Removal persisted, live gateway not updated.
		"""
		with self.store.lock:
			state = self.store.read_server_state()
			clients = self.store.load_clients()

			remaining = [c for c in clients if c.id != client_id]
			if len(remaining) == len(clients):
				raise ClientNotFoundError(client_id)

			self.store.save_clients(remaining)
			_log.info("CLIENT_DELETED id=%s", client_id)

			self._apply(state, remaining)

	def client_config(self, client_id: str) -> ConfigDownload:
		"""Admin-side config download (not single-use)."""
		with self.store.lock:
			state = self.store.read_server_state()
			client = find_client(self.store.load_clients(), client_id)
		if client is None:
			return ConfigDownload(DownloadOutcome.NOT_FOUND, reason="not found")
		return render_download(client, state, self.cfg, utcnow())
