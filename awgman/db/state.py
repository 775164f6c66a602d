#!/usr/bin/env python3
#
# awgman/db/state.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Record store for server state, clients and download tokens.

All three collections share one process-wide lock. Callers hold
``store.lock`` across the whole read-modify-persist(-apply) sequence;
the load/save helpers themselves do not lock.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from ..models.clients import Client, DownloadToken, ServerState
from ..utils.config import (
	CLIENTS_FILE,
	SERVER_STATE_FILE,
	TOKENS_FILE,
	validate_subnet,
)
from ..utils.crypto import generate_keypair
from .snapshots import SnapshotError, read_snapshot, write_snapshot

_log = logging.getLogger(__name__)

__all__ = ["StateStore"]

# First host handed out; .1 is the conventional gateway address
FIRST_HOST = 2


class StateStore:
	"""Owner of the three persisted collections and the lock guarding them."""

	def __init__(self, data_dir: Path) -> None:
		self.data_dir = Path(data_dir)
		self.lock = threading.Lock()

	@property
	def server_state_path(self) -> Path:
		return self.data_dir / SERVER_STATE_FILE

	@property
	def clients_path(self) -> Path:
		return self.data_dir / CLIENTS_FILE

	@property
	def tokens_path(self) -> Path:
		return self.data_dir / TOKENS_FILE

	# -----------------------------------------------------------------------
	# Lifecycle
	# -----------------------------------------------------------------------

	def ensure_server_state(self, subnet_cidr: str, server_ip: str) -> ServerState:
		"""Create the gateway state on first run, otherwise load it.

		An existing state file always wins; the subnet it records is not
		compared against the current environment.

		Raises:
			ConfigValidationError: If the subnet/server address is unusable.
			SnapshotError: If the state cannot be read or written.
		"""
		with self.lock:
			if self.server_state_path.exists():
				state = self.read_server_state()
				_log.info(
					"SERVER_STATE_LOADED subnet=%s server_ip=%s next_host=%d",
					state.subnet_cidr, state.server_ip, state.next_host,
				)
				return state

			validate_subnet(subnet_cidr, server_ip)
			private_key, public_key = generate_keypair()
			state = ServerState(
				server_private_key=private_key,
				server_public_key=public_key,
				subnet_cidr=subnet_cidr,
				server_ip=server_ip,
				next_host=FIRST_HOST,
			)
			self.write_server_state(state)
			_log.info("SERVER_STATE_CREATED subnet=%s server_ip=%s", subnet_cidr, server_ip)
			return state

	# -----------------------------------------------------------------------
	# Snapshot access (caller holds self.lock)
	# -----------------------------------------------------------------------

	def read_server_state(self) -> ServerState:
		raw = read_snapshot(self.server_state_path)
		if raw is None:
			raise SnapshotError(f"{SERVER_STATE_FILE} is missing")
		try:
			return ServerState.model_validate(raw)
		except ValidationError as exc:
			raise SnapshotError(f"Invalid {SERVER_STATE_FILE}: {exc}") from exc

	def write_server_state(self, state: ServerState) -> None:
		write_snapshot(self.server_state_path, state.to_json_dict())

	def load_clients(self) -> list[Client]:
		raw = read_snapshot(self.clients_path, default=[])
		try:
			return [Client.model_validate(item) for item in raw or []]
		except (ValidationError, TypeError) as exc:
			raise SnapshotError(f"Invalid {CLIENTS_FILE}: {exc}") from exc

	def save_clients(self, clients: list[Client]) -> None:
		write_snapshot(self.clients_path, [c.to_json_dict() for c in clients])

	def load_tokens(self) -> list[DownloadToken]:
		raw = read_snapshot(self.tokens_path, default=[])
		try:
			return [DownloadToken.model_validate(item) for item in raw or []]
		except (ValidationError, TypeError) as exc:
			raise SnapshotError(f"Invalid {TOKENS_FILE}: {exc}") from exc

	def save_tokens(self, tokens: list[DownloadToken]) -> None:
		write_snapshot(self.tokens_path, [t.to_json_dict() for t in tokens])
