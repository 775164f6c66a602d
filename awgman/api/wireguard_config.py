#!/usr/bin/env python3
#
# awgman/api/wireguard_config.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""WireGuard configuration text generation.

SECURITY WARNING: Rendered configs contain private keys. The gateway
config is written with mode 0600 and client configs are only ever
returned over the authenticated or token-gated download paths.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from ..models.clients import Client, ServerState
from ..utils.config import ALLOWED_IPS_FILE, DEFAULT_ALLOWED_IPS, EXTRA_INTERFACE_FILE
from ..utils.time import is_expired, utcnow

_log = logging.getLogger(__name__)

__all__ = [
	"RenderOverrides",
	"load_overrides",
	"render_gateway_config",
	"render_client_config",
	"active_clients",
]


@dataclass(frozen=True)
class RenderOverrides:
	"""Operator-supplied client render options (empty string = not set)."""

	extra_interface: str = ""
	allowed_ips: str = ""

	@property
	def effective_allowed_ips(self) -> str:
		return self.allowed_ips or DEFAULT_ALLOWED_IPS


def _read_optional(path: Path) -> str:
	try:
		return path.read_text(encoding="utf-8").strip()
	except FileNotFoundError:
		return ""
	except OSError as exc:
		_log.warning("OVERRIDE_READ_FAILED file=%s error=%s", path.name, exc)
		return ""


def load_overrides(data_dir: Path) -> RenderOverrides:
	"""Read the optional override files from the data directory.

	The extra-interface block is opaque (obfuscation parameters such as
	Jc/Jmin/S1/H1) and is passed through verbatim.
	"""
	return RenderOverrides(
		extra_interface=_read_optional(data_dir / EXTRA_INTERFACE_FILE),
		allowed_ips=_read_optional(data_dir / ALLOWED_IPS_FILE),
	)


def active_clients(clients: Iterable[Client], now: Optional[datetime] = None) -> list[Client]:
	"""Clients not yet past their expiry, in stored order."""
	now = now or utcnow()
	return [c for c in clients if not is_expired(c.expires_at, now)]


def render_gateway_config(
	state: ServerState,
	clients: Iterable[Client],
	listen_port: int,
	now: Optional[datetime] = None,
) -> str:
	"""Render the gateway's full peer set.

	Expired clients are left out; expiry is enforced here rather than by a
	sweep. Every peer is constrained to its single host address.
	"""
	config_lines = [
		"[Interface]",
		f"PrivateKey = {state.server_private_key}",
		f"ListenPort = {listen_port}",
		"",
	]

	for client in active_clients(clients, now):
		ip_only = client.address.split("/")[0]
		config_lines.extend([
			"[Peer]",
			f"PublicKey = {client.public_key}",
			f"AllowedIPs = {ip_only}/32",
			"",
		])

	return "\n".join(config_lines) + "\n"


def render_client_config(
	client: Client,
	state: ServerState,
	endpoint: str = "",
	overrides: Optional[RenderOverrides] = None,
) -> str:
	"""Render one client's interface config with the gateway as its only peer."""
	overrides = overrides or RenderOverrides()

	config_lines = [
		"[Interface]",
		f"PrivateKey = {client.private_key}",
		f"Address = {client.address}",
	]
	if overrides.extra_interface:
		config_lines.append(overrides.extra_interface)

	config_lines.extend([
		"",
		"[Peer]",
		f"PublicKey = {state.server_public_key}",
	])
	if endpoint:
		config_lines.append(f"Endpoint = {endpoint}")
	config_lines.append(f"AllowedIPs = {overrides.effective_allowed_ips}")

	return "\n".join(config_lines) + "\n"
