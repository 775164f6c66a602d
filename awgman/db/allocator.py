#!/usr/bin/env python3
#
# awgman/db/allocator.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Forward-only peer address allocation."""

from __future__ import annotations

import ipaddress
import logging

from ..models.clients import ServerState

_log = logging.getLogger(__name__)

__all__ = [
	"AllocationError",
	"PoolExhaustedError",
	"allocate_next_address",
	"MIN_HOST",
	"MAX_HOST",
]

MIN_HOST = 2
MAX_HOST = 254


class AllocationError(Exception):
	"""Raised when the configured pool cannot be allocated from."""

	pass


class PoolExhaustedError(AllocationError):
	"""Raised when the cursor has moved past the last usable host."""

	pass


def allocate_next_address(state: ServerState) -> str:
	"""Hand out the next peer address and advance ``state.next_host``.

	The cursor never moves backwards, so deleted peers' addresses are not
	reused. Only IPv4 /24 pools are supported; the candidate is the subnet's
	first three octets plus the cursor, skipping the gateway's own address.

	Returns:
		The address with a ``/32`` suffix, e.g. "10.8.0.2/32".

	Raises:
		AllocationError: If the pool is not an IPv4 /24.
		PoolExhaustedError: If no host in 2..254 is left.
	"""
	try:
		network = ipaddress.ip_network(state.subnet_cidr, strict=False)
	except ValueError as exc:
		raise AllocationError(f"invalid subnet {state.subnet_cidr}: {exc}") from exc
	if network.version != 4:
		raise AllocationError("only IPv4 subnet supported")
	if network.prefixlen != 24:
		raise AllocationError(f"subnet {state.subnet_cidr}: only /24 supported by allocator currently")

	base = int(network.network_address)
	host = state.next_host
	if host < MIN_HOST or host > MAX_HOST:
		raise PoolExhaustedError("address pool exhausted")

	candidate = ipaddress.IPv4Address(base + host)
	if str(candidate) == state.server_ip:
		host += 1
		if host > MAX_HOST:
			state.next_host = host
			raise PoolExhaustedError("address pool exhausted")
		candidate = ipaddress.IPv4Address(base + host)

	state.next_host = host + 1
	_log.debug("ADDRESS_ALLOCATED address=%s next_host=%d", candidate, state.next_host)
	return f"{candidate}/32"
