#!/usr/bin/env python3
#
# awgman/utils/crypto.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Cryptographic helpers for keypairs, identifiers and token comparison."""

from __future__ import annotations

import base64
import hmac
import secrets

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey

# Random byte lengths; both are encoded URL-safe base64 without padding
CLIENT_ID_BYTES = 18
DOWNLOAD_TOKEN_BYTES = 32


class KeyGenerationError(Exception):
	"""Raised when a keypair or random value cannot be produced."""


def generate_keypair() -> tuple[str, str]:
	"""Generate a WireGuard private/public key pair.

	Keys are the base64 encoding of the raw 32-byte X25519 values, the same
	text `wg genkey | wg pubkey` produces.

	Returns:
		Tuple of (private_key, public_key)

	Raises:
		KeyGenerationError: If the backend cannot produce a key.
	"""
	try:
		private = X25519PrivateKey.generate()
		private_raw = private.private_bytes(
			encoding=serialization.Encoding.Raw,
			format=serialization.PrivateFormat.Raw,
			encryption_algorithm=serialization.NoEncryption(),
		)
		public_raw = private.public_key().public_bytes(
			encoding=serialization.Encoding.Raw,
			format=serialization.PublicFormat.Raw,
		)
	except Exception as exc:
		raise KeyGenerationError(f"Failed to generate keypair: {exc}") from exc
	return (
		base64.b64encode(private_raw).decode("ascii"),
		base64.b64encode(public_raw).decode("ascii"),
	)


def _random_urlsafe(nbytes: int) -> str:
	try:
		return secrets.token_urlsafe(nbytes)
	except Exception as exc:
		raise KeyGenerationError(f"Random source failed: {exc}") from exc


def new_client_id() -> str:
	"""Generate an opaque client identifier (18 bytes, URL-safe base64)."""
	return _random_urlsafe(CLIENT_ID_BYTES)


def new_token() -> str:
	"""Generate a new secure random download token (32 bytes, URL-safe base64)."""
	return _random_urlsafe(DOWNLOAD_TOKEN_BYTES)


def tokens_equal(presented: str, expected: str) -> bool:
	"""Constant-time comparison of a presented credential with the configured one."""
	return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))
