#!/usr/bin/env python3
#
# awgman/utils/config.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Environment configuration (optionally seeded from settings.env) and constants."""

from __future__ import annotations

import ipaddress
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

_log = logging.getLogger(__name__)


class ConfigValidationError(Exception):
	"""Raised when critical configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Fixed constants
# ---------------------------------------------------------------------------
DEFAULT_TOKEN_TTL_SECONDS = 3600
# Upper bound for a requested link lifetime (ten years)
MAX_TOKEN_TTL_SECONDS = 10 * 365 * 24 * 3600
DEFAULT_APPLY_TIMEOUT_SECONDS = 15.0
DEFAULT_ALLOWED_IPS = "0.0.0.0/0, ::/0"

SERVER_STATE_FILE = "server.json"
CLIENTS_FILE = "clients.json"
TOKENS_FILE = "dl-tokens.json"
EXTRA_INTERFACE_FILE = "client-extra-interface.txt"
ALLOWED_IPS_FILE = "client-allowedips.txt"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# Kernel interface names: letter first, at most 15 chars, no shell metacharacters
_IFACE_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]{0,14}$")


@dataclass(frozen=True)
class Config:
	"""Resolved runtime configuration derived from env and defaults."""
	data_dir: Path
	admin_token: str
	subnet_cidr: str
	server_ip: str
	interface: str = "wg0"
	listen_port: int = 51820
	endpoint: str = ""
	listen_host: str = "0.0.0.0"
	http_port: int = 8080
	control_bin: str = "awg"
	apply_timeout: float = DEFAULT_APPLY_TIMEOUT_SECONDS
	apply_on_startup: bool = True
	token_default_ttl: int = DEFAULT_TOKEN_TTL_SECONDS
	token_retention: int = 0
	log_level: str = "INFO"


# Repository root; settings.env and the default data/ directory live here
_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _unquote(raw: str) -> str:
	"""Value of a dotenv assignment: quoted text verbatim, else up to ' #'."""
	raw = raw.strip()
	if len(raw) >= 2 and raw[0] in "\"'":
		closing = raw.find(raw[0], 1)
		if closing > 0:
			return raw[1:closing]
	return raw.split(" #", 1)[0].strip()


def _read_dotenv(path: Path) -> Iterator[tuple[str, str]]:
	"""Yield KEY/VALUE pairs from a shell-style env file.

	Comment and blank lines are skipped, a leading ``export`` is dropped
	(the installer writes a file meant to be sourced).
	"""
	for line in path.read_text(encoding="utf-8").splitlines():
		line = line.strip()
		if line.startswith("#"):
			continue
		key, sep, value = line.partition("=")
		key = key.strip()
		if key.startswith("export "):
			key = key[len("export "):].strip()
		if sep and key:
			yield key, _unquote(value)


def load_dotenv(dotenv_path: Path | None = None) -> None:
	"""Seed os.environ from settings.env; variables already set win."""
	path = dotenv_path or (_PROJECT_ROOT / "settings.env")
	if not path.is_file():
		return
	loaded = 0
	for key, value in _read_dotenv(path):
		if key not in os.environ:
			os.environ[key] = value
			loaded += 1
	_log.debug("DOTENV_LOADED path=%s keys=%d", path, loaded)


def _env_int(name: str, default: int, *, minimum: int | None = None, maximum: int | None = None) -> int:
	raw = os.getenv(name, "").strip()
	if not raw:
		return default
	try:
		value = int(raw)
	except ValueError as exc:
		raise ConfigValidationError(f"{name} must be an integer, got {raw!r}") from exc
	if minimum is not None and value < minimum:
		raise ConfigValidationError(f"{name} must be >= {minimum}")
	if maximum is not None and value > maximum:
		raise ConfigValidationError(f"{name} must be <= {maximum}")
	return value


def _env_bool(name: str, default: bool) -> bool:
	raw = os.getenv(name, "").strip().lower()
	if not raw:
		return default
	return raw in ("1", "true", "yes", "on")


def valid_interface_name(name: str) -> bool:
	return bool(_IFACE_NAME_RE.fullmatch(name))


def _required(name: str, example: str) -> str:
	value = os.getenv(name, "").strip()
	if not value:
		raise ConfigValidationError(f"{name} is required (e.g. {example})")
	return value


def parse_listen(value: str) -> tuple[str, int]:
	"""Split a ``host:port`` listen address (``:8080`` binds all interfaces)."""
	host, sep, port = value.strip().rpartition(":")
	if not sep:
		raise ConfigValidationError(f"API_LISTEN must be host:port, got {value!r}")
	try:
		port_num = int(port)
	except ValueError as exc:
		raise ConfigValidationError(f"API_LISTEN has invalid port: {value!r}") from exc
	if not 1 <= port_num <= 65535:
		raise ConfigValidationError(f"API_LISTEN port out of range: {port_num}")
	return host.strip("[]") or "0.0.0.0", port_num


def validate_subnet(subnet_cidr: str, server_ip: str) -> None:
	"""Check the pool is an IPv4 /24 that contains the gateway address.

	Raises:
		ConfigValidationError: On any mismatch. These are fatal at startup.
	"""
	try:
		network = ipaddress.ip_network(subnet_cidr, strict=False)
	except ValueError as exc:
		raise ConfigValidationError(f"invalid WG_SUBNET: {exc}") from exc
	if network.version != 4 or network.prefixlen != 24:
		raise ConfigValidationError(f"WG_SUBNET {subnet_cidr}: only IPv4 /24 subnets are supported")
	try:
		address = ipaddress.ip_address(server_ip)
	except ValueError as exc:
		raise ConfigValidationError(f"invalid WG_ADDRESS: {exc}") from exc
	if address not in network:
		raise ConfigValidationError(f"server ip {server_ip} is not in subnet {subnet_cidr}")


def load_config() -> Config:
	"""Load configuration from environment variables (optionally via settings.env)."""
	load_dotenv()

	admin_token = _required("ADMIN_TOKEN", "output of `openssl rand -base64 32`")
	subnet_cidr = _required("WG_SUBNET", "10.8.0.0/24")
	server_ip = _required("WG_ADDRESS", "10.8.0.1/24").split("/")[0].strip()
	validate_subnet(subnet_cidr, server_ip)

	data_dir = Path(os.getenv("AWGMAN_DATA_DIR", str(_PROJECT_ROOT / "data"))).resolve()
	try:
		if data_dir.exists() and not data_dir.is_dir():
			raise ConfigValidationError(f"Path exists but is not a directory: {data_dir}")
		data_dir.mkdir(mode=0o750, parents=True, exist_ok=True)
	except OSError as exc:
		raise ConfigValidationError(f"Cannot create data directory: {exc}") from exc

	interface = os.getenv("WG_IFACE", "wg0").strip() or "wg0"
	if not valid_interface_name(interface):
		raise ConfigValidationError(f"Invalid WG_IFACE: {interface!r}")

	listen_host, http_port = parse_listen(os.getenv("API_LISTEN", "0.0.0.0:8080"))

	try:
		apply_timeout = float(os.getenv("APPLY_TIMEOUT_SECONDS", str(DEFAULT_APPLY_TIMEOUT_SECONDS)))
	except ValueError as exc:
		raise ConfigValidationError("APPLY_TIMEOUT_SECONDS must be a number") from exc
	if apply_timeout <= 0:
		raise ConfigValidationError("APPLY_TIMEOUT_SECONDS must be positive")

	log_level = os.getenv("LOG_LEVEL", "").strip().upper()
	if log_level not in _LOG_LEVELS:
		log_level = "INFO"

	return Config(
		data_dir=data_dir,
		admin_token=admin_token,
		subnet_cidr=subnet_cidr,
		server_ip=server_ip,
		interface=interface,
		listen_port=_env_int("WG_PORT", 51820, minimum=1, maximum=65535),
		endpoint=os.getenv("WG_ENDPOINT", "").strip(),
		listen_host=listen_host,
		http_port=http_port,
		control_bin=os.getenv("WG_CONTROL_BIN", "awg").strip() or "awg",
		apply_timeout=apply_timeout,
		apply_on_startup=_env_bool("APPLY_ON_STARTUP", True),
		token_default_ttl=_env_int(
			"TOKEN_DEFAULT_TTL_SECONDS", DEFAULT_TOKEN_TTL_SECONDS, minimum=1, maximum=MAX_TOKEN_TTL_SECONDS,
		),
		token_retention=_env_int("TOKEN_RETENTION_SECONDS", 0, minimum=0),
		log_level=log_level,
	)
