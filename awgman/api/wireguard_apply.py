#!/usr/bin/env python3
#
# awgman/api/wireguard_apply.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Push rendered gateway configs to the live interface."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from ..db.snapshots import write_text_atomic
from ..utils.config import valid_interface_name

_log = logging.getLogger(__name__)

__all__ = [
	"ApplyError",
	"ConfigApplier",
	"CommandApplier",
]


class ApplyError(Exception):
	"""Raised when the gateway config could not be applied."""

	pass


class ConfigApplier(Protocol):
	"""Anything that can push a full gateway config to an interface."""

	def apply(self, interface: str, config_text: str) -> None:
		...


class CommandApplier:
	"""Write the config to ``<data_dir>/<iface>.conf`` and run ``<bin> setconf``.

	Each call is a full-state push, so a failed apply is repaired by the
	next successful one.
	"""

	def __init__(self, data_dir: Path, control_bin: str = "awg", timeout: float = 15.0) -> None:
		self.data_dir = Path(data_dir)
		self.control_bin = control_bin
		self.timeout = timeout

	def config_path(self, interface: str) -> Path:
		return self.data_dir / f"{interface}.conf"

	def apply(self, interface: str, config_text: str) -> None:
		if not valid_interface_name(interface):
			raise ApplyError(f"invalid interface name: {interface!r}")

		conf_path = self.config_path(interface)
		try:
			write_text_atomic(conf_path, config_text)
		except OSError as exc:
			raise ApplyError(f"failed to write {conf_path.name}: {exc}") from exc

		cmd = [self.control_bin, "setconf", interface, str(conf_path)]
		_log.debug("SETCONF_RUN cmd=%s", " ".join(cmd))
		try:
			proc = subprocess.run(
				cmd,
				stdout=subprocess.PIPE,
				stderr=subprocess.PIPE,
				timeout=self.timeout,
				check=False,
			)
		except subprocess.TimeoutExpired as exc:
			raise ApplyError(f"{self.control_bin} setconf timed out after {self.timeout:g}s") from exc
		except OSError as exc:
			raise ApplyError(f"failed to run {self.control_bin}: {exc}") from exc

		if proc.returncode != 0:
			stderr = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
			raise ApplyError(f"{self.control_bin} setconf exited with {proc.returncode}: {stderr}")
