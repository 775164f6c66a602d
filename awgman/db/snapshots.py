#!/usr/bin/env python3
#
# awgman/db/snapshots.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Whole-file JSON snapshot persistence.

Every collection is stored as one complete JSON document and replaced
atomically on each write, so readers never observe a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

_log = logging.getLogger(__name__)

__all__ = [
	"SnapshotError",
	"read_snapshot",
	"write_snapshot",
	"write_text_atomic",
]

_FILE_MODE = 0o600


class SnapshotError(Exception):
	"""Raised when a snapshot cannot be read, decoded or written."""

	pass


def write_text_atomic(path: Path, content: str, mode: int = _FILE_MODE) -> None:
	"""Write text to ``path`` via temp file + fsync + os.replace.

	Raises:
		OSError: If any step fails; the temp file is removed and the
			previous content of ``path`` is left untouched.
	"""
	path.parent.mkdir(parents=True, exist_ok=True)
	fd, temp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
	try:
		try:
			os.write(fd, content.encode("utf-8"))
			os.fchmod(fd, mode)
			os.fsync(fd)
		finally:
			os.close(fd)
		# os.replace is atomic on same filesystem
		os.replace(temp_path, str(path))
	except Exception:
		try:
			os.unlink(temp_path)
		except OSError:
			pass
		raise


def read_snapshot(path: Path, default: Any = None) -> Any:
	"""Load a JSON snapshot, returning ``default`` when the file does not exist.

	Raises:
		SnapshotError: If the file exists but cannot be read or decoded.
	"""
	try:
		raw = path.read_text(encoding="utf-8")
	except FileNotFoundError:
		return default
	except OSError as exc:
		raise SnapshotError(f"Failed to read {path.name}: {exc}") from exc
	try:
		return json.loads(raw)
	except json.JSONDecodeError as exc:
		raise SnapshotError(f"Corrupt snapshot {path.name}: {exc}") from exc


def write_snapshot(path: Path, payload: Any) -> None:
	"""Replace the snapshot at ``path`` with ``payload`` serialized as JSON.

	Raises:
		SnapshotError: If the write fails (previous snapshot stays intact).
	"""
	content = json.dumps(payload, indent=2)
	try:
		write_text_atomic(path, content)
	except OSError as exc:
		_log.error("SNAPSHOT_WRITE_FAILED file=%s error=%s", path.name, exc)
		raise SnapshotError(f"Failed to write {path.name}: {exc}") from exc
