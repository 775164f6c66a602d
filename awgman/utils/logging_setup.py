#!/usr/bin/env python3
#
# awgman/utils/logging_setup.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Process-wide logging: one stdout handler, pipe-separated lines."""

from __future__ import annotations

import logging
import sys
from typing import Any

__all__ = [
	"LOG_FORMAT",
	"LOG_DATE_FORMAT",
	"LevelColorFormatter",
	"configure_logging",
	"uvicorn_log_config",
]

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class LevelColorFormatter(logging.Formatter):
	"""Pads the level name to a fixed width and, on a terminal, colors it."""

	_COLORS = {
		logging.DEBUG: "36",
		logging.INFO: "32",
		logging.WARNING: "33",
		logging.ERROR: "31",
		logging.CRITICAL: "35",
	}

	def __init__(self, use_color: bool = False) -> None:
		super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
		self.use_color = use_color

	def format(self, record: logging.LogRecord) -> str:
		levelname = record.levelname
		padded = f"{levelname:<8}"
		code = self._COLORS.get(record.levelno)
		record.levelname = f"\033[{code}m{padded}\033[0m" if self.use_color and code else padded
		try:
			return super().format(record)
		finally:
			record.levelname = levelname


def configure_logging(level_name: str) -> None:
	"""Install the stdout handler on the root logger and fold uvicorn into it.

	Replaces whatever handlers were installed before (uvicorn installs its
	own when it starts the factory).
	"""
	level = logging.getLevelName(level_name.upper())
	if not isinstance(level, int):
		level = logging.INFO

	handler = logging.StreamHandler(sys.stdout)
	handler.setFormatter(LevelColorFormatter(use_color=sys.stdout.isatty()))
	logging.basicConfig(level=level, handlers=[handler], force=True)

	for name in _UVICORN_LOGGERS:
		uv_logger = logging.getLogger(name)
		uv_logger.handlers.clear()
		uv_logger.setLevel(level)
		uv_logger.propagate = True

	# TestClient and any outbound HTTP debug noise
	for name in ("httpcore", "httpx"):
		logging.getLogger(name).setLevel(logging.WARNING)


def uvicorn_log_config(level_name: str) -> dict[str, Any]:
	"""Dict-config for uvicorn's own loggers until the app takes over."""
	level = level_name.upper()
	formatter = {"()": f"{__name__}.LevelColorFormatter"}
	return {
		"version": 1,
		"disable_existing_loggers": False,
		"formatters": {"plain": formatter},
		"handlers": {
			"stdout": {
				"class": "logging.StreamHandler",
				"formatter": "plain",
				"stream": "ext://sys.stdout",
			},
		},
		"loggers": {
			name: {"handlers": ["stdout"], "level": level, "propagate": False}
			for name in _UVICORN_LOGGERS
		},
	}
