#!/usr/bin/env python3
#
# main.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

# awgman - AmneziaWG gateway peer manager
# Service entry point: validates the environment, then hands the factory to uvicorn
#

import logging
import os

import uvicorn
from awgman.utils.config import ConfigValidationError, load_config
from awgman.utils.logging_setup import configure_logging, uvicorn_log_config


def _dev_reload() -> bool:
	return os.environ.get("AWGMAN_DEV_RELOAD", "").lower() in ("1", "true", "yes")


if __name__ == "__main__":
	try:
		cfg = load_config()
	except ConfigValidationError as exc:
		configure_logging("INFO")
		logging.getLogger("awgman").critical("CONFIG_INVALID error=%s", exc)
		raise SystemExit(1)

	uvicorn.run(
		"awgman:create_app",
		host=cfg.listen_host,
		port=cfg.http_port,
		reload=_dev_reload(),
		factory=True,
		log_config=uvicorn_log_config(cfg.log_level),
	)
