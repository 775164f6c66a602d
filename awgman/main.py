#!/usr/bin/env python3
#
# awgman/main.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""FastAPI application factory and startup wiring."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.concurrency import run_in_threadpool

from .api import clients as clients_api
from .api import download as download_api
from .api import health as health_api
from .api.download_tokens import TokenManager
from .api.peer_lifecycle import PeerLifecycle
from .api.wireguard_apply import ApplyError, CommandApplier, ConfigApplier
from .db.snapshots import SnapshotError
from .db.state import StateStore
from .utils.config import Config, load_config
from .utils.logging_setup import configure_logging
from .utils.rate_limit import limiter
from .utils.request_id import RequestIDMiddleware

_log = logging.getLogger(__name__)

__version__ = "0.1.0"


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
	"""Malformed bodies and params are rejected with 400 before any state change."""
	return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@asynccontextmanager
async def _lifespan(app: FastAPI):
	cfg: Config = app.state.cfg

	# The interface comes up empty after a reboot; push the stored peers back
	if cfg.apply_on_startup:
		try:
			await run_in_threadpool(app.state.lifecycle.apply_current)
		except (ApplyError, SnapshotError) as exc:
			_log.warning("STARTUP_APPLY_FAILED interface=%s error=%s", cfg.interface, exc)

	_log.info(
		"STARTED version=%s interface=%s listen_port=%d data_dir=%s",
		__version__, cfg.interface, cfg.listen_port, cfg.data_dir,
	)
	yield
	_log.info("STOPPED")


def create_app(cfg: Optional[Config] = None, applier: Optional[ConfigApplier] = None) -> FastAPI:
	"""Build the API application.

	``cfg`` defaults to the environment and ``applier`` to the ``awg``
	command; tests pass their own. Creates the gateway keypair and pool
	state on first run.

	Raises:
		ConfigValidationError: Missing or unusable configuration.
		SnapshotError: Existing state files cannot be read.
	"""
	if cfg is None:
		cfg = load_config()
	configure_logging(cfg.log_level)

	store = StateStore(cfg.data_dir)
	store.ensure_server_state(cfg.subnet_cidr, cfg.server_ip)
	applier = applier or CommandApplier(
		cfg.data_dir,
		control_bin=cfg.control_bin,
		timeout=cfg.apply_timeout,
	)

	app = FastAPI(
		title="awgman",
		description="AmneziaWG gateway peer manager",
		version=__version__,
		lifespan=_lifespan,
		docs_url="/api/docs",
		redoc_url=None,
		openapi_url="/api/openapi.json",
	)
	app.state.cfg = cfg
	app.state.store = store
	app.state.lifecycle = PeerLifecycle(store, cfg, applier)
	app.state.tokens = TokenManager(store, cfg)
	app.state.limiter = limiter

	app.add_middleware(RequestIDMiddleware)
	app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
	app.add_exception_handler(RequestValidationError, _validation_error_handler)

	app.include_router(health_api.router, prefix="/api")
	app.include_router(clients_api.router, prefix="/api")
	app.include_router(download_api.router)
	return app
