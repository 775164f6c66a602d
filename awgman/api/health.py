#!/usr/bin/env python3
#
# awgman/api/health.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Liveness probe."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_class=PlainTextResponse)
def health() -> str:
	return "ok"
