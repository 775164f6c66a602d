#!/usr/bin/env python3
#
# awgman/models/__init__.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""Pydantic models for awgman."""

from .clients import (
	Client,
	ClientCreate,
	ClientPublic,
	DownloadToken,
	LinkCreate,
	LinkResponse,
	ServerState,
)

__all__ = [
	# Records
	"Client",
	"DownloadToken",
	"ServerState",
	# Payloads
	"ClientCreate",
	"ClientPublic",
	"LinkCreate",
	"LinkResponse",
]
