#!/usr/bin/env python3
#
# awgman/__init__.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""awgman – peer manager for a single AmneziaWG gateway."""

from .main import create_app

__all__ = ["create_app"]
