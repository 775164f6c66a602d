#!/usr/bin/env python3
#
# awgman/utils/time.py
# Copyright (C) 2025-2026 Gill-Bates http://github.com/Gill-Bates
#

"""UTC clock, RFC 3339 parsing/formatting and expiry checks."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

_RFC3339_SECONDS = "%Y-%m-%dT%H:%M:%SZ"

# date "T" time, optional fraction of any length, then "Z" or a numeric offset
_RFC3339_RE = re.compile(
	r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
	r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)


def utcnow() -> datetime:
	"""Return the current UTC time as a timezone-aware datetime."""
	return datetime.now(timezone.utc)


def parse_utc(value: str) -> Optional[datetime]:
	"""Parse an RFC 3339 timestamp into an aware UTC datetime.

	Only the RFC 3339 grammar is accepted: date-only, naive, ISO basic
	format and other ISO 8601 variants yield None, as do out-of-range
	fields and instants that fall outside the representable UTC range.
	Fractions finer than microseconds are truncated.
	"""
	match = _RFC3339_RE.fullmatch((value or "").strip())
	if match is None:
		return None
	year, month, day, hour, minute, second, fraction, zulu, sign, off_h, off_m = match.groups()
	try:
		if zulu:
			tz = timezone.utc
		else:
			offset = timedelta(hours=int(off_h), minutes=int(off_m))
			tz = timezone(-offset if sign == "-" else offset)
		parsed = datetime(
			int(year), int(month), int(day),
			int(hour), int(minute), int(second),
			int((fraction or "").ljust(6, "0")[:6]),
			tzinfo=tz,
		)
		return parsed.astimezone(timezone.utc)
	except (ValueError, OverflowError):
		return None


def format_rfc3339(dt: datetime) -> str:
	"""Second-precision RFC 3339 in UTC, e.g. ``2026-01-01T12:00:00Z``."""
	return dt.astimezone(timezone.utc).strftime(_RFC3339_SECONDS)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
	"""True once ``now`` is strictly past ``expires_at``; None never expires."""
	if expires_at is None:
		return False
	return (now or utcnow()) > expires_at
