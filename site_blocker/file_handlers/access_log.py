#!/usr/bin/env python3
"""
Reader for the access records written by the logger daemon.

Two formats coexist in the data directory: the current append-only JSON
lines file and the legacy single JSON array file. Both are read, merged and
sorted by timestamp. Reporting must never crash the caller, so any file-level
parse failure yields an empty result.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import math
import os
import re
from typing import List, Optional, Tuple

from site_blocker.constants import ACCESS_LOG_JSON, ACCESS_LOG_JSONL, DATA_DIR
from site_blocker.exceptions import LogParseError
from site_blocker.models import AccessLogEntry

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
_FRACTION_RE = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


def _pad_fraction(match) -> str:
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


def parse_timestamp(ts: str) -> Optional[dt.datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime.
    Naive timestamps are taken as local time. Returns None if unparseable.
    """
    text = ts.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(_pad_fraction, text, count=1)
    try:
        parsed = dt.datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
    except (ValueError, OverflowError, OSError):
        return None
    return parsed


def _to_entry(record) -> Optional[AccessLogEntry]:
    if not isinstance(record, dict):
        return None
    domain = record.get("domain")
    ts = record.get("ts")
    if not isinstance(domain, str) or not isinstance(ts, str):
        return None
    return AccessLogEntry(domain=domain, ts=ts)


def _read_text(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise LogParseError(f"Failed to read access log {path}: {e}") from e


def parse_jsonl_log(path: str) -> List[AccessLogEntry]:
    """Parse the append log: one JSON record per non-empty line."""
    raw = _read_text(path)
    logging.debug(f"Access log {path}: {len(raw)} bytes")
    entries: List[AccessLogEntry] = []
    for lineno, line in enumerate(raw.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            raise LogParseError(f"Invalid JSON on line {lineno} of {path}: {e}") from e
        entry = _to_entry(record)
        if entry is not None:
            entries.append(entry)
    return entries


def parse_legacy_log(path: str) -> List[AccessLogEntry]:
    """Parse the legacy log: the whole file is one JSON array."""
    raw = _read_text(path)
    logging.debug(f"Legacy access log {path}: {len(raw)} bytes")
    try:
        records = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LogParseError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(records, list):
        return []
    return [entry for entry in map(_to_entry, records) if entry is not None]


class AccessLogReader:
    def __init__(self, data_dir=DATA_DIR):
        self.data_dir = data_dir
        self.jsonl_path = os.path.join(data_dir, ACCESS_LOG_JSONL)
        self.legacy_path = os.path.join(data_dir, ACCESS_LOG_JSON)

    def read(self, days: Optional[float] = None, now: Optional[dt.datetime] = None) -> List[AccessLogEntry]:
        """Return access records from both log formats, oldest first.
        With days, records older than now - days are dropped.
        """
        has_jsonl = os.path.exists(self.jsonl_path)
        has_legacy = os.path.exists(self.legacy_path)
        if not has_jsonl and not has_legacy:
            return []

        entries: List[AccessLogEntry] = []
        try:
            if has_jsonl:
                entries.extend(parse_jsonl_log(self.jsonl_path))
            if has_legacy:
                entries.extend(parse_legacy_log(self.legacy_path))
        except LogParseError as e:
            logging.warning(f"Access log unreadable, reporting nothing: {e}")
            return []

        dated: List[Tuple[dt.datetime, AccessLogEntry]] = []
        for entry in entries:
            parsed = parse_timestamp(entry.ts)
            if parsed is None:
                logging.debug(f"Skipping access record with bad timestamp: {entry.ts!r}")
                continue
            dated.append((parsed, entry))
        dated.sort(key=lambda item: item[0])

        cutoff = self._cutoff(days, now)
        if cutoff is not None:
            before = len(dated)
            dated = [item for item in dated if item[0] >= cutoff]
            logging.info(f"Access log filtered {before} -> {len(dated)} for {days} days")

        return [entry for _, entry in dated]

    @staticmethod
    def _cutoff(days, now):
        """Oldest instant to keep, or None to keep everything"""
        if days is None:
            return None
        if not math.isfinite(days) or days < 0:
            logging.warning(f"Ignoring invalid access log window: {days} days")
            return None
        now = now or dt.datetime.now(dt.timezone.utc)
        if now.tzinfo is None:
            now = now.astimezone()
        try:
            return now - dt.timedelta(days=days)
        except OverflowError:
            # Window reaches past datetime.min
            return None
