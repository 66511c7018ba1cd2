"""Timestamp parsing and calendar helpers shared by the aggregators."""

import re
import time
from datetime import datetime, timedelta, timezone


def utc_now_iso():
    """Return current UTC time as ISO-8601 string."""
    return time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())


def parse_any_ts(value):
    """Parse timestamp-like values into comparable epoch seconds (0.0 when unknown)."""
    def normalize_epoch(raw):
        try:
            num = float(raw)
        except Exception:
            return 0.0
        if num <= 0:
            return 0.0
        if num > 1e18:
            num = num / 1e9
        elif num > 1e15:
            num = num / 1e6
        elif num > 1e12:
            num = num / 1e3
        return float(num)

    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return normalize_epoch(value)
    if not isinstance(value, str):
        return 0.0
    text = value.strip()
    if not text:
        return 0.0
    if re.fullmatch(r'[-+]?\d+(?:\.\d+)?', text):
        return normalize_epoch(text)
    try:
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        return datetime.fromisoformat(text.replace(' ', 'T', 1)).timestamp()
    except Exception:
        return 0.0


def iso_from_epoch(seconds):
    """Format epoch seconds the way browsers print Date.toISOString()."""
    if not seconds or seconds <= 0:
        return None
    stamp = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return stamp.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def to_iso(value):
    """Normalize any timestamp-like value to an ISO string, or None."""
    return iso_from_epoch(parse_any_ts(value))


def period_starts(now=None):
    """Return local-calendar bucket starts (epoch seconds) for today, week and month.

    The week starts on the most recent Sunday at local midnight.
    """
    now = now or datetime.now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week = today - timedelta(days=(today.weekday() + 1) % 7)
    month = today.replace(day=1)
    return {
        'today': today.timestamp(),
        'week': week.timestamp(),
        'month': month.timestamp(),
    }


def fmt_seconds(seconds):
    """Format a duration as compact uptime text (e.g. ``3d 4h``, ``12m``)."""
    seconds = max(0, int(seconds or 0))
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days:
        return f'{days}d {hours}h'
    if hours:
        return f'{hours}h {minutes}m'
    if minutes:
        return f'{minutes}m'
    return f'{seconds}s'
