"""Recent activity window assembled from the tails of rotating log files."""

import json
import os
import re

from file_repository import list_files, tail_lines
from timeutil import parse_any_ts, to_iso


LINES_PER_FILE = 50
RAW_ENTRY_CAP = 75
WINDOW_SIZE = 50
MAX_LINE_CHARS = 500

LEADING_TS_RE = re.compile(
    r'^\s*\[?(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2}(?:[.,]\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)'
)


def extract_timestamp(line):
    """Return the line's leading ISO-like timestamp (normalized), or None."""
    match = LEADING_TS_RE.match(line)
    if match:
        return to_iso(match.group(1).replace(',', '.'))
    text = line.strip()
    if text.startswith('{'):
        try:
            entry = json.loads(text)
        except ValueError:
            return None
        if isinstance(entry, dict):
            for key in ('time', 'ts', 'timestamp'):
                if entry.get(key) is not None:
                    return to_iso(entry[key])
    return None


def read_activity(log_dir):
    """Collect recent log lines, newest files first, and return the latest window."""
    entries = []
    for path in list_files(log_dir):
        name = os.path.basename(path)
        for line in tail_lines(path, max_lines=LINES_PER_FILE):
            entries.append({
                'source': name,
                'timestamp': extract_timestamp(line),
                'line': line[:MAX_LINE_CHARS],
            })
            if len(entries) >= RAW_ENTRY_CAP:
                break
        if len(entries) >= RAW_ENTRY_CAP:
            break

    entries.sort(key=lambda e: parse_any_ts(e.get('timestamp')))
    return entries[-WINDOW_SIZE:]
