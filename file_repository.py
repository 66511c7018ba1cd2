"""Fallback-safe reads of JSON and text files from fixed locations.

Nothing in this module raises for a missing or malformed file: callers always
get back the fallback value they asked for.
"""

import json
import os


def read_json(path, fallback=None):
    """Load a JSON document, returning ``fallback`` when absent or unparsable."""
    if not path or not os.path.isfile(path):
        return fallback
    try:
        with open(path, 'r', encoding='utf-8') as fp:
            return json.load(fp)
    except Exception as e:
        print(f'[FILES] Unreadable JSON {path}: {e}')
        return fallback


def extract_records(payload, key):
    """Return the list of dict rows held by ``payload``.

    A bare list is used as-is, a dict contributes its ``key`` list, and any
    other shape yields an empty list. Non-dict rows are dropped.
    """
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict) and isinstance(payload.get(key), list):
        rows = payload[key]
    else:
        return []
    return [row for row in rows if isinstance(row, dict)]


def read_records(path, key):
    """Read a JSON file and run it through ``extract_records``."""
    return extract_records(read_json(path, fallback=None), key)


def tail_lines(path, max_lines=50, block_size=8192):
    """Return up to the last ``max_lines`` non-blank lines of a text file.

    Reads backward from the end in blocks so large logs are not scanned whole.
    """
    if max_lines <= 0:
        return []
    try:
        with open(path, 'rb') as fp:
            fp.seek(0, os.SEEK_END)
            pos = fp.tell()
            data = b''
            while pos > 0 and data.count(b'\n') <= max_lines:
                step = min(block_size, pos)
                pos -= step
                fp.seek(pos)
                data = fp.read(step) + data
    except OSError:
        return []

    lines = data.decode('utf-8', errors='replace').split('\n')
    if lines and lines[-1] == '':
        lines.pop()
    if pos > 0:
        # first piece may start mid-line
        lines = lines[1:]
    return [line for line in lines[-max_lines:] if line.strip()]


def file_mtime(path):
    """Return modification time in epoch seconds, or 0.0 when unavailable."""
    try:
        return os.path.getmtime(path)
    except OSError:
        return 0.0


def list_files(directory, suffixes=None):
    """List regular files in ``directory``, newest-modified first."""
    try:
        names = os.listdir(directory)
    except Exception:
        return []

    files = []
    for name in names:
        if suffixes and not name.lower().endswith(tuple(suffixes)):
            continue
        path = os.path.join(directory, name)
        if os.path.isfile(path):
            files.append(path)
    files.sort(key=file_mtime, reverse=True)
    return files
