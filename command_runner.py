"""Bounded execution of external commands.

All shell interaction of the backend funnels through ``CommandRunner``. A
command that is missing, times out, exits non-zero or floods stdout is reported
as unavailable (``ok=False``) and never raises into the caller.
"""

from __future__ import annotations

import json
import subprocess
from typing import Any, NamedTuple, Sequence


class CommandResult(NamedTuple):
    stdout: str
    stderr: str
    ok: bool


def _as_text(raw: Any) -> str:
    if raw is None:
        return ''
    if isinstance(raw, bytes):
        return raw.decode('utf-8', errors='replace')
    return str(raw)


def decode_json_stream(payload: str) -> list[Any]:
    """Decode adjacent JSON values from text that may also contain banner noise."""
    if not isinstance(payload, str):
        return []
    decoder = json.JSONDecoder()
    idx = 0
    out = []
    length = len(payload)
    while idx < length:
        while idx < length and payload[idx].isspace():
            idx += 1
        if idx >= length:
            break
        if payload[idx] not in '[{':
            idx += 1
            continue
        try:
            obj, end = decoder.raw_decode(payload, idx)
            out.append(obj)
            idx = end
        except ValueError:
            idx += 1
    return out


class CommandRunner:
    """Run argv-style commands with a timeout and an output size cap."""

    def __init__(self, timeout: float = 15.0, max_output_bytes: int = 1024 * 1024):
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes

    def run(self, command: Sequence[str], timeout: float | None = None) -> CommandResult:
        limit = self.timeout if timeout is None else timeout
        try:
            res = subprocess.run(list(command), capture_output=True, text=True, timeout=limit)
        except subprocess.TimeoutExpired as exc:
            print(f'[CMD] {command[0]} timed out after {limit}s')
            return CommandResult(self._cap(_as_text(exc.stdout)), _as_text(exc.stderr), False)
        except (OSError, ValueError) as exc:
            print(f'[CMD] {command[0] if command else "<empty>"} unavailable: {exc}')
            return CommandResult('', str(exc), False)

        stdout = res.stdout or ''
        ok = res.returncode == 0
        if len(stdout.encode('utf-8', errors='replace')) > self.max_output_bytes:
            print(f'[CMD] {command[0]} output exceeded {self.max_output_bytes} bytes')
            stdout = self._cap(stdout)
            ok = False
        return CommandResult(stdout, res.stderr or '', ok)

    def run_json(self, command: Sequence[str], timeout: float | None = None) -> Any:
        """Run a command and return its first JSON value, or None when unavailable."""
        result = self.run(command, timeout=timeout)
        if not result.ok or not result.stdout.strip():
            return None
        values = decode_json_stream(result.stdout)
        return values[0] if values else None

    def _cap(self, text: str) -> str:
        return text.encode('utf-8', errors='replace')[: self.max_output_bytes].decode('utf-8', errors='ignore')
