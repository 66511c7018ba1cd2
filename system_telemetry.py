"""Host health snapshot: CPU load, memory, disk, uptime and session counts."""

import os
import time

import psutil

from file_repository import extract_records, list_files
from timeutil import fmt_seconds


GB = 1024 ** 3


def _round(value, digits=1):
    return round(float(value or 0), digits)


def read_cpu():
    """Approximate CPU usage from the 1-minute load average over core count."""
    cores = os.cpu_count() or 1
    try:
        load = list(os.getloadavg())
    except (AttributeError, OSError):
        load = [0.0, 0.0, 0.0]
    return {
        'usedPercent': _round(min(100.0, load[0] / cores * 100)),
        'loadAvg': [_round(x, 2) for x in load],
        'cores': cores,
    }


def read_memory():
    mem = psutil.virtual_memory()
    used = mem.total - mem.available
    return {
        'usedPercent': _round(used / mem.total * 100 if mem.total else 0),
        'usedGb': _round(used / GB),
        'totalGb': _round(mem.total / GB),
    }


def parse_df_output(text):
    """Parse the final line of ``df -k`` output into GB figures; zeros on failure."""
    lines = [ln for ln in str(text or '').splitlines() if ln.strip()]
    try:
        parts = lines[-1].split()
        total_kb = float(parts[1])
        used_kb = float(parts[2])
    except (IndexError, ValueError):
        return {'usedPercent': 0.0, 'usedGb': 0.0, 'totalGb': 0.0}
    total = total_kb * 1024
    used = used_kb * 1024
    return {
        'usedPercent': _round(used / total * 100 if total else 0),
        'usedGb': _round(used / GB),
        'totalGb': _round(total / GB),
    }


def read_disk(settings, runner):
    result = runner.run(['df', '-k', settings.workspace])
    if not result.ok:
        print(f'[SYSTEM] df unavailable for {settings.workspace}')
    return parse_df_output(result.stdout)


def read_uptime():
    seconds = max(0, int(time.time() - psutil.boot_time()))
    return {'seconds': seconds, 'text': fmt_seconds(seconds)}


def count_active_sessions(settings, runner):
    """Best-effort session count from the OpenClaw CLI (0 when unavailable)."""
    payload = runner.run_json([settings.openclaw_bin, 'sessions', '--json'])
    if isinstance(payload, dict) and isinstance(payload.get('count'), int):
        return payload['count']
    return len(extract_records(payload, 'sessions'))


def count_pending_drafts(settings):
    return len(list_files(settings.drafts_dir))


def build_system_snapshot(parts):
    """Assemble the SystemSnapshot payload from separately fetched parts."""
    zero = {'usedPercent': 0.0, 'usedGb': 0.0, 'totalGb': 0.0}
    return {
        'cpu': parts.get('cpu') or {'usedPercent': 0.0, 'loadAvg': [0.0, 0.0, 0.0], 'cores': 0},
        'memory': parts.get('memory') or dict(zero),
        'disk': parts.get('disk') or dict(zero),
        'uptime': parts.get('uptime') or {'seconds': 0, 'text': fmt_seconds(0)},
        'activeSessions': parts.get('activeSessions') or 0,
        'draftsPending': parts.get('draftsPending') or 0,
    }
