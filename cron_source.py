"""Canonical cron job list: live CLI query first, static jobs file second."""

from file_repository import extract_records, read_json
from timeutil import iso_from_epoch, parse_any_ts


SUCCESS_STATUSES = {'ok', 'success', 'completed'}
FAILURE_STATUSES = {'error', 'failed', 'timeout'}
DEFAULT_AGENT_ID = 'main'


def normalize_agent_name(name):
    """Normalize an agent identifier for reliable lookups."""
    return str(name or '').strip().lower()


def job_state(job):
    state = job.get('state')
    return state if isinstance(state, dict) else {}


def derive_job_status(job):
    """Derive a job's display status from ``enabled`` and its last recorded run."""
    if job.get('enabled', True) is False:
        return 'disabled'
    state = job_state(job)
    if parse_any_ts(state.get('runningAtMs')) > 0:
        return 'running'
    last_status = str(state.get('lastStatus') or '').strip().lower()
    if last_status in SUCCESS_STATUSES:
        return 'ok'
    if last_status in FAILURE_STATUSES:
        return 'error'
    return 'idle'


def _epoch_ms(value):
    seconds = parse_any_ts(value)
    return int(seconds * 1000) if seconds > 0 else None


def normalize_job(job):
    """Map one raw job record to the dashboard CronJob schema."""
    state = job_state(job)
    job_id = str(job.get('id') or '').strip()
    last_run_ms = _epoch_ms(state.get('lastRunAtMs'))
    next_run_ms = _epoch_ms(state.get('nextRunAtMs'))
    duration = state.get('lastDurationMs')
    return {
        'id': job_id,
        'agentId': normalize_agent_name(job.get('agentId')) or DEFAULT_AGENT_ID,
        'name': str(job.get('name') or job_id or 'cron-job'),
        'enabled': job.get('enabled', True) is not False,
        'schedule': job.get('schedule'),
        'status': derive_job_status(job),
        'lastStatus': state.get('lastStatus'),
        'lastRunAt': iso_from_epoch(last_run_ms / 1000) if last_run_ms else None,
        'nextRunAt': iso_from_epoch(next_run_ms / 1000) if next_run_ms else None,
        'lastRunAtMs': last_run_ms,
        'nextRunAtMs': next_run_ms,
        'lastDurationMs': duration if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
        'lastError': state.get('lastError') or None,
        'model': (job.get('payload') or {}).get('model') if isinstance(job.get('payload'), dict) else None,
    }


def cron_list_command(settings):
    return [settings.openclaw_bin, 'cron', 'list', '--all', '--json']


def load_cron_jobs(settings, runner):
    """Return ``{'source': 'cli'|'file', 'jobs': [...]}`` with normalized jobs."""
    payload = runner.run_json(cron_list_command(settings))
    raw_jobs = extract_records(payload, 'jobs')
    source = 'cli'
    if not raw_jobs:
        print('[CRON] CLI listing unavailable or empty, reading jobs file')
        raw_jobs = extract_records(read_json(settings.cron_jobs_file), 'jobs')
        source = 'file'
    return {
        'source': source,
        'jobs': [normalize_job(job) for job in raw_jobs],
    }
