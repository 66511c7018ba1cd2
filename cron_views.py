"""Read-only views derived from the cron job list: calendar, task history, usage."""

from file_repository import read_json, read_records
from timeutil import parse_any_ts


TASK_HISTORY_LIMIT = 50
# USD per million tokens
MODEL_COSTS = {
    'opus': {'input': 15.0, 'output': 75.0},
    'sonnet': {'input': 3.0, 'output': 15.0},
}
MODELS_IN_USE = {
    'conversations': 'claude-opus-4-5-20251101',
    'cronJobs': 'claude-sonnet-4-5-20250929',
}


def schedule_label(schedule):
    if isinstance(schedule, dict):
        return schedule.get('expr') or schedule.get('kind')
    return schedule


def build_calendar(jobs):
    """Upcoming and past runs as calendar events, oldest first."""
    events = []
    for job in jobs:
        if job.get('nextRunAt'):
            events.append({
                'id': f"next-{job['id']}",
                'title': job.get('name') or job['id'],
                'type': 'scheduled',
                'time': job['nextRunAt'],
                'schedule': schedule_label(job.get('schedule')),
            })
        if job.get('lastRunAt'):
            events.append({
                'id': f"last-{job['id']}",
                'title': job.get('name') or job['id'],
                'type': 'error' if job.get('status') == 'error' else 'completed',
                'time': job['lastRunAt'],
            })
    events.sort(key=lambda e: parse_any_ts(e['time']))
    return events


def build_task_history(local_tasks, jobs, limit=TASK_HISTORY_LIMIT):
    """Merge the local task log with the last run of every cron job, newest first."""
    cron_tasks = []
    for job in jobs:
        if not job.get('lastRunAtMs'):
            continue
        failed = job.get('status') == 'error'
        duration = job.get('lastDurationMs')
        cron_tasks.append({
            'id': f"cron-{job['id']}-{job['lastRunAtMs']}",
            'timestamp': job['lastRunAt'],
            'action': job.get('name') or job['id'],
            'result': 'error' if failed else 'success',
            'details': job.get('lastError') or (f'Completed in {duration}ms' if duration is not None else 'Completed'),
            'source': 'cron',
        })

    tasks = [t for t in local_tasks or [] if isinstance(t, dict)] + cron_tasks
    tasks.sort(key=lambda t: parse_any_ts(t.get('timestamp')), reverse=True)
    return tasks[:limit]


def cron_stats(jobs):
    return {
        'total': len(jobs),
        'successful': sum(1 for j in jobs if j.get('status') == 'ok'),
        'failed': sum(1 for j in jobs if j.get('status') == 'error'),
    }


def _number(value):
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def build_usage(usage, jobs):
    """Usage totals from the tracking file plus cron statistics and a cost estimate."""
    usage = usage if isinstance(usage, dict) else {}
    totals = usage.get('totals') if isinstance(usage.get('totals'), dict) else {}
    tokens_in = _number(totals.get('tokensIn'))
    tokens_out = _number(totals.get('tokensOut'))
    rates = MODEL_COSTS['sonnet']
    estimated = tokens_in / 1e6 * rates['input'] + tokens_out / 1e6 * rates['output']
    return {
        'daily': usage.get('daily') if isinstance(usage.get('daily'), list) else [],
        'totals': {
            'tokensIn': int(tokens_in),
            'tokensOut': int(tokens_out),
            'sessions': int(_number(totals.get('sessions'))),
            'cronRuns': int(_number(totals.get('cronRuns'))),
        },
        'lastUpdated': usage.get('lastUpdated'),
        'cronStats': cron_stats(jobs),
        'estimatedCost': round(estimated, 4),
        'models': dict(MODELS_IN_USE),
    }


def load_local_tasks(settings):
    return read_records(settings.tasks_file, 'tasks')


def load_usage(settings):
    return read_json(settings.usage_file, fallback={})
