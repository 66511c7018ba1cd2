"""Derive per-agent liveness and current task from the cron job set."""

import time

from cron_source import normalize_agent_name
from file_repository import read_records


IDLE_TASK_PLACEHOLDER = 'Awaiting first run'


def load_agent_seeds(settings):
    """Read static agent metadata from the seed file (empty when absent)."""
    return read_records(settings.agents_seed_file, 'agents')


def group_jobs_by_agent(jobs):
    grouped = {}
    for job in jobs:
        agent_id = normalize_agent_name(job.get('agentId'))
        if agent_id:
            grouped.setdefault(agent_id, []).append(job)
    return grouped


def infer_agent_seeds(jobs):
    """Build minimal agent metadata from the distinct agent ids seen in jobs."""
    seeds = []
    for agent_id in group_jobs_by_agent(jobs):
        seeds.append({'id': agent_id, 'name': agent_id.capitalize()})
    return seeds


def _string_list(*values):
    out = []
    for value in values:
        items = value if isinstance(value, list) else [value]
        for item in items:
            text = str(item or '').strip()
            if text and text not in out:
                out.append(text)
    return out


def seed_agent_id(seed):
    """Return the seed's display id, falling back to its ``agentId``."""
    return normalize_agent_name(seed.get('id')) or normalize_agent_name(seed.get('agentId'))


def _int_or(value, default):
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def resolve_agent(seed, jobs, now_ms, freshness_ms):
    """Derive one agent view from its seed metadata and owned jobs."""
    agent_id = seed_agent_id(seed)
    running = [j for j in jobs if j.get('status') == 'running']
    ran = [j for j in jobs if j.get('lastRunAtMs')]
    latest = max(ran, key=lambda j: j['lastRunAtMs']) if ran else None
    upcoming = [j for j in jobs if j.get('enabled') and j.get('nextRunAtMs')]
    soonest = min(upcoming, key=lambda j: j['nextRunAtMs']) if upcoming else None

    if running:
        status = 'active'
    elif latest is not None and now_ms - latest['lastRunAtMs'] <= freshness_ms:
        status = 'active'
    elif jobs:
        status = 'scheduled'
    else:
        status = 'idle'

    if running:
        current_task = running[0].get('name')
    elif latest is not None:
        current_task = latest.get('name')
    else:
        current_task = IDLE_TASK_PLACEHOLDER

    succeeded = [j for j in ran if j.get('status') == 'ok']
    progress = int(round(100.0 * len(succeeded) / len(ran))) if ran else 0
    if status == 'active' and ran:
        first_ms = min(j['lastRunAtMs'] for j in ran)
        uptime_hours = round(max(0, now_ms - first_ms) / 3600000.0, 1)
    else:
        uptime_hours = 0.0

    models = _string_list(seed.get('model'), seed.get('models'), [j.get('model') for j in jobs])
    return {
        'id': agent_id,
        'agentId': normalize_agent_name(seed.get('agentId')) or agent_id,
        'name': seed.get('name') or agent_id.capitalize(),
        'role': seed.get('role') or 'Automation Agent',
        'model': models[0] if models else 'unknown',
        'models': models,
        'workspaces': _string_list(seed.get('workspace'), seed.get('workspaces')),
        'status': status,
        'cronJobs': len(jobs),
        'currentTask': current_task,
        'lastRunAt': latest.get('lastRunAt') if latest else None,
        'nextRunAt': soonest.get('nextRunAt') if soonest else None,
        'lastStatus': running[0]['status'] if running else (latest.get('status') if latest else 'idle'),
        'queueDepth': len(upcoming),
        'sessions': _int_or(seed.get('sessions'), len(running)),
        'uptimeHours': uptime_hours,
        'progress': _int_or(seed.get('progress'), progress),
    }


def resolve_agents(jobs, seeds, freshness_hours=6.0, now_ms=None):
    """Resolve every agent from seed metadata, or infer agents from jobs when unseeded."""
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    freshness_ms = int(freshness_hours * 3600 * 1000)
    seeds = [s for s in (seeds or []) if seed_agent_id(s)]
    if not seeds:
        seeds = infer_agent_seeds(jobs)

    jobs_by_agent = group_jobs_by_agent(jobs)
    agents = []
    for seed in seeds:
        owner = normalize_agent_name(seed.get('agentId')) or seed_agent_id(seed)
        agents.append(resolve_agent(seed, jobs_by_agent.get(owner, []), now_ms, freshness_ms))
    return agents
