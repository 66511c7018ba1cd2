"""Mission Control dashboard backend.

Read-only telemetry facade for an OpenClaw workspace. Every endpoint builds its
view fresh from the OpenClaw CLI, flat JSON files, the SQLite leads store, log
files and host counters, fanning out to independent sources concurrently and
substituting empty defaults for any source that is unavailable.
"""

from flask import Flask, request, send_from_directory
from flask_socketio import SocketIO
import os
import shutil

from activity_log import read_activity
from agent_resolver import load_agent_seeds, resolve_agents
from audits import load_audit_summaries, summarize_audits
from command_runner import CommandRunner
from cron_source import load_cron_jobs
from cron_views import build_calendar, build_task_history, build_usage, load_local_tasks, load_usage
from documents import get_documents_manifest, read_document
from fanout import gather
from leads import load_batch_leads, load_database_leads, load_document_leads, merge_leads
from revenue import aggregate_revenue, load_history_records, load_payment_records
from service_probes import probe_http, probe_whatsapp
from settings import load_settings
from system_telemetry import (
    build_system_snapshot,
    count_active_sessions,
    count_pending_drafts,
    read_cpu,
    read_disk,
    read_memory,
    read_uptime,
)
from timeutil import utc_now_iso
from workspace_views import FITNESS_DEFAULTS, load_fitness, load_projects, resolve_data_file

app = Flask(__name__)
socketio = SocketIO(app, cors_allowed_origins="*")

SETTINGS = load_settings()
RUNNER = CommandRunner(timeout=SETTINGS.command_timeout_sec, max_output_bytes=SETTINGS.max_output_bytes)

EMPTY_CRONS = {'source': 'file', 'jobs': []}


def build_status_payload():
    """Probe companion services concurrently with a bounded wait."""
    timeout = SETTINGS.probe_timeout_sec
    results = gather(
        {
            'gateway': lambda: probe_http(SETTINGS.gateway_url, timeout=timeout),
            'whatsapp': lambda: probe_whatsapp(SETTINGS, RUNNER),
            'ollama': lambda: probe_http(SETTINGS.ollama_url, timeout=timeout),
        },
        defaults={'gateway': False, 'whatsapp': False, 'ollama': False},
    )
    return {
        'gateway': bool(results['gateway']),
        'whatsapp': bool(results['whatsapp']),
        'ollama': bool(results['ollama']),
        'checkedAt': utc_now_iso(),
    }


def fetch_cron_jobs():
    """Load the job list, never letting a source failure escape."""
    return gather({'crons': lambda: load_cron_jobs(SETTINGS, RUNNER)}, defaults={'crons': EMPTY_CRONS})['crons']


def build_crons_payload():
    crons = fetch_cron_jobs()
    return {
        'source': crons['source'],
        'jobs': crons['jobs'],
        'count': len(crons['jobs']),
        'checkedAt': utc_now_iso(),
    }


def build_agents_payload():
    results = gather(
        {
            'crons': lambda: load_cron_jobs(SETTINGS, RUNNER),
            'seeds': lambda: load_agent_seeds(SETTINGS),
        },
        defaults={'crons': EMPTY_CRONS, 'seeds': []},
    )
    agents = resolve_agents(results['crons']['jobs'], results['seeds'], freshness_hours=SETTINGS.agent_freshness_hours)
    return {
        'agents': agents,
        'count': len(agents),
        'checkedAt': utc_now_iso(),
    }


def build_revenue_payload():
    results = gather(
        {
            'payments': lambda: load_payment_records(SETTINGS),
            'history': lambda: load_history_records(SETTINGS),
        },
        defaults={'payments': [], 'history': []},
    )
    return aggregate_revenue(results['payments'], results['history'], SETTINGS)


def build_audits_payload():
    results = gather({'audits': lambda: load_audit_summaries(SETTINGS)}, defaults={'audits': []})
    return summarize_audits(results['audits'])


def build_leads_payload():
    results = gather(
        {
            'sqlite': lambda: load_database_leads(SETTINGS, RUNNER),
            'json': lambda: load_document_leads(SETTINGS),
            'batch': lambda: load_batch_leads(SETTINGS),
        },
        defaults={'sqlite': [], 'json': [], 'batch': []},
    )
    leads = merge_leads([(tag, results[tag]) for tag in ('sqlite', 'json', 'batch')])
    return {'leads': leads, 'count': len(leads)}


def build_system_payload():
    parts = gather(
        {
            'cpu': read_cpu,
            'memory': read_memory,
            'disk': lambda: read_disk(SETTINGS, RUNNER),
            'uptime': read_uptime,
            'activeSessions': lambda: count_active_sessions(SETTINGS, RUNNER),
            'draftsPending': lambda: count_pending_drafts(SETTINGS),
        },
    )
    return build_system_snapshot(parts)


def build_activity_payload():
    events = gather({'events': lambda: read_activity(SETTINGS.log_dir)}, defaults={'events': []})['events']
    return {'events': events, 'count': len(events)}


def build_calendar_payload():
    return build_calendar(fetch_cron_jobs()['jobs'])


def build_tasks_payload():
    results = gather(
        {
            'crons': lambda: load_cron_jobs(SETTINGS, RUNNER),
            'local': lambda: load_local_tasks(SETTINGS),
        },
        defaults={'crons': EMPTY_CRONS, 'local': []},
    )
    return build_task_history(results['local'], results['crons']['jobs'])


def build_usage_payload():
    results = gather(
        {
            'crons': lambda: load_cron_jobs(SETTINGS, RUNNER),
            'usage': lambda: load_usage(SETTINGS),
        },
        defaults={'crons': EMPTY_CRONS, 'usage': {}},
    )
    return build_usage(results['usage'], results['crons']['jobs'])


def build_documents_payload():
    return get_documents_manifest(SETTINGS)


def build_fitness_payload():
    return gather({'fitness': lambda: load_fitness(SETTINGS)}, defaults={'fitness': FITNESS_DEFAULTS})['fitness']


def build_projects_payload():
    return gather({'projects': lambda: load_projects(SETTINGS)}, defaults={'projects': []})['projects']


RESOURCE_BUILDERS = {
    'status': build_status_payload,
    'crons': build_crons_payload,
    'agents': build_agents_payload,
    'revenue': build_revenue_payload,
    'audits': build_audits_payload,
    'leads': build_leads_payload,
    'system': build_system_payload,
    'activity': build_activity_payload,
    'calendar': build_calendar_payload,
    'tasks': build_tasks_payload,
    'usage': build_usage_payload,
    'documents': build_documents_payload,
    'fitness': build_fitness_payload,
    'projects': build_projects_payload,
}


@app.route('/')
def index():
    """List the available read-only resources."""
    return {
        'service': 'mission-control',
        'resources': [f'/api/{name}' for name in RESOURCE_BUILDERS],
    }


@app.route('/ready')
def ready():
    """Cheap liveness check used by the frontend before it starts polling."""
    return {'ready': True}


@app.route('/capabilities')
def capabilities():
    """Expose which collaborators and data files are currently reachable."""
    paths = {
        'cron_jobs_file': SETTINGS.cron_jobs_file,
        'agents_seed_file': SETTINGS.agents_seed_file,
        'payments_file': SETTINGS.payments_file,
        'business_metrics_file': SETTINGS.business_metrics_file,
        'leads_db': SETTINGS.leads_db,
        'leads_file': SETTINGS.leads_file,
        'lead_batches_dir': SETTINGS.lead_batches_dir,
        'audit_cache_dir': SETTINGS.audit_cache_dir,
        'log_dir': SETTINGS.log_dir,
        'drafts_dir': SETTINGS.drafts_dir,
    }
    return {
        'ready': True,
        'capabilities': {
            'provider': 'openclaw-cli',
            'openclaw_cli': bool(shutil.which(SETTINGS.openclaw_bin)),
            'sqlite3_cli': bool(shutil.which('sqlite3')),
            'sources': {name: os.path.exists(path) for name, path in paths.items()},
        },
        'workspace': SETTINGS.workspace,
    }


@app.route('/api/health')
def health():
    return {'status': 'ok', 'timestamp': utc_now_iso()}


@app.route('/api/status')
def status():
    """Liveness of the gateway, WhatsApp channel and local Ollama."""
    return build_status_payload()


@app.route('/api/crons')
@app.route('/api/cron-status')
@app.route('/api/cron')
def crons():
    """Cron jobs with derived status and the source that provided them."""
    return build_crons_payload()


@app.route('/api/agents')
def agents():
    """Agents with liveness and current task derived from their jobs."""
    return build_agents_payload()


@app.route('/api/revenue')
def revenue():
    return build_revenue_payload()


@app.route('/api/audits')
def audits():
    return build_audits_payload()


@app.route('/api/leads')
def leads():
    """Leads merged from the database, document store and batch exports."""
    return build_leads_payload()


@app.route('/api/system')
def system():
    return build_system_payload()


@app.route('/api/activity')
def activity():
    """Most recent log lines across the log directory."""
    return build_activity_payload()


@app.route('/api/calendar')
def calendar():
    return build_calendar_payload()


@app.route('/api/tasks')
def tasks():
    return build_tasks_payload()


@app.route('/api/usage')
def usage():
    return build_usage_payload()


@app.route('/api/documents')
def documents():
    return build_documents_payload()


@app.route('/api/documents/<path:doc_path>')
def document_content(doc_path):
    """Return one workspace document, refusing paths outside the workspace."""
    return read_document(SETTINGS, doc_path)


@app.route('/api/fitness')
def fitness():
    """Body metrics parsed from MEMORY.md, with fixed defaults for missing values."""
    return build_fitness_payload()


@app.route('/api/projects')
def projects():
    return build_projects_payload()


@app.route('/data/<path:filename>')
def data_file(filename):
    """Serve a raw file from the data directory, refusing paths that escape it."""
    full_path, code = resolve_data_file(SETTINGS, filename)
    if code == 403:
        return {'error': 'Access denied'}, 403
    if full_path is None:
        return {'error': 'File not found'}, 404
    return send_from_directory(os.path.dirname(full_path), os.path.basename(full_path))


@socketio.on('snapshot')
def handle_snapshot_request(data=None):
    """Answer a socket client with a fresh payload for one resource."""
    sid = request.sid
    resource = str(data.get('resource') or '').strip().lower() if isinstance(data, dict) else ''
    builder = RESOURCE_BUILDERS.get(resource)
    if builder is None:
        socketio.emit('snapshot', {'resource': resource, 'error': 'unknown_resource'}, room=sid)
        return
    socketio.emit('snapshot', {'resource': resource, 'data': builder()}, room=sid)


if __name__ == '__main__':  # pragma: no cover
    port = int(os.environ.get('PORT', '3002'))
    print(f'[BOOT] Mission Control backend on http://0.0.0.0:{port} (workspace={SETTINGS.workspace})')
    socketio.run(app, host='0.0.0.0', port=port, debug=False, allow_unsafe_werkzeug=True)
