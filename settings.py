"""Runtime configuration for the Mission Control backend.

Every filesystem location and heuristic tunable the aggregators need lives in a
single immutable ``Settings`` record. Components receive it explicitly so they
can be exercised against a temporary directory in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace


DEFAULT_SYNTHETIC_NAMES = (
    'test',
    'test business',
    'test company',
    'example business',
    'acme test',
    'demo business',
    'sample business',
)
DEFAULT_SYNTHETIC_EMAIL_DOMAINS = ('example.com', 'example.org', 'example.net', 'test.com')
DEFAULT_SYNTHETIC_SESSION_PREFIXES = ('cs_test_', 'test_')


def _env_float(name: str, default: float, low: float, high: float) -> float:
    try:
        value = float(os.environ.get(name, default))
    except Exception:
        value = default
    return max(low, min(value, high))


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return tuple(part.strip().lower() for part in raw.split(',') if part.strip())


@dataclass(frozen=True)
class Settings:
    workspace: str
    openclaw_home: str
    data_dir: str
    openclaw_bin: str = 'openclaw'
    command_timeout_sec: float = 15.0
    max_output_bytes: int = 1024 * 1024
    probe_timeout_sec: float = 4.0
    agent_freshness_hours: float = 6.0
    gateway_url: str = 'http://127.0.0.1:18789/'
    ollama_url: str = 'http://127.0.0.1:11434/api/tags'
    synthetic_names: tuple[str, ...] = DEFAULT_SYNTHETIC_NAMES
    synthetic_email_domains: tuple[str, ...] = DEFAULT_SYNTHETIC_EMAIL_DOMAINS
    synthetic_session_prefixes: tuple[str, ...] = DEFAULT_SYNTHETIC_SESSION_PREFIXES
    key_documents: tuple[str, ...] = ('MEMORY.md', 'SOUL.md', 'USER.md', 'AGENTS.md', 'TOOLS.md', 'HEARTBEAT.md')

    @property
    def cron_jobs_file(self) -> str:
        return os.path.join(self.openclaw_home, 'cron', 'jobs.json')

    @property
    def log_dir(self) -> str:
        return os.path.join(self.openclaw_home, 'logs')

    @property
    def agents_seed_file(self) -> str:
        return os.path.join(self.data_dir, 'agents.json')

    @property
    def payments_file(self) -> str:
        return os.path.join(self.data_dir, 'payments.json')

    @property
    def business_metrics_file(self) -> str:
        return os.path.join(self.data_dir, 'business-metrics.json')

    @property
    def leads_db(self) -> str:
        return os.path.join(self.data_dir, 'leads.db')

    @property
    def leads_file(self) -> str:
        return os.path.join(self.data_dir, 'leads.json')

    @property
    def lead_batches_dir(self) -> str:
        return os.path.join(self.data_dir, 'lead-batches')

    @property
    def audit_cache_dir(self) -> str:
        return os.path.join(self.data_dir, 'audits')

    @property
    def drafts_dir(self) -> str:
        return os.path.join(self.data_dir, 'drafts')

    @property
    def tasks_file(self) -> str:
        return os.path.join(self.data_dir, 'tasks.json')

    @property
    def usage_file(self) -> str:
        return os.path.join(self.data_dir, 'usage.json')

    @property
    def projects_file(self) -> str:
        return os.path.join(self.data_dir, 'projects.json')

    def with_overrides(self, **changes) -> 'Settings':
        """Return a copy with selected fields replaced."""
        return replace(self, **changes)


def load_settings() -> Settings:
    """Build settings from environment variables with safe defaults."""
    openclaw_home = os.path.expanduser(os.environ.get('OPENCLAW_HOME', '~/.openclaw'))
    workspace = os.path.expanduser(
        os.environ.get('OPENCLAW_WORKSPACE', os.path.join(openclaw_home, 'workspace'))
    )
    data_dir = os.path.expanduser(
        os.environ.get('MISSION_CONTROL_DATA_DIR', os.path.join(workspace, 'mission-control', 'data'))
    )
    return Settings(
        workspace=workspace,
        openclaw_home=openclaw_home,
        data_dir=data_dir,
        openclaw_bin=os.environ.get('OPENCLAW_BIN', 'openclaw').strip() or 'openclaw',
        command_timeout_sec=_env_float('MISSION_CONTROL_COMMAND_TIMEOUT_SEC', 15.0, 1.0, 120.0),
        probe_timeout_sec=_env_float('MISSION_CONTROL_PROBE_TIMEOUT_SEC', 4.0, 0.5, 30.0),
        agent_freshness_hours=_env_float('MISSION_CONTROL_AGENT_FRESHNESS_HOURS', 6.0, 0.1, 24.0 * 30),
        gateway_url=os.environ.get('MISSION_CONTROL_GATEWAY_URL', 'http://127.0.0.1:18789/'),
        ollama_url=os.environ.get('MISSION_CONTROL_OLLAMA_URL', 'http://127.0.0.1:11434/api/tags'),
        synthetic_names=_env_list('MISSION_CONTROL_SYNTHETIC_NAMES', DEFAULT_SYNTHETIC_NAMES),
        synthetic_email_domains=_env_list('MISSION_CONTROL_SYNTHETIC_EMAIL_DOMAINS', DEFAULT_SYNTHETIC_EMAIL_DOMAINS),
        synthetic_session_prefixes=_env_list('MISSION_CONTROL_SYNTHETIC_SESSION_PREFIXES', DEFAULT_SYNTHETIC_SESSION_PREFIXES),
    )
