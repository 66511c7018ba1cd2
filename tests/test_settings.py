import os

import revenue
from settings import DEFAULT_SYNTHETIC_NAMES, load_settings


def test_load_settings_reads_environment_and_clamps(monkeypatch, tmp_path):
    home = tmp_path / 'oc'
    monkeypatch.setenv('OPENCLAW_HOME', str(home))
    monkeypatch.delenv('OPENCLAW_WORKSPACE', raising=False)
    monkeypatch.delenv('MISSION_CONTROL_DATA_DIR', raising=False)
    monkeypatch.setenv('MISSION_CONTROL_COMMAND_TIMEOUT_SEC', '9999')
    monkeypatch.setenv('MISSION_CONTROL_PROBE_TIMEOUT_SEC', 'soon')
    monkeypatch.setenv('MISSION_CONTROL_SYNTHETIC_NAMES', ' Demo Co , ,Sandbox ')
    monkeypatch.delenv('MISSION_CONTROL_SYNTHETIC_EMAIL_DOMAINS', raising=False)

    settings = load_settings()

    assert settings.workspace == os.path.join(str(home), 'workspace')
    assert settings.data_dir == os.path.join(str(home), 'workspace', 'mission-control', 'data')
    assert settings.cron_jobs_file == os.path.join(str(home), 'cron', 'jobs.json')
    assert settings.log_dir == os.path.join(str(home), 'logs')
    assert settings.command_timeout_sec == 120.0
    assert settings.probe_timeout_sec == 4.0
    assert settings.synthetic_names == ('demo co', 'sandbox')
    assert 'example.com' in settings.synthetic_email_domains


def test_synthetic_names_follow_configuration(settings):
    payments = [{'amount': 30, 'timestamp': '2026-10-14T10:00:00Z', 'businessName': 'Corner Cafe'}]
    assert revenue.aggregate_revenue(payments, [], settings)['totalCount'] == 1

    custom = settings.with_overrides(synthetic_names=DEFAULT_SYNTHETIC_NAMES + ('corner cafe',))
    assert revenue.aggregate_revenue(payments, [], custom)['totalCount'] == 0
    assert custom.workspace == settings.workspace
