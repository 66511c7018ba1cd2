import json
import os
import sys

import activity_log
import service_probes
import system_telemetry
from command_runner import CommandResult, CommandRunner, decode_json_stream


def test_command_runner_never_raises_on_missing_binary_or_timeout():
    runner = CommandRunner(timeout=5.0)

    missing = runner.run(['definitely-not-a-real-binary-xyz'])
    assert missing.ok is False
    assert missing.stdout == ''

    slow = runner.run([sys.executable, '-c', 'import time; time.sleep(5)'], timeout=0.5)
    assert slow.ok is False

    failed = runner.run([sys.executable, '-c', 'import sys; print("partial"); sys.exit(3)'])
    assert failed.ok is False
    assert failed.stdout.strip() == 'partial'

    ok = runner.run([sys.executable, '-c', 'print("hello")'])
    assert ok == CommandResult('hello\n', '', True)


def test_command_runner_caps_oversized_output():
    runner = CommandRunner(timeout=5.0, max_output_bytes=100)
    result = runner.run([sys.executable, '-c', 'print("x" * 5000)'])
    assert result.ok is False
    assert len(result.stdout) <= 100


def test_decode_json_stream_skips_banner_noise():
    assert decode_json_stream(None) == []
    values = decode_json_stream('Doctor warnings: none\n{"jobs": []}\ntrailing [1, 2]')
    assert values == [{'jobs': []}, [1, 2]]


def test_cpu_percent_is_load_over_cores_capped(monkeypatch):
    monkeypatch.setattr(system_telemetry.os, 'cpu_count', lambda: 4)
    monkeypatch.setattr(system_telemetry.os, 'getloadavg', lambda: (1.0, 0.5, 0.25))
    cpu = system_telemetry.read_cpu()
    assert cpu == {'usedPercent': 25.0, 'loadAvg': [1.0, 0.5, 0.25], 'cores': 4}

    monkeypatch.setattr(system_telemetry.os, 'getloadavg', lambda: (9.0, 8.0, 7.0))
    assert system_telemetry.read_cpu()['usedPercent'] == 100.0


def test_parse_df_output_reads_last_line_and_zeroes_garbage():
    output = (
        'Filesystem     1024-blocks      Used Available Capacity  Mounted on\n'
        '/dev/disk3s5     1048576000 524288000 524288000    50%    /System/Volumes/Data\n'
    )
    disk = system_telemetry.parse_df_output(output)
    assert disk == {'usedPercent': 50.0, 'usedGb': 500.0, 'totalGb': 1000.0}

    zero = {'usedPercent': 0.0, 'usedGb': 0.0, 'totalGb': 0.0}
    assert system_telemetry.parse_df_output('') == zero
    assert system_telemetry.parse_df_output('df: /nope: No such file or directory') == zero


def test_active_sessions_count_is_best_effort(settings, fake_runner):
    count = system_telemetry.count_active_sessions
    assert count(settings, fake_runner({'sessions': '[{"key": "a"}, {"key": "b"}]'})) == 2
    assert count(settings, fake_runner({'sessions': '{"count": 7, "sessions": []}'})) == 7
    assert count(settings, fake_runner({'sessions': '{"sessions": [{"key": "a"}]}'})) == 1
    assert count(settings, fake_runner()) == 0


def test_system_endpoint_returns_full_snapshot(dashboard, settings):
    client, runner = dashboard
    runner.responses['df -k'] = 'Filesystem 1K-blocks Used Available Use% Mounted on\n/dev/sda1 2097152 1048576 1048576 50% /\n'
    runner.responses['sessions'] = '[{"key": "main"}]'
    os.makedirs(settings.drafts_dir)
    for name in ('a.md', 'b.md'):
        with open(os.path.join(settings.drafts_dir, name), 'w', encoding='utf-8') as fp:
            fp.write('draft')

    payload = client.get('/api/system').get_json()

    assert set(payload) == {'cpu', 'memory', 'disk', 'uptime', 'activeSessions', 'draftsPending'}
    assert payload['disk'] == {'usedPercent': 50.0, 'usedGb': 1.0, 'totalGb': 2.0}
    assert payload['activeSessions'] == 1
    assert payload['draftsPending'] == 2
    assert payload['memory']['totalGb'] > 0
    assert payload['uptime']['seconds'] >= 0
    assert payload['uptime']['text']


def test_build_system_snapshot_zeroes_missing_parts():
    snapshot = system_telemetry.build_system_snapshot({'cpu': None, 'activeSessions': None})
    assert snapshot['cpu']['cores'] == 0
    assert snapshot['disk'] == {'usedPercent': 0.0, 'usedGb': 0.0, 'totalGb': 0.0}
    assert snapshot['activeSessions'] == 0
    assert snapshot['uptime'] == {'seconds': 0, 'text': '0s'}


def test_extract_timestamp_handles_plain_bracketed_and_json_lines():
    assert activity_log.extract_timestamp('2026-10-18T09:15:02.120Z gateway started') == '2026-10-18T09:15:02.120Z'
    assert activity_log.extract_timestamp('[2026-10-18 09:15:02] cron tick').endswith('Z')
    assert activity_log.extract_timestamp('{"time": "2026-10-18T09:15:02Z", "msg": "ok"}') == '2026-10-18T09:15:02.000Z'
    assert activity_log.extract_timestamp('no timestamp here') is None
    assert activity_log.extract_timestamp('{broken json') is None


def _write_log(path, lines, mtime):
    with open(path, 'w', encoding='utf-8') as fp:
        fp.write('\n'.join(lines) + '\n')
    os.utime(path, (mtime, mtime))


def test_read_activity_stops_early_and_keeps_latest_window(tmp_path, monkeypatch):
    base = 1760000000
    newest = [f'2026-10-18T10:{m:02d}:00Z newest {m}' for m in range(60)]
    middle = [f'2026-10-17T10:{m:02d}:00Z middle {m}' for m in range(40)] + ['untimed line']
    _write_log(tmp_path / 'gateway.log', newest, base + 300)
    _write_log(tmp_path / 'cron.log', middle, base + 200)
    _write_log(tmp_path / 'oldest.log', ['2026-10-16T10:00:00Z oldest'], base + 100)

    read_paths = []
    original_tail = activity_log.tail_lines

    def recording_tail(path, max_lines=50):
        read_paths.append(os.path.basename(path))
        return original_tail(path, max_lines=max_lines)

    monkeypatch.setattr(activity_log, 'tail_lines', recording_tail)
    events = activity_log.read_activity(str(tmp_path))

    assert read_paths == ['gateway.log', 'cron.log']
    assert len(events) == 50
    assert events[-1]['line'] == '2026-10-18T10:59:00Z newest 59'
    assert events[-1]['source'] == 'gateway.log'
    stamps = [e['timestamp'] for e in events]
    assert stamps == sorted(stamps)


def test_read_activity_orders_untimed_lines_first(tmp_path):
    _write_log(tmp_path / 'agent.log', ['2026-10-18T10:00:00Z second', 'untimed', '2026-10-18T09:00:00Z first'], 1760000000)
    events = activity_log.read_activity(str(tmp_path))
    assert [e['line'] for e in events] == ['untimed', '2026-10-18T09:00:00Z first', '2026-10-18T10:00:00Z second']
    assert events[0]['timestamp'] is None


def test_activity_endpoint_with_missing_log_dir(dashboard):
    client, _runner = dashboard
    assert client.get('/api/activity').get_json() == {'events': [], 'count': 0}


def test_whatsapp_channel_state_parsing():
    connected = service_probes.whatsapp_connected
    assert connected({'channels': {'whatsapp': {'connected': True}}}) is True
    assert connected({'channels': {'WhatsApp': {'status': 'linked'}}}) is True
    assert connected({'channels': {'whatsapp': {'connected': False}}}) is False
    assert connected([{'id': 'telegram', 'running': True}, {'channel': 'whatsapp', 'state': 'running'}]) is True
    assert connected({'channels': {'telegram': True}}) is False
    assert connected(None) is False


def test_probe_http_reports_unreachable_service():
    assert service_probes.probe_http('http://127.0.0.1:9/', timeout=0.5) is False
    assert service_probes.probe_http('', timeout=0.5) is False


def test_status_endpoint_combines_probes(dashboard, monkeypatch):
    client, runner = dashboard
    import app as dashboard_app

    monkeypatch.setattr(dashboard_app, 'probe_http', lambda url, timeout=4.0: '11434' not in url)
    runner.responses['channels status'] = json.dumps({'channels': {'whatsapp': {'running': True}}})

    payload = client.get('/api/status').get_json()

    assert payload['gateway'] is True
    assert payload['whatsapp'] is True
    assert payload['ollama'] is False
    assert payload['checkedAt'].endswith('Z')


def test_whatsapp_probe_uses_probe_timeout(settings):
    seen = []

    class RecordingRunner(CommandRunner):
        def run(self, command, timeout=None):
            seen.append((' '.join(command), timeout))
            return CommandResult('{"channels": {"whatsapp": "connected"}}', '', True)

    custom = settings.with_overrides(probe_timeout_sec=1.5)
    assert service_probes.probe_whatsapp(custom, RecordingRunner(timeout=15.0)) is True
    assert seen == [('openclaw channels status --json', 1.5)]


def test_tail_lines_reads_backward_in_blocks(tmp_path):
    from file_repository import tail_lines

    path = tmp_path / 'big.log'
    lines = [f'2026-10-18T10:00:00Z línea {i}' for i in range(5000)]
    lines[4995] = '   '
    with open(path, 'w', encoding='utf-8') as fp:
        fp.write('\n'.join(lines))

    tail = tail_lines(str(path), max_lines=10, block_size=64)
    expected = [line for line in lines[-10:] if line.strip()]
    assert tail == expected
    assert tail[-1] == '2026-10-18T10:00:00Z línea 4999'

    assert tail_lines(str(path), max_lines=0) == []
    assert tail_lines(str(tmp_path / 'missing.log')) == []

    short = tmp_path / 'short.log'
    short.write_text('one\n\ntwo\n', encoding='utf-8')
    assert tail_lines(str(short), max_lines=50, block_size=4) == ['one', 'two']
