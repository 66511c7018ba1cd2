import json
import os

import pytest

import app as dashboard_app
from command_runner import CommandResult, CommandRunner
from settings import Settings


class FakeRunner(CommandRunner):
    """Command runner that answers from a table keyed by command substrings."""

    def __init__(self, responses=None):
        super().__init__(timeout=1.0, max_output_bytes=1024 * 1024)
        self.responses = dict(responses or {})
        self.calls = []

    def run(self, command, timeout=None):
        joined = ' '.join(command)
        self.calls.append(joined)
        for needle, result in self.responses.items():
            if needle in joined:
                if isinstance(result, CommandResult):
                    return result
                return CommandResult(result, '', True)
        return CommandResult('', 'command not found', False)


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture
def settings(tmp_path):
    home = tmp_path / 'openclaw'
    workspace = home / 'workspace'
    data_dir = workspace / 'mission-control' / 'data'
    data_dir.mkdir(parents=True)
    return Settings(workspace=str(workspace), openclaw_home=str(home), data_dir=str(data_dir))


@pytest.fixture
def write_json():
    def _write(path, payload):
        path = str(path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as fp:
            json.dump(payload, fp)
        return path
    return _write


@pytest.fixture
def dashboard(monkeypatch, settings):
    """Point the Flask app at a temporary workspace with a silent CLI."""
    runner = FakeRunner()
    monkeypatch.setattr(dashboard_app, 'SETTINGS', settings)
    monkeypatch.setattr(dashboard_app, 'RUNNER', runner)
    return dashboard_app.app.test_client(), runner
