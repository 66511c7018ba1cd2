"""Liveness probes for companion services shown on the status strip."""

from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


def probe_http(url, timeout=4.0):
    """Return True when something answers HTTP at ``url`` within ``timeout``."""
    if not url:
        return False
    try:
        with urlopen(Request(url=url, method='GET'), timeout=timeout) as response:
            return int(response.status) < 500
    except HTTPError as exc:
        return int(exc.code) < 500
    except (URLError, OSError, ValueError):
        return False


def _truthy_state(node):
    if isinstance(node, bool):
        return node
    if isinstance(node, str):
        return node.strip().lower() in {'connected', 'running', 'ok', 'online', 'linked', 'ready'}
    if isinstance(node, dict):
        for key in ('connected', 'running', 'linked', 'ok'):
            if key in node:
                return _truthy_state(node[key])
        for key in ('status', 'state'):
            if key in node:
                return _truthy_state(node[key])
    return False


def whatsapp_connected(payload):
    """Find the WhatsApp channel in a ``channels status`` payload and read its state."""
    channels = payload.get('channels', payload) if isinstance(payload, dict) else payload
    if isinstance(channels, dict):
        for name, node in channels.items():
            if str(name).strip().lower() == 'whatsapp':
                return _truthy_state(node)
        return False
    if isinstance(channels, list):
        for node in channels:
            if not isinstance(node, dict):
                continue
            kind = str(node.get('id') or node.get('channel') or node.get('name') or '').strip().lower()
            if kind == 'whatsapp':
                return _truthy_state(node)
    return False


def probe_whatsapp(settings, runner):
    payload = runner.run_json(
        [settings.openclaw_bin, 'channels', 'status', '--json'],
        timeout=settings.probe_timeout_sec,
    )
    return whatsapp_connected(payload)
