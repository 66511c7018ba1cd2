"""MCP server for the Mission Control dashboard.

Wraps the read-only dashboard endpoints as MCP tools so AI clients can check
service liveness, cron health, agents, revenue, leads and host state.
"""

from __future__ import annotations

import json
import os
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from mcp.server.fastmcp import FastMCP

BASE_URL = os.environ.get("MISSION_CONTROL_BASE_URL", "http://127.0.0.1:3002").rstrip("/")
REQUEST_TIMEOUT_SEC = float(os.environ.get("MISSION_CONTROL_MCP_TIMEOUT_SEC", "10"))

mcp = FastMCP("mission-control")


def _failure(error: str, details: str, status_code: int | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"ok": False, "base_url": BASE_URL, "error": error, "details": details}
    if status_code is not None:
        payload["status_code"] = status_code
    return payload


def _http_get(path: str) -> dict[str, Any]:
    request = Request(url=f"{BASE_URL}{path}", method="GET")

    try:
        with urlopen(request, timeout=REQUEST_TIMEOUT_SEC) as response:
            charset = response.headers.get_content_charset() or "utf-8"
            body = response.read().decode(charset)
            return {
                "ok": True,
                "base_url": BASE_URL,
                "status_code": int(response.status),
                "data": json.loads(body) if body else {},
            }
    except HTTPError as exc:
        try:
            details = exc.read().decode("utf-8", errors="replace")
        except Exception:
            details = ""
        return _failure(f"HTTP error {exc.code}", details, status_code=int(exc.code))
    except URLError as exc:
        return _failure("Connection error", str(exc.reason))
    except json.JSONDecodeError as exc:
        return _failure("Invalid JSON response", str(exc))
    except Exception as exc:
        return _failure("Unexpected error", str(exc))


@mcp.tool()
def dashboard_ready() -> dict[str, Any]:
    """Return dashboard readiness from /ready."""
    return _http_get("/ready")


@mcp.tool()
def dashboard_capabilities() -> dict[str, Any]:
    """Return CLI availability and data-source presence from /capabilities."""
    return _http_get("/capabilities")


@mcp.tool()
def service_status() -> dict[str, Any]:
    """Return gateway, WhatsApp and Ollama liveness from /api/status."""
    return _http_get("/api/status")


@mcp.tool()
def cron_jobs(only_problems: bool = False) -> dict[str, Any]:
    """Return cron jobs from /api/crons, optionally only those in error."""
    payload = _http_get("/api/crons")
    if not payload.get("ok") or not only_problems:
        return payload

    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    jobs = data.get("jobs") if isinstance(data.get("jobs"), list) else []
    data["jobs"] = [job for job in jobs if isinstance(job, dict) and job.get("status") == "error"]
    data["count"] = len(data["jobs"])
    payload["data"] = data
    return payload


@mcp.tool()
def agents_overview() -> dict[str, Any]:
    """Return agent liveness and current tasks from /api/agents."""
    return _http_get("/api/agents")


@mcp.tool()
def revenue_summary() -> dict[str, Any]:
    """Return today/week/month revenue totals from /api/revenue."""
    return _http_get("/api/revenue")


@mcp.tool()
def leads_list(limit: int = 25) -> dict[str, Any]:
    """Return merged leads from /api/leads, trimmed to ``limit`` rows."""
    payload = _http_get("/api/leads")
    if not payload.get("ok"):
        return payload

    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    leads = data.get("leads") if isinstance(data.get("leads"), list) else []
    data["leads"] = leads[: max(0, limit)]
    payload["data"] = data
    return payload


@mcp.tool()
def audits_summary() -> dict[str, Any]:
    """Return audit totals and the most recent audits from /api/audits."""
    return _http_get("/api/audits")


@mcp.tool()
def system_snapshot() -> dict[str, Any]:
    """Return host CPU, memory, disk and uptime from /api/system."""
    return _http_get("/api/system")


@mcp.tool()
def recent_activity() -> dict[str, Any]:
    """Return the latest log events from /api/activity."""
    return _http_get("/api/activity")


@mcp.tool()
def workspace_documents() -> dict[str, Any]:
    """Return the workspace documents manifest from /api/documents."""
    return _http_get("/api/documents")


@mcp.tool()
def workspace_document(doc_path: str) -> dict[str, Any]:
    """Return one workspace document body from /api/documents/<path>."""
    safe_path = quote(doc_path, safe="/")
    return _http_get(f"/api/documents/{safe_path}")


if __name__ == "__main__":
    mcp.run()
