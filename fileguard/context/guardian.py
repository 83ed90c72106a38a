"""
FileGuard MCP server: integrity check tools.
"""

import json

from fastmcp import FastMCP

from fileguard.core.config import settings
from fileguard.core.errors import ManifestUnavailable
from fileguard.core.files import delete_files as _delete_files
from fileguard.core.files import unknown_file_view
from fileguard.core.log import logger
from fileguard.core.report_store import ReportStore
from fileguard.core.runner import list_unknown_files as _list_unknown_files
from fileguard.worker.tasks import perform_integrity_check

__all__ = ("server",)

server = FastMCP("FileGuard")


@server.tool()
async def run_check() -> str:
    """Run an integrity check of the configured root and return the report as JSON."""
    report = await perform_integrity_check(settings.TARGET_ROOT)
    if report is None:
        return json.dumps({"status": "skipped", "reason": "a check for this root is already running"})
    return report.model_dump_json()


@server.tool()
async def get_last_report() -> str:
    """Return the most recent stored report, or an empty object if none exists."""
    store = ReportStore()
    try:
        report = await store.load(settings.TARGET_ROOT)
    finally:
        await store.close()
    return report.model_dump_json() if report is not None else "{}"


@server.tool()
async def list_unknown_files() -> str:
    """List files that are neither part of the distribution nor whitelisted."""
    try:
        records = await _list_unknown_files(settings.TARGET_ROOT)
    except ManifestUnavailable as exc:
        logger.error(f"MCP list_unknown_files: {exc}")
        return json.dumps({"error": str(exc)})
    return json.dumps([unknown_file_view(r).model_dump(mode="json") for r in records])


@server.tool()
async def delete_files(paths: list[str]) -> str:
    """Delete files (paths relative to the root). Paths outside the root are refused."""
    result = await _delete_files(settings.TARGET_ROOT, paths)
    return result.model_dump_json()
