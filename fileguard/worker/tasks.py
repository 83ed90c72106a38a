"""
Worker tasks: scheduled integrity check.
"""

from time import perf_counter

from fileguard.core.config import SCHEDULE_CRONS, settings
from fileguard.core.http import http_client
from fileguard.core.log import logger
from fileguard.core.report_store import ReportSink, ReportStore
from fileguard.core.runner import CheckRunner
from fileguard.notify import EmailNotifier, should_notify
from fileguard.schema.options import CheckOptions
from fileguard.schema.report import Report
from fileguard.worker.broker import broker
from fileguard.worker.run_lock import root_lock

__all__ = ("perform_integrity_check", "run_integrity_check_task")


async def perform_integrity_check(
    root: str | None = None,
    options: CheckOptions | None = None,
    store: ReportSink | None = None,
) -> Report | None:
    """
    One full check for ``root``: run, persist, notify.

    Returns None without doing anything when another run for the same root
    holds the lock.
    """
    root = root or settings.TARGET_ROOT
    own_store = store is None
    sink: ReportSink = store if store is not None else ReportStore()

    try:
        async with root_lock(root) as acquired:
            if not acquired:
                logger.warning(f"Check for {root} already in progress, skipping this run")
                return None

            async with http_client() as client:
                runner = CheckRunner(
                    root,
                    settings.DIST_VERSION,
                    settings.DIST_LOCALE,
                    options or CheckOptions.from_settings(),
                    client=client,
                    store=sink,
                )
                report = await runner.run()
    finally:
        if own_store and isinstance(sink, ReportStore):
            await sink.close()

    notifier = EmailNotifier.from_settings()
    if notifier is not None and should_notify(report):
        await notifier.send(report)

    return report


@broker.task(
    task_name="run_integrity_check",
    schedule=[{"cron": SCHEDULE_CRONS[settings.SCHEDULE]}],
)
async def run_integrity_check_task(root: str | None = None) -> dict:
    """Scheduled or on-demand integrity check for a root (defaults to TARGET_ROOT)."""
    target = root or settings.TARGET_ROOT
    try:
        t0 = perf_counter()
        report = await perform_integrity_check(target)
        if report is None:
            return {"root": target, "status": "skipped"}

        logger.info(f"Integrity check task for {target} took {perf_counter() - t0:.1f}s")
        return {
            "root": report.root,
            "run_id": report.run_id,
            "status": "completed",
            "timestamp": report.timestamp.isoformat(),
            "modified": len(report.modified_files),
            "unknown": len(report.unknown_files),
            "restored": len(report.restored_files),
            "failures": len(report.restoration_failures),
            "manifest_error": report.manifest_error,
            "timed_out": report.timed_out,
        }

    except Exception as exc:
        logger.error(f"Integrity check task for {target} failed: {exc}")
        raise
