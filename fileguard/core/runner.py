"""
Integrity check orchestration: fetch manifest, scan, classify, restore, report.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from time import perf_counter

import httpx
from ulid import ULID

from fileguard.core.comparator import IntegrityComparator
from fileguard.core.config import settings
from fileguard.core.errors import ManifestUnavailable
from fileguard.core.http import http_client
from fileguard.core.log import logger
from fileguard.core.manifest import ManifestProvider
from fileguard.core.report_store import ReportSink
from fileguard.core.restorer import Restorer
from fileguard.core.scanner import TreeScanner, record_from_entry
from fileguard.core.tree import EntryKind, FileTree, LocalFileTree
from fileguard.schema.classification import Classification, ClassificationResult
from fileguard.schema.options import CheckOptions
from fileguard.schema.records import FileRecord, Manifest, ScanIssue
from fileguard.schema.report import RestorationFailure, Report
from fileguard.schema.restoration import RestorationOutcome, RestorationStatus

__all__ = (
    "CheckRunner",
    "RunState",
    "list_unknown_files",
    "run_integrity_check",
)


class RunState(StrEnum):
    idle = "idle"
    fetching_manifest = "fetching_manifest"
    scanning = "scanning"
    classifying = "classifying"
    restoring = "restoring"
    reporting = "reporting"


VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.idle: {RunState.fetching_manifest, RunState.scanning, RunState.reporting},
    RunState.fetching_manifest: {RunState.scanning, RunState.reporting},
    RunState.scanning: {RunState.classifying, RunState.reporting},
    RunState.classifying: {RunState.restoring, RunState.reporting},
    RunState.restoring: {RunState.reporting},
    RunState.reporting: {RunState.idle},
}


@dataclass
class _Findings:
    """
    Results accumulated while a run is in progress.

    Worker threads add through ``add_unknown`` and ``add_issue``; once the run
    is closed for reporting those calls are refused, so a timed-out walk that
    is still running cannot change a report being built.
    """

    modified: dict[str, ClassificationResult] = field(default_factory=dict)
    unknown: set[str] = field(default_factory=set)
    outcomes: list[RestorationOutcome] = field(default_factory=list)
    scan_errors: list[ScanIssue] = field(default_factory=list)
    # restorations started but not finished: path -> expected checksum
    pending: dict[str, str] = field(default_factory=dict)
    manifest_error: str | None = None
    timed_out: bool = False
    closed: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_unknown(self, path: str) -> bool:
        with self.lock:
            if self.closed:
                return False
            self.unknown.add(path)
            return True

    def add_issue(self, issue: ScanIssue) -> None:
        with self.lock:
            if not self.closed:
                self.scan_errors.append(issue)

    def close(self) -> None:
        with self.lock:
            self.closed = True


class CheckRunner:
    """
    Runs integrity checks for one root against one distribution version.

    A run is single-pass: every call re-fetches the manifest and re-walks the
    tree. Runs on the same instance are serialized; serializing runs across
    processes is the scheduler's job.
    """

    def __init__(
        self,
        root: str,
        version: str,
        locale: str,
        options: CheckOptions | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        tree: FileTree | None = None,
        manifests: ManifestProvider | None = None,
        restorer: Restorer | None = None,
        comparator: IntegrityComparator | None = None,
        store: ReportSink | None = None,
        scan_workers: int | None = None,
        restore_concurrency: int | None = None,
        run_timeout: float | None = None,
    ):
        if client is None and (manifests is None or restorer is None):
            raise ValueError("an HTTP client is required unless both manifests and restorer are given")

        self.tree = tree if tree is not None else LocalFileTree(root)
        self.root = self.tree.root
        self.version = version
        self.locale = locale
        self.options = options or CheckOptions.from_settings()
        self.exclusions = self.options.exclusion_set()

        self.manifests = manifests or ManifestProvider(client)  # type: ignore[arg-type]
        self.restorer = restorer or Restorer(self.root, version, client)  # type: ignore[arg-type]
        self.comparator = comparator or IntegrityComparator(
            hasher=lambda record: self.tree.checksum(record.relative_path)
        )
        self.store = store

        self.scan_workers = scan_workers or settings.SCAN_WORKERS
        self.restore_concurrency = restore_concurrency or settings.RESTORE_CONCURRENCY
        self.run_timeout = run_timeout if run_timeout is not None else settings.RUN_TIMEOUT_SECONDS

        self.state = RunState.idle
        self.history: list[RunState] = [RunState.idle]
        self._run_lock = asyncio.Lock()

    def _transition(self, new_state: RunState) -> None:
        if new_state not in VALID_TRANSITIONS[self.state]:
            logger.warning(f"Check {self.root}: invalid transition {self.state} → {new_state}")
        logger.debug(f"Check {self.root}: {self.state} → {new_state}")
        self.state = new_state
        self.history.append(new_state)

    # ── Public API ──────────────────────────────────────────────────────

    async def run(self) -> Report:
        async with self._run_lock:
            return await self._run()

    async def list_unknown_files(self) -> list[FileRecord]:
        """
        Files under the root that are neither in the manifest nor excluded,
        ordered by path. Raises ManifestUnavailable when no manifest can be had.
        """
        try:
            manifest = await self.manifests.get_manifest(self.version, self.locale)
        finally:
            await self.manifests.clear()

        candidates, _issues = await asyncio.to_thread(self._collect_candidates)
        unknown = [
            record
            for record in candidates
            if record.relative_path not in manifest
            and self.comparator.classify(record, manifest, self.exclusions).classification
            is Classification.unknown
        ]
        return sorted(unknown, key=lambda r: r.relative_path)

    # ── Stages ──────────────────────────────────────────────────────────

    async def _run(self) -> Report:
        self.state = RunState.idle
        self.history = [RunState.idle]
        run_id = str(ULID())
        with logger.contextualize(run_id=run_id, check_root=self.root):
            return await self._run_stages(run_id)

    async def _run_stages(self, run_id: str) -> Report:
        findings = _Findings()
        t0 = perf_counter()
        logger.info(f"Check {self.root}: starting against {self.version}/{self.locale}")

        try:
            async with asyncio.timeout(self.run_timeout):
                await self._execute(findings)
        except TimeoutError:
            findings.timed_out = True
            logger.error(f"Check {self.root}: run exceeded {self.run_timeout}s, reporting partial results")
        finally:
            findings.close()
            await self.manifests.clear()

        if findings.timed_out:
            self._interrupt_restorations(findings)

        self._transition(RunState.reporting)
        report = self._build_report(findings, run_id, perf_counter() - t0)
        if self.store is not None:
            try:
                await self.store.save(report)
            except Exception as exc:
                logger.error(f"Check {self.root}: failed to persist report: {exc}")
        self._transition(RunState.idle)

        logger.info(
            f"Check {self.root}: done in {report.duration_seconds:.1f}s, "
            f"modified={len(report.modified_files)}, "
            f"unknown={len(report.unknown_files)}, "
            f"restored={len(report.restored_files)}, "
            f"failures={len(report.restoration_failures)}, "
            f"scan_errors={len(report.scan_errors)}"
        )
        return report

    async def _execute(self, findings: _Findings) -> None:
        opts = self.options
        manifest: Manifest | None = None

        if opts.check_core or opts.check_unknown:
            self._transition(RunState.fetching_manifest)
            try:
                manifest = await self.manifests.get_manifest(self.version, self.locale)
            except ManifestUnavailable as exc:
                findings.manifest_error = str(exc)
                logger.error(f"Check {self.root}: {exc}; core comparison skipped")

        self._transition(RunState.scanning)
        core_records: list[FileRecord] = []
        if opts.check_core and manifest is not None:
            core_records = await asyncio.to_thread(self._collect_manifest_records, manifest, findings)

        if opts.check_unknown:
            # without a manifest every non-excluded file is unrecognized
            reference = manifest or Manifest.empty(self.version, self.locale)
            await asyncio.to_thread(self._scan_unknown, reference, findings)

        self._transition(RunState.classifying)
        if manifest is not None:
            await self._classify_core(core_records, manifest, findings)

        if opts.restore_modified and findings.modified:
            self._transition(RunState.restoring)
            await self._restore_modified(findings)

    def _collect_manifest_records(self, manifest: Manifest, findings: _Findings) -> list[FileRecord]:
        records: list[FileRecord] = []
        for path in manifest.paths():
            if findings.closed:
                break
            entry = self.tree.stat_file(path)
            if entry is None:
                continue
            if entry.kind is EntryKind.unreadable:
                findings.add_issue(ScanIssue(path=path, reason=entry.error or "unreadable"))
                continue
            if not entry.inside_root:
                logger.warning(f"Check {self.root}: {path} resolves outside the root, not compared")
                continue
            if entry.kind is EntryKind.file:
                records.append(record_from_entry(entry))
        return records

    def _scan_unknown(self, manifest: Manifest, findings: _Findings) -> None:
        """
        Walk the tree and record unknown files as they are found, so a run that
        times out mid-walk still reports what was seen. Manifest paths belong to
        the core comparison and are skipped here.
        """
        scanner = TreeScanner(self.tree, on_issue=findings.add_issue)
        for record in scanner.scan(self.exclusions):
            if findings.closed:
                break
            if record.relative_path in manifest:
                continue
            result = self.comparator.classify(record, manifest, self.exclusions)
            if result.classification is Classification.unknown and not findings.add_unknown(result.path):
                break

    def _collect_candidates(self) -> tuple[list[FileRecord], list[ScanIssue]]:
        scanner = TreeScanner(self.tree)
        records = list(scanner.scan(self.exclusions))
        return records, scanner.issues

    async def _classify_core(self, records: Iterable[FileRecord], manifest: Manifest, findings: _Findings) -> None:
        semaphore = asyncio.Semaphore(self.scan_workers)

        async def _classify(record: FileRecord) -> None:
            async with semaphore:
                try:
                    result = await asyncio.to_thread(self.comparator.classify, record, manifest, self.exclusions)
                except OSError as exc:
                    logger.warning(f"Check {self.root}: cannot read {record.relative_path}: {exc}")
                    findings.add_issue(ScanIssue(path=record.relative_path, reason=f"{type(exc).__name__}: {exc}"))
                    return
            if result.classification is Classification.modified:
                logger.warning(
                    f"Check {self.root}: {result.path} modified "
                    f"(expected {result.expected_checksum}, found {result.actual_checksum})"
                )
                findings.modified[result.path] = result

        await asyncio.gather(*(_classify(record) for record in records))

    async def _restore_modified(self, findings: _Findings) -> None:
        semaphore = asyncio.Semaphore(self.restore_concurrency)

        async def _restore(result: ClassificationResult) -> None:
            expected = result.expected_checksum or ""
            async with semaphore:
                findings.pending[result.path] = expected
                outcome = await self.restorer.restore(result.path, expected)
                del findings.pending[result.path]
            findings.outcomes.append(outcome)

        await asyncio.gather(*(_restore(result) for result in findings.modified.values()))

    def _interrupt_restorations(self, findings: _Findings) -> None:
        # the write may still land; the next run re-verifies the file
        for path, expected in sorted(findings.pending.items()):
            logger.warning(f"Check {self.root}: restoration of {path} interrupted by the run timeout")
            findings.outcomes.append(
                RestorationOutcome(
                    path=path,
                    status=RestorationStatus.timed_out,
                    reason="timed out before the restoration finished",
                    expected_checksum=expected,
                )
            )
        findings.pending.clear()

    def _build_report(self, findings: _Findings, run_id: str, duration: float) -> Report:
        modified = sorted(findings.modified)
        outcomes = sorted(findings.outcomes, key=lambda o: o.path)
        restored = [
            o.path for o in outcomes if o.status is RestorationStatus.restored and o.path in findings.modified
        ]
        failures = [
            RestorationFailure(path=o.path, status=o.status, reason=o.reason or str(o.status))
            for o in outcomes
            if o.failed
        ]
        return Report(
            run_id=run_id,
            root=self.root,
            version=self.version,
            locale=self.locale,
            modified_files=modified,
            unknown_files=sorted(findings.unknown - set(modified)),
            restored_files=restored,
            restoration_failures=failures,
            manifest_error=findings.manifest_error,
            scan_errors=sorted(findings.scan_errors, key=lambda i: i.path),
            timed_out=findings.timed_out,
            duration_seconds=round(duration, 3),
        )


# ── Convenience entry points ────────────────────────────────────────────


async def run_integrity_check(
    root: str,
    version: str,
    locale: str,
    exclusions: Iterable[str] | None = None,
    check_core: bool = True,
    *,
    check_unknown: bool | None = None,
    store: ReportSink | None = None,
) -> Report:
    """Run one integrity check with a fresh HTTP client and return its report."""
    options = CheckOptions.from_settings(
        check_core=check_core,
        check_unknown=check_unknown,
        exclusions=list(exclusions) if exclusions is not None else None,
    )
    async with http_client() as client:
        runner = CheckRunner(root, version, locale, options, client=client, store=store)
        return await runner.run()


async def list_unknown_files(
    root: str,
    exclusions: Iterable[str] | None = None,
    *,
    version: str | None = None,
    locale: str | None = None,
) -> list[FileRecord]:
    options = CheckOptions.from_settings(exclusions=list(exclusions) if exclusions is not None else None)
    async with http_client() as client:
        runner = CheckRunner(
            root,
            version or settings.DIST_VERSION,
            locale or settings.DIST_LOCALE,
            options,
            client=client,
        )
        return await runner.list_unknown_files()
