"""
REST API router: integrity checks, reports and unknown-file management.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fileguard.api.deps import get_report_store, verify_token
from fileguard.core.config import settings
from fileguard.core.errors import ManifestUnavailable, PathTraversalRejected
from fileguard.core.files import delete_files, read_preview, unknown_file_view
from fileguard.core.report_store import ReportSink
from fileguard.core.runner import list_unknown_files
from fileguard.schema.files import DeleteRequest, DeleteResult, FilePreview, UnknownFile
from fileguard.schema.report import Report
from fileguard.worker.tasks import perform_integrity_check, run_integrity_check_task

__all__ = ("router",)

router = APIRouter(
    prefix="/v1",
    tags=["integrity"],
    dependencies=[Depends(verify_token)],
)


async def _unknown_files() -> list[UnknownFile]:
    try:
        records = await list_unknown_files(settings.TARGET_ROOT)
    except ManifestUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return [unknown_file_view(record) for record in records]


@router.post("/checks", status_code=status.HTTP_202_ACCEPTED)
async def enqueue_check() -> dict:
    """Queue an integrity check of the configured root on the worker."""
    task = await run_integrity_check_task.kiq(root=settings.TARGET_ROOT)
    return {"task_id": task.task_id, "message": "Integrity check queued"}


@router.post("/checks/run")
async def run_check(store: ReportSink = Depends(get_report_store)) -> Report:  # noqa: B008
    """Run an integrity check in-process and return its report."""
    report = await perform_integrity_check(settings.TARGET_ROOT, store=store)
    if report is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An integrity check for this root is already running",
        )
    return report


@router.get("/report")
async def get_report(store: ReportSink = Depends(get_report_store)) -> Report:  # noqa: B008
    """Latest stored report for the configured root."""
    report = await store.load(settings.TARGET_ROOT)
    if report is None:
        raise HTTPException(status_code=404, detail="No integrity check has been run yet")
    return report


@router.get("/unknown-files")
async def get_unknown_files() -> list[UnknownFile]:
    """Live scan for files outside the manifest and the exclusion list."""
    return await _unknown_files()


@router.get("/unknown-files/content")
async def get_unknown_file_content(path: str = Query(..., min_length=1)) -> FilePreview:
    """Display-safe preview of a single file."""
    try:
        return await read_preview(settings.TARGET_ROOT, path)
    except PathTraversalRejected as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"File not found: {path}") from exc


@router.post("/files/delete")
async def delete_unknown_files(request: DeleteRequest) -> DeleteResult:
    """Delete selected files, or every currently unknown file with ``all``."""
    paths = list(request.paths)
    if request.all:
        paths = [view.path for view in await _unknown_files()]
    if not paths:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files selected")
    return await delete_files(settings.TARGET_ROOT, paths)
