"""
Shared dependencies for the REST API.
"""

import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fileguard.core.config import settings
from fileguard.core.report_store import ReportSink, ReportStore

_bearer_scheme = HTTPBearer()


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),  # noqa: B008
) -> None:
    """Validate Bearer token against APP_AUTH_KEY."""
    if not secrets.compare_digest(credentials.credentials, settings.APP_AUTH_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )


async def get_report_store(request: Request) -> ReportSink:
    """Report store opened in the app lifespan, or a fresh one outside it."""
    store = getattr(request.app.state, "report_store", None)
    if store is None:
        store = ReportStore()
        request.app.state.report_store = store
    return store
