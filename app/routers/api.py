from __future__ import annotations

import logging

import requests
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.dependencies import get_http_session, get_report_shell
from app.services.report_shell import ReportShell, ViewState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

_STATUS_BY_STATE = {
    ViewState.IDLE: 400,
    ViewState.NOT_FOUND: 404,
    ViewState.ERROR: 502,
}


@router.get("/report")
def api_report(
    id: str = Query(default=""),
    shell: ReportShell = Depends(get_report_shell),
):
    view = shell.load(id)
    return JSONResponse(status_code=_STATUS_BY_STATE.get(view.state, 200), content=view.to_dict())


@router.get("/fetchReport")
def api_fetch_report_proxy(
    id: str = Query(default=""),
    session: requests.Session = Depends(get_http_session),
):
    """Pure relay to the upstream lookup script; the body is passed through untouched."""
    settings = get_settings()
    target = settings.proxy_target_url
    if not target:
        return JSONResponse(status_code=500, content={"error": "Proxy error: no upstream lookup URL configured"})
    try:
        res = session.get(
            target,
            params={"id": id},
            timeout=settings.request_timeout_seconds,
            allow_redirects=True,
        )
        data = res.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Lookup proxy failed: target=%s err=%s", target, exc)
        return JSONResponse(status_code=500, content={"error": f"Proxy error: {exc}"})
    return JSONResponse(status_code=200, content=data)
