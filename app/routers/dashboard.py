from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import RedirectResponse

from app.config import get_settings
from app.domain import DEMO_CODE
from app.dependencies import get_report_shell
from app.services.record_fetch import normalize_code
from app.services.report_shell import ReportShell, ViewState
from app.utils.links import build_report_link, code_from_location

router = APIRouter(tags=["dashboard"])

ACCESS_CODE_LENGTH = 4


def _score_tone(score: int) -> str:
    if score < 40:
        return "low"
    if score < 70:
        return "mid"
    return "high"


def _login_response(request: Request, *, error: str | None = None, code: str = "", status_code: int = 200):
    return request.app.state.templates.TemplateResponse(
        request,
        "login.html",
        {
            "app_name": get_settings().app_name,
            "error": error,
            "code": code,
            "demo_code": DEMO_CODE,
            "code_length": ACCESS_CODE_LENGTH,
        },
        status_code=status_code,
    )


@router.get("/")
def login_page(request: Request, link: str = Query(default="")):
    # Share links keep the code in the hash fragment, which the page forwards here as ?link=.
    code = code_from_location(link)
    if code:
        return RedirectResponse(url=f"/report?id={code}", status_code=302)
    return _login_response(request)


@router.post("/login")
def login_submit(request: Request, code: str = Form(default="")):
    normalized = normalize_code(code)[:ACCESS_CODE_LENGTH]
    if len(normalized) != ACCESS_CODE_LENGTH:
        return _login_response(
            request,
            error=f"Enter your {ACCESS_CODE_LENGTH}-character Access Code.",
            code=normalized,
            status_code=400,
        )
    return RedirectResponse(url=f"/report?id={normalized}", status_code=302)


@router.get("/report")
def report_page(
    request: Request,
    id: str = Query(default=""),
    shell: ReportShell = Depends(get_report_shell),
):
    view = shell.load(id)
    if view.state == ViewState.IDLE:
        return RedirectResponse(url="/", status_code=302)

    settings = get_settings()
    status_code = 200
    if view.state == ViewState.NOT_FOUND:
        status_code = 404
    elif view.state == ViewState.ERROR:
        status_code = 502

    return request.app.state.templates.TemplateResponse(
        request,
        "report.html",
        {
            "app_name": settings.app_name,
            "view": view,
            "state": view.state.value,
            "record": view.record,
            "narrative": view.narrative,
            "error": view.error_copy,
            "failure": view.failure,
            "tone": _score_tone(view.record.overall_score) if view.record else "",
            "share_link": build_report_link(settings.dashboard_base_url, view.code) if view.record else "",
        },
        status_code=status_code,
    )
