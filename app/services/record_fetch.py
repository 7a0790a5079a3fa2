import json
import logging
import re
from urllib.parse import urlparse

import requests

from app.config import ClientConfig
from app.domain import (
    DEMO_CODE,
    AssessmentRecord,
    FetchFailure,
    FetchFailureKind,
    demo_record,
    to_assessment_record,
)

logger = logging.getLogger(__name__)

# Sentinels used by different backend revisions for "no such code".
NOT_FOUND_SENTINELS = {"record not found", "not_found", "record_not_found"}

HTML_MARKERS = ("<!doctype html", "<html")
LOGIN_PAGE_MARKERS = ("accounts.google.com", "servicelogin", "signin/v2", "identifier?")
LOGIN_HOSTS = {"accounts.google.com"}
DEPLOYMENT_MISSING_MARKERS = ("deployment_not_found", "google drive")

_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def normalize_code(raw: str | None) -> str:
    return _NON_ALNUM.sub("", str(raw or "").strip().upper())


def _body_head(response: requests.Response, limit: int = 4096) -> str:
    try:
        return (response.text or "")[:limit]
    except Exception:
        return ""


def looks_like_login_page(response: requests.Response) -> bool:
    """True when the platform answered with an HTML sign-in page instead of the API payload."""
    final_host = (urlparse(response.url or "").hostname or "").lower()
    if final_host in LOGIN_HOSTS:
        return True
    head = _body_head(response).lstrip().lower()
    if head.startswith(("{", "[")):
        return False
    if any(marker in head[:512] for marker in HTML_MARKERS):
        return True
    return any(marker in head for marker in LOGIN_PAGE_MARKERS)


def is_not_found_sentinel(value: object) -> bool:
    return str(value or "").strip().lower() in NOT_FOUND_SENTINELS


def classify_response(
    response: requests.Response,
    *,
    endpoint: str = "",
    code: str = "",
) -> AssessmentRecord | None:
    """Turn a raw lookup response into a record, ``None`` for unknown codes, or a FetchFailure."""
    status = int(response.status_code or 0)

    if status == 404:
        head = _body_head(response).lower()
        if any(marker in head for marker in DEPLOYMENT_MISSING_MARKERS):
            raise FetchFailure(
                FetchFailureKind.PERMISSION,
                "The lookup deployment could not be found. Re-deploy the script and update the URL.",
                status_code=status,
                endpoint=endpoint,
            )
        return None

    if status < 200 or status >= 300:
        raise FetchFailure(
            FetchFailureKind.SERVER_STATUS,
            f"HTTP error! status: {status}",
            status_code=status,
            endpoint=endpoint,
        )

    if looks_like_login_page(response):
        raise FetchFailure(
            FetchFailureKind.PERMISSION,
            "The backend returned a sign-in page. Deploy it with 'Who has access: Anyone'.",
            status_code=status,
            endpoint=endpoint,
        )

    content_type = str(response.headers.get("content-type", "") or "").lower()
    if content_type and "json" not in content_type:
        raise FetchFailure(
            FetchFailureKind.INVALID_RESPONSE,
            f"Expected JSON but received '{content_type}'.",
            status_code=status,
            endpoint=endpoint,
        )

    try:
        data = json.loads(response.text or "")
    except ValueError:
        raise FetchFailure(
            FetchFailureKind.INVALID_RESPONSE,
            "The backend response could not be parsed as JSON.",
            status_code=status,
            endpoint=endpoint,
        ) from None

    if not isinstance(data, dict):
        raise FetchFailure(
            FetchFailureKind.INVALID_RESPONSE,
            "The backend response was not a JSON object.",
            status_code=status,
            endpoint=endpoint,
        )

    if data.get("error"):
        if is_not_found_sentinel(data["error"]):
            return None
        raise FetchFailure(
            FetchFailureKind.SCRIPT_ERROR,
            str(data["error"]),
            status_code=status,
            endpoint=endpoint,
        )

    try:
        return to_assessment_record(data, code=code)
    except Exception as exc:
        logger.exception("Record payload could not be mapped")
        raise FetchFailure(
            FetchFailureKind.UNKNOWN,
            str(exc) or exc.__class__.__name__,
            status_code=status,
            endpoint=endpoint,
        ) from exc


class RecordFetchClient:
    def __init__(self, config: ClientConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def fetch(self, code: str) -> AssessmentRecord | None:
        normalized = normalize_code(code)
        if normalized == DEMO_CODE:
            return demo_record()
        if not self.config.backend_configured:
            logger.warning("GOOGLE_SCRIPT_URL not set. Using demo record for code=%s", normalized)
            return demo_record()
        if not normalized:
            return None

        endpoint = self.config.backend_url
        headers = {"Accept": "application/json", "User-Agent": self.config.user_agent}
        try:
            res = self.session.get(
                endpoint,
                params={"id": normalized},
                headers=headers,
                timeout=self.config.request_timeout_seconds,
                allow_redirects=True,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("Record lookup could not reach backend: endpoint=%s err=%s", endpoint, exc)
            raise FetchFailure(
                FetchFailureKind.NETWORK,
                f"Unable to reach the database at {endpoint}.",
                endpoint=endpoint,
            ) from exc
        except Exception as exc:
            logger.exception("Record lookup failed unexpectedly")
            raise FetchFailure(FetchFailureKind.UNKNOWN, str(exc) or exc.__class__.__name__, endpoint=endpoint) from exc

        try:
            record = classify_response(res, endpoint=endpoint, code=normalized)
        except FetchFailure as failure:
            logger.warning(
                "Record lookup failed: code=%s kind=%s status=%s detail=%s",
                normalized,
                failure.kind.value,
                res.status_code,
                failure.detail,
            )
            raise
        if record is None:
            logger.info("Record lookup found no record for code=%s", normalized)
            return None
        return record
