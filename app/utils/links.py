from __future__ import annotations

from urllib.parse import parse_qs, quote, urlparse

from app.services.record_fetch import normalize_code

REPORT_ROUTE = "/report"


def build_report_link(base_url: str, code: str) -> str:
    """Deep link carrying the access code inside the hash fragment."""
    base = (base_url or "").rstrip("/")
    return f"{base}/#{REPORT_ROUTE}?id={quote(normalize_code(code))}"


def code_from_location(location: str) -> str:
    """Extract the access code from ``.../#/report?id=CODE`` (or a plain ``?id=`` query)."""
    parsed = urlparse(location or "")
    fragment = parsed.fragment or ""
    query = fragment.split("?", 1)[1] if "?" in fragment else ""
    values = parse_qs(query).get("id") or parse_qs(parsed.query).get("id") or []
    return normalize_code(values[0]) if values else ""
