import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import requests

from app.config import ClientConfig
from app.domain import AssessmentRecord, NarrativeResult

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
NARRATIVE_FIELDS = ("executiveSummary", "gapAnalysis", "recommendations")

DEMO_NARRATIVE = NarrativeResult(
    executive_summary=(
        "System is in Demo Mode. Set GEMINI_API_KEY environment variable to enable live AI analysis."
    ),
    gap_analysis=(
        "[GAP] Demo Gap 1: Strategic planning alignment (Cl. 6.1)\n"
        "[GAP] Demo Gap 2: Operational control documentation (Cl. 8.1)"
    ),
    recommendations="[ACTION] Demo Recommendation 1: Perform internal audit (Cl. 9.2)",
)

FALLBACK_NARRATIVE = NarrativeResult(
    executive_summary=(
        "Real-time auditing analysis is temporarily unavailable. Numeric diagnostics are still active above."
    ),
    gap_analysis=(
        "[GAP] System latency preventing real-time gap extraction.\n"
        "[GAP] ISO 41001 clause mapping in progress."
    ),
    recommendations=(
        "[ACTION] Refresh the dashboard in a few moments.\n"
        "[ACTION] Contact ISOFM Academy for a manual expert review."
    ),
)


class NarrativeSource(str, Enum):
    GENERATED = "GENERATED"
    DEMO = "DEMO"
    FALLBACK = "FALLBACK"


@dataclass(frozen=True)
class NarrativeOutcome:
    result: NarrativeResult
    source: NarrativeSource
    error: str = ""

    @property
    def degraded(self) -> bool:
        return self.source != NarrativeSource.GENERATED

    def to_payload(self) -> dict[str, Any]:
        return {**self.result.to_payload(), "source": self.source.value, "error": self.error}


class NarrativeError(Exception):
    pass


def build_prompt(record: AssessmentRecord) -> str:
    return (
        "ACT AS A SENIOR ISO 41001 LEAD AUDITOR.\n"
        f'Analyze the maturity diagnostic for "{record.organization}".\n\n'
        "Diagnostic Profile (0-100 scale):\n"
        f"- Overall Maturity: {record.overall_score} ({record.overall_level})\n"
        f"- Clause 6 (Planning): {record.clause6_score}\n"
        f"- Clause 7 (Support): {record.clause7_score}\n"
        f"- Clause 8 (Operation): {record.clause8_score}\n"
        f"- Clause 9 (Performance): {record.clause9_score}\n\n"
        "Provide a professional Auditor-Grade JSON assessment:\n"
        "1. executiveSummary: 2-3 sentence high-level strategic overview of the current status.\n"
        "2. gapAnalysis: Top 5 specific ISO 41001 gaps identified based on the scores. "
        "Cite exact clauses (e.g. 6.1, 8.1).\n"
        "3. recommendations: 5 high-impact, actionable strategic recommendations.\n\n"
        'Ensure gaps are formatted with "[GAP]" and recommendations with "[ACTION]", one per line.'
    )


def response_schema() -> dict[str, Any]:
    return {
        "type": "OBJECT",
        "properties": {name: {"type": "STRING"} for name in NARRATIVE_FIELDS},
        "required": list(NARRATIVE_FIELDS),
    }


def parse_narrative(text: str) -> NarrativeResult:
    if not (text or "").strip():
        raise NarrativeError("Empty AI response")
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise NarrativeError(f"Malformed AI response: {exc}") from exc
    if not isinstance(data, dict):
        raise NarrativeError("AI response is not a JSON object")
    values: dict[str, str] = {}
    for name in NARRATIVE_FIELDS:
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            raise NarrativeError(f"AI response missing field: {name}")
        values[name] = value.strip()
    return NarrativeResult(
        executive_summary=values["executiveSummary"],
        gap_analysis=values["gapAnalysis"],
        recommendations=values["recommendations"],
    )


def _candidate_text(body: dict[str, Any]) -> str:
    candidates = body.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict))


class NarrativeClient:
    def __init__(self, config: ClientConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def generate(self, record: AssessmentRecord) -> NarrativeOutcome:
        if not self.config.generation_configured:
            logger.warning("No generation API key found. Returning demo narrative.")
            return NarrativeOutcome(result=DEMO_NARRATIVE, source=NarrativeSource.DEMO)

        try:
            result = self._request(record)
        except (requests.RequestException, NarrativeError, ValueError) as exc:
            logger.warning("Narrative generation failed; using fallback narrative: %s", exc)
            return self._fallback(exc)
        except Exception as exc:
            logger.exception("Narrative generation failed unexpectedly")
            return self._fallback(exc)
        return NarrativeOutcome(result=result, source=NarrativeSource.GENERATED)

    @staticmethod
    def _fallback(exc: Exception) -> NarrativeOutcome:
        return NarrativeOutcome(
            result=FALLBACK_NARRATIVE,
            source=NarrativeSource.FALLBACK,
            error=str(exc) or exc.__class__.__name__,
        )

    def _request(self, record: AssessmentRecord) -> NarrativeResult:
        payload = {
            "contents": [{"parts": [{"text": build_prompt(record)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema(),
            },
        }
        res = self.session.post(
            GEMINI_ENDPOINT.format(model=self.config.gemini_model),
            params={"key": self.config.gemini_api_key},
            json=payload,
            headers={"Content-Type": "application/json", "User-Agent": self.config.user_agent},
            timeout=self.config.llm_timeout_seconds,
        )
        if res.status_code >= 400:
            raise NarrativeError(f"Generation request failed: status={res.status_code} body={res.text[:400]}")
        return parse_narrative(_candidate_text(res.json()))
