from __future__ import annotations

import json
import unittest

import requests

from app.config import ClientConfig
from app.domain import demo_record
from app.services.narrative import (
    DEMO_NARRATIVE,
    FALLBACK_NARRATIVE,
    NarrativeClient,
    NarrativeError,
    NarrativeSource,
    build_prompt,
    parse_narrative,
)
from fakes import FakeSession, build_response


def _gemini_body(text: str) -> str:
    return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})


GENERATED = {
    "executiveSummary": "Operational controls are maturing while performance evaluation lags.",
    "gapAnalysis": "[GAP] 9.1 monitoring KPIs undefined\n[GAP] 6.2 FM objectives not measurable",
    "recommendations": "[ACTION] Define KPI set per 9.1\n[ACTION] Align objectives with 6.2",
}


class NarrativeClientTests(unittest.TestCase):
    def setUp(self):
        self.record = demo_record()
        self.config = ClientConfig(gemini_api_key="test-key", gemini_model="gemini-test")

    def test_missing_credential_returns_demo_without_network(self):
        session = FakeSession(error=AssertionError("network used"))
        outcome = NarrativeClient(ClientConfig(), session=session).generate(self.record)

        self.assertEqual(outcome.source, NarrativeSource.DEMO)
        self.assertEqual(outcome.result, DEMO_NARRATIVE)
        self.assertIn("Demo Mode", outcome.result.executive_summary)
        self.assertEqual(session.calls, [])

    def test_demo_narrative_is_deterministic(self):
        first = NarrativeClient(ClientConfig()).generate(self.record)
        second = NarrativeClient(ClientConfig()).generate(self.record)
        self.assertEqual(first, second)

    def test_generated_narrative_is_parsed(self):
        session = FakeSession(build_response(200, _gemini_body(json.dumps(GENERATED))))
        outcome = NarrativeClient(self.config, session=session).generate(self.record)

        self.assertEqual(outcome.source, NarrativeSource.GENERATED)
        self.assertFalse(outcome.degraded)
        self.assertTrue(outcome.result.gap_analysis.startswith("[GAP]"))

        method, url, kwargs = session.calls[0]
        self.assertEqual(method, "POST")
        self.assertIn("gemini-test:generateContent", url)
        self.assertEqual(kwargs["params"], {"key": "test-key"})
        schema = kwargs["json"]["generationConfig"]["responseSchema"]
        self.assertEqual(set(schema["required"]), {"executiveSummary", "gapAnalysis", "recommendations"})
        self.assertEqual(len(session.calls), 1)

    def test_transport_error_falls_back(self):
        session = FakeSession(error=requests.ConnectionError("quota proxy down"))
        outcome = NarrativeClient(self.config, session=session).generate(self.record)

        self.assertEqual(outcome.source, NarrativeSource.FALLBACK)
        self.assertEqual(outcome.result, FALLBACK_NARRATIVE)
        self.assertIn("quota proxy down", outcome.error)

    def test_unexpected_error_falls_back(self):
        session = FakeSession(error=RuntimeError("boom"))
        outcome = NarrativeClient(self.config, session=session).generate(self.record)
        self.assertEqual(outcome.source, NarrativeSource.FALLBACK)

    def test_http_error_status_falls_back(self):
        session = FakeSession(build_response(429, json.dumps({"error": {"status": "RESOURCE_EXHAUSTED"}})))
        outcome = NarrativeClient(self.config, session=session).generate(self.record)
        self.assertEqual(outcome.source, NarrativeSource.FALLBACK)
        self.assertEqual(len(session.calls), 1)

    def test_empty_and_partial_replies_fall_back(self):
        partial = {"executiveSummary": "Only a summary"}
        for body in (_gemini_body(""), _gemini_body(json.dumps(partial)), json.dumps({"candidates": []})):
            session = FakeSession(build_response(200, body))
            outcome = NarrativeClient(self.config, session=session).generate(self.record)
            self.assertEqual(outcome.source, NarrativeSource.FALLBACK, body)
            self.assertEqual(outcome.result, FALLBACK_NARRATIVE)


class NarrativeParsingTests(unittest.TestCase):
    def test_parse_rejects_non_string_fields(self):
        with self.assertRaises(NarrativeError):
            parse_narrative(json.dumps({**GENERATED, "gapAnalysis": ["[GAP] list"]}))

    def test_prompt_carries_all_scores(self):
        prompt = build_prompt(demo_record())
        self.assertIn('"Demo Organization"', prompt)
        for fragment in ("Overall Maturity: 72 (Defined)", "Clause 6 (Planning): 65", "Clause 9 (Performance): 60"):
            self.assertIn(fragment, prompt)


if __name__ == "__main__":
    unittest.main()
