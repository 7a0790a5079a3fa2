from __future__ import annotations

from app.config import ClientConfig
from app.domain import FetchFailure, FetchFailureKind, demo_record
from app.services.narrative import NarrativeClient, NarrativeSource
from app.services.record_fetch import RecordFetchClient
from app.services.report_shell import ReportShell, ViewState, failure_copy
from fakes import FakeSession, build_response


class StubFetchClient:
    def __init__(self, result=None, failure: FetchFailure | None = None) -> None:
        self.result = result
        self.failure = failure
        self.codes: list[str] = []
        self.on_fetch = None

    def fetch(self, code: str):
        self.codes.append(code)
        if self.on_fetch is not None:
            self.on_fetch()
        if self.failure is not None:
            raise self.failure
        return self.result


class CountingNarrativeClient(NarrativeClient):
    def __init__(self) -> None:
        super().__init__(ClientConfig())
        self.calls = 0

    def generate(self, record):
        self.calls += 1
        return super().generate(record)


def test_empty_code_is_idle() -> None:
    narrative = CountingNarrativeClient()
    shell = ReportShell(StubFetchClient(), narrative)

    view = shell.load("  ")

    assert view.state == ViewState.IDLE
    assert narrative.calls == 0


def test_demo_scenario_renders_record_and_demo_narrative() -> None:
    shell = ReportShell(RecordFetchClient(ClientConfig()), NarrativeClient(ClientConfig()))

    view = shell.load("DEMO")

    assert view.state == ViewState.SUCCESS
    assert view.record is not None
    assert view.record.organization == "Demo Organization"
    assert len(view.record.clause_scores()) == 4
    assert view.narrative is not None
    assert view.narrative.source == NarrativeSource.DEMO
    assert "Demo Mode" in view.narrative.result.executive_summary
    assert shell.current == view


def test_missing_record_is_not_found_and_skips_narrative() -> None:
    narrative = CountingNarrativeClient()
    shell = ReportShell(StubFetchClient(result=None), narrative)

    view = shell.load("zzzz")

    assert view.state == ViewState.NOT_FOUND
    assert view.code == "ZZZZ"
    assert narrative.calls == 0


def test_failure_is_error_state_with_structured_failure() -> None:
    failure = FetchFailure(FetchFailureKind.PERMISSION, "sign-in page")
    narrative = CountingNarrativeClient()
    shell = ReportShell(StubFetchClient(failure=failure), narrative)

    view = shell.load("A9X2")

    assert view.state == ViewState.ERROR
    assert view.failure is failure
    assert view.error_copy.title == "Permission Error"
    assert view.to_dict()["error"]["kind"] == "PERMISSION"
    assert narrative.calls == 0


def test_not_found_failure_kind_maps_to_not_found_state() -> None:
    shell = ReportShell(StubFetchClient(failure=FetchFailure(FetchFailureKind.NOT_FOUND)), CountingNarrativeClient())
    assert shell.load("A9X2").state == ViewState.NOT_FOUND


def test_superseded_load_does_not_replace_current_view() -> None:
    fetch = StubFetchClient(result=demo_record())
    narrative = CountingNarrativeClient()
    shell = ReportShell(fetch, narrative)

    newer: dict[str, int] = {}

    def start_newer_lookup() -> None:
        fetch.on_fetch = None
        newer["generation"] = shell.begin("K7MP")

    fetch.on_fetch = start_newer_lookup
    stale = shell.load("A9X2")

    assert stale.state == ViewState.SUCCESS
    assert stale.narrative is None
    assert narrative.calls == 0
    assert shell.current.generation == newer["generation"]
    assert shell.current.state == ViewState.LOADING
    assert shell.current.code == "K7MP"


def test_generations_increase_monotonically() -> None:
    shell = ReportShell(StubFetchClient(result=None), CountingNarrativeClient())
    first = shell.load("AAAA").generation
    second = shell.load("BBBB").generation
    assert second > first
    assert shell.is_current(second)
    assert not shell.is_current(first)


def test_network_copy_includes_endpoint() -> None:
    failure = FetchFailure(FetchFailureKind.NETWORK, "down", endpoint="https://script.example.test/exec")
    copy = failure_copy(failure)
    assert copy.title == "Connection Error"
    assert "https://script.example.test/exec" in copy.message


def test_script_error_copy_is_verbatim() -> None:
    copy = failure_copy(FetchFailure(FetchFailureKind.SCRIPT_ERROR, "ID Column missing"))
    assert copy.message.endswith("ID Column missing")


def test_non_finite_backend_score_still_renders() -> None:
    session = FakeSession(build_response(200, '{"id": "A9X2", "aiMaturityScore": 1e400, "clause6Score": "Infinity"}'))
    fetch = RecordFetchClient(ClientConfig(backend_url="https://script.example.test/exec"), session=session)
    shell = ReportShell(fetch, NarrativeClient(ClientConfig()))

    view = shell.load("A9X2")

    assert view.state == ViewState.SUCCESS
    assert view.record.overall_score == 0
    assert view.record.clause6_score == 0
