from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any

from app.domain import AssessmentRecord, FetchFailure, FetchFailureKind
from app.services.narrative import NarrativeClient, NarrativeOutcome
from app.services.record_fetch import RecordFetchClient, normalize_code

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    SUCCESS = "SUCCESS"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ErrorCopy:
    title: str
    message: str


def failure_copy(failure: FetchFailure) -> ErrorCopy:
    kind = failure.kind
    if kind == FetchFailureKind.PERMISSION:
        return ErrorCopy(
            title="Permission Error",
            message="Google Script needs 'Who has access: Anyone' deployment setting.",
        )
    if kind == FetchFailureKind.NETWORK:
        message = "Connection Error: Unable to reach the database."
        if failure.endpoint:
            message = f"{message} Endpoint: {failure.endpoint}"
        return ErrorCopy(title="Connection Error", message=message)
    if kind == FetchFailureKind.INVALID_RESPONSE:
        return ErrorCopy(
            title="Data Format Error",
            message="The backend returned data in an unexpected format. It may be malfunctioning.",
        )
    if kind == FetchFailureKind.SERVER_STATUS:
        return ErrorCopy(
            title="Server Error",
            message=f"The backend responded with HTTP status {failure.status_code or 'unknown'}.",
        )
    if kind == FetchFailureKind.SCRIPT_ERROR:
        return ErrorCopy(title="Script Execution Error", message=f"Backend script error: {failure.detail}")
    if kind == FetchFailureKind.NOT_FOUND:
        return ErrorCopy(title="Invalid Access Code", message="No report exists for this access code.")
    return ErrorCopy(
        title="Unexpected Error",
        message=f"Something went wrong while loading the report. {failure.detail}".strip(),
    )


@dataclass(frozen=True)
class ReportView:
    state: ViewState
    code: str = ""
    generation: int = 0
    record: AssessmentRecord | None = None
    narrative: NarrativeOutcome | None = None
    failure: FetchFailure | None = None

    @property
    def error_copy(self) -> ErrorCopy | None:
        return failure_copy(self.failure) if self.failure else None

    def to_dict(self) -> dict[str, Any]:
        copy = self.error_copy
        return {
            "state": self.state.value,
            "code": self.code,
            "record": self.record.to_payload() if self.record else None,
            "narrative": self.narrative.to_payload() if self.narrative else None,
            "error": (
                {**self.failure.to_payload(), "title": copy.title, "message": copy.message}
                if self.failure and copy
                else None
            ),
        }


class ReportShell:
    """Resolves an access code into exactly one displayable view.

    Each load is stamped with a generation number; only the view from the most
    recent generation becomes ``current``, so a slow superseded lookup cannot
    overwrite a newer one.
    """

    def __init__(self, fetch_client: RecordFetchClient, narrative_client: NarrativeClient) -> None:
        self.fetch_client = fetch_client
        self.narrative_client = narrative_client
        self._lock = Lock()
        self._generation = 0
        self._current = ReportView(state=ViewState.IDLE)

    @property
    def current(self) -> ReportView:
        with self._lock:
            return self._current

    def begin(self, code: str = "") -> int:
        with self._lock:
            self._generation += 1
            self._current = ReportView(state=ViewState.LOADING, code=code, generation=self._generation)
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _apply(self, view: ReportView) -> ReportView:
        with self._lock:
            if view.generation == self._generation:
                self._current = view
            else:
                logger.info(
                    "Discarding superseded report view: code=%s generation=%s current=%s",
                    view.code,
                    view.generation,
                    self._generation,
                )
        return view

    def load(self, raw_code: str | None) -> ReportView:
        code = normalize_code(raw_code)
        generation = self.begin(code)
        if not code:
            return self._apply(ReportView(state=ViewState.IDLE, generation=generation))

        try:
            record = self.fetch_client.fetch(code)
        except FetchFailure as failure:
            state = ViewState.NOT_FOUND if failure.kind == FetchFailureKind.NOT_FOUND else ViewState.ERROR
            return self._apply(ReportView(state=state, code=code, generation=generation, failure=failure))

        if record is None:
            return self._apply(ReportView(state=ViewState.NOT_FOUND, code=code, generation=generation))

        if not self.is_current(generation):
            return self._apply(ReportView(state=ViewState.SUCCESS, code=code, generation=generation, record=record))

        narrative = self.narrative_client.generate(record)
        return self._apply(
            ReportView(
                state=ViewState.SUCCESS,
                code=code,
                generation=generation,
                record=record,
                narrative=narrative,
            )
        )
