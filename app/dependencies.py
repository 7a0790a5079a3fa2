import requests
from fastapi import Depends

from app.config import ClientConfig, get_settings
from app.services.narrative import NarrativeClient
from app.services.record_fetch import RecordFetchClient
from app.services.report_shell import ReportShell


def get_client_config() -> ClientConfig:
    return get_settings().client_config()


def get_http_session():
    session = requests.Session()
    try:
        yield session
    finally:
        session.close()


def get_report_shell(
    config: ClientConfig = Depends(get_client_config),
    session: requests.Session = Depends(get_http_session),
) -> ReportShell:
    return ReportShell(
        RecordFetchClient(config, session=session),
        NarrativeClient(config, session=session),
    )
