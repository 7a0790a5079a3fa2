import os
import sys
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _load_env_file_if_present() -> None:
    env_file = BASE_DIR / ".env"
    if not env_file.exists():
        return
    try:
        lines = env_file.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not key or key in os.environ:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ[key] = value


_load_env_file_if_present()


def _default_runtime_dir() -> Path:
    if getattr(sys, "frozen", False) or getattr(sys, "_MEIPASS", ""):
        candidates: list[Path] = []
        local_appdata = os.getenv("LOCALAPPDATA", "").strip()
        if local_appdata:
            candidates.append(Path(local_appdata) / "FMMaturityDashboard" / "data")
        candidates.append(Path.home() / ".fm_dashboard" / "data")
        candidates.append(Path(tempfile.gettempdir()) / "FMMaturityDashboard" / "data")

        for path in candidates:
            try:
                path.mkdir(parents=True, exist_ok=True)
                return path
            except OSError:
                continue
    return BASE_DIR / "data"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ClientConfig:
    """Read once at startup and handed to the fetch and narrative clients."""

    backend_url: str = ""
    gemini_api_key: str = ""
    gemini_model: str = "gemini-3-flash-preview"
    request_timeout_seconds: int = 15
    llm_timeout_seconds: int = 30
    user_agent: str = "FMMaturityDashboard/1.0"

    @property
    def backend_configured(self) -> bool:
        return bool(self.backend_url.strip())

    @property
    def generation_configured(self) -> bool:
        return bool(self.gemini_api_key.strip())


class Settings:
    def __init__(self) -> None:
        self.app_name: str = os.getenv("APP_NAME", "FM Maturity Dashboard")
        self.app_env: str = os.getenv("APP_ENV", "dev")
        self.runtime_dir: Path = Path(os.getenv("RUNTIME_DIR", str(_default_runtime_dir()))).expanduser()
        self.runtime_dir.mkdir(parents=True, exist_ok=True)
        default_db_path: Path = self.runtime_dir / "fm_dashboard.db"
        self.database_url: str = os.getenv("DATABASE_URL", f"sqlite:///{default_db_path.as_posix()}")
        self.backend_url: str = os.getenv("GOOGLE_SCRIPT_URL", "").strip()
        # Older deployments exposed the key as API_KEY.
        self.gemini_api_key: str = (os.getenv("GEMINI_API_KEY", "") or os.getenv("API_KEY", "")).strip()
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview").strip()
        self.request_timeout_seconds: int = _int_env("REQUEST_TIMEOUT_SECONDS", 15)
        self.llm_timeout_seconds: int = _int_env("LLM_TIMEOUT_SECONDS", 30)
        self.user_agent: str = os.getenv("DASHBOARD_USER_AGENT", "FMMaturityDashboard/1.0")
        self.proxy_target_url: str = os.getenv("PROXY_TARGET_URL", "").strip() or self.backend_url
        self.dashboard_base_url: str = os.getenv("DASHBOARD_BASE_URL", "http://127.0.0.1:8000").rstrip("/")

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            backend_url=self.backend_url,
            gemini_api_key=self.gemini_api_key,
            gemini_model=self.gemini_model or "gemini-3-flash-preview",
            request_timeout_seconds=max(1, self.request_timeout_seconds),
            llm_timeout_seconds=max(1, self.llm_timeout_seconds),
            user_agent=self.user_agent,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
