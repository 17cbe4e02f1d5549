from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path

ALLOWED_EXTENSIONS = {".pdf", ".docx", ".txt"}
MIN_TEXT_LENGTH = 50
DOCUMENT_TEXT_LIMIT = 5000

DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"
DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    groq_api_key: str = ""
    groq_model: str = DEFAULT_GROQ_MODEL
    groq_base_url: str = DEFAULT_GROQ_BASE_URL
    llm_timeout_seconds: float = 60.0
    email_user: str = ""
    email_password: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    analysis_dir: Path = Path("data/analyses")
    upload_dir: Path = Path("uploads")
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    frontend_url: str = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 5000

    @property
    def email_configured(self) -> bool:
        return bool(self.email_user.strip())

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["analysis_dir"] = str(self.analysis_dir)
        payload["upload_dir"] = str(self.upload_dir)
        payload.pop("groq_api_key", None)
        payload.pop("email_password", None)
        return payload


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got '{raw}'.") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got '{raw}'.") from None


def load_settings() -> Settings:
    return Settings(
        groq_api_key=os.getenv("GROQ_API_KEY", "").strip(),
        groq_model=os.getenv("GROQ_MODEL", DEFAULT_GROQ_MODEL).strip() or DEFAULT_GROQ_MODEL,
        groq_base_url=(os.getenv("GROQ_BASE_URL", DEFAULT_GROQ_BASE_URL).strip() or DEFAULT_GROQ_BASE_URL).rstrip("/"),
        llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", 60.0),
        email_user=os.getenv("EMAIL_USER", "").strip(),
        email_password=os.getenv("EMAIL_PASSWORD", ""),
        smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com").strip() or "smtp.gmail.com",
        smtp_port=_env_int("SMTP_PORT", 587),
        analysis_dir=Path(os.getenv("ANALYSIS_DIR", "data/analyses")),
        upload_dir=Path(os.getenv("UPLOAD_DIR", "uploads")),
        max_file_size=_env_int("MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000").strip(),
        host=os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0",
        port=_env_int("PORT", 5000),
    )
