import os
from typing import List
from pydantic import BaseModel, Field
from dotenv import load_dotenv

DEFAULT_UA = (
    "ProbeScan/0.4 (authorized self-assessment) "
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

REQUEST_TIMEOUT_SECONDS = 9.0
SCAN_CONCURRENCY = 14


class ScanSettings(BaseModel):
    request_timeout: float = Field(default=REQUEST_TIMEOUT_SECONDS, gt=0)
    concurrency: int = Field(default=SCAN_CONCURRENCY, ge=1)
    user_agent: str = DEFAULT_UA
    verify_tls: bool = True
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    log_level: str = "INFO"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> ScanSettings:
    """
    Build settings from the environment (and a .env file, if present).
    Unset variables keep their defaults; malformed numbers raise ValueError.
    """
    load_dotenv()
    values = {}

    timeout = os.getenv("PROBESCAN_TIMEOUT")
    if timeout:
        values["request_timeout"] = float(timeout)
    concurrency = os.getenv("PROBESCAN_CONCURRENCY")
    if concurrency:
        values["concurrency"] = int(concurrency)
    user_agent = os.getenv("PROBESCAN_USER_AGENT")
    if user_agent:
        values["user_agent"] = user_agent
    origins = os.getenv("PROBESCAN_CORS_ORIGINS")
    if origins:
        values["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
    level = os.getenv("PROBESCAN_LOG_LEVEL")
    if level:
        values["log_level"] = level.strip().upper()
    values["verify_tls"] = _env_bool("PROBESCAN_VERIFY_TLS", True)

    return ScanSettings(**values)
