from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    portal_api_url: str = os.getenv("UNIGRADES_API_URL") or os.getenv("BACKEND_API_URL", "http://localhost:5000/api")
    portal_api_token: str = os.getenv("UNIGRADES_API_TOKEN", "")
    http_timeout: int = _int_env("UNIGRADES_HTTP_TIMEOUT", 15)

    default_max_credits: int = _int_env("UNIGRADES_DEFAULT_MAX_CREDITS", 18)
    required_degree_credits: int = _int_env("UNIGRADES_REQUIRED_CREDITS", 132)
    validation_workers: int = _int_env("UNIGRADES_VALIDATION_WORKERS", 4)

    log_level: str = os.getenv("UNIGRADES_LOG_LEVEL", "INFO").upper()


settings = Settings()
