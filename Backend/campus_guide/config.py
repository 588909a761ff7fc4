# campus_guide/config.py
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    db_url: Optional[str] = None
    azure_endpoint: str = ""
    azure_api_key: str = ""
    azure_api_version: str = "2024-02-01"
    gpt_deployment: str = "gpt-4o"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    memory_last_turns: int = 5
    leaderboard_limit: int = 10
    log_level: str = "INFO"

    @property
    def llm_configured(self) -> bool:
        return bool(self.azure_endpoint and self.azure_api_key)


def load_settings() -> Settings:
    """
    Read settings from the environment (and a local .env file, if any).

    Nothing here fails on missing credentials; the database pool and the
    OpenAI client decide for themselves at startup.
    """
    load_dotenv()

    origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",")]
    origins = [o for o in origins if o]
    if not origins:
        # Open for now; tighten per deployment
        origins = ["*"]

    return Settings(
        db_url=os.getenv("DB_CONNECTION_STRING") or None,
        azure_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT", "").strip(),
        azure_api_key=os.getenv("AZURE_OPENAI_API_KEY", "").strip(),
        azure_api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-01").strip(),
        gpt_deployment=os.getenv("AZURE_OPENAI_GPT4_DEPLOYMENT", "gpt-4o").strip(),
        allowed_origins=origins,
        memory_last_turns=_int_env("MEMORY_LAST_TURNS", 5),
        leaderboard_limit=_int_env("LEADERBOARD_LIMIT", 10),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
