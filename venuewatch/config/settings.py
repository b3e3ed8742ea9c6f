from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SUBMENU_KEYWORDS = [
    "menu",
    "specials",
    "happy-hour",
    "happy",
    "drinks",
    "bar",
    "food",
    "events",
    "deals",
    "promotions",
]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    log_dir: str = ""

    data_dir: Path = Path("data")
    venues_path: Path = Path("data/venues.json")

    submenu_keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_SUBMENU_KEYWORDS))
    max_subpages: int = Field(default=10, ge=0)
    fetch_workers: int = Field(default=15, ge=1)
    fetch_delay_seconds: float = Field(default=0.5, ge=0.0)
    fetch_timeout_seconds: float = Field(default=15.0, gt=0.0)
    fetch_retries: int = Field(default=2, ge=0)
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )

    max_candidates: int = Field(default=15, ge=-1)

    extraction_provider: str = "openai"
    extraction_delay_seconds: float = Field(default=2.0, ge=0.0)
    extraction_max_attempts: int = Field(default=3, ge=1)
    extraction_backoff_seconds: float = Field(default=2.0, ge=0.0)

    extraction_openai_api_key: str = ""
    extraction_openai_model_name: str = "gpt-4o-mini"
    extraction_openai_timeout_seconds: int = 60
    extraction_openai_temperature: float = 0.1

    extraction_openai_compatible_base_url: str = ""
    extraction_openai_compatible_api_key: str = ""
    extraction_openai_compatible_model_name: str = ""
    extraction_openai_compatible_timeout_seconds: int = 60

    extraction_openrouter_api_key: str = ""
    extraction_openrouter_model_name: str = ""
    extraction_openrouter_timeout_seconds: int = 60

    extraction_groq_api_key: str = ""
    extraction_groq_model_name: str = ""
    extraction_groq_timeout_seconds: int = 60

    extraction_together_api_key: str = ""
    extraction_together_model_name: str = ""
    extraction_together_timeout_seconds: int = 60

    extraction_deepseek_api_key: str = ""
    extraction_deepseek_model_name: str = ""
    extraction_deepseek_timeout_seconds: int = 60

    extraction_xai_api_key: str = ""
    extraction_xai_model_name: str = "grok-3-mini"
    extraction_xai_timeout_seconds: int = 60

    extraction_ollama_api_key: str = "ollama"
    extraction_ollama_model_name: str = ""
    extraction_ollama_timeout_seconds: int = 120

    lock_stale_minutes: int = Field(default=30, ge=1)
