from typing import ClassVar

from venuewatch.config.settings import Settings
from venuewatch.extraction.base import BaseExtractor
from venuewatch.extraction.example_client_adapter import ExampleClientAdapter
from venuewatch.extraction.extractor import Extractor
from venuewatch.extraction.openai_client_adapter import OpenAIClientAdapter


class ExtractorFactory:
    """Creates the configured extractor adapter."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "xai": "https://api.x.ai/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseExtractor:
        """Create a configured extractor from application settings."""
        provider = settings.extraction_provider.lower()
        if provider == "example":
            return Extractor(
                client=ExampleClientAdapter(),
                model="example",
                temperature=0.0,
            )
        client = OpenAIClientAdapter(
            api_key=cls._resolve_api_key(provider, settings),
            timeout_seconds=cls._resolve_timeout_seconds(provider, settings),
            base_url=cls._resolve_base_url(provider, settings),
        )
        return Extractor(
            client=client,
            model=cls._resolve_model_name(provider, settings),
            temperature=cls._resolve_temperature(provider, settings),
        )

    @classmethod
    def supported_providers(cls) -> list[str]:
        return ["example", "openai", "openai_compatible", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = (settings.extraction_openai_compatible_base_url or "").strip()
            if not url:
                raise ValueError(
                    "extraction_openai_compatible_base_url is required for "
                    "extraction_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        raise ValueError(
            f"Unknown extraction provider '{provider}'. Choose from: {cls.supported_providers()}"
        )

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.extraction_openai_api_key,
            "openai_compatible": settings.extraction_openai_compatible_api_key,
            "openrouter": settings.extraction_openrouter_api_key,
            "groq": settings.extraction_groq_api_key,
            "together": settings.extraction_together_api_key,
            "deepseek": settings.extraction_deepseek_api_key,
            "xai": settings.extraction_xai_api_key,
            "ollama": settings.extraction_ollama_api_key,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_model_name(cls, provider: str, settings: Settings) -> str:
        key_map = {
            "openai": settings.extraction_openai_model_name,
            "openai_compatible": settings.extraction_openai_compatible_model_name,
            "openrouter": settings.extraction_openrouter_model_name,
            "groq": settings.extraction_groq_model_name,
            "together": settings.extraction_together_model_name,
            "deepseek": settings.extraction_deepseek_model_name,
            "xai": settings.extraction_xai_model_name,
            "ollama": settings.extraction_ollama_model_name,
        }
        return key_map.get(provider, "") or ""

    @classmethod
    def _resolve_timeout_seconds(cls, provider: str, settings: Settings) -> int:
        key_map = {
            "openai": settings.extraction_openai_timeout_seconds,
            "openai_compatible": settings.extraction_openai_compatible_timeout_seconds,
            "openrouter": settings.extraction_openrouter_timeout_seconds,
            "groq": settings.extraction_groq_timeout_seconds,
            "together": settings.extraction_together_timeout_seconds,
            "deepseek": settings.extraction_deepseek_timeout_seconds,
            "xai": settings.extraction_xai_timeout_seconds,
            "ollama": settings.extraction_ollama_timeout_seconds,
        }
        return key_map.get(provider, 30) or 30

    @classmethod
    def _resolve_temperature(cls, provider: str, settings: Settings) -> float:
        if provider == "openai":
            return settings.extraction_openai_temperature
        return 0.0
