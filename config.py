from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from promptcoach.types import ProviderConfig

KNOWN_PROVIDERS = ("claude", "openai", "gemini")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Anthropic (empty model = provider default)
    anthropic_api_key: str = ""
    anthropic_model: str = ""

    # OpenAI / OpenAI-compatible
    openai_api_key: str = ""
    openai_model: str = ""
    openai_base_url: str = "https://api.openai.com/v1"

    # Google Gemini
    gemini_api_key: str = ""
    gemini_model: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Fallback order; first entry is the primary provider.
    provider_order: str = "claude,openai,gemini"

    # Full override as a JSON list of provider configs, e.g.
    # PROVIDERS='[{"provider": "gemini", "api_key": "AIza...", "priority": 1}]'
    providers: list[ProviderConfig] | None = None

    request_timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=2, ge=1)
    max_output_tokens: int = Field(default=1500, ge=1)

    log_level: str = "WARNING"

    @field_validator("provider_order")
    @classmethod
    def _check_provider_order(cls, value: str) -> str:
        names = [n.strip().lower() for n in value.split(",") if n.strip()]
        unknown = [n for n in names if n not in KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(f"Unknown provider(s) in PROVIDER_ORDER: {', '.join(unknown)}")
        if len(set(names)) != len(names):
            raise ValueError("PROVIDER_ORDER lists a provider more than once")
        return ",".join(names)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid LOG_LEVEL: {value!r}")
        return value

    def provider_configs(self) -> list[ProviderConfig]:
        """Ordered provider configs for the fallback orchestrator."""
        if self.providers is not None:
            return list(self.providers)

        credentials = {
            "claude": (self.anthropic_api_key, self.anthropic_model),
            "openai": (self.openai_api_key, self.openai_model),
            "gemini": (self.gemini_api_key, self.gemini_model),
        }
        names = [n for n in self.provider_order.split(",") if n]
        configs = []
        for priority, name in enumerate(names, start=1):
            api_key, model = credentials[name]
            configs.append(ProviderConfig(
                provider=name,
                api_key=api_key,
                is_enabled=bool(api_key.strip()),
                is_primary=priority == 1,
                priority=priority,
                model_id=model or None,
            ))
        return configs


settings = Settings()
