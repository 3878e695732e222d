import os
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field

Provider = Literal["gemini", "openai", "claude", "cohere"]

PROVIDERS: tuple[Provider, ...] = ("gemini", "openai", "claude", "cohere")

DEFAULT_TREE_MAX_DEPTH = 3

PROVIDER_API_KEY_ENV_VARS: dict[Provider, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "claude": ("ANTHROPIC_API_KEY",),
    "cohere": ("COHERE_API_KEY",),
}


def get_github_token() -> str | None:
    """Return a GitHub token if one is configured. Public repositories do not require one."""

    for env_var in ("GITHUB_TOKEN", "GITHUB_PERSONAL_ACCESS_TOKEN"):
        if token := os.getenv(env_var):
            return token

    return None


def get_provider_api_key(provider: Provider) -> str | None:
    for env_var in PROVIDER_API_KEY_ENV_VARS[provider]:
        if api_key := os.getenv(env_var):
            return api_key

    return None


def get_default_provider() -> Provider:
    provider = os.getenv("DEFAULT_PROVIDER", "gemini").lower()

    if provider not in PROVIDERS:
        msg = f"DEFAULT_PROVIDER must be one of {', '.join(PROVIDERS)}, got {provider}"
        raise ValueError(msg)

    return provider  # pyright: ignore[reportReturnType]


class Settings(BaseModel):
    """Server-side configuration for repository analysis."""

    model_config = ConfigDict(frozen=True)

    default_provider: Provider = Field(default="gemini", description="The provider used when a request does not name one.")
    provider_api_keys: dict[Provider, str] = Field(
        default_factory=dict, description="API keys used when a request does not carry its own."
    )
    enable_fallback: bool = Field(default=True, description="Whether to substitute a heuristic analysis when the provider fails.")
    tree_max_depth: int = Field(default=DEFAULT_TREE_MAX_DEPTH, ge=0, description="How many levels of the repository to list.")

    @classmethod
    def from_env(cls) -> Self:
        provider_api_keys: dict[Provider, str] = {
            provider: api_key for provider in PROVIDERS if (api_key := get_provider_api_key(provider)) is not None
        }

        return cls(
            default_provider=get_default_provider(),
            provider_api_keys=provider_api_keys,
            enable_fallback=not bool(os.getenv("DISABLE_FALLBACK")),
            tree_max_depth=int(os.getenv("TREE_MAX_DEPTH", str(DEFAULT_TREE_MAX_DEPTH))),
        )

    def resolve_api_key(self, provider: Provider, api_key: str | None) -> str | None:
        """Prefer the key sent with the request, then the key configured for the provider."""

        if api_key:
            return api_key

        return self.provider_api_keys.get(provider)
