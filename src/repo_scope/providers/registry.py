from logging import Logger

from repo_scope.providers.base import ProviderAdapter
from repo_scope.providers.claude import ClaudeAdapter
from repo_scope.providers.cohere import CohereAdapter
from repo_scope.providers.gemini import GeminiAdapter
from repo_scope.providers.openai import OpenAIAdapter
from repo_scope.settings import Provider

PROVIDER_ADAPTERS: dict[Provider, type[ProviderAdapter]] = {
    "gemini": GeminiAdapter,
    "openai": OpenAIAdapter,
    "claude": ClaudeAdapter,
    "cohere": CohereAdapter,
}


def get_provider_adapter(provider: Provider, logger: Logger | None = None) -> ProviderAdapter:
    return PROVIDER_ADAPTERS[provider](logger=logger)
