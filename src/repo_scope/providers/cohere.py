from typing import override

from repo_scope.clients.errors.providers import ProviderNotSupportedError
from repo_scope.models.analysis import AIAnalysis
from repo_scope.providers.base import ProviderAdapter


class CohereAdapter(ProviderAdapter):
    """Cohere is accepted as a provider name but has no implementation; every call fails without a network request."""

    name = "cohere"
    display_name = "Cohere"
    default_model = "command-r"
    model_env_var = "COHERE_MODEL"

    @override
    async def analyze(self, prompt: str, api_key: str) -> AIAnalysis:
        raise ProviderNotSupportedError(provider=self.display_name)

    @override
    async def _request_text(self, prompt: str, api_key: str) -> str | None:
        raise ProviderNotSupportedError(provider=self.display_name)
