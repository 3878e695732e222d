import json
import os
from abc import ABC, abstractmethod
from logging import Logger
from typing import Any, ClassVar

from fastmcp.utilities.logging import get_logger

from repo_scope.clients.errors.providers import (
    ProviderEmptyResponseError,
    ProviderError,
    ProviderRequestError,
    ProviderResponseParseError,
)
from repo_scope.models.analysis import AIAnalysis
from repo_scope.providers.extract import load_json_payload
from repo_scope.providers.normalize import normalize_analysis
from repo_scope.servers.shared.utility import estimate_tokens
from repo_scope.settings import Provider

MAX_OUTPUT_TOKENS = 2048


class ProviderAdapter(ABC):
    """Sends the analysis prompt to one AI provider and normalizes what comes back."""

    name: ClassVar[Provider]
    display_name: ClassVar[str]
    default_model: ClassVar[str]
    model_env_var: ClassVar[str]

    model: str
    logger: Logger

    def __init__(self, model: str | None = None, logger: Logger | None = None):
        self.model = model or os.getenv(self.model_env_var) or self.default_model
        self.logger = logger or get_logger(name=__name__)

    @abstractmethod
    async def _request_text(self, prompt: str, api_key: str) -> str | None:
        """Call the provider and return the text of its answer, or None if the envelope holds no text."""

    async def analyze(self, prompt: str, api_key: str) -> AIAnalysis:
        self.logger.info(f"Requesting analysis from {self.display_name} ({self.model}) with a prompt of {estimate_tokens(prompt)} tokens.")

        try:
            text: str | None = await self._request_text(prompt=prompt, api_key=api_key)
        except ProviderError:
            raise
        except Exception as e:
            self.logger.exception(f"Unexpected error requesting analysis from {self.display_name} ({self.model})")
            raise ProviderRequestError(provider=self.display_name, message=str(e) or type(e).__name__) from e

        if not text or not text.strip():
            raise ProviderEmptyResponseError(provider=self.display_name)

        try:
            payload: Any = load_json_payload(text)  # pyright: ignore[reportAny]
        except json.JSONDecodeError as e:
            raise ProviderResponseParseError(provider=self.display_name, detail=str(e)) from e

        self.logger.info(f"Received analysis from {self.display_name} ({self.model}).")

        return normalize_analysis(payload)
