from logging import Logger
from typing import Any, override

import httpx

from repo_scope.clients.errors.providers import ProviderRequestError, ProviderResponseParseError
from repo_scope.providers.base import MAX_OUTPUT_TOKENS, ProviderAdapter
from repo_scope.servers.shared.prompts import JSON_ONLY_SYSTEM_INSTRUCTION

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


def get_text_from_message(message: Any) -> str | None:  # pyright: ignore[reportAny]
    """Return the first text block of a Messages API response."""

    if not isinstance(message, dict):
        return None

    content: Any = message.get("content")  # pyright: ignore[reportUnknownMemberType]

    if not isinstance(content, list):
        return None

    for block in content:  # pyright: ignore[reportUnknownVariableType]
        if isinstance(block, dict) and block.get("type", "text") == "text" and isinstance(text := block.get("text"), str):  # pyright: ignore[reportUnknownMemberType]
            return text

    return None


class ClaudeAdapter(ProviderAdapter):
    name = "claude"
    display_name = "Claude"
    default_model = "claude-3-5-sonnet-20241022"
    model_env_var = "ANTHROPIC_MODEL"

    http_client: httpx.AsyncClient

    def __init__(self, model: str | None = None, http_client: httpx.AsyncClient | None = None, logger: Logger | None = None):
        super().__init__(model=model, logger=logger)
        self.http_client = http_client or httpx.AsyncClient(timeout=120.0)

    @override
    async def _request_text(self, prompt: str, api_key: str) -> str | None:
        try:
            response: httpx.Response = await self.http_client.post(
                ANTHROPIC_MESSAGES_URL,
                headers={"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION},
                json={
                    "model": self.model,
                    "max_tokens": MAX_OUTPUT_TOKENS,
                    "system": JSON_ONLY_SYSTEM_INSTRUCTION,
                    "messages": [{"role": "user", "content": prompt}],
                },
            )
        except httpx.HTTPError as e:
            raise ProviderRequestError(provider=self.display_name, message=str(e)) from e

        if not response.is_success:
            raise ProviderRequestError(provider=self.display_name, message=response.reason_phrase, status_code=response.status_code)

        try:
            message: Any = response.json()  # pyright: ignore[reportAny]
        except ValueError as e:
            raise ProviderResponseParseError(provider=self.display_name, detail=str(e)) from e

        return get_text_from_message(message)
