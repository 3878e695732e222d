from logging import Logger
from typing import override

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI
from openai.types.chat import ChatCompletion

from repo_scope.clients.errors.providers import ProviderRequestError
from repo_scope.providers.base import MAX_OUTPUT_TOKENS, ProviderAdapter
from repo_scope.servers.shared.prompts import JSON_ONLY_SYSTEM_INSTRUCTION


class OpenAIAdapter(ProviderAdapter):
    name = "openai"
    display_name = "OpenAI"
    default_model = "gpt-4o-mini"
    model_env_var = "OPENAI_MODEL"

    http_client: httpx.AsyncClient | None

    def __init__(self, model: str | None = None, http_client: httpx.AsyncClient | None = None, logger: Logger | None = None):
        super().__init__(model=model, logger=logger)
        self.http_client = http_client

    @override
    async def _request_text(self, prompt: str, api_key: str) -> str | None:
        client = AsyncOpenAI(api_key=api_key, max_retries=0, http_client=self.http_client)

        try:
            completion: ChatCompletion = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": JSON_ONLY_SYSTEM_INSTRUCTION},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                max_tokens=MAX_OUTPUT_TOKENS,
            )
        except APIStatusError as e:
            raise ProviderRequestError(provider=self.display_name, message=e.message, status_code=e.status_code) from e
        except APIError as e:
            raise ProviderRequestError(provider=self.display_name, message=e.message) from e
        finally:
            # An injected http client belongs to the caller.
            if self.http_client is None:
                await client.close()

        if not completion.choices:
            return None

        return completion.choices[0].message.content
