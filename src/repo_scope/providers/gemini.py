from collections.abc import Callable
from logging import Logger
from typing import override

import httpx
from google.genai import Client as GoogleGenaiClient
from google.genai.errors import APIError as GoogleGenaiAPIError
from google.genai.types import GenerateContentConfig, GenerateContentResponse

from repo_scope.clients.errors.providers import ProviderRequestError
from repo_scope.providers.base import MAX_OUTPUT_TOKENS, ProviderAdapter
from repo_scope.servers.shared.prompts import JSON_ONLY_SYSTEM_INSTRUCTION

GoogleGenaiClientFactory = Callable[[str], GoogleGenaiClient]


def get_google_genai_client(api_key: str) -> GoogleGenaiClient:
    return GoogleGenaiClient(api_key=api_key)


def get_text_from_response(response: GenerateContentResponse) -> str | None:
    if text := response.text:
        return text

    if not response.candidates or not (content := response.candidates[0].content) or not content.parts:
        return None

    for part in content.parts:
        if part.text:
            return part.text

    return None


class GeminiAdapter(ProviderAdapter):
    name = "gemini"
    display_name = "Gemini"
    default_model = "gemini-2.5-flash"
    model_env_var = "GEMINI_MODEL"

    client_factory: GoogleGenaiClientFactory

    def __init__(self, model: str | None = None, client_factory: GoogleGenaiClientFactory | None = None, logger: Logger | None = None):
        super().__init__(model=model, logger=logger)
        self.client_factory = client_factory or get_google_genai_client

    @override
    async def _request_text(self, prompt: str, api_key: str) -> str | None:
        client: GoogleGenaiClient = self.client_factory(api_key)

        try:
            response: GenerateContentResponse = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=GenerateContentConfig(
                    system_instruction=JSON_ONLY_SYSTEM_INSTRUCTION,
                    response_mime_type="application/json",
                    max_output_tokens=MAX_OUTPUT_TOKENS,
                ),
            )
        except GoogleGenaiAPIError as e:
            raise ProviderRequestError(provider=self.display_name, message=e.message or str(e), status_code=e.code) from e
        except httpx.HTTPError as e:
            raise ProviderRequestError(provider=self.display_name, message=str(e)) from e
        finally:
            await client.aio.aclose()

        return get_text_from_response(response)
