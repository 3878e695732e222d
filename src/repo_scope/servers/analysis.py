import asyncio
from collections.abc import Mapping
from logging import Logger
from typing import Any

from fastmcp.server import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from repo_scope.analysis.fallback import fallback_analysis
from repo_scope.analysis.prompt import compose_prompt_from_input
from repo_scope.clients.errors.github import ClientError, RateLimitExceededError, RepositoryNotFoundError
from repo_scope.clients.errors.providers import ProviderCredentialsError, ProviderError
from repo_scope.clients.github import RepositoryScopeClient
from repo_scope.models.analysis import AIAnalysis, AnalysisInput, RepositoryAnalysis
from repo_scope.models.repository.tree import extract_key_files
from repo_scope.providers.base import ProviderAdapter
from repo_scope.providers.registry import get_provider_adapter
from repo_scope.servers.models.analysis import AnalyzeRequest, ErrorResponse
from repo_scope.servers.shared.annotations import API_KEY, PROVIDER, URL
from repo_scope.servers.shared.errors import InvalidAnalyzeRequestError, ServerError
from repo_scope.settings import Provider, Settings
from repo_scope.utilities.urls import RepositoryReference, parse_github_url

BAD_REQUEST = 400
NOT_FOUND = 404
TOO_MANY_REQUESTS = 429
INTERNAL_SERVER_ERROR = 500
BAD_GATEWAY = 502


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content=ErrorResponse(error=message).model_dump(mode="json"), status_code=status_code)


def status_code_for_error(error: Exception) -> int:
    """Map a failed analysis to the status code of the route response."""

    if isinstance(error, ServerError):
        return BAD_REQUEST

    if isinstance(error, RepositoryNotFoundError):
        return NOT_FOUND

    if isinstance(error, RateLimitExceededError):
        return TOO_MANY_REQUESTS

    if isinstance(error, ProviderError):
        return BAD_GATEWAY

    return INTERNAL_SERVER_ERROR


class AnalysisServer:
    client: RepositoryScopeClient
    logger: Logger
    adapters: dict[Provider, ProviderAdapter]

    def __init__(
        self,
        client: RepositoryScopeClient | None = None,
        settings: Settings | None = None,
        adapters: Mapping[Provider, ProviderAdapter] | None = None,
        logger: Logger | None = None,
    ):
        self.logger = logger or get_logger(name=__name__)
        self.client = client or RepositoryScopeClient(logger=self.logger)
        self.adapters = dict(adapters or {})
        self._settings: Settings | None = settings

    @property
    def settings(self) -> Settings:
        """The settings of the server, read from the environment on first use."""

        if self._settings is None:
            self._settings = Settings.from_env()

        return self._settings

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.analyze_repository))

        _ = fastmcp.custom_route(path="/api/analyze", methods=["POST"])(self.handle_analyze_request)

        return fastmcp

    def get_adapter(self, provider: Provider) -> ProviderAdapter:
        if provider not in self.adapters:
            self.adapters[provider] = get_provider_adapter(provider=provider, logger=self.logger)

        return self.adapters[provider]

    async def analyze_repository(self, url: URL, provider: PROVIDER = None, api_key: API_KEY = None) -> RepositoryAnalysis:
        """Analyze a public GitHub repository: its metadata, file tree and README, and an AI-written assessment
        of its purpose, architecture, features and technology stack."""

        reference: RepositoryReference = parse_github_url(url)

        provider = provider or self.settings.default_provider

        self.logger.info(f"Analyzing repository {reference.full_name} with {provider}.")

        metadata, file_tree, readme = await asyncio.gather(
            self.client.get_repository_metadata(owner=reference.owner, repo=reference.repo),
            self.client.get_file_tree(owner=reference.owner, repo=reference.repo, max_depth=self.settings.tree_max_depth),
            self.client.get_readme(owner=reference.owner, repo=reference.repo),
        )

        metadata = metadata.with_readme(has_readme=readme is not None)

        key_file_contents: dict[str, str] = await self.client.get_files(
            owner=reference.owner, repo=reference.repo, paths=extract_key_files(file_tree)
        )

        self.logger.info(f"Analyzing repository {reference.full_name}. Fetched {len(key_file_contents)} key files, generating analysis.")

        analysis_input = AnalysisInput.from_metadata(
            metadata=metadata, readme=readme, file_tree=file_tree, key_file_contents=key_file_contents
        )

        ai_analysis: AIAnalysis = await self.generate_analysis(analysis_input=analysis_input, provider=provider, api_key=api_key)

        self.logger.info(f"Analyzing repository {reference.full_name}. Analysis complete.")

        return RepositoryAnalysis(metadata=metadata, file_tree=file_tree, readme=readme, ai_analysis=ai_analysis)

    async def generate_analysis(self, analysis_input: AnalysisInput, provider: Provider, api_key: str | None = None) -> AIAnalysis:
        """Ask the provider for an analysis. When the provider fails and fallback is enabled, derive one heuristically.

        Raises:
            ProviderError: If the provider fails and fallback is disabled.
        """

        adapter: ProviderAdapter = self.get_adapter(provider)

        try:
            resolved_api_key: str | None = self.settings.resolve_api_key(provider=provider, api_key=api_key)

            if resolved_api_key is None:
                raise ProviderCredentialsError(provider=adapter.display_name)

            return await adapter.analyze(prompt=compose_prompt_from_input(analysis_input), api_key=resolved_api_key)
        except ProviderError as e:
            if not self.settings.enable_fallback:
                raise

            self.logger.warning(f"{e}. Using a heuristic analysis of {analysis_input.repo_name} instead.")

            return fallback_analysis(analysis_input)

    async def handle_analyze_request(self, request: Request) -> JSONResponse:
        try:
            analyze_request: AnalyzeRequest = AnalyzeRequest.model_validate_json(await request.body())
        except ValidationError as e:
            invalid_request = InvalidAnalyzeRequestError(message=f"Invalid request body: {e.error_count()} validation error(s)")
            self.logger.info(f"Rejected analyze request: {e}")
            return error_response(message=str(invalid_request), status_code=BAD_REQUEST)

        try:
            analysis: RepositoryAnalysis = await self.analyze_repository(
                url=analyze_request.url, provider=analyze_request.api_provider, api_key=analyze_request.api_key
            )
        except (ServerError, ClientError) as e:
            status_code: int = status_code_for_error(e)

            if status_code >= INTERNAL_SERVER_ERROR:
                self.logger.exception(f"Analyze request for {analyze_request.url} failed")

            return error_response(message=str(e), status_code=status_code)
        except Exception as e:
            self.logger.exception(f"Analyze request for {analyze_request.url} failed unexpectedly")

            return error_response(message=str(e) or "Internal server error", status_code=INTERNAL_SERVER_ERROR)

        return JSONResponse(content=analysis.model_dump(mode="json"))
