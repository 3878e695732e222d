import re
from collections.abc import AsyncGenerator
from typing import Any, override

import httpx
import pytest
from dirty_equals import IsStr
from fastmcp import FastMCP
from fastmcp.client import Client
from fastmcp.client.transports import FastMCPTransport
from fastmcp.exceptions import ToolError

from repo_scope.analysis.fallback import FALLBACK_ARCHITECTURE
from repo_scope.clients.errors.github import RepositoryNotFoundError
from repo_scope.clients.errors.providers import ProviderRequestError
from repo_scope.providers.base import ProviderAdapter
from repo_scope.servers.analysis import AnalysisServer
from repo_scope.servers.shared.errors import InvalidRepositoryUrlError
from repo_scope.settings import Provider, Settings
from tests.conftest import OWNER, REPO, REPOSITORY_URL, SAMPLE_FILES, FakeGitHubKit, StaticProviderAdapter, make_client

PROVIDER_ERROR = ProviderRequestError(provider="Gemini", message="Service Unavailable", status_code=503)


class BrokenProviderAdapter(StaticProviderAdapter):
    @override
    async def _request_text(self, prompt: str, api_key: str) -> str | None:
        msg = "provider SDK exploded"
        raise RuntimeError(msg)


def make_server(
    settings: Settings,
    adapters: dict[Provider, ProviderAdapter] | None = None,
    status_codes: dict[str, int] | None = None,
    repository: dict[str, Any] | None = None,
) -> tuple[AnalysisServer, FakeGitHubKit]:
    client, githubkit_client = make_client(status_codes=status_codes, repository=repository)

    if adapters is None:
        adapters = {"gemini": StaticProviderAdapter()}

    return AnalysisServer(client=client, settings=settings, adapters=adapters), githubkit_client


class TestAnalyzeRepository:
    async def test_analyze_repository(self, settings: Settings):
        adapter = StaticProviderAdapter()
        server, _ = make_server(settings, adapters={"gemini": adapter})

        analysis = await server.analyze_repository(url=REPOSITORY_URL)

        assert analysis.metadata.full_name == f"{OWNER}/{REPO}"
        assert analysis.metadata.has_readme is True
        assert analysis.readme == SAMPLE_FILES["README.md"]
        assert [node.name for node in analysis.file_tree] == [".github", "src", "Dockerfile", "package.json", "README.md", "tsconfig.json"]
        assert analysis.ai_analysis.overview == "Octo App is a dashboard for octopus sightings."
        assert adapter.api_keys == ["server-gemini-key"]

        prompt = adapter.prompts[0]
        assert "- **Name**: octo-org/octo-app" in prompt
        assert "--- .github/workflows/ci.yml ---\non: push" in prompt
        assert "--- package.json ---" in prompt
        assert "--- Dockerfile ---\nFROM node:20" in prompt
        assert "node_modules" not in prompt.split("## Analysis Requirements")[0]

    async def test_request_api_key_wins(self, settings: Settings):
        adapter = StaticProviderAdapter()
        server, _ = make_server(settings, adapters={"gemini": adapter})

        _ = await server.analyze_repository(url=REPOSITORY_URL, provider="gemini", api_key="request-key")

        assert adapter.api_keys == ["request-key"]

    async def test_provider_failure_uses_fallback(self, settings: Settings):
        server, _ = make_server(settings, adapters={"gemini": StaticProviderAdapter(error=PROVIDER_ERROR)})

        analysis = await server.analyze_repository(url=REPOSITORY_URL)

        assert analysis.ai_analysis.architecture == FALLBACK_ARCHITECTURE
        assert analysis.ai_analysis.overview == "A dashboard for octopus sightings."
        assert analysis.ai_analysis.key_features == ["Dashboard", "React app"]

    async def test_unexpected_provider_failure_uses_fallback(self, settings: Settings):
        server, _ = make_server(settings, adapters={"gemini": BrokenProviderAdapter()})

        analysis = await server.analyze_repository(url=REPOSITORY_URL)

        assert analysis.ai_analysis.architecture == FALLBACK_ARCHITECTURE

    async def test_unexpected_provider_failure_without_fallback(self, settings: Settings):
        settings = settings.model_copy(update={"enable_fallback": False})
        server, _ = make_server(settings, adapters={"gemini": BrokenProviderAdapter()})

        with pytest.raises(ProviderRequestError, match="^Gemini API error: provider SDK exploded$"):
            _ = await server.analyze_repository(url=REPOSITORY_URL)

    async def test_provider_failure_without_fallback(self, settings: Settings):
        settings = settings.model_copy(update={"enable_fallback": False})
        server, _ = make_server(settings, adapters={"gemini": StaticProviderAdapter(error=PROVIDER_ERROR)})

        with pytest.raises(ProviderRequestError, match="^Gemini API error: 503 Service Unavailable$"):
            _ = await server.analyze_repository(url=REPOSITORY_URL)

    async def test_missing_api_key_uses_fallback(self, settings: Settings):
        adapter = StaticProviderAdapter()
        server, _ = make_server(settings, adapters={"openai": adapter})

        analysis = await server.analyze_repository(url=REPOSITORY_URL, provider="openai")

        assert analysis.ai_analysis.architecture == FALLBACK_ARCHITECTURE
        assert adapter.prompts == []

    async def test_cohere_uses_fallback(self, settings: Settings):
        server, _ = make_server(settings)

        analysis = await server.analyze_repository(url=REPOSITORY_URL, provider="cohere", api_key="cohere-key")

        assert analysis.ai_analysis.architecture == FALLBACK_ARCHITECTURE

    async def test_repository_not_found(self, settings: Settings):
        adapter = StaticProviderAdapter()
        server, _ = make_server(settings, adapters={"gemini": adapter}, status_codes={f"/repos/{OWNER}/{REPO}": 404})

        with pytest.raises(RepositoryNotFoundError, match=re.escape("Repository not found.")):
            _ = await server.analyze_repository(url=REPOSITORY_URL)

        assert adapter.prompts == []

    async def test_invalid_url(self, settings: Settings):
        server, githubkit_client = make_server(settings)

        with pytest.raises(InvalidRepositoryUrlError):
            _ = await server.analyze_repository(url="https://example.com/octo-org/octo-app")

        assert githubkit_client.listed_paths == []


def test_settings_are_read_on_first_use(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DEFAULT_PROVIDER", "mistral")

    server = AnalysisServer(client=make_client()[0])

    with pytest.raises(ValueError, match="DEFAULT_PROVIDER must be one of"):
        _ = server.settings

    monkeypatch.setenv("DEFAULT_PROVIDER", "claude")

    assert server.settings.default_provider == "claude"


def route_client(server: AnalysisServer) -> httpx.AsyncClient:
    fastmcp = FastMCP[None](name="RepoScope")
    _ = server.register_tools(fastmcp=fastmcp)

    return httpx.AsyncClient(transport=httpx.ASGITransport(app=fastmcp.http_app()), base_url="http://testserver")


class TestAnalyzeRoute:
    async def test_analyze(self, settings: Settings):
        server, _ = make_server(settings)

        async with route_client(server) as client:
            response = await client.post("/api/analyze", json={"url": REPOSITORY_URL, "apiProvider": "gemini", "apiKey": "request-key"})

        assert response.status_code == 200

        body: dict[str, Any] = response.json()

        assert list(body) == ["metadata", "fileTree", "readme", "aiAnalysis", "analyzedAt"]
        assert body["metadata"]["fullName"] == "octo-org/octo-app"
        assert body["metadata"]["hasReadme"] is True
        assert body["aiAnalysis"]["keyFeatures"] == ["Sighting map", "Export to CSV"]
        assert body["analyzedAt"] == IsStr()
        assert body["fileTree"][1]["children"][1] == {"name": "index.ts", "path": "src/index.ts", "type": "file", "size": 11}

    async def test_fallback(self, settings: Settings):
        server, _ = make_server(settings, adapters={"gemini": StaticProviderAdapter(error=PROVIDER_ERROR)})

        async with route_client(server) as client:
            response = await client.post("/api/analyze", json={"url": REPOSITORY_URL})

        assert response.status_code == 200
        assert response.json()["aiAnalysis"]["architecture"] == FALLBACK_ARCHITECTURE

    @pytest.mark.parametrize(
        "body",
        [
            {"url": "https://example.com/octo-org/octo-app"},
            {"url": "https://github.com/octo-org"},
        ],
    )
    async def test_invalid_url(self, settings: Settings, body: dict[str, Any]):
        server, _ = make_server(settings)

        async with route_client(server) as client:
            response = await client.post("/api/analyze", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid GitHub URL format. Please use: https://github.com/owner/repo"}

    @pytest.mark.parametrize(
        "content",
        [
            b"not json",
            b"{}",
            b'{"url": "https://github.com/octo-org/octo-app", "apiProvider": "mistral"}',
        ],
    )
    async def test_invalid_body(self, settings: Settings, content: bytes):
        server, _ = make_server(settings)

        async with route_client(server) as client:
            response = await client.post("/api/analyze", content=content, headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert response.json() == {"error": IsStr(regex=r"Invalid request body: .*")}

    async def test_not_found(self, settings: Settings):
        server, _ = make_server(settings, status_codes={f"/repos/{OWNER}/{REPO}": 404})

        async with route_client(server) as client:
            response = await client.post("/api/analyze", json={"url": REPOSITORY_URL})

        assert response.status_code == 404
        assert response.json()["error"].startswith("Repository not found. Make sure the URL is correct and the repository is public.")

    async def test_rate_limited(self, settings: Settings):
        server, _ = make_server(settings, status_codes={f"/repos/{OWNER}/{REPO}": 403})

        async with route_client(server) as client:
            response = await client.post("/api/analyze", json={"url": REPOSITORY_URL})

        assert response.status_code == 429
        assert response.json()["error"].startswith("GitHub API rate limit exceeded. Please try again later.")

    async def test_provider_failure_without_fallback(self, settings: Settings):
        settings = settings.model_copy(update={"enable_fallback": False})
        server, _ = make_server(settings, adapters={"gemini": StaticProviderAdapter(error=PROVIDER_ERROR)})

        async with route_client(server) as client:
            response = await client.post("/api/analyze", json={"url": REPOSITORY_URL})

        assert response.status_code == 502
        assert response.json() == {"error": "Gemini API error: 503 Service Unavailable"}

    async def test_unexpected_provider_failure_uses_fallback(self, settings: Settings):
        server, _ = make_server(settings, adapters={"gemini": BrokenProviderAdapter()})

        async with route_client(server) as client:
            response = await client.post("/api/analyze", json={"url": REPOSITORY_URL})

        assert response.status_code == 200
        assert response.json()["aiAnalysis"]["architecture"] == FALLBACK_ARCHITECTURE

    async def test_unexpected_error(self, settings: Settings):
        server, _ = make_server(settings, repository={"stargazers_count": "many"})

        async with route_client(server) as client:
            response = await client.post("/api/analyze", json={"url": REPOSITORY_URL})

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"error": IsStr(regex=r".*validation error.*", regex_flags=re.DOTALL)}


@pytest.fixture
async def mcp_client(settings: Settings) -> AsyncGenerator[Client[FastMCPTransport], Any]:
    server, _ = make_server(settings)

    fastmcp = FastMCP[None](name="RepoScope")
    _ = server.register_tools(fastmcp=fastmcp)

    async with Client[FastMCPTransport](transport=fastmcp) as client:
        yield client


class TestAnalyzeTool:
    async def test_list_tools(self, mcp_client: Client[FastMCPTransport]):
        tools = await mcp_client.list_tools()

        assert [tool.name for tool in tools] == ["analyze_repository"]
        assert set(tools[0].inputSchema["properties"]) == {"url", "provider", "api_key"}

    async def test_call_tool(self, mcp_client: Client[FastMCPTransport]):
        result = await mcp_client.call_tool("analyze_repository", arguments={"url": REPOSITORY_URL})

        assert result.structured_content is not None
        assert result.structured_content["metadata"]["fullName"] == "octo-org/octo-app"
        assert result.structured_content["aiAnalysis"]["overview"] == "Octo App is a dashboard for octopus sightings."

    async def test_call_tool_invalid_url(self, mcp_client: Client[FastMCPTransport]):
        with pytest.raises(ToolError, match="Invalid GitHub URL format"):
            _ = await mcp_client.call_tool("analyze_repository", arguments={"url": "https://example.com/a/b"})
