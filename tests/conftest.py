from collections.abc import Mapping
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any, override

import httpx
import pytest
from githubkit.exception import RequestFailed
from githubkit.response import Response as GitHubKitResponse

from repo_scope.clients.errors.providers import ProviderError
from repo_scope.clients.github import RepositoryScopeClient
from repo_scope.providers.base import ProviderAdapter
from repo_scope.settings import Provider, Settings

OWNER = "octo-org"
REPO = "octo-app"
REPOSITORY_URL = f"https://github.com/{OWNER}/{REPO}"

SAMPLE_FILES: dict[str, str] = {
    "README.md": "# Octo App\n\nA dashboard for octopus sightings.",
    "package.json": '{"name": "octo-app", "dependencies": {"react": "^18.0.0"}}',
    "Dockerfile": "FROM node:20\n",
    "tsconfig.json": "{}",
    "src/index.ts": "export {};\n",
    "src/utils/format.ts": "export const format = () => '';\n",
    "src/utils/deep/nested/file.ts": "export {};\n",
    "node_modules/react/index.js": "module.exports = {};\n",
    ".env": "SECRET=1\n",
    ".github/workflows/ci.yml": "on: push\n",
}

SAMPLE_REPOSITORY: dict[str, Any] = {
    "name": REPO,
    "full_name": f"{OWNER}/{REPO}",
    "description": "A dashboard for octopus sightings.",
    "owner": SimpleNamespace(login=OWNER),
    "stargazers_count": 42,
    "forks_count": 7,
    "language": "TypeScript",
    "topics": ["dashboard", "react-app", "dashboard"],
    "default_branch": "main",
    "updated_at": datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC),
    "html_url": REPOSITORY_URL,
}

VALID_ANALYSIS_JSON = """{
  "overview": "Octo App is a dashboard for octopus sightings.",
  "purpose": "It helps marine biologists track sightings.",
  "architecture": "A React single page application built with TypeScript.",
  "keyFeatures": ["Sighting map", "Export to CSV"],
  "technologies": [
    {"name": "React", "category": "frontend", "confidence": 0.95},
    {"name": "Docker", "category": "devops", "confidence": 0.9}
  ],
  "insights": ["Uses GitHub Actions for CI"]
}"""


def request_failed(status_code: int, path: str) -> RequestFailed:
    request = httpx.Request(method="GET", url=f"https://api.github.com{path}")
    return RequestFailed(GitHubKitResponse(httpx.Response(status_code=status_code, request=request), data_model=Any))


def list_entries(files: Mapping[str, str], path: str) -> list[SimpleNamespace]:
    """List the immediate children of `path`, the way the GitHub contents API does."""

    prefix = f"{path}/" if path else ""

    entries: dict[str, SimpleNamespace] = {}

    for file_path, content in files.items():
        if not file_path.startswith(prefix):
            continue

        name, _, rest = file_path.removeprefix(prefix).partition("/")

        _ = entries.setdefault(
            name,
            SimpleNamespace(name=name, path=prefix + name, type="dir" if rest else "file", size=0 if rest else len(content)),
        )

    return list(entries.values())


class FakeGitHubKit:
    """Serves the repository and contents endpoints from an in-memory set of files."""

    def __init__(
        self,
        files: Mapping[str, str],
        repository: Mapping[str, Any] | None = None,
        status_codes: Mapping[str, int] | None = None,
    ):
        self.files: dict[str, str] = dict(files)
        self.repository = SimpleNamespace(**{**SAMPLE_REPOSITORY, **(repository or {})})
        self.status_codes: dict[str, int] = dict(status_codes or {})
        self.listed_paths: list[str] = []
        self.rest = SimpleNamespace(repos=SimpleNamespace(async_get=self.async_get, async_get_content=self.async_get_content))

    def _raise_for_path(self, api_path: str) -> None:
        if (status_code := self.status_codes.get(api_path)) is not None:
            raise request_failed(status_code=status_code, path=api_path)

    async def async_get(self, owner: str, repo: str) -> SimpleNamespace:
        self._raise_for_path(f"/repos/{owner}/{repo}")
        return SimpleNamespace(parsed_data=self.repository)

    async def async_get_content(self, owner: str, repo: str, path: str = "") -> SimpleNamespace:
        self.listed_paths.append(path)
        self._raise_for_path(f"/repos/{owner}/{repo}/contents/{path}")
        return SimpleNamespace(parsed_data=list_entries(self.files, path))


def raw_content_transport(files: Mapping[str, str], requested_paths: list[str] | None = None) -> httpx.MockTransport:
    """Serves raw.githubusercontent.com URLs of the form /{owner}/{repo}/HEAD/{path}."""

    def handler(request: httpx.Request) -> httpx.Response:
        path: str = request.url.path.split("/", 4)[4]

        if requested_paths is not None:
            requested_paths.append(path)

        if path in files:
            return httpx.Response(status_code=200, text=files[path])

        return httpx.Response(status_code=404, text="404: Not Found")

    return httpx.MockTransport(handler)


def make_client(
    files: Mapping[str, str] = SAMPLE_FILES,
    repository: Mapping[str, Any] | None = None,
    status_codes: Mapping[str, int] | None = None,
    requested_paths: list[str] | None = None,
) -> tuple[RepositoryScopeClient, FakeGitHubKit]:
    githubkit_client = FakeGitHubKit(files=files, repository=repository, status_codes=status_codes)
    http_client = httpx.AsyncClient(transport=raw_content_transport(files, requested_paths=requested_paths))

    client = RepositoryScopeClient(githubkit_client=githubkit_client, http_client=http_client)  # pyright: ignore[reportArgumentType]

    return client, githubkit_client


class StaticProviderAdapter(ProviderAdapter):
    """Answers every prompt with the same text, or fails with the same error."""

    name = "gemini"
    display_name = "Gemini"
    default_model = "gemini-static"
    model_env_var = "STATIC_PROVIDER_MODEL"

    def __init__(self, text: str | None = VALID_ANALYSIS_JSON, error: ProviderError | None = None):
        super().__init__()
        self.text: str | None = text
        self.error: ProviderError | None = error
        self.prompts: list[str] = []
        self.api_keys: list[str] = []

    @override
    async def _request_text(self, prompt: str, api_key: str) -> str | None:
        self.prompts.append(prompt)
        self.api_keys.append(api_key)

        if self.error is not None:
            raise self.error

        return self.text


@pytest.fixture
def settings() -> Settings:
    provider_api_keys: dict[Provider, str] = {"gemini": "server-gemini-key"}
    return Settings(default_provider="gemini", provider_api_keys=provider_api_keys)
