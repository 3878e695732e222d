import asyncio
from collections.abc import Awaitable, Callable, Sequence
from logging import Logger, getLogger
from typing import TYPE_CHECKING, Any, Literal, overload

import httpx
from githubkit import GitHub as GitHubKit
from githubkit.auth.token import TokenAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException
from githubkit.exception import RequestFailed as GitHubKitRequestFailed
from githubkit.response import Response as GitHubKitResponse
from pydantic import BaseModel

from repo_scope.clients.errors.github import (
    ClientError,
    RateLimitExceededError,
    RepositoryNotFoundError,
    RequestError,
)
from repo_scope.clients.models.github import RepositoryMetadata
from repo_scope.models.repository.tree import DEFAULT_MAX_DEPTH, FileNode, RepositoryContentItem, build_file_tree
from repo_scope.settings import get_github_token

if TYPE_CHECKING:
    from types import CoroutineType

NOT_FOUND_ERROR = 404
FORBIDDEN_ERROR = 403
TOO_MANY_REQUESTS_ERROR = 429

GITHUBKIT_RESPONSE_TYPE = BaseModel | Sequence[BaseModel]

RAW_CONTENT_BASE_URL = "https://raw.githubusercontent.com"

README_CANDIDATES: tuple[str, ...] = ("README.md", "readme.md", "README", "readme", "README.txt")

MAX_KEY_FILE_FETCHES = 20
MAX_RAW_FILE_CHARACTERS = 50000


def extract_response[T: GITHUBKIT_RESPONSE_TYPE](response: GitHubKitResponse[T], /) -> T:
    """Extract the response from a response."""

    return response.parsed_data


def get_githubkit_client(token: str | None = None) -> GitHubKit[Any]:
    # Requests are never retried.
    token = token or get_github_token()

    if token:
        return GitHubKit[TokenAuthStrategy](auth=TokenAuthStrategy(token=token), auto_retry=False)

    return GitHubKit(auto_retry=False)


def get_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=30.0, follow_redirects=True, headers={"User-Agent": "RepoScope"})


class RepositoryScopeClient:
    githubkit_client: GitHubKit[Any]
    http_client: httpx.AsyncClient
    logger: Logger

    log_requests: bool
    log_responses: bool
    log_on_error: bool

    def __init__(
        self,
        githubkit_client: GitHubKit[Any] | None = None,
        http_client: httpx.AsyncClient | None = None,
        logger: Logger | None = None,
        log_requests: bool = True,
        log_responses: bool = False,
        log_on_error: bool = True,
    ):
        self.githubkit_client = githubkit_client or get_githubkit_client()
        self.http_client = http_client or get_http_client()
        self.logger = logger or getLogger(__name__)
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.log_on_error = log_on_error

    def _get_loggers(
        self, log_request: bool | None = None, log_response: bool | None = None, log_on_error: bool | None = None
    ) -> tuple[Callable[[str], Any], Callable[[str], Any], Callable[[str], Any]]:
        request_logger = self.logger.info if log_request or self.log_requests else self.logger.debug
        response_logger = self.logger.info if log_response or self.log_responses else self.logger.debug
        error_logger = self.logger.error if log_on_error or self.log_on_error else self.logger.debug
        return request_logger, response_logger, error_logger

    @overload
    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: Literal[False] = False,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None: ...

    @overload
    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: Literal[True] = True,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T: ...

    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: bool | None = None,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None:
        """Perform a request and extract the response.

        Args:
            action: The action being performed.
            log_request: Whether to log the request.
            log_response: Whether to log the response.
            log_on_error: Whether to log on error.
            error_on_not_found: Whether to raise an error if the resource is not found.

        Raises:
            RepositoryNotFoundError: If the resource is not found and error_on_not_found is True.
            RateLimitExceededError: If GitHub refuses the request because of rate limiting.
            RequestError: If the request fails for any other reason.
        """

        request_logger, response_logger, error_logger = self._get_loggers(
            log_request=log_request, log_response=log_response, log_on_error=log_on_error
        )

        request_logger(f"Performing {action} using {method.__name__} with kwargs {request_args}")

        try:
            response: GitHubKitResponse[T] = await method(**request_args)
        except GitHubKitRequestFailed as e:
            status_code: int = e.response.status_code

            if status_code == NOT_FOUND_ERROR:
                if error_on_not_found:
                    raise RepositoryNotFoundError(action=action, resource=e.request.url.path) from e

                return None

            if status_code in (FORBIDDEN_ERROR, TOO_MANY_REQUESTS_ERROR):
                error_logger(f"Rate limited performing {action} using {method.__name__} with kwargs {request_args}")

                raise RateLimitExceededError(action=action) from e

            error_logger(f"RequestFailed error performing {action} using {method.__name__} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e) or f"status {status_code}") from e
        except GitHubKitGitHubException as e:
            error_logger(f"Error performing {action} using {method.__name__} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e

        extracted_response = extract_response(response)

        response_logger(f"Extracted response for {action} using {method.__name__} with kwargs {request_args}: {extracted_response}")

        return extracted_response

    async def get_repository_metadata(self, owner: str, repo: str) -> RepositoryMetadata:
        """Get the metadata of a repository.

        Raises:
            RepositoryNotFoundError: If the repository does not exist or is not public.
            RateLimitExceededError: If the GitHub rate limit is exhausted.
        """

        full_repository = await self._perform_rest_request(
            action="Get repository",
            log_request=True,
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_get,
            owner=owner,
            repo=repo,
        )

        return RepositoryMetadata.from_full_repository(full_repository=full_repository)

    async def list_directory(self, owner: str, repo: str, path: str = "") -> list[RepositoryContentItem]:
        """List the entries of a directory. Any failure results in an empty listing."""

        try:
            contents = await self._perform_rest_request(
                action="List directory",
                log_request=False,
                log_on_error=False,
                error_on_not_found=False,
                method=self.githubkit_client.rest.repos.async_get_content,
                owner=owner,
                repo=repo,
                path=path,
            )
        except ClientError as e:
            self.logger.warning(f"Listing {owner}/{repo}/{path} failed, treating it as empty: {e}")
            return []

        if contents is None:
            return []

        entries = contents if isinstance(contents, list) else [contents]

        return [RepositoryContentItem.from_content_directory_item(item=entry) for entry in entries]

    async def get_file_tree(self, owner: str, repo: str, max_depth: int = DEFAULT_MAX_DEPTH) -> list[FileNode]:
        """Get the tree of a repository down to `max_depth` levels, without noise directories and dotfiles."""

        async def list_directory(path: str) -> list[RepositoryContentItem]:
            return await self.list_directory(owner=owner, repo=repo, path=path)

        return await build_file_tree(list_directory=list_directory, max_depth=max_depth)

    async def get_raw_file(self, owner: str, repo: str, path: str) -> str | None:
        """Get the content of a file from the HEAD of the repository, or None if it cannot be fetched."""

        url = f"{RAW_CONTENT_BASE_URL}/{owner}/{repo}/HEAD/{path}"

        try:
            response: httpx.Response = await self.http_client.get(url)
        except httpx.HTTPError as e:
            self.logger.debug(f"Fetching {url} failed: {e}")
            return None

        if not response.is_success:
            self.logger.debug(f"Fetching {url} returned {response.status_code}")
            return None

        return response.text

    async def get_readme(self, owner: str, repo: str) -> str | None:
        """Get the README of a repository, trying the common README file names in order."""

        for name in README_CANDIDATES:
            if (readme := await self.get_raw_file(owner=owner, repo=repo, path=name)) is not None:
                return readme

        return None

    async def get_files(self, owner: str, repo: str, paths: Sequence[str]) -> dict[str, str]:
        """Get the contents of up to 20 files. Files that cannot be fetched or are too large are left out."""

        paths = list(paths)[:MAX_KEY_FILE_FETCHES]

        if not paths:
            return {}

        tasks: list[CoroutineType[Any, Any, str | None]] = [self.get_raw_file(owner=owner, repo=repo, path=path) for path in paths]

        results: list[str | None] = await asyncio.gather(*tasks)

        return {
            path: content
            for path, content in zip(paths, results, strict=True)
            if content is not None and len(content) < MAX_RAW_FILE_CHARACTERS
        }
