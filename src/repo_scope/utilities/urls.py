import re

from pydantic import BaseModel, ConfigDict, Field

from repo_scope.servers.shared.errors import InvalidRepositoryUrlError

GITHUB_REPOSITORY_URL_PATTERN = re.compile(r"^https?://(www\.)?github\.com/[\w.-]+/[\w.-]+/?$", re.ASCII)

_OWNER_REPO_PATTERN = re.compile(r"github\.com/([^/]+)/([^/?#]+)")


class RepositoryReference(BaseModel):
    """The owner and name of a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="The owner of the repository.")
    repo: str = Field(description="The name of the repository.")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def is_github_repository_url(url: str) -> bool:
    return GITHUB_REPOSITORY_URL_PATTERN.match(url.strip()) is not None


def parse_github_url(url: str) -> RepositoryReference:
    """Extract the owner and repository name from a GitHub repository URL.

    Raises:
        InvalidRepositoryUrlError: If the URL is not of the form https://github.com/owner/repo.
    """

    url = url.strip()

    if not is_github_repository_url(url):
        raise InvalidRepositoryUrlError(url=url)

    match = _OWNER_REPO_PATTERN.search(url)

    if match is None:
        raise InvalidRepositoryUrlError(url=url)

    owner, repo = match.groups()

    repo = repo.removesuffix(".git")

    if not repo:
        raise InvalidRepositoryUrlError(url=url)

    return RepositoryReference(owner=owner, repo=repo)
