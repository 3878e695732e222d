from datetime import datetime
from typing import TYPE_CHECKING, Self

from pydantic import ConfigDict, Field

from repo_scope.models.base import CamelModel

if TYPE_CHECKING:
    from githubkit.versions.v2022_11_28.models import FullRepository as GitHubKitFullRepository


class RepositoryMetadata(CamelModel):
    """High-level information about a repository."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="The name of the repository.")
    full_name: str = Field(description="The owner and name of the repository, e.g. `owner/repo`.")
    description: str | None = Field(default=None, description="The description of the repository.")
    owner: str = Field(description="The login of the repository owner.")
    stars: int = Field(description="The number of stars the repository has.")
    forks: int = Field(description="The number of forks of the repository.")
    language: str | None = Field(default=None, description="The primary language of the repository.")
    topics: list[str] = Field(default_factory=list, description="The topics of the repository.")
    default_branch: str = Field(description="The default branch of the repository.")
    updated_at: datetime = Field(description="The date and time the repository was updated.")
    url: str = Field(description="The URL of the repository on GitHub.")
    has_readme: bool = Field(default=False, description="Whether a README was found in the repository.")

    @classmethod
    def from_full_repository(cls, full_repository: "GitHubKitFullRepository") -> Self:
        return cls(
            name=full_repository.name,
            full_name=full_repository.full_name,
            description=full_repository.description,
            owner=full_repository.owner.login,
            stars=full_repository.stargazers_count,
            forks=full_repository.forks_count,
            language=full_repository.language,
            topics=list(dict.fromkeys(full_repository.topics or [])),
            default_branch=full_repository.default_branch,
            updated_at=full_repository.updated_at,
            url=full_repository.html_url,
        )

    def with_readme(self, has_readme: bool) -> Self:
        return self.model_copy(update={"has_readme": has_readme})
