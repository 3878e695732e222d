from datetime import UTC, datetime
from typing import Literal, Self

from pydantic import ConfigDict, Field

from repo_scope.clients.models.github import RepositoryMetadata
from repo_scope.models.base import CamelModel
from repo_scope.models.repository.tree import FileNode

TechnologyCategory = Literal["frontend", "backend", "database", "devops", "testing", "other"]

TECHNOLOGY_CATEGORIES: tuple[TechnologyCategory, ...] = ("frontend", "backend", "database", "devops", "testing", "other")

MAX_KEY_FEATURES = 8
MAX_INSIGHTS = 5


class TechnologyInfo(CamelModel):
    """A technology detected in the repository."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="The name of the technology.")
    category: TechnologyCategory = Field(description="The role the technology plays in the project.")
    confidence: float = Field(ge=0, le=1, description="How certain the detection is, between 0 and 1.")


class AIAnalysis(CamelModel):
    """The provider-independent analysis of a repository."""

    model_config = ConfigDict(frozen=True)

    overview: str = Field(description="A short summary of what the repository is.")
    purpose: str = Field(description="The problem the project solves and who it is for.")
    architecture: str = Field(description="How the project is structured and how its components interact.")
    key_features: list[str] = Field(default_factory=list, max_length=MAX_KEY_FEATURES, description="The primary features.")
    technologies: list[TechnologyInfo] = Field(default_factory=list, description="The technologies used by the project.")
    insights: list[str] = Field(default_factory=list, max_length=MAX_INSIGHTS, description="Notable observations.")


class AnalysisInput(CamelModel):
    """Everything the prompt and the fallback analysis are derived from."""

    model_config = ConfigDict(frozen=True)

    repo_name: str
    description: str | None = None
    language: str | None = None
    topics: list[str] = Field(default_factory=list)
    readme: str | None = None
    file_tree: list[FileNode] = Field(default_factory=list)
    key_file_contents: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_metadata(
        cls, metadata: RepositoryMetadata, readme: str | None, file_tree: list[FileNode], key_file_contents: dict[str, str]
    ) -> Self:
        return cls(
            repo_name=metadata.full_name,
            description=metadata.description,
            language=metadata.language,
            topics=metadata.topics,
            readme=readme,
            file_tree=file_tree,
            key_file_contents=key_file_contents,
        )


class RepositoryAnalysis(CamelModel):
    """The complete result of analyzing a repository."""

    model_config = ConfigDict(frozen=True)

    metadata: RepositoryMetadata
    file_tree: list[FileNode]
    readme: str | None = None
    ai_analysis: AIAnalysis
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
