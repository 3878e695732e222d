from pydantic import Field

from repo_scope.models.base import CamelModel
from repo_scope.servers.shared.annotations import API_KEY_DESCRIPTION, PROVIDER_DESCRIPTION, URL_DESCRIPTION
from repo_scope.settings import Provider


class AnalyzeRequest(CamelModel):
    """The body of a `POST /api/analyze` request. The URL is validated when the request is analyzed."""

    url: str = Field(description=URL_DESCRIPTION)
    api_provider: Provider | None = Field(default=None, description=PROVIDER_DESCRIPTION)
    api_key: str | None = Field(default=None, description=API_KEY_DESCRIPTION)


class ErrorResponse(CamelModel):
    error: str
