from typing import Annotated

from pydantic import Field

from repo_scope.settings import Provider

URL_DESCRIPTION = "The URL of a public GitHub repository, for example https://github.com/owner/repo."
URL = Annotated[str, Field(description=URL_DESCRIPTION)]

PROVIDER_DESCRIPTION = "The AI provider that writes the analysis. If not provided, the server's default provider is used."
PROVIDER = Annotated[Provider | None, Field(description=PROVIDER_DESCRIPTION)]

API_KEY_DESCRIPTION = "The API key for the provider. If not provided, the key configured on the server is used."
API_KEY = Annotated[str | None, Field(description=API_KEY_DESCRIPTION)]
