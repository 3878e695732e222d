from repo_scope.clients.errors.github import ClientError


class ProviderError(ClientError):
    """An error from an AI provider. The message is prefixed with the provider's display name."""

    def __init__(self, provider: str, message: str):
        self.provider: str = provider
        super().__init__(message=f"{provider} API error: {message}")


class ProviderRequestError(ProviderError):
    """The provider call failed or returned a non-success status."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        self.status_code: int | None = status_code
        super().__init__(provider=provider, message=f"{status_code} {message}" if status_code else message)


class ProviderEmptyResponseError(ProviderError):
    """The provider's response envelope did not contain any text."""

    def __init__(self, provider: str):
        super().__init__(provider=provider, message=f"No response from {provider} API")


class ProviderResponseParseError(ProviderError):
    """The text returned by the provider is not valid JSON."""

    def __init__(self, provider: str, detail: str):
        super().__init__(provider=provider, message=f"Response is not valid JSON: {detail}")


class ProviderNotSupportedError(ProviderError):
    def __init__(self, provider: str):
        super().__init__(provider=provider, message=f"{provider} is not yet supported")


class ProviderCredentialsError(ProviderError):
    def __init__(self, provider: str):
        super().__init__(provider=provider, message="No API key was provided and none is configured on the server")
