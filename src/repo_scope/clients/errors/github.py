ExtraInfoType = dict[str, str | None]


class ClientError(Exception):
    """A request error from the RepoScope clients."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class RequestError(ClientError):
    """A GitHub request error from the RepoScope client."""

    def __init__(self, action: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(message=f"GitHub API error: {message or 'unknown error'}", extra_info={"action": action, **extra_info})


class RepositoryNotFoundError(ClientError):
    """The repository does not exist or is not public."""

    def __init__(self, action: str, resource: str | None = None):
        super().__init__(
            message="Repository not found. Make sure the URL is correct and the repository is public.",
            extra_info={"action": action, "resource": resource},
        )


class RateLimitExceededError(ClientError):
    """GitHub refused the request because the rate limit is exhausted."""

    def __init__(self, action: str):
        super().__init__(message="GitHub API rate limit exceeded. Please try again later.", extra_info={"action": action})
