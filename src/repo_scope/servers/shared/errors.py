ExtraInfoType = dict[str, str | None]


class ServerError(Exception):
    """A request error from the RepoScope server."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class InvalidRepositoryUrlError(ServerError):
    """The URL is not a GitHub repository URL."""

    def __init__(self, url: str):
        self.url: str = url
        super().__init__(message="Invalid GitHub URL format. Please use: https://github.com/owner/repo")


class InvalidAnalyzeRequestError(ServerError):
    """The body of an analyze request could not be validated."""

    def __init__(self, message: str):
        super().__init__(message=message)
