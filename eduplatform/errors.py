from typing import Optional


class ApiError(Exception):
    """Base for every failure the transport client surfaces."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class AuthRequired(ApiError):
    def __init__(self, message: str = "Please log in to continue"):
        super().__init__(message)


class RequestFailed(ApiError):
    pass


class DownloadFailed(ApiError):
    pass


class NetworkFailure(ApiError):
    pass
