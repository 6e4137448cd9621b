from .api import ApiService
from .app import EducationApp
from .errors import ApiError, AuthRequired, DownloadFailed, NetworkFailure, RequestFailed

__all__ = [
    "ApiService",
    "EducationApp",
    "ApiError",
    "AuthRequired",
    "DownloadFailed",
    "NetworkFailure",
    "RequestFailed",
]
