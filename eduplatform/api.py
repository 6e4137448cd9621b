import logging
import os
import re
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import unquote

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from . import config
from .errors import AuthRequired, DownloadFailed, NetworkFailure, RequestFailed
from .schemas import (
    Announcement,
    AnnouncementCreate,
    AnnouncementUpdate,
    DashboardStats,
    FeeCreate,
    FeeRecord,
    FeeStats,
    LeaderboardEntry,
    LoginResponse,
    ProfileImageResponse,
    ProfileUpdate,
    RegisterRequest,
    RegisterResponse,
    Resource,
    ResourceCreate,
    Result,
    ResultCreate,
    ResultUpdate,
    Schedule,
    ScheduleCreate,
    Student,
    StudentCreate,
    StudentProfileUpdate,
    UnreadCount,
    User,
)
from .storage import TOKEN_KEY, DownloadFolder, LocalStorage

logger = logging.getLogger("eduplatform.api")

M = TypeVar("M", bound=BaseModel)

_FILENAME_STAR = re.compile(r"filename\*\s*=\s*([^']*)'[^']*'([^;]+)", re.IGNORECASE)
_FILENAME = re.compile(r'filename\s*=\s*(?:"([^"]*)"|([^;]+))', re.IGNORECASE)


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """Suggested file name from a Content-Disposition header, if any."""
    if not header:
        return None
    match = _FILENAME_STAR.search(header)
    if match:
        encoding = match.group(1) or "utf-8"
        return unquote(match.group(2).strip(), encoding=encoding, errors="replace")
    match = _FILENAME.search(header)
    if match:
        name = (match.group(1) if match.group(1) is not None else match.group(2)).strip()
        return name or None
    return None


def error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"HTTP {response.status_code}: {response.reason_phrase}"


def _parse(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error("Unexpected %s payload: %s", model.__name__, e)
        raise RequestFailed("Unexpected response from server") from e


def _parse_list(model: Type[M], data: Any) -> List[M]:
    try:
        return TypeAdapter(List[model]).validate_python(data or [])
    except ValidationError as e:
        logger.error("Unexpected %s list payload: %s", model.__name__, e)
        raise RequestFailed("Unexpected response from server") from e


def _file_part(path: str, field: str) -> Dict[str, Any]:
    with open(path, "rb") as f:
        return {field: (os.path.basename(path), f.read())}


class ApiService:
    """Typed client for the EduPlatform REST backend.

    Every method raises a single ``ApiError`` subclass on failure. Nothing is
    retried and nothing is cached.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        storage: Optional[LocalStorage] = None,
        downloads: Optional[DownloadFolder] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = config.REQUEST_TIMEOUT,
    ):
        self.base_url = (base_url or config.select_base_url()).rstrip("/")
        self.storage = storage if storage is not None else LocalStorage()
        self.downloads = downloads or DownloadFolder(config.DOWNLOAD_DIR)
        self.token: Optional[str] = self.storage.get_item(TOKEN_KEY)
        self.client = httpx.AsyncClient(base_url=self.base_url, transport=transport, timeout=timeout)
        logger.info("API service initialized with base URL %s", self.base_url)

    async def aclose(self) -> None:
        await self.client.aclose()

    # ----------------------
    # Token
    # ----------------------
    def set_token(self, token: str) -> None:
        self.token = token
        self.storage.set_item(TOKEN_KEY, token)

    def clear_token(self) -> None:
        self.token = None
        self.storage.remove_item(TOKEN_KEY)

    def require_token(self) -> str:
        if not self.token:
            raise AuthRequired("Please log in to download resources")
        return self.token

    def _headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    # ----------------------
    # Call paths
    # ----------------------
    async def request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        logger.debug("%s %s%s", method, self.base_url, endpoint)
        try:
            response = await self.client.request(
                method, endpoint, json=json, params=params, headers=self._headers()
            )
        except httpx.TransportError as e:
            logger.error("API request error %s %s: %s", method, endpoint, e)
            raise NetworkFailure(str(e) or e.__class__.__name__) from e
        return self._handle(response, method, endpoint)

    async def upload(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        logger.debug("%s %s%s (multipart)", method, self.base_url, endpoint)
        try:
            response = await self.client.request(
                method, endpoint, data=data, files=files, headers=self._headers(json_body=False)
            )
        except httpx.TransportError as e:
            logger.error("API upload error %s %s: %s", method, endpoint, e)
            raise NetworkFailure(str(e) or e.__class__.__name__) from e
        return self._handle(response, method, endpoint)

    def _handle(self, response: httpx.Response, method: str, endpoint: str) -> Any:
        if not response.is_success:
            message = error_message(response)
            logger.error("API request %s %s failed: %s", method, endpoint, message)
            raise RequestFailed(message, response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RequestFailed("Invalid JSON in server response", response.status_code) from e

    # ----------------------
    # Auth
    # ----------------------
    async def login(self, email: str, password: str) -> LoginResponse:
        body = {"email": email, "password": password}
        return _parse(LoginResponse, await self.request("POST", "/auth/login", json=body))

    async def register(self, payload: RegisterRequest) -> RegisterResponse:
        data = await self.request("POST", "/auth/register", json=payload.to_json())
        if isinstance(data, dict) and "user" not in data and "email" in data:
            # some deployments answer with the bare created user
            data = {"user": data}
        return _parse(RegisterResponse, data)

    # ----------------------
    # Profile
    # ----------------------
    async def get_profile(self) -> User:
        return _parse(User, await self.request("GET", "/user/profile"))

    async def update_profile(self, payload: ProfileUpdate) -> User:
        return _parse(User, await self.request("PUT", "/user/profile", json=payload.to_json()))

    async def upload_profile_image(self, path: str) -> ProfileImageResponse:
        data = await self.upload("POST", "/user/profile/image", files=_file_part(path, "profileImage"))
        return _parse(ProfileImageResponse, data)

    async def get_dashboard_stats(self) -> DashboardStats:
        return _parse(DashboardStats, await self.request("GET", "/dashboard/stats"))

    # ----------------------
    # Resources
    # ----------------------
    async def get_resources(self, type: Optional[str] = None, search: Optional[str] = None) -> List[Resource]:
        params = {}
        if type:
            params["type"] = type
        if search:
            params["search"] = search
        return _parse_list(Resource, await self.request("GET", "/resources", params=params or None))

    async def get_resource(self, resource_id: str) -> Resource:
        return _parse(Resource, await self.request("GET", f"/resources/{resource_id}"))

    async def create_resource(self, payload: ResourceCreate, path: str) -> Resource:
        data = await self.upload("POST", "/resources", data=payload.to_json(), files=_file_part(path, "file"))
        return _parse(Resource, data)

    async def delete_resource(self, resource_id: str) -> None:
        await self.request("DELETE", f"/resources/{resource_id}")

    async def download_resource(self, resource_id: str, fallback_name: Optional[str] = None) -> str:
        """Save a resource into the download folder and return the saved path."""
        self.require_token()
        endpoint = f"/resources/{resource_id}/download"
        try:
            async with self.client.stream("GET", endpoint, headers=self._headers(json_body=False)) as response:
                if not response.is_success:
                    logger.error("Download of resource %s failed with HTTP %s", resource_id, response.status_code)
                    raise DownloadFailed(f"Download failed: HTTP {response.status_code}", response.status_code)
                filename = (
                    filename_from_disposition(response.headers.get("content-disposition"))
                    or fallback_name
                    or f"resource-{resource_id}"
                )
                path, f = self.downloads.open(filename)
                try:
                    with f:
                        async for chunk in response.aiter_bytes():
                            f.write(chunk)
                except Exception:
                    # no partial files left behind
                    os.remove(path)
                    raise
        except httpx.TransportError as e:
            logger.error("Download of resource %s failed: %s", resource_id, e)
            raise NetworkFailure(str(e) or e.__class__.__name__) from e
        logger.info("Saved resource %s to %s", resource_id, path)
        return path

    # ----------------------
    # Schedules
    # ----------------------
    async def get_schedules(self) -> List[Schedule]:
        return _parse_list(Schedule, await self.request("GET", "/schedules"))

    async def create_schedule(self, payload: ScheduleCreate) -> Schedule:
        return _parse(Schedule, await self.request("POST", "/schedules", json=payload.to_json()))

    async def delete_schedule(self, schedule_id: str) -> None:
        await self.request("DELETE", f"/schedules/{schedule_id}")

    # ----------------------
    # Students
    # ----------------------
    async def get_students(self) -> List[Student]:
        return _parse_list(Student, await self.request("GET", "/students"))

    async def create_student(self, payload: StudentCreate) -> Student:
        return _parse(Student, await self.request("POST", "/students", json=payload.to_json()))

    async def delete_student(self, student_id: str) -> None:
        await self.request("DELETE", f"/students/{student_id}")

    async def update_student_profile(self, student_id: str, payload: StudentProfileUpdate) -> Student:
        data = await self.request("PUT", f"/students/{student_id}/profile", json=payload.to_json())
        return _parse(Student, data)

    async def upload_student_image(self, student_id: str, path: str) -> ProfileImageResponse:
        data = await self.upload(
            "POST", f"/students/{student_id}/profile/image", files=_file_part(path, "profileImage")
        )
        return _parse(ProfileImageResponse, data)

    # ----------------------
    # Fees
    # ----------------------
    async def get_fees(self, **filters: Any) -> List[FeeRecord]:
        params = {k: v for k, v in filters.items() if v not in (None, "")}
        return _parse_list(FeeRecord, await self.request("GET", "/fees", params=params or None))

    async def create_fee(self, payload: FeeCreate) -> FeeRecord:
        return _parse(FeeRecord, await self.request("POST", "/fees", json=payload.to_json()))

    async def get_fee_status(self) -> List[FeeRecord]:
        return _parse_list(FeeRecord, await self.request("GET", "/fees/status"))

    async def get_fee_stats(self) -> FeeStats:
        return _parse(FeeStats, await self.request("GET", "/fees/stats"))

    # ----------------------
    # Results
    # ----------------------
    async def get_results(self, **filters: Any) -> List[Result]:
        params = {k: v for k, v in filters.items() if v not in (None, "")}
        return _parse_list(Result, await self.request("GET", "/results", params=params or None))

    async def create_result(self, payload: ResultCreate) -> Result:
        return _parse(Result, await self.request("POST", "/results", json=payload.to_json()))

    async def update_result(self, result_id: str, payload: ResultUpdate) -> Result:
        return _parse(Result, await self.request("PUT", f"/results/{result_id}", json=payload.to_json()))

    async def delete_result(self, result_id: str) -> None:
        await self.request("DELETE", f"/results/{result_id}")

    async def get_leaderboard(self) -> List[LeaderboardEntry]:
        return _parse_list(LeaderboardEntry, await self.request("GET", "/results/leaderboard"))

    # ----------------------
    # Announcements
    # ----------------------
    async def get_announcements(self) -> List[Announcement]:
        return _parse_list(Announcement, await self.request("GET", "/announcements"))

    async def create_announcement(self, payload: AnnouncementCreate) -> Announcement:
        return _parse(Announcement, await self.request("POST", "/announcements", json=payload.to_json()))

    async def update_announcement(self, announcement_id: str, payload: AnnouncementUpdate) -> Announcement:
        data = await self.request("PUT", f"/announcements/{announcement_id}", json=payload.to_json())
        return _parse(Announcement, data)

    async def delete_announcement(self, announcement_id: str) -> None:
        await self.request("DELETE", f"/announcements/{announcement_id}")

    async def mark_announcement_read(self, announcement_id: str) -> None:
        await self.request("POST", f"/announcements/{announcement_id}/read")

    async def get_unread_count(self) -> int:
        return _parse(UnreadCount, await self.request("GET", "/announcements/unread/count")).count
