import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import httpx
import pytest

from eduplatform.api import ApiService
from eduplatform.app import EducationApp
from eduplatform.dom import Document
from eduplatform.storage import DownloadFolder, LocalStorage
from fake_backend import BASE_URL, STUDENT, TEACHER, create_backend


@dataclass
class ManualTimer:
    callback: Callable[[], Any]
    due: float
    interval: Optional[float] = None
    cancelled: bool = False
    fired: bool = False

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired


class ManualTimers:
    """Timers driven by ``advance`` instead of the wall clock."""

    def __init__(self):
        self.now = 0.0
        self.timers: List[ManualTimer] = []

    def set_timeout(self, callback, delay):
        return self._add(ManualTimer(callback, self.now + delay))

    def set_interval(self, callback, interval):
        return self._add(ManualTimer(callback, self.now + interval, interval))

    def clear(self, handle):
        if handle is not None:
            handle.cancelled = True

    def clear_all(self):
        for timer in self.timers:
            timer.cancelled = True

    @property
    def intervals(self) -> List[ManualTimer]:
        return [t for t in self.timers if t.active and t.interval is not None]

    def _add(self, timer: ManualTimer) -> ManualTimer:
        self.timers.append(timer)
        return timer

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if t.active and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            if timer.interval is None:
                timer.fired = True
            else:
                timer.due += timer.interval
            result = timer.callback()
            if inspect.isawaitable(result):
                await result
        self.now = target


@dataclass
class Confirm:
    answer: bool = True
    asked: List[str] = field(default_factory=list)

    def __call__(self, message: str) -> bool:
        self.asked.append(message)
        return self.answer


@pytest.fixture
def backend():
    return create_backend()


@pytest.fixture
def storage():
    return LocalStorage()


@pytest.fixture
def download_dir(tmp_path):
    return tmp_path / "downloads"


@pytest.fixture
async def api(backend, storage, download_dir):
    service = ApiService(
        base_url=BASE_URL,
        storage=storage,
        downloads=DownloadFolder(str(download_dir)),
        transport=httpx.ASGITransport(app=backend),
    )
    yield service
    await service.aclose()


@pytest.fixture
def timers():
    return ManualTimers()


@pytest.fixture
def confirm():
    return Confirm()


@pytest.fixture
def app(api, storage, timers, confirm):
    return EducationApp(api, Document(), storage=storage, timers=timers, confirm=confirm)


async def sign_in(app: EducationApp, account: dict) -> None:
    app.show_login()
    form = app.document.find("login", id="loginForm")
    form.fill(email=account["email"], password=account["password"])
    await app.document.dispatch(form, "submit")


@pytest.fixture
async def teacher_app(app):
    await sign_in(app, TEACHER)
    assert app.current_user.is_teacher
    return app


@pytest.fixture
async def student_app(app):
    await sign_in(app, STUDENT)
    assert app.current_user.role == "student"
    return app
