import asyncio
import json

import httpx
import pytest

from eduplatform import config, views
from eduplatform.app import describe_error
from eduplatform.errors import AuthRequired, RequestFailed
from eduplatform.main import start
from eduplatform.schemas import (
    Announcement,
    FeeCreate,
    Resource,
    Result,
    ResultCreate,
    ResultUpdate,
    StudentProfileUpdate,
)
from eduplatform.storage import LocalStorage, safe_filename
from eduplatform.timers import Timers


# ----------------------
# Config
# ----------------------
@pytest.mark.parametrize("host, expected", [
    ("localhost", "http://local/api"),
    ("127.0.0.1", "http://local/api"),
    ("school.example.org", "https://deployed/api"),
])
def test_base_url_follows_hostname(monkeypatch, host, expected):
    monkeypatch.setattr(config, "API_URL", None)
    monkeypatch.setattr(config, "LOCAL_API_URL", "http://local/api/")
    monkeypatch.setattr(config, "DEPLOYED_API_URL", "https://deployed/api")
    assert config.select_base_url(host) == expected


def test_explicit_api_url_wins(monkeypatch):
    monkeypatch.setattr(config, "API_URL", "http://override/api/")
    assert config.select_base_url("localhost") == "http://override/api"


# ----------------------
# Storage
# ----------------------
def test_local_storage_persists_to_file(tmp_path):
    path = tmp_path / "state" / "storage.json"
    first = LocalStorage(str(path))
    first.set_item("authToken", "abc")
    first.set_item("theme", "dark")
    first.remove_item("theme")

    assert json.loads(path.read_text()) == {"authToken": "abc"}
    assert LocalStorage(str(path)).get_item("authToken") == "abc"


def test_unreadable_storage_file_is_ignored(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json")
    assert LocalStorage(str(path)).get_item("authToken") is None


@pytest.mark.parametrize("name, expected", [
    ("notes.pdf", "notes.pdf"),
    ("../../etc/passwd", "passwd"),
    ("C:\\docs\\report.docx", "report.docx"),
    ('bad:name?.txt', "bad_name_.txt"),
    ("..", "download"),
    ("", "download"),
])
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected


# ----------------------
# Timers
# ----------------------
async def test_timeout_fires_once_and_can_be_cleared():
    timers = Timers()
    fired = []
    timers.set_timeout(lambda: fired.append("a"), 0.01)
    cancelled = timers.set_timeout(lambda: fired.append("b"), 0.01)
    timers.clear(cancelled)
    await asyncio.sleep(0.05)
    assert fired == ["a"]


async def test_interval_repeats_until_cleared():
    timers = Timers()
    ticks = []

    async def tick():
        ticks.append(1)

    handle = timers.set_interval(tick, 0.01)
    await asyncio.sleep(0.055)
    timers.clear(handle)
    count = len(ticks)
    await asyncio.sleep(0.03)
    assert count >= 2
    assert len(ticks) == count


async def test_failing_callback_is_logged(caplog):
    timers = Timers()

    def boom():
        raise RuntimeError("boom")

    timers.set_timeout(boom, 0)
    await asyncio.sleep(0.01)
    assert "Timer callback" in caplog.text
    timers.clear_all()


# ----------------------
# Schemas
# ----------------------
def test_records_accept_either_id_key():
    assert Resource.model_validate({"_id": "1", "title": "A", "type": "note"}).id == "1"
    assert Resource.model_validate({"id": "2", "title": "B", "type": "book"}).id == "2"


def test_records_keep_unknown_fields():
    resource = Resource.model_validate({"_id": "1", "title": "A", "type": "note", "tags": ["x"]})
    assert resource.model_extra == {"tags": ["x"]}


def test_result_class_field_round_trip():
    result = Result.model_validate({"examName": "Mid", "subject": "Math", "class": "10A",
                                    "totalMarks": 50, "marksObtained": 40})
    assert result.class_name == "10A"
    payload = ResultCreate(student_id="s1", exam_name="Mid", subject="Math", class_name="10A",
                           total_marks=50, marks_obtained=40)
    assert payload.to_json() == {"studentId": "s1", "examName": "Mid", "subject": "Math", "class": "10A",
                                 "totalMarks": 50.0, "marksObtained": 40.0}


def test_fee_amount_cannot_be_negative():
    with pytest.raises(ValueError):
        FeeCreate(student_id="s1", month="May", year=2024, amount=-1)


def test_update_payloads_send_blank_optional_fields():
    result = ResultUpdate.model_validate({"examName": "", "subject": "Math", "totalMarks": "",
                                          "marksObtained": "40", "remarks": ""})
    assert result.to_json() == {"subject": "Math", "marksObtained": 40.0, "remarks": ""}
    profile = StudentProfileUpdate.model_validate({"name": " ", "email": "", "phone": "", "bio": "Hi"})
    assert profile.to_json() == {"phone": "", "bio": "Hi"}


def test_read_by_accepts_ids_and_refs():
    item = Announcement.model_validate({"title": "T", "content": "C",
                                        "readBy": ["u1", {"_id": "u2", "name": "Ann"}]})
    assert item.is_read_by("u1")
    assert item.is_read_by("u2")
    assert not item.is_read_by("u3")


# ----------------------
# Formatting / errors
# ----------------------
@pytest.mark.parametrize("size, expected", [
    (0, "0 Bytes"),
    (None, "0 Bytes"),
    (512, "512 Bytes"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (5 * 1024 * 1024, "5 MB"),
])
def test_format_file_size(size, expected):
    assert views.format_file_size(size) == expected


def test_format_date():
    assert views.format_date("2024-03-05T10:00:00Z") == "Mar 05, 2024"
    assert views.format_date(None) == "-"
    assert views.format_date("someday") == "someday"


def test_describe_error():
    assert describe_error(AuthRequired()) == "Please log in to continue"
    assert describe_error(RequestFailed("Forbidden", 403)) == "Forbidden"
    with pytest.raises(ValueError) as info:
        FeeCreate(student_id="s1", month="May", year=2024, amount=-1)
    assert describe_error(info.value).startswith("amount:")
    assert describe_error(NotADirectoryError(20, "Not a directory", "/tmp/x")) == "File error: Not a directory (/tmp/x)"


# ----------------------
# Bootstrap
# ----------------------
async def test_start_wires_configured_backend(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "API_URL", None)
    transport = httpx.MockTransport(lambda request: httpx.Response(500))

    app = await start(hostname="school.example.org", storage_path=None, download_dir=str(tmp_path),
                      transport=transport)

    assert app.api.base_url == config.DEPLOYED_API_URL.rstrip("/")
    assert app.api.downloads.directory == str(tmp_path)
    assert app.document.is_visible("login")
    await app.close()
