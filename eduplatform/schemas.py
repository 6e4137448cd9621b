"""
Data models for the EduPlatform client

Response models mirror the records the backend owns. The backend speaks
camelCase JSON and sends ids as either "_id" or "id"; unknown keys are kept.
Request models describe the payloads the client sends.
"""
from typing import Optional, Literal, List, Union, Any, Dict
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["teacher", "student"]
ResourceType = Literal["note", "question", "book"]
FeeStatus = Literal["paid", "pending", "overdue"]
Priority = Literal["low", "normal", "high"]

RESOURCE_TYPES: List[str] = ["note", "question", "book"]


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))


class Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ----------------------
# Users
# ----------------------
class UserRef(Record):
    name: Optional[str] = None
    email: Optional[str] = None
    profile_image: Optional[str] = None


class User(Record):
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address")
    role: Role = Field("student", description="User role")
    profile_image: Optional[str] = Field(None, description="Avatar url or server-relative path")
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_teacher(self) -> bool:
        return self.role == "teacher"


class Student(User):
    role: Role = "student"


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def ref_id(ref: Union[UserRef, str, None]) -> Optional[str]:
    if isinstance(ref, UserRef):
        return ref.id
    return ref


def ref_name(ref: Union[UserRef, str, None], default: str = "Unknown") -> str:
    if isinstance(ref, UserRef) and ref.name:
        return ref.name
    return default


# ----------------------
# Content
# ----------------------
class Resource(Record):
    title: str
    description: Optional[str] = None
    type: ResourceType
    file_name: Optional[str] = None
    file_size: int = Field(0, description="Size in bytes")
    uploaded_by: Union[UserRef, str, None] = None
    created_at: Optional[datetime] = None


class Schedule(Record):
    title: str
    description: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    meeting_link: Optional[str] = None
    password: Optional[str] = None
    created_by: Union[UserRef, str, None] = None


class DashboardStats(Record):
    # teacher view
    notes: int = 0
    questions: int = 0
    books: int = 0
    students: int = 0
    schedules: int = 0
    # student view
    total_resources: int = 0
    upcoming_schedules: int = 0


# ----------------------
# Fees
# ----------------------
class FeeRecord(Record):
    student_id: Union[UserRef, str, None] = None
    month: str
    year: int
    amount: float
    status: FeeStatus = Field("pending", description="Set by the backend, never computed here")
    payment_date: Optional[str] = None
    notes: Optional[str] = None


class FeeStats(Record):
    total_collected: float = 0
    total_pending: float = 0
    total_overdue: float = 0
    paid_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0


# ----------------------
# Results
# ----------------------
class Result(Record):
    student_id: Union[UserRef, str, None] = None
    exam_name: str
    subject: str
    class_name: Optional[str] = Field(None, alias="class")
    exam_date: Optional[str] = None
    total_marks: float
    marks_obtained: float
    percentage: Optional[float] = None
    grade: Optional[str] = None
    remarks: Optional[str] = None


class LeaderboardEntry(Record):
    rank: int
    student_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    profile_image: Optional[str] = None
    average_percentage: float = 0
    total_exams: int = 0
    highest_score: float = 0


# ----------------------
# Announcements
# ----------------------
class Announcement(Record):
    title: str
    content: str
    priority: Priority = "normal"
    created_by: Union[UserRef, str, None] = None
    created_at: Optional[datetime] = None
    read_by: List[Union[UserRef, str]] = Field(default_factory=list)

    def is_read_by(self, user_id: Optional[str]) -> bool:
        return any(ref_id(r) == user_id for r in self.read_by)


class UnreadCount(Record):
    count: int = 0


# ----------------------
# Auth responses
# ----------------------
class LoginResponse(Record):
    token: str
    user: User


class RegisterResponse(Record):
    token: Optional[str] = None
    user: Optional[User] = None
    message: Optional[str] = None


class ProfileImageResponse(Record):
    user: User
    profile_image: Optional[str] = None


# ----------------------
# Request payloads
# ----------------------
class LoginRequest(Payload):
    email: EmailStr
    password: str


class RegisterRequest(Payload):
    name: str
    email: EmailStr
    password: str
    role: Role = "student"
    phone: Optional[str] = None


class ProfileUpdate(Payload):
    name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    bio: Optional[str] = None

    # blank optional fields go out as "" to clear them; a blank name is left unchanged
    @field_validator("name", mode="before")
    @classmethod
    def keep_name(cls, value):
        return blank_to_none(value)


class ResourceCreate(Payload):
    title: str
    description: Optional[str] = None
    type: ResourceType


class ScheduleCreate(Payload):
    title: str
    description: Optional[str] = None
    date: str
    time: str
    meeting_link: Optional[str] = None
    password: Optional[str] = None


class StudentCreate(Payload):
    name: str
    email: EmailStr
    password: str
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None


class StudentProfileUpdate(ProfileUpdate):
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def keep_email(cls, value):
        return blank_to_none(value)


class FeeCreate(Payload):
    student_id: str
    month: str
    year: int
    amount: float = Field(..., ge=0)
    status: FeeStatus = "pending"
    payment_date: Optional[str] = None
    notes: Optional[str] = None


class ResultCreate(Payload):
    student_id: str
    exam_name: str
    subject: str
    class_name: Optional[str] = Field(None, alias="class")
    exam_date: Optional[str] = None
    total_marks: float = Field(..., gt=0)
    marks_obtained: float = Field(..., ge=0)
    remarks: Optional[str] = None


class ResultUpdate(Payload):
    exam_name: Optional[str] = None
    subject: Optional[str] = None
    class_name: Optional[str] = Field(None, alias="class")
    exam_date: Optional[str] = None
    total_marks: Optional[float] = Field(None, gt=0)
    marks_obtained: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None

    @field_validator("exam_name", "subject", "total_marks", "marks_obtained", mode="before")
    @classmethod
    def keep_required(cls, value):
        return blank_to_none(value)


class AnnouncementCreate(Payload):
    title: str
    content: str
    priority: Priority = "normal"


class AnnouncementUpdate(Payload):
    title: Optional[str] = None
    content: Optional[str] = None
    priority: Optional[Priority] = None

    @field_validator("title", "content", "priority", mode="before")
    @classmethod
    def keep_required(cls, value):
        return blank_to_none(value)
