from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, date
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

DayOfWeek = Literal["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
ActivityType = Literal["Gym", "Class"]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# --- Auth ---

class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class Principal(BaseModel):
    """Who is calling: a staff user or a member."""
    id: int
    role: str
    kind: Literal["user", "member"]

    @property
    def is_staff(self) -> bool:
        return self.kind == "user"


# --- Members ---

class MemberCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: Optional[str] = None
    nic: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email", "nic", "dob", "gender", "address", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value):
        return _blank_to_none(value)


class MemberUpdate(BaseModel):
    """Partial update: only the fields present in the body are written."""
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    nic: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    status: Optional[Literal["active", "expired", "inactive"]] = None

    @field_validator("email", "nic", "dob", "gender", "address", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value):
        return _blank_to_none(value)

    # Omitted means "leave unchanged"; an explicit null would violate NOT NULL
    @field_validator("first_name", "last_name", "phone", "status", mode="after")
    @classmethod
    def required_fields_not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class MemberResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: str
    nic: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    photo_url: Optional[str] = None
    status: str
    active_plan_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ScheduleItemCreate(BaseModel):
    day: DayOfWeek
    activity: str = Field(min_length=1)
    time: str = Field(min_length=1)
    type: ActivityType = "Gym"
    trainer: Optional[str] = None


class ScheduleItemResponse(BaseModel):
    id: int
    member_id: int
    day_of_week: str
    activity: str
    time: str
    type: str
    trainer: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CompletionToggle(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    completion_date: Optional[date] = Field(default=None, alias="date")


# --- Attendance ---

class MarkAttendanceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    member_id: int = Field(alias="memberId")
    type: Literal["in", "out"]


# --- Biometrics ---

class BiometricOptionsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    member_id: int = Field(alias="memberId")


class BiometricVerifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    member_id: int = Field(alias="memberId")
    response: Dict[str, Any]
    type: Literal["in", "out"] = "in"


# --- Memberships & payments ---

class MembershipRequest(BaseModel):
    member_id: int
    plan_id: int
    payment_method: Optional[str] = "online"


class PaymentCreate(BaseModel):
    member_id: int
    plan_id: Optional[int] = None
    amount: Decimal = Field(gt=0)
    payment_method: str = Field(min_length=1)


class GatewayInitiateRequest(BaseModel):
    member_id: int
    plan_id: int


# --- Workout plans ---

class WorkoutPlanItemIn(BaseModel):
    day_of_week: DayOfWeek
    activity: str = Field(min_length=1)
    time: Optional[str] = None
    type: Optional[ActivityType] = None
    trainer: Optional[str] = None


class WorkoutPlanCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    difficulty: Literal["Beginner", "Intermediate", "Advanced"] = "Beginner"
    items: List[WorkoutPlanItemIn] = Field(default_factory=list)


class AssignPlanRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_id: int = Field(alias="planId")
    member_ids: Optional[List[int]] = Field(default=None, alias="memberIds")
    # Single-member form accepted by older clients
    member_id: Optional[int] = Field(default=None, alias="memberId")

    def targets(self) -> List[int]:
        if self.member_ids is not None:
            return list(self.member_ids)
        if self.member_id is not None:
            return [self.member_id]
        return []
