# wellness_calendar/schemas.py

from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime, date as Date
from typing import Optional

from wellness_calendar.core.types import (
    AppointmentStatus,
    AppointmentType,
    BlockType,
    Recurrence,
    Role,
)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Role
    expires_in: int  # seconds


class Specialty(str, Enum):
    teacher = "teacher"
    nutritionist = "nutritionist"
    psychologist = "psychologist"


class PlanType(str, Enum):
    trial = "trial"
    basic = "basic"
    pro = "pro"
    elite = "elite"
    champion = "champion"


class UserPublic(BaseModel):
    id: int
    email: str
    role: Role
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    specialty: Optional[Specialty] = None


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    role: Role = Role.student
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    specialty: Optional[Specialty] = None


class AppointmentCreate(BaseModel):
    student_id: Optional[int] = None        # students book for themselves
    professional_id: Optional[int] = None   # professionals book for themselves
    type: AppointmentType
    title: Optional[str] = None
    description: Optional[str] = None
    date: Date
    start_time: str
    end_time: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    location: Optional[str] = None
    room: Optional[str] = None
    notes: Optional[str] = None
    deduct_from_plan: bool = True


class AppointmentPublic(BaseModel):
    id: int
    student_id: int
    professional_id: int
    type: str
    title: str
    description: Optional[str] = None
    date: Date
    start_time: str
    end_time: str
    duration: int
    status: AppointmentStatus
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    location: Optional[str] = None
    room: Optional[str] = None
    deduct_from_plan: bool
    evaluation: Optional[dict] = None
    created_by: int
    created_at: datetime


class AutoCompleteResult(BaseModel):
    completed: int


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class Reschedule(BaseModel):
    date: Date
    start_time: str
    end_time: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)


class EvaluationCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comments: Optional[str] = Field(default=None, max_length=1000)
    punctuality: int = Field(ge=1, le=5)
    quality: int = Field(ge=1, le=5)
    overall: int = Field(ge=1, le=5)


class BlockCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    reason: Optional[str] = None
    type: BlockType = BlockType.global_
    date: Optional[Date] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool = False
    is_recurring: bool = False
    recurrence: Optional[Recurrence] = None
    professional_id: Optional[int] = None
    location: Optional[str] = None
    room: Optional[str] = None
    active: bool = True


class BlockPublic(BaseModel):
    id: int
    title: str
    reason: Optional[str] = None
    type: BlockType
    date: Optional[Date] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool
    is_recurring: bool
    recurrence: Optional[Recurrence] = None
    professional_id: Optional[int] = None
    location: Optional[str] = None
    room: Optional[str] = None
    active: bool
    created_by: int


class BlockActiveUpdate(BaseModel):
    active: bool


class PlanUsagePublic(BaseModel):
    user_id: int
    plan_type: PlanType
    total_classes: int
    used_classes: int
    remaining_classes: int
    classes_per_week: int
    starts_on: Date
    expires_on: Date
    active: bool


class PlanRenew(BaseModel):
    plan_type: PlanType


class AppointmentStats(BaseModel):
    today: int
    this_week: int
    total: int
    completed: int
    completion_rate: int  # percent of non-cancelled classes
    plan: Optional[PlanUsagePublic] = None
