# wellness_calendar/models.py

from typing import Optional
from datetime import datetime, date as Date, timezone

from sqlalchemy import Index, text
from sqlalchemy.types import JSON, DateTime
from sqlmodel import SQLModel, Field, Column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # admin, professional or student
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    specialty: Optional[str] = None  # teacher, nutritionist, psychologist

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.email


class Appointment(SQLModel, table=True):
    # one live appointment per professional and start; cancelled rows free the cell
    __table_args__ = (
        Index(
            "uq_professional_start",
            "professional_id",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text("status = 'scheduled'"),
            postgresql_where=text("status = 'scheduled'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    student_id: int = Field(foreign_key="user.id", index=True)
    professional_id: int = Field(foreign_key="user.id", index=True)
    type: str
    title: str
    description: Optional[str] = None

    date: Date = Field(index=True)
    start_time: str  # "HH:MM"
    end_time: str
    duration: int  # minutes

    status: str = "scheduled"
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None

    location: Optional[str] = None
    room: Optional[str] = None

    deduct_from_plan: bool = True
    evaluation: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_by: int = Field(foreign_key="user.id")
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class Block(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    title: str
    reason: Optional[str] = None
    type: str = Field(default="global", index=True)  # global, professional, location, room

    date: Optional[Date] = Field(default=None, index=True)
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool = False

    is_recurring: bool = False
    recurrence: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    professional_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    location: Optional[str] = None
    room: Optional[str] = None

    active: bool = Field(default=True, index=True)
    created_by: int = Field(foreign_key="user.id")
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class PlanUsage(SQLModel, table=True):
    user_id: int = Field(foreign_key="user.id", primary_key=True)
    plan_type: str = "trial"  # trial, basic, pro, elite, champion
    total_classes: int
    used_classes: int = 0
    remaining_classes: int
    classes_per_week: int
    starts_on: Date
    expires_on: Date
    active: bool = True
