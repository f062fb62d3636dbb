# wellness_calendar/core/types.py

from datetime import date as Date, datetime
from enum import Enum
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field


class Role(str, Enum):
    admin = "admin"
    professional = "professional"
    student = "student"


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no-show"


class AppointmentType(str, Enum):
    trial_class = "trial-class"
    training = "training"
    first_nutrition = "first-nutrition"
    nutrition_followup = "nutrition-followup"
    psychology_session = "psychology-session"
    training_kinesiology = "training-kinesiology"
    group_class = "group-class"
    personal_training = "personal-training"
    evaluation = "evaluation"


class BlockType(str, Enum):
    global_ = "global"
    professional = "professional"
    location = "location"
    room = "room"


class Frequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


def _as_id(value):
    # ids are opaque: DB integers and document ids compare as strings
    if value is None or value == "":
        return None
    return str(value)


OpaqueId = Annotated[Optional[str], BeforeValidator(_as_id)]


class PersonRef(BaseModel):
    id: OpaqueId = None
    name: Optional[str] = None


class CalendarAppointment(BaseModel):
    id: OpaqueId = None
    date: Date
    start_time: str
    end_time: Optional[str] = None
    duration: Optional[int] = None
    student: Optional[PersonRef] = None
    professional: Optional[PersonRef] = None
    type: Optional[str] = None
    title: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.scheduled
    location: Optional[str] = None
    room: Optional[str] = None


class Recurrence(BaseModel):
    frequency: Frequency
    interval: int = Field(default=1, ge=1, le=52)
    days_of_week: List[Union[int, str]] = Field(default_factory=list)
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    end_date: Optional[Date] = None


class CalendarBlock(BaseModel):
    id: OpaqueId = None
    type: BlockType = BlockType.global_
    title: Optional[str] = None
    date: Optional[Date] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool = False
    is_recurring: bool = False
    recurrence: Optional[Recurrence] = None
    professional_id: OpaqueId = None
    location: Optional[str] = None
    room: Optional[str] = None
    active: bool = True


class CellScope(BaseModel):
    """Which professional/location/room a grid cell belongs to."""

    professional_id: OpaqueId = None
    location: Optional[str] = None
    room: Optional[str] = None


class ViewerContext(BaseModel):
    """Everything the core needs to know about who is looking.

    Passed explicitly; nothing in the core reads session state.
    role None means an unauthenticated viewer.
    """

    role: Optional[Role] = None
    user_id: OpaqueId = None
    plan_remaining: int = 0
    now: datetime = Field(default_factory=datetime.now)


class BlockStatus(BaseModel):
    is_blocked: bool = False
    is_global_block: bool = False


class Permissions(BaseModel):
    can_edit: bool = False
    can_schedule: bool = False


class TimeSlot(BaseModel):
    day: str
    day_index: int
    time: str
    date: Date
    is_blocked: bool = False
    is_global_block: bool = False
    has_class: bool = False
    class_title: str = ""
    appointment: Optional[CalendarAppointment] = None
    can_edit: bool = False
    can_schedule: bool = False


class PlanSnapshot(BaseModel):
    total_classes: int = 0
    used_classes: int = 0
    remaining_classes: int = 0
    classes_per_week: Optional[int] = None
    expires_on: Optional[Date] = None
