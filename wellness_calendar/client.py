# wellness_calendar/client.py
"""
Async REST client used by calendar views.

Loads everything one week of the calendar needs in parallel, lets each
source fail on its own, and rebuilds the grid with the scheduling core.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

import httpx

from wellness_calendar.core.grid import build_schedule, find_slot
from wellness_calendar.core.normalize import coerce_list, normalize_plan, parse_role
from wellness_calendar.core.timeutils import week_start
from wellness_calendar.core.types import CellScope, Role, TimeSlot, ViewerContext
from wellness_calendar.errors import ApiError, PayloadError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass
class WeekView:
    anchor: date
    slots: List[TimeSlot]
    errors: Dict[str, ApiError] = field(default_factory=dict)
    generation: int = 0

    @property
    def needs_login(self) -> bool:
        return any(e.kind == "auth" for e in self.errors.values())


def classify(exc: Exception) -> ApiError:
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return ApiError("auth", "Session expired or not allowed", status)
        if 400 <= status < 500:
            return ApiError("rejected", _detail(exc.response), status)
        return ApiError("network", f"Server answered {status}", status)
    if isinstance(exc, httpx.TransportError):
        return ApiError("network", f"Connection problem: {exc}")
    if isinstance(exc, (ValueError, PayloadError)):
        return ApiError("payload", f"Unreadable response: {exc}")
    raise exc


def _detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("detail"))
    except (ValueError, AttributeError):
        return response.text


class CalendarClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=timeout, transport=transport,
        )
        self.me: Optional[dict] = None
        self.current: Optional[WeekView] = None
        self._generation = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def login(self, email: str, password: str) -> dict:
        try:
            response = await self._http.post("/auth/login", data={"username": email, "password": password})
            response.raise_for_status()
            token = response.json()
        except Exception as exc:
            raise classify(exc) from exc
        self._http.headers["Authorization"] = f"Bearer {token['access_token']}"
        self.me = None
        return token

    async def _request(self, method: str, path: str, **kwargs):
        try:
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
            if response.status_code == 204:
                return None
            return response.json()
        except Exception as exc:
            raise classify(exc) from exc

    async def whoami(self) -> dict:
        if self.me is None:
            self.me = await self._request("GET", "/me")
        return self.me

    # --- data sources ---

    async def fetch_appointments(self, anchor: date, scope: CellScope) -> list:
        monday = week_start(anchor)
        params = {
            "date_from": monday.isoformat(),
            "date_to": (monday + timedelta(days=6)).isoformat(),
        }
        if scope.professional_id is not None:
            params["professional_id"] = scope.professional_id
        return await self._request("GET", "/appointments", params=params)

    async def fetch_users(self) -> list:
        return await self._request("GET", "/users")

    async def fetch_blocks(self) -> list:
        return await self._request("GET", "/blocks")

    async def fetch_plan(self) -> dict:
        return await self._request("GET", "/plans/me")

    # --- week loading ---

    async def load_week(
        self,
        anchor: date,
        scope: Optional[CellScope] = None,
        now: Optional[datetime] = None,
    ) -> Optional[WeekView]:
        """Fetch and build one week; None when a newer load superseded this one."""
        self._generation += 1
        generation = self._generation
        scope = scope or CellScope()

        me = await self.whoami()
        role = parse_role(me.get("role"))
        if role == Role.professional and scope.professional_id is None:
            scope = scope.model_copy(update={"professional_id": str(me["id"])})

        sources = {
            "appointments": self.fetch_appointments(anchor, scope),
            "blocks": self.fetch_blocks(),
        }
        if role in (Role.admin, Role.professional):
            sources["users"] = self.fetch_users()
        if role == Role.student:
            sources["plan"] = self.fetch_plan()

        # each source settles on its own
        results = await asyncio.gather(*sources.values(), return_exceptions=True)

        if generation != self._generation:
            logger.debug("Dropping stale week load %d for %s", generation, anchor)
            return None

        data, errors = {}, {}
        for name, result in zip(sources, results):
            if isinstance(result, BaseException):
                errors[name] = classify(result)
                logger.warning("Loading %s failed (%s): %s", name, errors[name].kind, errors[name])
            else:
                data[name] = result

        plan_remaining = 0
        if "plan" in data:
            try:
                plan_remaining = normalize_plan(data["plan"]).remaining_classes
            except PayloadError as exc:
                errors["plan"] = classify(exc)

        viewer = ViewerContext(
            role=role,
            user_id=me.get("id"),
            plan_remaining=plan_remaining,
            now=now or datetime.now(),
        )
        appointments = _with_names(data.get("appointments", []), data.get("users", []))
        slots = build_schedule(appointments, data.get("blocks", []), anchor, viewer, scope=scope)

        self.current = WeekView(anchor=anchor, slots=slots, errors=errors, generation=generation)
        return self.current

    # --- actions ---

    def _still_on_screen(self, slot: TimeSlot) -> bool:
        return self.current is not None and find_slot(self.current.slots, slot.date, slot.time) is not None

    async def book(self, slot: TimeSlot, **fields) -> Optional[dict]:
        """Create an appointment in slot; None if the view moved on meanwhile."""
        payload = {"date": slot.date.isoformat(), "start_time": slot.time, **fields}
        created = await self._request("POST", "/appointments", json=payload)
        if not self._still_on_screen(slot):
            logger.debug("Ignoring booking response for %s %s, cell no longer shown", slot.date, slot.time)
            return None
        return created

    async def cancel(self, slot: TimeSlot, reason: Optional[str] = None) -> Optional[dict]:
        if slot.appointment is None or slot.appointment.id is None:
            raise ValueError("Slot has no appointment to cancel")
        updated = await self._request(
            "PATCH", f"/appointments/{slot.appointment.id}/cancel", json={"reason": reason},
        )
        if not self._still_on_screen(slot):
            return None
        return updated


def _with_names(appointments, users) -> list:
    """Attach display names from the users listing to raw appointments."""
    appointments = coerce_list(appointments, "appointments")
    names = {}
    for user in coerce_list(users, "users"):
        if isinstance(user, dict) and "id" in user:
            parts = [user.get("first_name"), user.get("last_name")]
            names[user["id"]] = " ".join(p for p in parts if p) or user.get("email")

    enriched = []
    for raw in appointments:
        if isinstance(raw, dict) and "student_id" in raw:
            raw = {
                **raw,
                "student": {"id": raw["student_id"], "name": names.get(raw["student_id"])},
                "professional": {"id": raw.get("professional_id"), "name": names.get(raw.get("professional_id"))},
            }
        enriched.append(raw)
    return enriched
