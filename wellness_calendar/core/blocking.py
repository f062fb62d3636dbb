# wellness_calendar/core/blocking.py

from datetime import date
from typing import Iterable, List, Optional

from wellness_calendar.core.timeutils import to_minutes, week_start
from wellness_calendar.core.types import (
    BlockStatus,
    BlockType,
    CalendarBlock,
    CellScope,
    Frequency,
)
from wellness_calendar.errors import ParseError

WEEKDAYS = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
    "lunes": 0, "martes": 1, "miercoles": 2, "miércoles": 2, "jueves": 3,
    "viernes": 4, "sabado": 5, "sábado": 5, "domingo": 6,
}


def parse_weekday(value) -> int:
    """0=Monday. Accepts ints or English/Spanish day names."""
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= 6:
            return value
    elif isinstance(value, str):
        key = value.strip().lower()
        if key.isdigit():
            return parse_weekday(int(key))
        if key in WEEKDAYS:
            return WEEKDAYS[key]
    raise ParseError(f"Invalid weekday: {value!r}")


def _months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


class BlockPredicate:
    """Decides whether one block rule covers a grid cell.

    Date and time matching are shared by every block type; subclasses only
    say which cells fall inside their scope.
    """

    block_type: BlockType

    def __init__(self, block: CalendarBlock):
        self.block = block

    @property
    def is_global(self) -> bool:
        return self.block_type == BlockType.global_

    def applies_to_date(self, target: date) -> bool:
        block = self.block
        recurrence = block.recurrence if block.is_recurring else None
        if recurrence is not None:
            return self._recurrence_matches(target)
        if block.date is not None:
            return target == block.date
        if block.start_date is not None and block.end_date is not None:
            return block.start_date <= target <= block.end_date
        return False

    def _recurrence_matches(self, target: date) -> bool:
        block = self.block
        pattern = block.recurrence
        anchor = block.date or block.start_date
        limit = pattern.end_date or block.end_date

        if anchor is not None and target < anchor:
            return False
        if limit is not None and target > limit:
            return False

        interval = pattern.interval or 1

        if pattern.frequency == Frequency.daily:
            if anchor is None:
                return True
            return (target - anchor).days % interval == 0

        if pattern.frequency == Frequency.weekly:
            if pattern.days_of_week:
                days = {parse_weekday(d) for d in pattern.days_of_week}
            elif anchor is not None:
                days = {anchor.weekday()}
            else:
                return False
            if target.weekday() not in days:
                return False
            if anchor is None:
                return True
            weeks = (week_start(target) - week_start(anchor)).days // 7
            return weeks % interval == 0

        if pattern.frequency == Frequency.monthly:
            day_of_month = pattern.day_of_month or (anchor.day if anchor else None)
            if day_of_month is None or target.day != day_of_month:
                return False
            if anchor is None:
                return True
            return _months_between(anchor, target) % interval == 0

        return False

    def applies_to_time(self, time: str) -> bool:
        block = self.block
        if block.all_day:
            return True
        # a block without a window covers the whole day
        if not block.start_time or not block.end_time:
            return True
        cell = to_minutes(time)
        return to_minutes(block.start_time) <= cell < to_minutes(block.end_time)

    def applies_to_scope(self, scope: CellScope) -> bool:
        raise NotImplementedError

    def applies(self, target: date, time: str, scope: CellScope) -> bool:
        if not self.block.active:
            return False
        return (
            self.applies_to_scope(scope)
            and self.applies_to_date(target)
            and self.applies_to_time(time)
        )


class GlobalBlock(BlockPredicate):
    block_type = BlockType.global_

    def applies_to_scope(self, scope: CellScope) -> bool:
        return True


class ProfessionalBlock(BlockPredicate):
    block_type = BlockType.professional

    def applies_to_scope(self, scope: CellScope) -> bool:
        return (
            self.block.professional_id is not None
            and self.block.professional_id == scope.professional_id
        )


class LocationBlock(BlockPredicate):
    block_type = BlockType.location

    def applies_to_scope(self, scope: CellScope) -> bool:
        return self.block.location is not None and self.block.location == scope.location


class RoomBlock(BlockPredicate):
    block_type = BlockType.room

    def applies_to_scope(self, scope: CellScope) -> bool:
        return self.block.room is not None and self.block.room == scope.room


PREDICATES = {
    BlockType.global_: GlobalBlock,
    BlockType.professional: ProfessionalBlock,
    BlockType.location: LocationBlock,
    BlockType.room: RoomBlock,
}


def predicate_for(block: CalendarBlock) -> BlockPredicate:
    return PREDICATES[block.type](block)


def compile_blocks(blocks: Iterable[CalendarBlock]) -> List[BlockPredicate]:
    """Predicates for the active blocks only."""
    return [predicate_for(b) for b in blocks if b.active]


def resolve_block(
    blocks: Iterable,
    target: date,
    time: str,
    scope: Optional[CellScope] = None,
) -> BlockStatus:
    """Whether the (date, time) cell is blocked for the given scope.

    Accepts CalendarBlock items or already compiled predicates. Presence is
    a plain OR over every matching rule; is_global_block is its own OR.
    """
    scope = scope or CellScope()
    status = BlockStatus()
    for item in blocks:
        predicate = item if isinstance(item, BlockPredicate) else predicate_for(item)
        if not predicate.applies(target, time, scope):
            continue
        status.is_blocked = True
        if predicate.is_global:
            status.is_global_block = True
            break
    return status
