# wellness_calendar/routers/blocks_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlmodel import Session, select

from wellness_calendar.db import get_session
from wellness_calendar.models import Block, User
from wellness_calendar.schemas import BlockActiveUpdate, BlockCreate, BlockPublic
from wellness_calendar.auth import get_current_user
from wellness_calendar.deps import require_role
from wellness_calendar.core.blocking import parse_weekday
from wellness_calendar.core.timeutils import to_minutes
from wellness_calendar.core.types import BlockType, Role
from wellness_calendar.errors import ParseError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/blocks",
    tags=["blocks"],
)


def validate_block(block: BlockCreate):
    # Either date OR startDate/endDate
    if block.date is None and block.start_date is None:
        raise HTTPException(status_code=422, detail="Either date or start_date must be provided")
    if block.start_date is not None and block.end_date is None:
        raise HTTPException(status_code=422, detail="end_date is required when start_date is provided")
    if block.start_date and block.end_date and block.start_date >= block.end_date:
        raise HTTPException(status_code=422, detail="start_date must be before end_date")

    # Exactly the scoping field that matches the type
    scope_fields = {
        BlockType.professional: block.professional_id,
        BlockType.location: block.location,
        BlockType.room: block.room,
    }
    for block_type, value in scope_fields.items():
        if block.type == block_type and not value:
            raise HTTPException(status_code=422, detail=f"{block_type.value} blocks need their {block_type.value} field")
        if block.type != block_type and value:
            raise HTTPException(status_code=422, detail=f"{block.type.value} blocks cannot set a {block_type.value} scope")

    # Time window
    if not block.all_day:
        if bool(block.start_time) != bool(block.end_time):
            raise HTTPException(status_code=422, detail="start_time and end_time go together")
        if block.start_time and block.end_time:
            try:
                start, end = to_minutes(block.start_time), to_minutes(block.end_time)
            except ParseError as exc:
                raise HTTPException(status_code=422, detail=str(exc))
            if start >= end:
                raise HTTPException(status_code=422, detail="start_time must be before end_time")

    # Recurrence
    if block.is_recurring:
        if block.recurrence is None:
            raise HTTPException(status_code=422, detail="recurring blocks need a recurrence pattern")
        try:
            for day in block.recurrence.days_of_week:
                parse_weekday(day)
        except ParseError as exc:
            raise HTTPException(status_code=422, detail=str(exc))


def _get_block(session: Session, block_id: int) -> Block:
    block = session.get(Block, block_id)
    if block is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return block


def _check_owner(current_user: dict, block: Block):
    if current_user["role"] == Role.admin.value:
        return
    if block.type == BlockType.professional.value and block.professional_id == current_user["id"]:
        return
    raise HTTPException(status_code=403, detail="Forbidden")


@router.get("", response_model=List[BlockPublic])
def list_blocks(
    active_only: bool = True,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    stmt = select(Block)
    if active_only:
        stmt = stmt.where(Block.active == True)  # noqa: E712
    stmt = stmt.order_by(Block.date, Block.start_date, Block.start_time)
    return session.exec(stmt).all()


@router.post("", response_model=BlockPublic, status_code=201)
def create_block(
    block: BlockCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, Role.admin.value, Role.professional.value)

    # Professionals can only block their own agenda
    if current_user["role"] == Role.professional.value:
        if block.type != BlockType.professional:
            raise HTTPException(status_code=403, detail="Professionals can only create professional blocks")
        if block.professional_id is None:
            block.professional_id = current_user["id"]
        if block.professional_id != current_user["id"]:
            raise HTTPException(status_code=403, detail="Professionals can only block their own agenda")

    validate_block(block)

    if block.professional_id is not None:
        professional = session.get(User, block.professional_id)
        if professional is None or professional.role != Role.professional.value:
            raise HTTPException(status_code=422, detail="Invalid professional")

    db_block = Block(
        **block.model_dump(exclude={"type", "recurrence"}),
        type=block.type.value,
        recurrence=block.recurrence.model_dump(mode="json") if block.recurrence else None,
        created_by=current_user["id"],
    )
    session.add(db_block)
    session.commit()
    session.refresh(db_block)
    logger.info("Block %s (%s) created by user %s", db_block.id, db_block.type, current_user["id"])
    return db_block


@router.patch("/{block_id}/active", response_model=BlockPublic)
def set_block_active(
    block_id: int,
    update: BlockActiveUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    block = _get_block(session, block_id)
    _check_owner(current_user, block)

    block.active = update.active
    session.add(block)
    session.commit()
    session.refresh(block)
    return block


@router.delete("/{block_id}", status_code=204)
def delete_block(
    block_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    block = _get_block(session, block_id)
    _check_owner(current_user, block)

    session.delete(block)
    session.commit()
    logger.info("Block %s deleted by user %s", block_id, current_user["id"])
    return Response(status_code=204)
