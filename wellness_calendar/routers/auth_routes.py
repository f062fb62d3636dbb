# wellness_calendar/routers/auth_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from wellness_calendar.config import ACCESS_TOKEN_EXPIRE_MINUTES
from wellness_calendar.db import get_session
from wellness_calendar.models import User
from wellness_calendar.schemas import Token
from wellness_calendar.auth import verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    # the OAuth2 password form calls the email "username"
    user = session.exec(
        select(User).where(User.email == form_data.username)
    ).first()

    if user is None or not verify_password(form_data.password, user.password_hash):
        logger.warning("Failed login for %s", form_data.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "role": user.role,
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }
