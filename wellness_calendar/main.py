# wellness_calendar/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wellness_calendar.config import LOG_LEVEL
from wellness_calendar.db import init_db
from wellness_calendar.errors import CalendarError
from wellness_calendar.routers import (
    appointments_routes,
    auth_routes,
    blocks_routes,
    calendar_routes,
    plans_routes,
    users_routes,
)

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(title="Wellness Calendar", lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(appointments_routes.router)
app.include_router(blocks_routes.router)
app.include_router(calendar_routes.router)
app.include_router(plans_routes.router)


@app.exception_handler(CalendarError)
async def calendar_error_handler(request: Request, exc: CalendarError):
    logger.warning("Calendar error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
def health_check():
    return {"status": "ok"}
