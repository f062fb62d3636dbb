# wellness_calendar/config.py

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

from wellness_calendar.core.grid import grid_settings

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./wellness.db")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "change-me-later"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Weekly grid: cells start every SLOT_MINUTES from DAY_START to DAY_END inclusive.
# Unset variables keep the grid builder's own defaults.
calendar_settings = {
    "day_start": os.getenv("DAY_START", grid_settings["day_start"]),
    "day_end": os.getenv("DAY_END", grid_settings["day_end"]),
    "slot_minutes": int(os.getenv("SLOT_MINUTES", grid_settings["slot_minutes"])),
    "default_duration": int(os.getenv("DEFAULT_DURATION", grid_settings["default_duration"])),
}

# Plan catalogue: classes granted and weeks of validity
PLANS = {
    "trial": {"classes": 1, "weeks": 1},
    "basic": {"classes": 8, "weeks": 4},
    "pro": {"classes": 12, "weeks": 4},
    "elite": {"classes": 16, "weeks": 4},
    "champion": {"classes": 20, "weeks": 4},
}

# Scheduled classes still open this long after their start are closed as completed
AUTO_COMPLETE_AFTER_MINUTES = int(os.getenv("AUTO_COMPLETE_AFTER_MINUTES", "120"))
