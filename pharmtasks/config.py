"""Runtime configuration for pharmtasks.

Values come from the environment (optionally a local .env file).
"""

import os

from dotenv import load_dotenv

from pharmtasks.models.constants import DEFAULT_BUSINESS_TIMEZONE
from pharmtasks.models.holiday import DEFAULT_REGION

load_dotenv()

# Civil dates and times are evaluated in this IANA timezone (DST-aware)
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", DEFAULT_BUSINESS_TIMEZONE)

# Holiday entries for this region (plus national ones) apply
HOLIDAY_REGION = os.getenv("HOLIDAY_REGION", DEFAULT_REGION)

# Database URL - SQLite by default (local dev)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pharmtasks.db")

DEBUG = os.getenv("DEBUG", "False").lower() == "true"

# Days of history the generation job back-fills when run without a date
GENERATION_LOOKBACK_DAYS = int(os.getenv("GENERATION_LOOKBACK_DAYS", "0"))

