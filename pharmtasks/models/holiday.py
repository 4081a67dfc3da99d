"""Public holiday reference data for pharmtasks."""

import datetime as dt

from pydantic import BaseModel, Field


DEFAULT_REGION = "National"


class HolidayEntry(BaseModel):
    """A non-working day, as supplied by the holiday store."""

    date: dt.date = Field(..., description="Civil date of the holiday")
    region: str = Field(DEFAULT_REGION, description="Region the holiday applies to")
    name: str = Field("", description="Holiday name")

    model_config = {"frozen": True}
