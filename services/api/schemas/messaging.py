"""
Pydantic schemas for inbound SMS and reminder settings.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.enums import ReminderChannel, ReminderFrequency


class InboundSms(BaseModel):
    """Normalized inbound text message, as forwarded by the SMS gateway."""
    model_config = ConfigDict(populate_by_name=True)

    from_number: Optional[str] = Field(None, alias="from")
    body: Optional[str] = None
    timestamp: Optional[str] = Field(None, description="ISO-8601 send time")


class ReminderCreate(BaseModel):
    channel: ReminderChannel = "email"
    frequency: ReminderFrequency = "weekly"
    weekday: Optional[int] = Field(None, ge=0, le=6, description="0 = Sunday")
    hour: Optional[int] = Field(None, ge=0, le=23)
    tz: str = "UTC"
    enabled: bool = True
    destination: Optional[str] = Field(None, description="Email address or phone number")

    @model_validator(mode="after")
    def _weekly_needs_weekday(self):
        if self.frequency == "weekly" and self.weekday is None:
            raise ValueError("weekday is required for weekly reminders")
        return self


class ReminderUpdate(BaseModel):
    channel: Optional[ReminderChannel] = None
    frequency: Optional[ReminderFrequency] = None
    weekday: Optional[int] = Field(None, ge=0, le=6)
    hour: Optional[int] = Field(None, ge=0, le=23)
    tz: Optional[str] = None
    enabled: Optional[bool] = None
    destination: Optional[str] = None
