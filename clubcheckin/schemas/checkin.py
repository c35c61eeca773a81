"""Check-in schemas."""
from datetime import datetime, time
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from clubcheckin.core.sanitization import sanitize_passcode, validate_qr_token_format


class SessionStartRequest(BaseModel):
    start_time: Optional[time] = None  # Wall-clock HH:MM in the configured timezone
    expire_time: Optional[time] = None
    regenerate_on_checkin: bool = False


class SessionStartResponse(BaseModel):
    passcode: str
    qr_token: str
    expires_at: datetime
    regenerate_on_checkin: bool


class SessionInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    passcode: str
    qr_token: str
    expires_at: datetime
    is_active: bool
    regenerate_on_checkin: bool


class PasscodeCheckinRequest(BaseModel):
    event_id: Optional[int] = Field(None, gt=0)
    passcode: str

    @field_validator('passcode', mode='before')
    @classmethod
    def sanitize_passcode_field(cls, v) -> str:
        """Trim and validate the 6-digit passcode."""
        return sanitize_passcode(v)


class QrCheckinRequest(BaseModel):
    event_id: Optional[int] = Field(None, gt=0)
    qr_token: str

    @field_validator('qr_token')
    @classmethod
    def validate_qr_token_field(cls, v: str) -> str:
        """Validate QR payload format."""
        return validate_qr_token_format(v)


class CheckedInMember(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    first_name: str
    last_name: str
    check_in_time: datetime
    method: str
