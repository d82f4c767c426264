from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


class AccountResolution(BaseModel):
    """Outcome of looking a phone number up before the OTP step."""
    phone: str
    requires_otp: bool = True
    is_new_account: bool


class AccountOut(BaseModel):
    id: int
    phone: str
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_empty_strings(cls, data):
        """Blank strings are treated as "not supplied"."""
        if isinstance(data, dict):
            for key in ("name", "email"):
                value = data.get(key)
                if isinstance(value, str):
                    data[key] = value.strip() or None
        return data
