from typing import Literal, Optional

from pydantic import Field, field_validator

from .common import CamelModel, CamelResponse, UtcDatetime


class UserOut(CamelResponse):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: str = "technician"
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class UserUpdate(CamelModel):
    first_name: Optional[str] = Field(default=None, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    profile_image_url: Optional[str] = Field(default=None, max_length=1024)
    role: Optional[Literal["technician", "admin"]] = None

    @field_validator("role", mode="before")
    @classmethod
    def _role_not_null(cls, v):
        if v is None:
            raise ValueError("role cannot be null")
        return v
