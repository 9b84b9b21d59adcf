from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional

from .common import CamelModel, CamelResponse


class IdentityClaims(BaseModel):
    """Claims carried by the identity provider's ID token."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class SessionRequest(CamelModel):
    id_token: str


class RefreshRequest(CamelModel):
    refresh_token: str


class TokenResponse(CamelResponse):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
