import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import AuthenticationRequired
from ..models.models import User
from ..schemas.auth import IdentityClaims
from ..services.permissions import ensure_admin, ensure_corporate


http_bearer = HTTPBearer(auto_error=False)


def _create_token(sub: str, ttl_seconds: int, extra: Optional[dict] = None) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = {
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str) -> str:
    return _create_token(user_id, settings.jwt_ttl_seconds, extra={"type": "access"})


def create_refresh_token(user_id: str) -> str:
    return _create_token(user_id, settings.refresh_ttl_seconds, extra={"type": "refresh"})


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequired("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationRequired()


def decode_identity_token(id_token: str) -> IdentityClaims:
    """Verify an ID token from the identity provider and return its claims."""
    options = {"require": ["sub", "exp"], "verify_aud": bool(settings.idp_audience)}
    kwargs = {"algorithms": [settings.idp_jwt_algorithm], "options": options}
    if settings.idp_issuer:
        kwargs["issuer"] = settings.idp_issuer
    if settings.idp_audience:
        kwargs["audience"] = settings.idp_audience
    try:
        payload = jwt.decode(id_token, settings.idp_jwt_secret, **kwargs)
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequired("Identity token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationRequired("Invalid identity token")
    try:
        return IdentityClaims.model_validate(payload)
    except PydanticValidationError:
        raise AuthenticationRequired("Invalid identity token")


def get_current_subject(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> str:
    """Resolve the caller's subject id from the bearer token."""
    if creds is None:
        raise AuthenticationRequired()
    payload = decode_token(creds.credentials)
    if payload.get("type") == "refresh":
        raise AuthenticationRequired()
    sub = payload.get("sub")
    if not sub:
        raise AuthenticationRequired()
    return str(sub)


def get_current_user(
    subject: str = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == subject).first()
    return ensure_corporate(user)


def require_admin(
    subject: str = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == subject).first()
    return ensure_admin(user)
