import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import AuthenticationRequired, NotFound
from ..models.models import User, utcnow
from ..schemas.auth import IdentityClaims, RefreshRequest, SessionRequest, TokenResponse
from ..schemas.users import UserOut
from ..services.permissions import ensure_corporate
from .security import (
    create_access_token,
    create_refresh_token,
    decode_identity_token,
    decode_token,
    get_current_subject,
)


router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = structlog.get_logger(__name__)


def upsert_user(db: Session, claims: IdentityClaims) -> User:
    """Create the user on first sign-in, refresh profile claims afterwards. Role is never touched."""
    user = db.query(User).filter(User.id == claims.sub).first()
    now = utcnow()
    if user is None:
        user = User(id=claims.sub, role="technician", created_at=now)
        db.add(user)
    user.email = str(claims.email)
    user.first_name = claims.first_name
    user.last_name = claims.last_name
    user.profile_image_url = claims.profile_image_url
    user.updated_at = now
    db.commit()
    db.refresh(user)
    return user


def _tokens(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )


@router.post("/session", response_model=TokenResponse)
def sign_in(req: SessionRequest, db: Session = Depends(get_db)):
    claims = decode_identity_token(req.id_token)
    user = upsert_user(db, claims)
    logger.info("user_signed_in", user_id=user.id, email=user.email)
    ensure_corporate(user, "Access restricted to company employees only")
    return _tokens(user)


@router.post("/refresh", response_model=TokenResponse)
def refresh(req: RefreshRequest, db: Session = Depends(get_db)):
    payload = decode_token(req.refresh_token)
    if payload.get("type") != "refresh" or not payload.get("sub"):
        raise AuthenticationRequired()
    user = db.query(User).filter(User.id == str(payload["sub"])).first()
    if user is None:
        raise AuthenticationRequired()
    ensure_corporate(user, "Access restricted to company employees only")
    return _tokens(user)


@router.get("/user", response_model=UserOut)
def current_user(subject: str = Depends(get_current_subject), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == subject).first()
    if user is None:
        raise NotFound("User not found")
    return ensure_corporate(user, "Access restricted to company employees only")
