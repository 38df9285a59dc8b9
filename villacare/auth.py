import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.orm import Session

from . import config
from .database import get_db
from .models import User

logger = logging.getLogger(__name__)

SESSION_SALT = "villacare-session"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(config.SECRET_KEY, salt=SESSION_SALT)


def issue_session_token(user_id: str, impersonating: Optional[str] = None) -> str:
    """Sign a session payload for the session cookie"""
    payload = {"uid": user_id}
    if impersonating:
        payload["impersonating"] = impersonating
    return _serializer().dumps(payload)


def read_session_token(token: str) -> Optional[dict]:
    """Verify and decode a session cookie value. Returns None if invalid or expired."""
    try:
        data = _serializer().loads(token, max_age=config.SESSION_MAX_AGE)
    except SignatureExpired:
        logger.info("ℹ️ Session cookie expired")
        return None
    except BadSignature:
        logger.warning("⚠️ Invalid session cookie signature")
        return None
    if not isinstance(data, dict) or not data.get("uid"):
        return None
    return data


def _resolve_session_user(request: Request, db: Session) -> Optional[User]:
    token = request.cookies.get(config.SESSION_COOKIE_NAME)
    if not token:
        return None

    session = read_session_token(token)
    if not session:
        return None

    user = db.query(User).filter(User.id == session["uid"]).first()
    if not user:
        logger.warning(f"⚠️ Session refers to unknown user {session['uid']}")
        return None

    # Admin impersonation: only honoured while the session owner is still an admin
    impersonated_id = session.get("impersonating")
    if impersonated_id and user.role == "ADMIN":
        impersonated = db.query(User).filter(User.id == impersonated_id).first()
        if impersonated:
            request.state.impersonated_by = user.id
            return impersonated

    return user


async def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Current user if a valid session cookie is present, otherwise None"""
    return _resolve_session_user(request, db)


async def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Current user from the session cookie; 401 when not signed in"""
    user = _resolve_session_user(request, db)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_role(role: str):
    """Dependency factory gating a route on the user's role"""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role != role:
            logger.warning(f"⚠️ User {user.id} ({user.role}) attempted {role}-only route")
            raise HTTPException(status_code=403, detail=f"{role.capitalize()} access required")
        return user

    return dependency


require_admin = require_role("ADMIN")
require_cleaner = require_role("CLEANER")
require_owner = require_role("OWNER")


async def get_session_admin(request: Request, db: Session = Depends(get_db)) -> User:
    """The admin who owns the session, ignoring any impersonation in effect"""
    token = request.cookies.get(config.SESSION_COOKIE_NAME)
    session = read_session_token(token) if token else None
    if not session:
        raise HTTPException(status_code=401, detail="Unauthorized")
    user = db.query(User).filter(User.id == session["uid"]).first()
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if user.role != "ADMIN":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def verify_cron_request(request: Request) -> None:
    """
    Authorize scheduler calls to /api/cron/*.

    Accepted when the bearer token matches CRON_SECRET or the platform's trusted
    cron header is "1". With no secret configured outside production the check
    is open so the jobs can be run by hand.
    """
    auth_header = request.headers.get("authorization", "")
    if config.CRON_SECRET and secrets.compare_digest(auth_header, f"Bearer {config.CRON_SECRET}"):
        return

    if request.headers.get(config.CRON_TRUSTED_HEADER) == "1":
        return

    if not config.CRON_SECRET and not config.IS_PRODUCTION:
        logger.debug("CRON_SECRET not set - allowing cron call outside production")
        return

    logger.warning(f"🚫 Unauthorized cron call to {request.url.path}")
    raise HTTPException(status_code=401, detail="Unauthorized")
