import logging
from functools import lru_cache

from descope.descope_client import DescopeClient
from fastapi import HTTPException

from config import (
    DESCOPE_JWT_LEEWAY,
    DESCOPE_JWT_LEEWAY_FALLBACK,
    DESCOPE_MANAGEMENT_KEY,
    DESCOPE_PROJECT_ID,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def get_descope_client(leeway: int = DESCOPE_JWT_LEEWAY, with_management: bool = False) -> DescopeClient:
    """Build (once per leeway) the Descope client used for session validation."""
    kwargs = {"project_id": DESCOPE_PROJECT_ID, "jwt_validation_leeway": leeway}
    if with_management and DESCOPE_MANAGEMENT_KEY:
        kwargs["management_key"] = DESCOPE_MANAGEMENT_KEY
    logger.info("Descope client initialized with JWT leeway: %ss", leeway)
    return DescopeClient(**kwargs)


def _extract_user_info(session) -> dict:
    if not isinstance(session, dict):
        logger.error("Descope session validation failed: session is not a dictionary")
        raise HTTPException(status_code=401, detail="Invalid session format")

    user_id = session.get("userId") or session.get("sub")
    if not user_id:
        logger.error("Descope JWT validation failed: missing userId in session")
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")

    login_ids = session.get("loginIds") if isinstance(session.get("loginIds"), list) else []
    email = login_ids[0] if login_ids else session.get("email")

    if not email and DESCOPE_MANAGEMENT_KEY:
        email = _load_email_from_management_api(user_id)

    return {
        "userId": user_id,
        "email": email,
        "name": session.get("name") or session.get("displayName"),
    }


def _load_email_from_management_api(user_id: str):
    try:
        details = get_descope_client(with_management=True).mgmt.user.load(user_id)
    except Exception as exc:
        logger.warning("Could not fetch user details from management API: %s", exc)
        return None
    user_data = details.get("user", details) if isinstance(details, dict) else {}
    login_ids = user_data.get("loginIds") or []
    return login_ids[0] if login_ids else user_data.get("email")


def validate_descope_jwt(token: str) -> dict:
    """
    Validate a Descope session JWT and return the caller's identity.

    In case of time skew issues, retry once with a higher leeway.

    Returns:
        dict with ``userId`` (the stable subject id), ``email`` and ``name``.

    Raises:
        HTTPException: 401 if the token cannot be validated.
    """
    try:
        session = get_descope_client(DESCOPE_JWT_LEEWAY).validate_session(token)
        return _extract_user_info(session)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Descope JWT validation failed: %s", e)

    try:
        logger.info("Retrying JWT validation with fallback leeway: %ss", DESCOPE_JWT_LEEWAY_FALLBACK)
        session = get_descope_client(DESCOPE_JWT_LEEWAY_FALLBACK).validate_session(token)
        return _extract_user_info(session)
    except HTTPException:
        raise
    except Exception as e2:
        logger.error("High leeway validation also failed: %s", e2)
        raise HTTPException(status_code=401, detail="Invalid or expired token")
