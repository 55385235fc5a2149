# finance_tracker/security.py
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status
from fastapi.requests import Request
from passlib.context import CryptContext

from finance_tracker.flash import flash

# bcrypt by default; "deprecated=auto" lets us migrate schemes later
_pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_USER_KEY = "user_id"


# ------------ Password helpers ------------


def hash_password(plain: str) -> str:
    return _pwd.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return _pwd.verify(plain, hashed)


# ------------ Session helpers ------------


def get_user_id_from_session(request: Request) -> Optional[int]:
    """user_id stored at sign-in, or None when nobody is signed in."""
    if "session" not in request.scope:
        return None
    uid = request.session.get(SESSION_USER_KEY)
    return int(uid) if uid is not None else None


def start_session(request: Request, user_id: int) -> None:
    request.session[SESSION_USER_KEY] = user_id


def end_session(request: Request) -> None:
    request.session.clear()


def require_user_id(request: Request) -> int:
    """
    Return the signed-in user's id, or flash a warning and raise a 303
    pointing at the sign-in page.
    Usage (inside route):
        try:
            user_id = require_user_id(request)
        except HTTPException as e:
            return RedirectResponse(e.headers["Location"], status_code=e.status_code)
    """
    uid = get_user_id_from_session(request)
    if uid is None:
        flash(request, "Please sign in to continue.", "warning")
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            headers={"Location": "/auth/signin"},
        )
    return uid


__all__ = [
    "hash_password",
    "verify_password",
    "get_user_id_from_session",
    "start_session",
    "end_session",
    "require_user_id",
]
