# finance_tracker/identity.py
"""
Identity provider: sign-up / sign-in / sign-out over the `credential` table,
plus a tiny publish/subscribe hook for "session changed" notifications.

The provider knows nothing about user profiles; registration of the
personal data lives in services/accounts.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from finance_tracker.errors import InvalidCredentialsError, UniqueConflictError
from finance_tracker.models import Credential
from finance_tracker.security import hash_password, verify_password

logger = logging.getLogger("ft.identity")


@dataclass(frozen=True)
class AuthSession:
    user_id: int
    email: str


SessionListener = Callable[[Optional[AuthSession]], None]


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class IdentityProvider:
    def __init__(self) -> None:
        self._listeners: List[SessionListener] = []

    # ---- notifications ----

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, auth: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            try:
                listener(auth)
            except Exception:
                logger.exception("session listener %r failed", listener)

    # ---- operations ----

    def sign_up(self, session: Session, email: str, password: str) -> AuthSession:
        """Create a credential and start a session for it."""
        email = normalize_email(email)
        existing = session.exec(
            select(Credential).where(Credential.email == email)
        ).first()
        if existing:
            raise UniqueConflictError("email", "This email is already registered.")

        cred = Credential(email=email, hashed_password=hash_password(password))
        session.add(cred)
        try:
            session.commit()
        except IntegrityError as exc:
            # lost a race with another sign-up of the same address
            session.rollback()
            raise UniqueConflictError(
                "email", "This email is already registered."
            ) from exc
        session.refresh(cred)

        auth = AuthSession(user_id=cred.id, email=cred.email)
        self._notify(auth)
        return auth

    def sign_in(self, session: Session, email: str, password: str) -> AuthSession:
        email = normalize_email(email)
        cred = session.exec(
            select(Credential).where(Credential.email == email)
        ).first()
        if not cred or not verify_password(password, cred.hashed_password):
            raise InvalidCredentialsError()

        auth = AuthSession(user_id=cred.id, email=cred.email)
        self._notify(auth)
        return auth

    def sign_out(self, user_id: Optional[int] = None) -> None:
        logger.debug("sign_out user=%s", user_id)
        self._notify(None)


# process-wide provider; main.py attaches the logging listener
identity = IdentityProvider()
