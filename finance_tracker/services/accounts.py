# finance_tracker/services/accounts.py
"""
Registration and profile maintenance.

Registration is two steps, like the identity provider it sits on:
1. sign-up creates the credential (email + password hash)
2. the personal data row (User) and an empty FinancialProfile are inserted

When step 2 hits a duplicate login/email the credential from step 1 stays;
the user can still sign in or contact support. Nothing is rolled back
across the two steps.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from finance_tracker.config import get_settings
from finance_tracker.errors import (
    IncompleteAccountError,
    NotFoundError,
    UniqueConflictError,
)
from finance_tracker.forms import RegistrationForm
from finance_tracker.identity import AuthSession, IdentityProvider
from finance_tracker.models import FinancialProfile, User

logger = logging.getLogger("ft.accounts")


def _conflict_field(exc: IntegrityError) -> str:
    """Which unique column tripped? Constraint/column names carry it."""
    text = str(exc.orig).lower()
    if "login" in text:
        return "login"
    if "email" in text:
        return "email"
    return "__all__"


def register_user(
    session: Session, provider: IdentityProvider, form: RegistrationForm
) -> AuthSession:
    auth = provider.sign_up(session, form.email, form.password)

    user = User(
        id=auth.user_id,
        full_name=form.full_name,
        birth_date=form.birth_date,
        phone=form.phone,
        email=form.email,
        login=form.login,
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        field = _conflict_field(exc)
        logger.warning("profile insert conflict on %s for user=%s", field, auth.user_id)
        messages = {
            "login": "This login is already in use.",
            "email": "This email is already registered.",
        }
        raise UniqueConflictError(
            field, messages.get(field, "Duplicate data detected.")
        ) from exc

    session.add(
        FinancialProfile(
            user_id=user.id,
            default_closing_day=get_settings().default_closing_day,
        )
    )
    session.commit()
    logger.info("registered user=%s login=%s", user.id, user.login)
    return auth


def sign_in_user(
    session: Session, provider: IdentityProvider, email: str, password: str
) -> AuthSession:
    """
    Provider sign-in plus a check that registration finished: a credential
    left behind by a failed registration has no User row and is refused.
    """
    auth = provider.sign_in(session, email, password)
    if session.get(User, auth.user_id) is None:
        logger.warning("sign-in refused, no personal data for user=%s", auth.user_id)
        provider.sign_out(auth.user_id)
        raise IncompleteAccountError()
    return auth


def get_user(session: Session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)


def update_account(
    session: Session,
    user_id: int,
    *,
    full_name: str,
    birth_date: Optional[date],
    phone: Optional[str],
) -> User:
    """Only personal fields are editable; email and login are fixed."""
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("user not found")
    user.full_name = full_name
    user.birth_date = birth_date
    user.phone = phone or None
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def get_financial_profile(session: Session, user_id: int) -> Optional[FinancialProfile]:
    return session.exec(
        select(FinancialProfile).where(FinancialProfile.user_id == user_id)
    ).first()


def get_or_create_financial_profile(session: Session, user_id: int) -> FinancialProfile:
    profile = get_financial_profile(session, user_id)
    if profile:
        return profile
    profile = FinancialProfile(
        user_id=user_id, default_closing_day=get_settings().default_closing_day
    )
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def update_financial_profile(
    session: Session,
    user_id: int,
    *,
    monthly_income: float,
    initial_balance: float,
) -> FinancialProfile:
    profile = get_or_create_financial_profile(session, user_id)
    profile.monthly_income = float(monthly_income or 0)
    profile.initial_balance = float(initial_balance or 0)
    profile.updated_at = datetime.now()
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile
