# finance_tracker/routers/auth.py
# Sign-up / sign-in / sign-out on top of the identity provider + cookie session.

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from finance_tracker.db import get_session
from finance_tracker.errors import (
    IncompleteAccountError,
    InvalidCredentialsError,
    UniqueConflictError,
)
from finance_tracker.flash import flash
from finance_tracker.forms import RegistrationForm, SignInForm, field_errors
from finance_tracker.identity import identity
from finance_tracker.security import end_session, get_user_id_from_session, start_session
from finance_tracker.services.accounts import register_user, sign_in_user
from finance_tracker.templating import templates

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("ft.auth")

SIGNUP_FIELDS = (
    "full_name",
    "birth_date",
    "phone",
    "email",
    "login",
    "password",
    "confirm_password",
)


def _signup_page(request: Request, values: dict, errors: dict, status_code: int = 200):
    # never echo passwords back into the form
    safe = {k: v for k, v in values.items() if "password" not in k}
    return templates.TemplateResponse(
        request,
        "auth/signup.html",
        {"values": safe, "errors": errors},
        status_code=status_code,
    )


@router.get("/signup")
def signup_form(request: Request):
    return _signup_page(request, {}, {})


@router.post("/signup")
async def signup_submit(request: Request, session: Session = Depends(get_session)):
    raw = await request.form()
    values = {name: raw.get(name) or "" for name in SIGNUP_FIELDS}
    try:
        form = RegistrationForm(**values)
    except ValidationError as exc:
        return _signup_page(request, values, field_errors(exc), status_code=400)

    try:
        auth = register_user(session, identity, form)
    except UniqueConflictError as exc:
        flash(request, str(exc), "error")
        return _signup_page(request, values, {exc.field: str(exc)}, status_code=400)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("registration failed for %s", form.email)
        flash(request, "Unexpected error while creating the account.", "error")
        return _signup_page(request, values, {}, status_code=500)

    start_session(request, auth.user_id)
    flash(request, "Account created. Welcome!", "success")
    return RedirectResponse("/dashboard", status_code=303)


@router.get("/signin")
def signin_form(request: Request):
    if get_user_id_from_session(request) is not None:
        return RedirectResponse("/dashboard", status_code=303)
    return templates.TemplateResponse(
        request, "auth/signin.html", {"values": {}, "errors": {}}
    )


@router.post("/signin")
async def signin_submit(request: Request, session: Session = Depends(get_session)):
    raw = await request.form()
    values = {"email": raw.get("email") or "", "password": raw.get("password") or ""}
    try:
        form = SignInForm(**values)
        auth = sign_in_user(session, identity, form.email, form.password)
    except ValidationError as exc:
        errors = field_errors(exc)
    except (InvalidCredentialsError, IncompleteAccountError) as exc:
        errors = {"__all__": str(exc)}
    else:
        start_session(request, auth.user_id)
        flash(request, "Signed in.", "success")
        return RedirectResponse("/dashboard", status_code=303)

    # stay on the page with 400 so the error is visible
    return templates.TemplateResponse(
        request,
        "auth/signin.html",
        {"values": {"email": values["email"]}, "errors": errors},
        status_code=400,
    )


@router.get("/signout")
def signout(request: Request):
    identity.sign_out(get_user_id_from_session(request))
    end_session(request)
    flash(request, "Signed out.", "info")
    return RedirectResponse("/", status_code=303)
