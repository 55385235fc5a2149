# finance_tracker/routers/account.py
# "My account" (personal data) and the financial profile (income + opening balance).

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from finance_tracker.db import get_session
from finance_tracker.errors import NotFoundError
from finance_tracker.flash import flash
from finance_tracker.forms import AccountForm, FinancialProfileForm, field_errors
from finance_tracker.security import require_user_id
from finance_tracker.services.accounts import (
    get_or_create_financial_profile,
    get_user,
    update_account,
    update_financial_profile,
)
from finance_tracker.templating import templates

router = APIRouter(prefix="/account", tags=["account"])
logger = logging.getLogger("ft.account")


@router.get("")
def account_form(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    user = get_user(session, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    values = {
        "full_name": user.full_name,
        "birth_date": user.birth_date.isoformat() if user.birth_date else "",
        "phone": user.phone or "",
    }
    return templates.TemplateResponse(
        request, "account/profile.html", {"user": user, "values": values, "errors": {}}
    )


@router.post("")
async def account_submit(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    values = {k: raw.get(k) or "" for k in ("full_name", "birth_date", "phone")}
    try:
        form = AccountForm(**values)
        update_account(
            session,
            user_id,
            full_name=form.full_name,
            birth_date=form.birth_date,
            phone=form.phone,
        )
    except ValidationError as exc:
        return templates.TemplateResponse(
            request,
            "account/profile.html",
            {"user": get_user(session, user_id), "values": values, "errors": field_errors(exc)},
            status_code=400,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("account update failed user=%s", user_id)
        flash(request, "Error saving data.", "error")
        return RedirectResponse("/account", status_code=303)

    flash(request, "Data updated.", "success")
    return RedirectResponse("/account", status_code=303)


@router.get("/financial")
def financial_form(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    try:
        profile = get_or_create_financial_profile(session, user_id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("financial profile unavailable user=%s", user_id)
        flash(request, "Could not load the financial profile.", "error")
        return RedirectResponse("/dashboard", status_code=303)

    values = {
        "monthly_income": profile.monthly_income or "",
        "initial_balance": profile.initial_balance or "",
    }
    return templates.TemplateResponse(
        request, "account/financial.html", {"values": values, "errors": {}}
    )


@router.post("/financial")
async def financial_submit(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    values = {k: raw.get(k) or "" for k in ("monthly_income", "initial_balance")}
    try:
        form = FinancialProfileForm(**values)
    except ValidationError as exc:
        return templates.TemplateResponse(
            request,
            "account/financial.html",
            {"values": values, "errors": field_errors(exc)},
            status_code=400,
        )

    try:
        update_financial_profile(
            session,
            user_id,
            monthly_income=form.monthly_income,
            initial_balance=form.initial_balance,
        )
    except SQLAlchemyError:
        session.rollback()
        logger.exception("financial profile update failed user=%s", user_id)
        flash(request, "Error saving financial profile.", "error")
        return RedirectResponse("/account/financial", status_code=303)

    flash(request, "Financial profile updated.", "success")
    return RedirectResponse("/account/financial", status_code=303)
