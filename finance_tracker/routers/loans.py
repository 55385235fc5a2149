# finance_tracker/routers/loans.py
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from finance_tracker.db import get_session
from finance_tracker.errors import NotFoundError
from finance_tracker.flash import flash
from finance_tracker.forms import LoanForm, LoanStatusForm, field_errors
from finance_tracker.security import require_user_id
from finance_tracker.services.loans import (
    STATUS_FILTERS,
    create_loan,
    delete_loan,
    list_loans,
    pending_total,
    set_loan_status,
)
from finance_tracker.templating import templates

router = APIRouter(prefix="/loans", tags=["loans"])
logger = logging.getLogger("ft.loans")


def _parse_day(raw: str) -> Optional[date]:
    # bad or empty filter dates are simply ignored
    try:
        return date.fromisoformat(raw) if raw else None
    except ValueError:
        return None


def _list_page(
    request, session, user_id, values=None, errors=None, filters=None, status_code=200
):
    filters = filters or {"status": "all", "q": "", "date_from": "", "date_to": ""}
    return templates.TemplateResponse(
        request,
        "loans/list.html",
        {
            "loans": list_loans(
                session,
                user_id,
                status=filters["status"],
                search=filters["q"],
                date_from=_parse_day(filters["date_from"]),
                date_to=_parse_day(filters["date_to"]),
            ),
            "filters": filters,
            "statuses": STATUS_FILTERS,
            "pending_total": pending_total(session, user_id),
            "values": values or {},
            "errors": errors or {},
        },
        status_code=status_code,
    )


@router.get("")
def list_view(
    request: Request,
    status: str = "all",
    q: str = "",
    date_from: str = "",
    date_to: str = "",
    session: Session = Depends(get_session),
):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    if status not in STATUS_FILTERS:
        status = "all"
    filters = {"status": status, "q": q, "date_from": date_from, "date_to": date_to}
    return _list_page(request, session, user_id, filters=filters)


@router.post("/new")
async def create_submit(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    values = {k: raw.get(k) or "" for k in ("name", "amount", "payment_date")}
    try:
        form = LoanForm(**values)
    except ValidationError as exc:
        return _list_page(
            request, session, user_id, values, field_errors(exc), status_code=400
        )

    try:
        create_loan(
            session,
            user_id,
            name=form.name,
            amount=form.amount,
            payment_date=form.payment_date,
        )
    except SQLAlchemyError:
        session.rollback()
        logger.exception("create loan failed user=%s", user_id)
        flash(request, "Error creating loan.", "error")
        return RedirectResponse("/loans", status_code=303)

    flash(request, "Loan created.", "success")
    return RedirectResponse("/loans", status_code=303)


@router.post("/{loan_id}/status")
async def status_submit(
    loan_id: int, request: Request, session: Session = Depends(get_session)
):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    try:
        form = LoanStatusForm(status=raw.get("status") or "")
    except ValidationError:
        flash(request, "Unknown loan status.", "error")
        return RedirectResponse("/loans", status_code=303)

    try:
        set_loan_status(session, user_id, loan_id, form.status)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Loan not found")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("status update loan=%s failed", loan_id)
        flash(request, "Error updating status.", "error")
        return RedirectResponse("/loans", status_code=303)

    flash(request, "Status updated.", "success")
    return RedirectResponse("/loans", status_code=303)


@router.post("/{loan_id}/delete")
def delete_submit(loan_id: int, request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    try:
        delete_loan(session, user_id, loan_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Loan not found")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("delete loan=%s failed", loan_id)
        flash(request, "Error deleting loan.", "error")
        return RedirectResponse("/loans", status_code=303)

    flash(request, "Loan deleted.", "success")
    return RedirectResponse("/loans", status_code=303)
