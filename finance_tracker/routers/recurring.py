# finance_tracker/routers/recurring.py
# Purpose: recurring bills (subscriptions + installment plans).
# - Opening the page runs the processor, so due installments appear on load.
# - Creating a bill runs it again right away.
# - Deleting a bill keeps the transactions it already generated.

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from finance_tracker.db import get_session
from finance_tracker.errors import FieldError, NotFoundError
from finance_tracker.flash import flash
from finance_tracker.forms import ClosingDayForm, RecurringBillForm, field_errors
from finance_tracker.models import CategoryKind
from finance_tracker.security import require_user_id
from finance_tracker.services.categories import list_categories
from finance_tracker.services.recurring import (
    STATUS_FILTERS,
    create_recurring_bill,
    delete_recurring_bill,
    get_default_closing_day,
    installment_display_amount,
    list_recurring_bills,
    process_recurring_bills,
    resolve_expense_category,
    toggle_recurring_bill,
    update_default_closing_day,
)
from finance_tracker.templating import templates

router = APIRouter(prefix="/recurring", tags=["recurring"])
logger = logging.getLogger("ft.recurring")

FIELDS = (
    "name",
    "description",
    "total_amount",
    "category_id",
    "category_name",
    "is_subscription",
    "start_date",
    "installment_count",
    "closing_day",
)


def _run_processor(request: Request, session: Session, user_id: int) -> None:
    """Generate due installments; problems become a toast, never a crash."""
    try:
        report = process_recurring_bills(session, user_id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("recurring scan failed user=%s", user_id)
        flash(request, "Error processing recurring bills.", "error")
        return
    if report.failed_bill_ids:
        flash(
            request,
            f"{len(report.failed_bill_ids)} recurring bill(s) could not be processed.",
            "error",
        )


def _list_page(
    request, session, user_id, status="all", search="", values=None, errors=None, status_code=200
):
    bills = list_recurring_bills(session, user_id, status=status, search=search)
    default_day = get_default_closing_day(session, user_id)
    form_values = {"closing_day": str(default_day)}
    form_values.update(values or {})
    return templates.TemplateResponse(
        request,
        "recurring/list.html",
        {
            "bills": bills,
            "per_cycle": {b.id: installment_display_amount(b) for b in bills},
            "expense_categories": list_categories(
                session, user_id, kind=CategoryKind.expense
            ),
            "default_closing_day": default_day,
            "status": status,
            "statuses": STATUS_FILTERS,
            "search": search,
            "values": form_values,
            "errors": errors or {},
        },
        status_code=status_code,
    )


@router.get("")
def list_view(
    request: Request,
    status: str = "all",
    q: str = "",
    session: Session = Depends(get_session),
):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    if status not in STATUS_FILTERS:
        status = "all"
    _run_processor(request, session, user_id)
    return _list_page(request, session, user_id, status=status, search=q)


@router.post("/process")
def process_submit(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    _run_processor(request, session, user_id)
    return RedirectResponse("/recurring", status_code=303)


@router.post("/new")
async def create_submit(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    values = {name: raw.get(name) or "" for name in FIELDS}
    try:
        form = RecurringBillForm(**values)
    except ValidationError as exc:
        return _list_page(
            request, session, user_id, values=values, errors=field_errors(exc), status_code=400
        )

    try:
        category = resolve_expense_category(
            session,
            user_id,
            category_id=form.category_id,
            category_name=form.category_name,
        )
        create_recurring_bill(
            session,
            user_id,
            name=form.name,
            description=form.description,
            total_amount=form.total_amount,
            category_id=category.id,
            is_subscription=form.is_subscription,
            installment_count=form.installment_count,
            closing_day=form.closing_day,
            start_date=form.start_date,
        )
    except FieldError as exc:
        return _list_page(
            request,
            session,
            user_id,
            values=values,
            errors={exc.field: str(exc)},
            status_code=400,
        )
    except NotFoundError:
        return _list_page(
            request,
            session,
            user_id,
            values=values,
            errors={"category_id": "Choose one of your categories"},
            status_code=400,
        )
    except SQLAlchemyError:
        session.rollback()
        logger.exception("create recurring bill failed user=%s", user_id)
        flash(request, "Error creating recurring bill.", "error")
        return RedirectResponse("/recurring", status_code=303)

    flash(request, "Recurring bill created.", "success")
    _run_processor(request, session, user_id)
    return RedirectResponse("/recurring", status_code=303)


@router.post("/{bill_id}/toggle")
def toggle_submit(bill_id: int, request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    try:
        toggle_recurring_bill(session, user_id, bill_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Recurring bill not found")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("toggle bill=%s failed", bill_id)
        flash(request, "Error updating status.", "error")
        return RedirectResponse("/recurring", status_code=303)

    flash(request, "Status updated.", "success")
    return RedirectResponse("/recurring", status_code=303)


@router.post("/{bill_id}/delete")
def delete_submit(bill_id: int, request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    try:
        delete_recurring_bill(session, user_id, bill_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Recurring bill not found")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("delete bill=%s failed", bill_id)
        flash(request, "Error deleting recurring bill.", "error")
        return RedirectResponse("/recurring", status_code=303)

    flash(request, "Recurring bill deleted.", "success")
    return RedirectResponse("/recurring", status_code=303)


@router.post("/closing-day")
async def closing_day_submit(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    form = ClosingDayForm(closing_day=raw.get("closing_day"))
    try:
        update_default_closing_day(session, user_id, form.closing_day)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("closing day update failed user=%s", user_id)
        flash(request, "Error updating closing day.", "error")
        return RedirectResponse("/recurring", status_code=303)

    flash(request, "Default closing day updated.", "success")
    return RedirectResponse("/recurring", status_code=303)
