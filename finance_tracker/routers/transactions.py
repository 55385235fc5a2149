# finance_tracker/routers/transactions.py
from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from finance_tracker.db import get_session
from finance_tracker.errors import NotFoundError
from finance_tracker.flash import flash
from finance_tracker.forms import TransactionForm, field_errors
from finance_tracker.security import require_user_id
from finance_tracker.services.categories import list_categories
from finance_tracker.services.transactions import (
    create_transaction,
    delete_transaction,
    list_transactions,
)
from finance_tracker.templating import templates

router = APIRouter(prefix="/transactions", tags=["transactions"])
logger = logging.getLogger("ft.transactions")

FIELDS = ("category_id", "amount", "txn_date", "description")


def _form_page(request, session, user_id, values, errors, status_code=200):
    return templates.TemplateResponse(
        request,
        "transactions/form.html",
        {
            "categories": list_categories(session, user_id),
            "values": values,
            "errors": errors,
        },
        status_code=status_code,
    )


@router.get("")
def list_view(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    return templates.TemplateResponse(
        request,
        "transactions/list.html",
        {"rows": list_transactions(session, user_id)},
    )


@router.get("/new")
def new_form(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    return _form_page(
        request, session, user_id, {"txn_date": date.today().isoformat()}, {}
    )


@router.post("/new")
async def create_submit(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    values = {name: raw.get(name) or "" for name in FIELDS}
    try:
        form = TransactionForm(**values)
    except ValidationError as exc:
        return _form_page(
            request, session, user_id, values, field_errors(exc), status_code=400
        )

    try:
        create_transaction(
            session,
            user_id=user_id,
            category_id=form.category_id,
            amount=form.amount,
            txn_date=form.txn_date,
            description=form.description,
        )
    except NotFoundError:
        return _form_page(
            request,
            session,
            user_id,
            values,
            {"category_id": "Choose one of your categories"},
            status_code=400,
        )
    except SQLAlchemyError:
        session.rollback()
        logger.exception("create transaction failed user=%s", user_id)
        flash(request, "Error recording transaction.", "error")
        return RedirectResponse("/transactions", status_code=303)

    flash(request, "Transaction recorded.", "success")
    return RedirectResponse("/transactions", status_code=303)


@router.post("/{txn_id}/delete")
def delete_submit(txn_id: int, request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    try:
        delete_transaction(session, user_id, txn_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("delete transaction=%s failed", txn_id)
        flash(request, "Error deleting transaction.", "error")
        return RedirectResponse("/transactions", status_code=303)

    flash(request, "Transaction deleted.", "success")
    return RedirectResponse("/transactions", status_code=303)
