# finance_tracker/routers/categories.py
# Categories CRUD for the signed-in user; deletion is refused while in use.

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from finance_tracker.db import get_session
from finance_tracker.errors import NotFoundError, ReferentialConflictError
from finance_tracker.flash import flash
from finance_tracker.forms import CategoryForm, field_errors
from finance_tracker.security import require_user_id
from finance_tracker.services.categories import (
    create_category,
    delete_category,
    list_categories,
    rename_category,
)
from finance_tracker.templating import templates

router = APIRouter(prefix="/categories", tags=["categories"])
logger = logging.getLogger("ft.categories")


def _list_page(request, session, user_id, errors=None, values=None, status_code=200):
    return templates.TemplateResponse(
        request,
        "categories/list.html",
        {
            "categories": list_categories(session, user_id),
            "errors": errors or {},
            "values": values or {},
        },
        status_code=status_code,
    )


@router.get("")
def list_view(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)
    return _list_page(request, session, user_id)


@router.post("/new")
async def create_submit(request: Request, session: Session = Depends(get_session)):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    values = {"name": raw.get("name") or "", "kind": raw.get("kind") or "expense"}
    try:
        form = CategoryForm(**values)
    except ValidationError as exc:
        return _list_page(
            request, session, user_id, field_errors(exc), values, status_code=400
        )

    try:
        create_category(session, user_id, name=form.name, kind=form.kind)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("create category failed user=%s", user_id)
        flash(request, "Error creating category.", "error")
        return RedirectResponse("/categories", status_code=303)

    flash(request, "Category created.", "success")
    return RedirectResponse("/categories", status_code=303)


@router.post("/{category_id}/rename")
async def rename_submit(
    category_id: int, request: Request, session: Session = Depends(get_session)
):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    raw = await request.form()
    name = (raw.get("name") or "").strip()
    if not name:
        flash(request, "Name is required.", "error")
        return RedirectResponse("/categories", status_code=303)

    try:
        rename_category(session, user_id, category_id, name)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Category not found")
    except SQLAlchemyError:
        session.rollback()
        logger.exception("rename category=%s failed", category_id)
        flash(request, "Error updating category.", "error")
        return RedirectResponse("/categories", status_code=303)

    flash(request, "Category updated.", "success")
    return RedirectResponse("/categories", status_code=303)


@router.post("/{category_id}/delete")
def delete_submit(
    category_id: int, request: Request, session: Session = Depends(get_session)
):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    try:
        delete_category(session, user_id, category_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Category not found")
    except ReferentialConflictError as exc:
        flash(request, str(exc), "error")
        return RedirectResponse("/categories", status_code=303)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("delete category=%s failed", category_id)
        flash(request, "Error deleting category.", "error")
        return RedirectResponse("/categories", status_code=303)

    flash(request, "Category deleted.", "success")
    return RedirectResponse("/categories", status_code=303)
