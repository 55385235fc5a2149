# finance_tracker/services/categories.py
from __future__ import annotations

import logging
from typing import List, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from finance_tracker.errors import NotFoundError, ReferentialConflictError
from finance_tracker.models import Category, CategoryKind, RecurringBill, Transaction

logger = logging.getLogger("ft.categories")

IN_USE_MESSAGE = "Cannot delete: category has linked transactions."


def list_categories(
    session: Session, user_id: int, kind: Optional[CategoryKind] = None
) -> List[Category]:
    stmt = select(Category).where(Category.user_id == user_id)
    if kind is not None:
        stmt = stmt.where(Category.kind == kind)
    return list(session.exec(stmt.order_by(Category.name)).all())


def get_category(session: Session, user_id: int, category_id: int) -> Category:
    """The category, if it belongs to this user."""
    cat = session.get(Category, category_id)
    if not cat or cat.user_id != user_id:
        raise NotFoundError("category not found")
    return cat


def create_category(
    session: Session,
    user_id: int,
    *,
    name: str,
    kind: Union[CategoryKind, str] = CategoryKind.expense,
) -> Category:
    if isinstance(kind, str):
        kind = CategoryKind(kind)
    cat = Category(user_id=user_id, name=name.strip(), kind=kind)
    session.add(cat)
    session.commit()
    session.refresh(cat)
    return cat


def rename_category(session: Session, user_id: int, category_id: int, name: str) -> Category:
    cat = get_category(session, user_id, category_id)
    cat.name = name.strip()
    session.add(cat)
    session.commit()
    session.refresh(cat)
    return cat


def _reference_count(session: Session, category_id: int) -> int:
    txns = session.exec(
        select(func.count()).select_from(Transaction).where(
            Transaction.category_id == category_id
        )
    ).one()
    bills = session.exec(
        select(func.count()).select_from(RecurringBill).where(
            RecurringBill.category_id == category_id
        )
    ).one()
    return int(txns) + int(bills)


def delete_category(session: Session, user_id: int, category_id: int) -> None:
    """
    Delete a category nobody points at.
    Raises ReferentialConflictError (and changes nothing) while transactions
    or recurring bills still use it; the database FK backs the same rule.
    """
    cat = get_category(session, user_id, category_id)
    if _reference_count(session, category_id):
        raise ReferentialConflictError(IN_USE_MESSAGE)

    session.delete(cat)
    try:
        session.commit()
    except IntegrityError as exc:
        # a transaction slipped in between the check and the delete
        session.rollback()
        raise ReferentialConflictError(IN_USE_MESSAGE) from exc
    logger.info("deleted category=%s user=%s", category_id, user_id)
