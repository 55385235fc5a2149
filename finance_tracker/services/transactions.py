# finance_tracker/services/transactions.py
"""
Service helpers for Transactions.

Transactions are immutable once written: the app creates and deletes them,
never edits them. Listing returns each row together with its category
(None when the category is missing) so callers can tell income from
expense without a second query.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Tuple

from sqlmodel import Session, select

from finance_tracker.errors import NotFoundError
from finance_tracker.models import Category, Transaction
from finance_tracker.services.categories import get_category

TransactionRow = Tuple[Transaction, Optional[Category]]


def create_transaction(
    session: Session,
    *,
    user_id: int,
    category_id: int,
    amount: float,
    txn_date: date,
    description: Optional[str] = None,
) -> Transaction:
    """
    Create a Transaction row and commit it.
    The category must belong to the same user (NotFoundError otherwise).
    """
    get_category(session, user_id, category_id)

    txn = Transaction(
        user_id=user_id,
        category_id=category_id,
        amount=float(amount),
        txn_date=txn_date,
        description=description or None,
    )
    session.add(txn)
    session.commit()
    session.refresh(txn)
    return txn


def list_transactions(
    session: Session, user_id: int, limit: Optional[int] = None
) -> List[TransactionRow]:
    """Newest first; ties broken by id so the order is stable."""
    stmt = (
        select(Transaction, Category)
        .join(Category, Transaction.category_id == Category.id, isouter=True)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.txn_date.desc(), Transaction.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return [(txn, cat) for txn, cat in session.exec(stmt).all()]


def delete_transaction(session: Session, user_id: int, txn_id: int) -> None:
    txn = session.get(Transaction, txn_id)
    if not txn or txn.user_id != user_id:
        raise NotFoundError("transaction not found")
    session.delete(txn)
    session.commit()
