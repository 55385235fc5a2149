# finance_tracker/services/loans.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional, Union

from sqlalchemy import func
from sqlmodel import Session, select

from finance_tracker.errors import NotFoundError
from finance_tracker.models import Loan, LoanStatus

logger = logging.getLogger("ft.loans")


STATUS_FILTERS = ("all", "pending", "paid")


def list_loans(
    session: Session,
    user_id: int,
    status: str = "all",
    search: str = "",
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[Loan]:
    """
    Newest first. Filters combine:
    - status: "all", "pending" or "paid"
    - search: case-insensitive substring of the name
    - date_from / date_to: inclusive bounds on created_date
    """
    stmt = select(Loan).where(Loan.user_id == user_id)
    if status in ("pending", "paid"):
        stmt = stmt.where(Loan.status == LoanStatus(status))
    needle = (search or "").strip().lower()
    if needle:
        stmt = stmt.where(func.lower(Loan.name).contains(needle, autoescape=True))
    if date_from is not None:
        stmt = stmt.where(Loan.created_date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Loan.created_date <= date_to)
    stmt = stmt.order_by(Loan.created_at.desc(), Loan.id.desc())
    return list(session.exec(stmt).all())


def get_loan(session: Session, user_id: int, loan_id: int) -> Loan:
    loan = session.get(Loan, loan_id)
    if not loan or loan.user_id != user_id:
        raise NotFoundError("loan not found")
    return loan


def create_loan(
    session: Session,
    user_id: int,
    *,
    name: str,
    amount: float,
    payment_date: Optional[date] = None,
    created_date: Optional[date] = None,
) -> Loan:
    """New loans always start as pending."""
    loan = Loan(
        user_id=user_id,
        name=name.strip(),
        amount=float(amount),
        payment_date=payment_date,
        created_date=created_date or date.today(),
        status=LoanStatus.pending,
    )
    session.add(loan)
    session.commit()
    session.refresh(loan)
    return loan


def set_loan_status(
    session: Session,
    user_id: int,
    loan_id: int,
    status: Union[LoanStatus, str],
    now: Optional[datetime] = None,
) -> Loan:
    """
    Move a loan between pending and paid (both directions allowed).
    `updated_at` is stamped on every change; for a paid loan it is the
    moment the money came back, which the dashboard relies on.
    """
    if isinstance(status, str):
        status = LoanStatus(status)
    loan = get_loan(session, user_id, loan_id)
    loan.status = status
    loan.updated_at = now or datetime.now()
    session.add(loan)
    session.commit()
    session.refresh(loan)
    logger.info("loan=%s status=%s", loan.id, loan.status.value)
    return loan


def delete_loan(session: Session, user_id: int, loan_id: int) -> None:
    loan = get_loan(session, user_id, loan_id)
    session.delete(loan)
    session.commit()


def pending_total(session: Session, user_id: int) -> float:
    """Sum of pending loan amounts (0 when there are none)."""
    total = session.exec(
        select(func.coalesce(func.sum(Loan.amount), 0.0)).where(
            Loan.user_id == user_id, Loan.status == LoanStatus.pending
        )
    ).one()
    return float(total)
