# finance_tracker/services/dashboard.py
"""
Dashboard numbers for one user.

Balance rules
- income/expense come from the transaction's category kind; rows without a
  category count for neither side
- pending loan: money lent out, counts as expense (and as "pending")
- paid loan: counted twice, as the outgoing expense and as the income of
  getting it back, so it nets to zero on the balance while
  still showing up in both month figures
- "this month" means the calendar month of `today` (local clock)
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session, select

from finance_tracker.models import Category, CategoryKind, Loan, LoanStatus, Transaction
from finance_tracker.periods import PERIODS, in_period, is_same_month
from finance_tracker.services.accounts import get_financial_profile
from finance_tracker.services.transactions import TransactionRow, list_transactions

UNCATEGORIZED = "Uncategorized"
LOANS_BUCKET = "Loans"
KIND_FILTERS = ("all", "income", "expense")


@dataclass
class DashboardSummary:
    total_balance: float = 0.0
    month_income: float = 0.0
    month_expense: float = 0.0
    initial_balance: float = 0.0
    pending_loans: float = 0.0

    @property
    def month_balance(self) -> float:
        return self.month_income - self.month_expense


def _transactions_with_kind(
    session: Session, user_id: int
) -> List[Tuple[Transaction, Optional[Category]]]:
    stmt = (
        select(Transaction, Category)
        .join(Category, Transaction.category_id == Category.id, isouter=True)
        .where(Transaction.user_id == user_id)
    )
    return list(session.exec(stmt).all())


def _loans(session: Session, user_id: int) -> List[Loan]:
    return list(session.exec(select(Loan).where(Loan.user_id == user_id)).all())


def summarize(
    initial_balance: Optional[float],
    transactions: List[Tuple[Transaction, Optional[Category]]],
    loans: List[Loan],
    today: date,
) -> DashboardSummary:
    """Pure aggregation over already-loaded rows."""
    initial = float(initial_balance or 0)
    total_income = 0.0
    total_expense = 0.0
    month_income = 0.0
    month_expense = 0.0
    pending = 0.0

    for txn, cat in transactions:
        amount = float(txn.amount)
        this_month = is_same_month(txn.txn_date, today)
        kind = cat.kind if cat is not None else None
        if kind == CategoryKind.income:
            total_income += amount
            if this_month:
                month_income += amount
        elif kind == CategoryKind.expense:
            total_expense += amount
            if this_month:
                month_expense += amount

    for loan in loans:
        amount = float(loan.amount)
        created_this_month = is_same_month(loan.created_date, today)
        if loan.status == LoanStatus.pending:
            pending += amount
            total_expense += amount
            if created_this_month:
                month_expense += amount
        elif loan.status == LoanStatus.paid:
            total_income += amount
            total_expense += amount
            if loan.updated_at and is_same_month(loan.updated_at, today):
                month_income += amount
            if created_this_month:
                month_expense += amount

    return DashboardSummary(
        total_balance=initial + total_income - total_expense,
        month_income=month_income,
        month_expense=month_expense,
        initial_balance=initial,
        pending_loans=pending,
    )


def compute_dashboard(
    session: Session, user_id: int, today: Optional[date] = None
) -> DashboardSummary:
    profile = get_financial_profile(session, user_id)
    return summarize(
        profile.initial_balance if profile else None,
        _transactions_with_kind(session, user_id),
        _loans(session, user_id),
        today or date.today(),
    )


def category_breakdown(
    session: Session,
    user_id: int,
    period: str = "current-month",
    kind: str = "expense",
    today: Optional[date] = None,
) -> List[Tuple[str, float]]:
    """
    Totals per category name inside `period`, largest first.
    Loans join the chart under one bucket: pending ones (by creation date)
    on the expense side, paid ones (by payment moment) on the income side.
    """
    if period not in PERIODS:
        raise ValueError(f"unknown period: {period!r}")
    if kind not in KIND_FILTERS:
        raise ValueError(f"unknown kind: {kind!r}")
    today = today or date.today()

    grouped: Dict[str, float] = defaultdict(float)
    for txn, cat in _transactions_with_kind(session, user_id):
        if not in_period(period, txn.txn_date, today):
            continue
        if kind != "all" and (cat is None or cat.kind.value != kind):
            continue
        grouped[cat.name if cat else UNCATEGORIZED] += float(txn.amount)

    for loan in _loans(session, user_id):
        if (
            kind in ("all", "expense")
            and loan.status == LoanStatus.pending
            and in_period(period, loan.created_date, today)
        ):
            grouped[LOANS_BUCKET] += float(loan.amount)
        if (
            kind in ("all", "income")
            and loan.status == LoanStatus.paid
            and loan.updated_at
            and in_period(period, loan.updated_at, today)
        ):
            grouped[LOANS_BUCKET] += float(loan.amount)

    return sorted(grouped.items(), key=lambda item: item[1], reverse=True)


def recent_transactions(session: Session, user_id: int, limit: int = 5) -> List[TransactionRow]:
    return list_transactions(session, user_id, limit=limit)
