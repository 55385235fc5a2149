# finance_tracker/services/recurring.py
"""
Recurring bills: subscriptions and installment plans.

The processor turns each active bill into one Transaction per month, dated
on the bill's closing day, from the start date up to today. It is safe to
run on every page load:

- existing generated rows are loaded first and their dates skipped, so a
  second run adds nothing;
- the number of generated rows (not the bill's stored counter) decides
  which installment comes next and when a plan is finished;
- each bill is committed on its own; a failure on one bill is logged and
  the scan moves on to the next one.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from finance_tracker.errors import FieldError, NotFoundError
from finance_tracker.models import (
    Category,
    CategoryKind,
    FinancialProfile,
    RecurringBill,
    Transaction,
)
from finance_tracker.periods import add_months, closing_date
from finance_tracker.services.accounts import get_or_create_financial_profile
from finance_tracker.services.categories import create_category, get_category

logger = logging.getLogger("ft.recurring")

STATUS_FILTERS = ("all", "active", "inactive")


@dataclass
class ProcessingReport:
    bills_seen: int = 0
    generated: int = 0
    failed_bill_ids: List[int] = field(default_factory=list)


def round_half_up_cents(value: float) -> float:
    """Round to cents, halves going up: floor(x*100 + 0.5) / 100."""
    return math.floor(value * 100 + 0.5) / 100


def installment_amount(bill: RecurringBill) -> float:
    """Unrounded amount charged per cycle."""
    if bill.is_subscription:
        return float(bill.total_amount)
    return float(bill.total_amount) / (bill.installment_count or 1)


def installment_display_amount(bill: RecurringBill) -> float:
    return round_half_up_cents(installment_amount(bill))


def is_finished(bill: RecurringBill) -> bool:
    return (
        not bill.is_subscription
        and bool(bill.installment_count)
        and bill.installments_paid >= bill.installment_count
    )


def _first_closing_date(bill: RecurringBill) -> date:
    """The first closing date on or after the start date."""
    start = bill.start_date
    first = closing_date(start.year, start.month, bill.closing_day)
    if first < start:
        y, m = add_months(start.year, start.month, 1)
        first = closing_date(y, m, bill.closing_day)
    return first


def _describe(bill: RecurringBill, number: int) -> str:
    if bill.is_subscription:
        return f"{bill.name} - Assinatura"
    return f"{bill.name} - Parcela {number}/{bill.installment_count}"


def pending_installments(
    bill: RecurringBill, existing: List[Transaction], today: date
) -> List[Transaction]:
    """
    Transactions that should exist for `bill` up to `today` but don't yet.
    Pure: nothing is written; installment numbers continue from the count
    of `existing`.
    """
    existing_dates = {t.txn_date for t in existing}
    processed = len(existing)
    amount = round_half_up_cents(installment_amount(bill))

    new_entries: List[Transaction] = []
    cursor = _first_closing_date(bill)
    year, month = cursor.year, cursor.month

    while cursor <= today:
        if (
            not bill.is_subscription
            and bill.installment_count
            and processed >= bill.installment_count
        ):
            break

        if cursor not in existing_dates:
            number = processed + 1
            new_entries.append(
                Transaction(
                    user_id=bill.user_id,
                    category_id=bill.category_id,
                    amount=amount,
                    txn_date=cursor,
                    description=_describe(bill, number),
                    recurring_bill_id=bill.id,
                    installment_number=number,
                )
            )
            processed += 1

        year, month = add_months(year, month, 1)
        cursor = closing_date(year, month, bill.closing_day)

    return new_entries


def process_bill(session: Session, bill: RecurringBill, today: date) -> int:
    """Generate and commit the missing installments of one bill."""
    if is_finished(bill):
        return 0

    existing = list(
        session.exec(
            select(Transaction).where(Transaction.recurring_bill_id == bill.id)
        ).all()
    )
    new_entries = pending_installments(bill, existing, today)
    if not new_entries:
        return 0

    session.add_all(new_entries)
    bill.installments_paid = len(existing) + len(new_entries)
    bill.updated_at = datetime.now()
    session.add(bill)
    session.commit()
    logger.info(
        "bill=%s generated=%d installments_paid=%d",
        bill.id,
        len(new_entries),
        bill.installments_paid,
    )
    return len(new_entries)


def process_recurring_bills(
    session: Session, user_id: int, today: Optional[date] = None
) -> ProcessingReport:
    """Scan the user's active bills, one at a time, and fill in the gaps."""
    today = today or date.today()
    report = ProcessingReport()

    bills = session.exec(
        select(RecurringBill)
        .where(RecurringBill.user_id == user_id, RecurringBill.active)
        .order_by(RecurringBill.id)
    ).all()

    for bill in bills:
        report.bills_seen += 1
        bill_id = bill.id
        try:
            report.generated += process_bill(session, bill, today)
        except SQLAlchemyError:
            session.rollback()
            logger.exception("processing failed for bill=%s", bill_id)
            report.failed_bill_ids.append(bill_id)

    return report


# ---------- CRUD ----------


def list_recurring_bills(
    session: Session, user_id: int, status: str = "all", search: str = ""
) -> List[RecurringBill]:
    stmt = select(RecurringBill).where(RecurringBill.user_id == user_id)
    if status == "active":
        stmt = stmt.where(RecurringBill.active)
    elif status == "inactive":
        stmt = stmt.where(RecurringBill.active == False)  # noqa: E712
    bills = list(
        session.exec(
            stmt.order_by(RecurringBill.created_at.desc(), RecurringBill.id.desc())
        ).all()
    )
    needle = (search or "").strip().lower()
    if needle:
        bills = [b for b in bills if needle in b.name.lower()]
    return bills


def get_recurring_bill(session: Session, user_id: int, bill_id: int) -> RecurringBill:
    bill = session.get(RecurringBill, bill_id)
    if not bill or bill.user_id != user_id:
        raise NotFoundError("recurring bill not found")
    return bill


def resolve_expense_category(
    session: Session,
    user_id: int,
    *,
    category_id: Optional[int] = None,
    category_name: Optional[str] = None,
) -> Category:
    """
    Pick the bill's category: an explicit id wins; otherwise a typed name is
    matched case-insensitively among expense categories and created when
    nothing matches. The result is always an expense category.
    """
    if category_id is not None:
        cat = get_category(session, user_id, category_id)
        if cat.kind != CategoryKind.expense:
            raise FieldError("category_id", "Recurring bills need an expense category")
        return cat

    name = (category_name or "").strip()
    if not name:
        raise FieldError("category_name", "Category is required")
    stmt = select(Category).where(
        Category.user_id == user_id, Category.kind == CategoryKind.expense
    )
    for cat in session.exec(stmt).all():
        if cat.name.lower() == name.lower():
            return cat
    return create_category(session, user_id, name=name, kind=CategoryKind.expense)


def create_recurring_bill(
    session: Session,
    user_id: int,
    *,
    name: str,
    total_amount: float,
    category_id: int,
    is_subscription: bool = False,
    installment_count: Optional[int] = None,
    closing_day: Optional[int] = None,
    start_date: Optional[date] = None,
    description: Optional[str] = None,
) -> RecurringBill:
    cat = get_category(session, user_id, category_id)
    if cat.kind != CategoryKind.expense:
        raise FieldError("category_id", "Recurring bills need an expense category")
    if not is_subscription and (not installment_count or installment_count < 1):
        raise FieldError("installment_count", "Number of installments is required")

    if closing_day is None:
        closing_day = get_default_closing_day(session, user_id)
    if not 1 <= closing_day <= 31:
        raise FieldError("closing_day", "Closing day must be between 1 and 31")

    bill = RecurringBill(
        user_id=user_id,
        name=name.strip(),
        description=(description or None),
        total_amount=float(total_amount),
        category_id=cat.id,
        is_subscription=is_subscription,
        start_date=start_date or date.today(),
        installment_count=None if is_subscription else installment_count,
        closing_day=closing_day,
    )
    session.add(bill)
    session.commit()
    session.refresh(bill)
    logger.info("created bill=%s subscription=%s", bill.id, bill.is_subscription)
    return bill


def toggle_recurring_bill(session: Session, user_id: int, bill_id: int) -> RecurringBill:
    bill = get_recurring_bill(session, user_id, bill_id)
    bill.active = not bill.active
    bill.updated_at = datetime.now()
    session.add(bill)
    session.commit()
    session.refresh(bill)
    return bill


def delete_recurring_bill(session: Session, user_id: int, bill_id: int) -> None:
    """
    Remove the bill but keep every transaction it generated; they simply
    lose the back-reference.
    """
    bill = get_recurring_bill(session, user_id, bill_id)
    generated = session.exec(
        select(Transaction).where(Transaction.recurring_bill_id == bill.id)
    ).all()
    for txn in generated:
        txn.recurring_bill_id = None
        session.add(txn)
    session.flush()
    session.delete(bill)
    session.commit()
    logger.info("deleted bill=%s kept=%d transactions", bill_id, len(generated))


# ---------- default closing day ----------


def get_default_closing_day(session: Session, user_id: int) -> int:
    profile = session.exec(
        select(FinancialProfile).where(FinancialProfile.user_id == user_id)
    ).first()
    return profile.default_closing_day if profile else 1


def update_default_closing_day(session: Session, user_id: int, day: int) -> int:
    day = max(1, min(31, int(day)))
    profile = get_or_create_financial_profile(session, user_id)
    profile.default_closing_day = day
    profile.updated_at = datetime.now()
    session.add(profile)
    session.commit()
    return day
