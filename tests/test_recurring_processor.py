"""
Unit tests for the recurring bill processor (no HTTP).
Every test pins "today" so month boundaries are deterministic.
"""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

import finance_tracker.services.recurring as recurring
from finance_tracker.errors import FieldError
from finance_tracker.models import CategoryKind, RecurringBill, Transaction
from finance_tracker.services.categories import create_category
from finance_tracker.services.recurring import (
    create_recurring_bill,
    delete_recurring_bill,
    process_recurring_bills,
    round_half_up_cents,
    toggle_recurring_bill,
)


@pytest.fixture()
def expense_cat(session, user):
    return create_category(session, user.id, name="Bills", kind=CategoryKind.expense)


def _generated(session, bill_id):
    return list(
        session.exec(
            select(Transaction)
            .where(Transaction.recurring_bill_id == bill_id)
            .order_by(Transaction.txn_date)
        ).all()
    )


def _plan(session, user, cat, **overrides):
    params = dict(
        name="Laptop",
        total_amount=100.0,
        category_id=cat.id,
        is_subscription=False,
        installment_count=3,
        closing_day=15,
        start_date=date(2025, 1, 10),
    )
    params.update(overrides)
    return create_recurring_bill(session, user.id, **params)


def test_installment_plan_stops_after_count(session, user, expense_cat):
    bill = _plan(session, user, expense_cat)

    report = process_recurring_bills(session, user.id, today=date(2025, 12, 31))

    txns = _generated(session, bill.id)
    assert report.generated == 3
    assert [t.txn_date for t in txns] == [
        date(2025, 1, 15),
        date(2025, 2, 15),
        date(2025, 3, 15),
    ]
    assert [t.installment_number for t in txns] == [1, 2, 3]
    assert [t.description for t in txns] == [
        "Laptop - Parcela 1/3",
        "Laptop - Parcela 2/3",
        "Laptop - Parcela 3/3",
    ]
    assert all(t.category_id == expense_cat.id for t in txns)
    session.refresh(bill)
    assert bill.installments_paid == 3


def test_running_twice_adds_nothing(session, user, expense_cat):
    plan = _plan(session, user, expense_cat)
    sub = _plan(
        session,
        user,
        expense_cat,
        name="Music",
        total_amount=19.9,
        is_subscription=True,
        installment_count=None,
        closing_day=5,
    )
    today = date(2025, 6, 20)

    first = process_recurring_bills(session, user.id, today=today)
    plan_after_first = [(t.txn_date, t.installment_number) for t in _generated(session, plan.id)]
    sub_after_first = [(t.txn_date, t.installment_number) for t in _generated(session, sub.id)]

    second = process_recurring_bills(session, user.id, today=today)

    # plan: Jan-Mar 15th; subscription: Jan 5 precedes the start, so Feb-Jun
    assert first.generated == 3 + 5
    assert second.generated == 0
    assert [(t.txn_date, t.installment_number) for t in _generated(session, plan.id)] == plan_after_first
    assert [(t.txn_date, t.installment_number) for t in _generated(session, sub.id)] == sub_after_first
    session.refresh(sub)
    assert sub.installments_paid == 5


def test_rounding_uses_half_up_cents(session, user, expense_cat):
    bill = _plan(session, user, expense_cat, total_amount=100.0, installment_count=3)
    process_recurring_bills(session, user.id, today=date(2025, 6, 1))

    amounts = [t.amount for t in _generated(session, bill.id)]
    assert amounts == [33.33, 33.33, 33.33]
    # last-cent gap is accepted, never redistributed
    assert abs(sum(amounts) - 100.0) <= 0.011


def test_round_half_up_cents():
    assert round_half_up_cents(100 / 3) == 33.33
    assert round_half_up_cents(0.125) == 0.13  # round() would give 0.12
    assert round_half_up_cents(10) == 10.0


def test_subscription_keeps_going_regardless_of_count(session, user, expense_cat):
    bill = _plan(
        session,
        user,
        expense_cat,
        name="Netflix",
        total_amount=49.9,
        is_subscription=True,
        installment_count=None,
        closing_day=1,
        start_date=date(2024, 1, 1),
    )
    bill.installments_paid = 500  # a stale, huge counter must not stop it
    session.add(bill)
    session.commit()

    process_recurring_bills(session, user.id, today=date(2025, 12, 31))

    txns = _generated(session, bill.id)
    assert len(txns) == 24
    assert all(t.amount == 49.9 for t in txns)
    assert {t.description for t in txns} == {"Netflix - Assinatura"}
    assert len({t.txn_date for t in txns}) == 24


def test_cursor_moves_to_next_month_when_closing_day_precedes_start(
    session, user, expense_cat
):
    bill = _plan(
        session, user, expense_cat, closing_day=5, start_date=date(2025, 1, 20)
    )
    process_recurring_bills(session, user.id, today=date(2025, 3, 1))

    assert [t.txn_date for t in _generated(session, bill.id)] == [date(2025, 2, 5)]


def test_closing_day_is_clamped_in_short_months(session, user, expense_cat):
    bill = _plan(
        session,
        user,
        expense_cat,
        is_subscription=True,
        installment_count=None,
        closing_day=31,
        start_date=date(2025, 1, 31),
    )
    process_recurring_bills(session, user.id, today=date(2025, 4, 30))

    assert [t.txn_date for t in _generated(session, bill.id)] == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
        date(2025, 4, 30),
    ]


def test_nothing_before_first_closing_date(session, user, expense_cat):
    bill = _plan(session, user, expense_cat, start_date=date(2025, 1, 10))
    report = process_recurring_bills(session, user.id, today=date(2025, 1, 14))
    assert report.generated == 0
    assert _generated(session, bill.id) == []


def test_inactive_bills_are_skipped(session, user, expense_cat):
    bill = _plan(session, user, expense_cat)
    toggle_recurring_bill(session, user.id, bill.id)

    report = process_recurring_bills(session, user.id, today=date(2025, 12, 31))

    assert report.bills_seen == 0
    assert _generated(session, bill.id) == []


def test_existing_records_are_the_source_of_truth(session, user, expense_cat):
    bill = _plan(session, user, expense_cat)
    # one installment already generated but the stored counter says 0
    session.add(
        Transaction(
            user_id=user.id,
            category_id=expense_cat.id,
            amount=33.33,
            txn_date=date(2025, 2, 15),
            description="Laptop - Parcela 1/3",
            recurring_bill_id=bill.id,
            installment_number=1,
        )
    )
    session.commit()

    process_recurring_bills(session, user.id, today=date(2025, 12, 31))

    txns = _generated(session, bill.id)
    assert len(txns) == 3
    assert len({t.txn_date for t in txns}) == 3  # Feb 15 was not duplicated
    assert sorted(t.installment_number for t in txns) == [1, 2, 3]
    session.refresh(bill)
    assert bill.installments_paid == 3


def test_finished_plan_is_skipped(session, user, expense_cat):
    bill = _plan(session, user, expense_cat)
    bill.installments_paid = 3
    session.add(bill)
    session.commit()

    report = process_recurring_bills(session, user.id, today=date(2025, 12, 31))

    assert report.generated == 0
    assert _generated(session, bill.id) == []


def test_failure_on_one_bill_does_not_stop_the_scan(
    session, user, expense_cat, monkeypatch
):
    broken = _plan(session, user, expense_cat, name="Broken")
    healthy = _plan(session, user, expense_cat, name="Healthy")
    broken_id = broken.id
    real_process_bill = recurring.process_bill

    def flaky(sess, bill, today):
        if bill.id == broken_id:
            raise SQLAlchemyError("insert failed")
        return real_process_bill(sess, bill, today)

    monkeypatch.setattr(recurring, "process_bill", flaky)

    report = process_recurring_bills(session, user.id, today=date(2025, 12, 31))

    assert report.failed_bill_ids == [broken_id]
    assert report.generated == 3
    assert len(_generated(session, healthy.id)) == 3
    assert _generated(session, broken_id) == []


def test_deleting_a_bill_keeps_its_transactions(session, user, expense_cat):
    bill = _plan(session, user, expense_cat)
    bill_id = bill.id
    process_recurring_bills(session, user.id, today=date(2025, 12, 31))

    delete_recurring_bill(session, user.id, bill_id)

    assert session.get(RecurringBill, bill_id) is None
    kept = session.exec(
        select(Transaction).where(Transaction.description.like("Laptop - Parcela%"))
    ).all()
    assert len(kept) == 3
    assert all(t.recurring_bill_id is None for t in kept)


def test_bill_requires_expense_category(session, user):
    income = create_category(session, user.id, name="Salary", kind=CategoryKind.income)
    with pytest.raises(FieldError) as exc_info:
        create_recurring_bill(
            session,
            user.id,
            name="Oops",
            total_amount=10,
            category_id=income.id,
            is_subscription=True,
        )
    assert exc_info.value.field == "category_id"


def test_installment_plan_requires_count(session, user, expense_cat):
    with pytest.raises(FieldError) as exc_info:
        create_recurring_bill(
            session,
            user.id,
            name="Phone",
            total_amount=1200,
            category_id=expense_cat.id,
            is_subscription=False,
            installment_count=None,
        )
    assert exc_info.value.field == "installment_count"
    assert isinstance(exc_info.value, ValueError)


def test_out_of_range_closing_day_is_tagged(session, user, expense_cat):
    with pytest.raises(FieldError) as exc_info:
        create_recurring_bill(
            session,
            user.id,
            name="Gym",
            total_amount=90,
            category_id=expense_cat.id,
            is_subscription=True,
            closing_day=32,
        )
    assert exc_info.value.field == "closing_day"


def test_blank_category_name_is_tagged(session, user):
    with pytest.raises(FieldError) as exc_info:
        recurring.resolve_expense_category(session, user.id, category_name="  ")
    assert exc_info.value.field == "category_name"


def test_closing_day_defaults_to_profile_setting(session, user, expense_cat):
    recurring.update_default_closing_day(session, user.id, 45)  # clamped to 31
    assert recurring.get_default_closing_day(session, user.id) == 31

    bill = create_recurring_bill(
        session,
        user.id,
        name="Gym",
        total_amount=90,
        category_id=expense_cat.id,
        is_subscription=True,
    )
    assert bill.closing_day == 31
    assert bill.installment_count is None
    assert bill.start_date == date.today()


def test_resolve_expense_category_matches_or_creates(session, user, expense_cat):
    same = recurring.resolve_expense_category(session, user.id, category_name="bills")
    assert same.id == expense_cat.id

    created = recurring.resolve_expense_category(
        session, user.id, category_name="Streaming"
    )
    assert created.id != expense_cat.id
    assert created.kind == CategoryKind.expense
