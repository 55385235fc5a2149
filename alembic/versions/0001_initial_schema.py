"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

category_kind = sa.Enum("income", "expense", name="categorykind")
loan_status = sa.Enum("pending", "paid", name="loanstatus")


def upgrade() -> None:
    op.create_table(
        "credential",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email", name="uq_credential_email"),
    )
    op.create_index("ix_credential_email", "credential", ["email"])

    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("login", sa.String(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email", name="uq_user_email"),
        sa.UniqueConstraint("login", name="uq_user_login"),
    )
    op.create_index("ix_user_account_email", "user_account", ["email"])
    op.create_index("ix_user_account_login", "user_account", ["login"])

    op.create_table(
        "financial_profile",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("monthly_income", sa.Float(), nullable=True),
        sa.Column("initial_balance", sa.Float(), nullable=True),
        sa.Column("default_closing_day", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_financial_profile_user_id", "financial_profile", ["user_id"], unique=True
    )

    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("kind", category_kind, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_category_user_id", "category", ["user_id"])
    op.create_index("ix_category_kind", "category", ["kind"])

    op.create_table(
        "recurring_bill",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("category.id"), nullable=False),
        sa.Column("is_subscription", sa.Boolean(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("installment_count", sa.Integer(), nullable=True),
        sa.Column("installments_paid", sa.Integer(), nullable=False),
        sa.Column("closing_day", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_recurring_bill_user_id", "recurring_bill", ["user_id"])
    op.create_index("ix_recurring_bill_category_id", "recurring_bill", ["category_id"])
    op.create_index("ix_recurring_bill_active", "recurring_bill", ["active"])

    op.create_table(
        "loan",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("created_date", sa.Date(), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=True),
        sa.Column("status", loan_status, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_loan_user_id", "loan", ["user_id"])
    op.create_index("ix_loan_status", "loan", ["status"])

    op.create_table(
        "ledger_transaction",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("category.id"), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("txn_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column(
            "recurring_bill_id",
            sa.Integer(),
            sa.ForeignKey("recurring_bill.id"),
            nullable=True,
        ),
        sa.Column("installment_number", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_ledger_transaction_user_id", "ledger_transaction", ["user_id"])
    op.create_index(
        "ix_ledger_transaction_category_id", "ledger_transaction", ["category_id"]
    )
    op.create_index("ix_ledger_transaction_txn_date", "ledger_transaction", ["txn_date"])
    op.create_index(
        "ix_ledger_transaction_recurring_bill_id",
        "ledger_transaction",
        ["recurring_bill_id"],
    )


def downgrade() -> None:
    op.drop_table("ledger_transaction")
    op.drop_table("loan")
    op.drop_table("recurring_bill")
    op.drop_table("category")
    op.drop_table("financial_profile")
    op.drop_table("user_account")
    op.drop_table("credential")
    category_kind.drop(op.get_bind(), checkfirst=True)
    loan_status.drop(op.get_bind(), checkfirst=True)
