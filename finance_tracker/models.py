# finance_tracker/models.py
from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint


class Credential(SQLModel, table=True):
    """Sign-in record owned by the identity provider (email + password hash)."""

    __tablename__ = "credential"
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    hashed_password: str  # never plaintext
    created_at: datetime = Field(default_factory=datetime.now)

    __table_args__ = (UniqueConstraint("email", name="uq_credential_email"),)


class User(SQLModel, table=True):
    """Personal data of a registered user; id mirrors the credential id."""

    __tablename__ = "user_account"
    id: int | None = Field(default=None, primary_key=True)
    full_name: str
    birth_date: Optional[date] = None
    phone: Optional[str] = None
    email: str = Field(index=True)
    login: str = Field(index=True)
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.now)

    # constraint names carry the column so conflicts can be told apart
    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
        UniqueConstraint("login", name="uq_user_login"),
    )


class FinancialProfile(SQLModel, table=True):
    __tablename__ = "financial_profile"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user_account.id", unique=True, index=True)
    monthly_income: Optional[float] = None  # null reads as 0
    initial_balance: Optional[float] = None  # null reads as 0
    default_closing_day: int = Field(default=1)  # 1..31
    updated_at: datetime = Field(default_factory=datetime.now)


class CategoryKind(str, Enum):
    income = "income"
    expense = "expense"


class Category(SQLModel, table=True):
    __tablename__ = "category"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user_account.id", index=True)
    name: str
    kind: CategoryKind = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.now)


class Transaction(SQLModel, table=True):
    """
    One movement of money. Never edited after creation, only deleted.
    Rows generated from a recurring bill keep a link to it plus the
    installment number they represent.
    """

    __tablename__ = "ledger_transaction"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user_account.id", index=True)
    category_id: int = Field(foreign_key="category.id", index=True)

    amount: float  # positive; the category kind says in or out
    txn_date: date = Field(index=True)
    description: Optional[str] = None

    recurring_bill_id: Optional[int] = Field(
        default=None, foreign_key="recurring_bill.id", index=True
    )
    installment_number: Optional[int] = None

    created_at: datetime = Field(default_factory=datetime.now)


class LoanStatus(str, Enum):
    pending = "pending"
    paid = "paid"


class Loan(SQLModel, table=True):
    __tablename__ = "loan"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user_account.id", index=True)
    name: str
    amount: float
    created_date: date = Field(default_factory=date.today)
    payment_date: Optional[date] = None  # expected repayment, informative only
    status: LoanStatus = Field(default=LoanStatus.pending, index=True)
    created_at: datetime = Field(default_factory=datetime.now)
    # refreshed on every status change; for paid loans it is the payment moment
    updated_at: datetime = Field(default_factory=datetime.now)


class RecurringBill(SQLModel, table=True):
    """
    Template for monthly charges: either a subscription (same amount every
    month, no end) or an installment plan (total split across N months).
    """

    __tablename__ = "recurring_bill"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user_account.id", index=True)
    name: str
    description: Optional[str] = None
    total_amount: float
    category_id: int = Field(foreign_key="category.id", index=True)  # expense kind
    is_subscription: bool = Field(default=False)
    start_date: date
    installment_count: Optional[int] = None  # unused for subscriptions
    installments_paid: int = Field(default=0)
    closing_day: int = Field(default=1)  # day of month the charge is dated
    active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
