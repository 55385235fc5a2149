# finance_tracker/forms.py
"""
Form models: validate raw HTML form input before any database call.

Each router builds one of these from the submitted form; on failure,
`field_errors(exc)` turns the pydantic error into {field: message} so the
template can show the message next to the input.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Dict, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from finance_tracker.models import CategoryKind, LoanStatus

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_LOGIN_RE = re.compile(r"^[A-Za-z0-9_]+$")


def field_errors(exc: ValidationError) -> Dict[str, str]:
    """First message per field; errors without a field land under "__all__"."""
    out: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else "__all__"
        msg = err.get("msg", "Invalid value")
        # pydantic prefixes custom ValueErrors with "Value error, "
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        out.setdefault(field, msg)
    return out


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class _Form(BaseModel):
    # defaults go through validators too, so "required" checks always run
    model_config = ConfigDict(validate_default=True)

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class RegistrationForm(_Form):
    full_name: str
    birth_date: Optional[date] = None
    phone: str
    email: str
    login: str
    password: str
    confirm_password: str

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Name must have at least 3 characters")
        if len(v) > 100:
            raise ValueError("Name must have at most 100 characters")
        return v

    @field_validator("birth_date", mode="before")
    @classmethod
    def _birth(cls, v):
        if _blank_to_none(v) is None:
            raise ValueError("Birth date is required")
        return v

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        if not 10 <= len(v) <= 20:
            raise ValueError("Invalid phone number")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        if len(v) > 255 or not _EMAIL_RE.match(v):
            raise ValueError("Invalid email")
        return v.lower()

    @field_validator("login")
    @classmethod
    def _login(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Login must have at least 3 characters")
        if len(v) > 50:
            raise ValueError("Login must have at most 50 characters")
        if not _LOGIN_RE.match(v):
            raise ValueError("Login may only contain letters, numbers and underscore")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must have at least 6 characters")
        return v

    @field_validator("confirm_password")
    @classmethod
    def _matches(cls, v: str, info: ValidationInfo) -> str:
        # password is missing from info.data when it failed its own check
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class SignInForm(_Form):
    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def _required(cls, v: str) -> str:
        if not v:
            raise ValueError("Fill in all fields")
        return v


class AccountForm(_Form):
    full_name: str
    birth_date: Optional[date] = None
    phone: Optional[str] = None

    @field_validator("birth_date", "phone", mode="before")
    @classmethod
    def _optional(cls, v):
        return _blank_to_none(v)

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Name must have at least 3 characters")
        return v


class FinancialProfileForm(_Form):
    monthly_income: float = 0.0
    initial_balance: float = 0.0

    @field_validator("monthly_income", "initial_balance", mode="before")
    @classmethod
    def _blank_is_zero(cls, v):
        return 0.0 if _blank_to_none(v) is None else v


class CategoryForm(_Form):
    name: str
    kind: CategoryKind = CategoryKind.expense

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if not v:
            raise ValueError("Name is required")
        return v


class TransactionForm(_Form):
    category_id: int
    amount: float
    txn_date: date
    description: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def _optional(cls, v):
        return _blank_to_none(v)

    @field_validator("amount")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Amount must be greater than zero")
        return v


class LoanForm(_Form):
    name: str
    amount: float
    payment_date: Optional[date] = None

    @field_validator("payment_date", mode="before")
    @classmethod
    def _optional(cls, v):
        return _blank_to_none(v)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("amount")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Amount must be greater than zero")
        return v


class LoanStatusForm(_Form):
    status: LoanStatus


class ClosingDayForm(_Form):
    closing_day: int

    @field_validator("closing_day", mode="before")
    @classmethod
    def _clamp(cls, v):
        # out-of-range or blank input is pulled into 1..31 instead of rejected
        try:
            day = int(v)
        except (TypeError, ValueError):
            day = 1
        return max(1, min(31, day))


class RecurringBillForm(_Form):
    name: str
    description: Optional[str] = None
    total_amount: float
    category_id: Optional[int] = None
    category_name: Optional[str] = None  # typed name, created if missing
    is_subscription: bool = False
    start_date: Optional[date] = None
    installment_count: Optional[int] = None
    closing_day: Optional[int] = None

    @field_validator(
        "description",
        "category_id",
        "category_name",
        "start_date",
        "installment_count",
        "closing_day",
        mode="before",
    )
    @classmethod
    def _optional(cls, v):
        return _blank_to_none(v)

    @field_validator("is_subscription", mode="before")
    @classmethod
    def _checkbox(cls, v):
        # unchecked boxes are simply absent from the form
        return v not in (None, "", "0", "false", "off", False)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("total_amount")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Amount must be greater than zero")
        return v

    @field_validator("category_name")
    @classmethod
    def _category(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is None and info.data.get("category_id") is None:
            raise ValueError("Category is required")
        return v

    @field_validator("installment_count")
    @classmethod
    def _installments(cls, v: Optional[int], info: ValidationInfo) -> Optional[int]:
        if info.data.get("is_subscription"):
            return None  # subscriptions never end by count
        if v is None or v < 1:
            raise ValueError("Number of installments is required")
        return v

    @field_validator("closing_day")
    @classmethod
    def _day(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1 <= v <= 31:
            raise ValueError("Closing day must be between 1 and 31")
        return v
