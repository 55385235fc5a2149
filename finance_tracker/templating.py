# finance_tracker/templating.py
from pathlib import Path

from fastapi.templating import Jinja2Templates

from finance_tracker.config import get_settings
from finance_tracker.flash import pop_flashes

# templates live next to this file: finance_tracker/templates
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

_SYMBOLS = {"BRL": "R$", "EUR": "€", "USD": "$", "GBP": "£"}


def money(value, currency: str | None = None) -> str:
    """1234.5 -> 'R$ 1.234,50' (pt-BR grouping, as the app's users expect)."""
    code = currency or get_settings().currency
    amount = float(value or 0)
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{_SYMBOLS.get(code, code)} {text}"


def br_date(value) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["money"] = money
templates.env.filters["br_date"] = br_date
templates.env.globals["pop_flashes"] = pop_flashes
