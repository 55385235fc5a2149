# finance_tracker/routers/dashboard.py
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from finance_tracker.db import get_session
from finance_tracker.periods import PERIODS
from finance_tracker.security import require_user_id
from finance_tracker.services.accounts import get_user
from finance_tracker.services.dashboard import (
    KIND_FILTERS,
    category_breakdown,
    compute_dashboard,
    recent_transactions,
)
from finance_tracker.templating import templates

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
def dashboard(
    request: Request,
    period: str = "current-month",
    kind: str = "expense",
    session: Session = Depends(get_session),
):
    try:
        user_id = require_user_id(request)
    except HTTPException as e:
        return RedirectResponse(e.headers["Location"], status_code=e.status_code)

    # unknown query values fall back to the defaults instead of erroring
    if period not in PERIODS:
        period = "current-month"
    if kind not in KIND_FILTERS:
        kind = "expense"

    user = get_user(session, user_id)
    first_name = user.full_name.split(" ")[0] if user and user.full_name else "User"

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "first_name": first_name,
            "summary": compute_dashboard(session, user_id),
            "breakdown": category_breakdown(session, user_id, period, kind),
            "recent": recent_transactions(session, user_id),
            "period": period,
            "kind": kind,
            "periods": PERIODS,
            "kinds": KIND_FILTERS,
        },
    )
