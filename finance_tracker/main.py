# finance_tracker/main.py
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from finance_tracker.config import get_settings
from finance_tracker.db import create_db_and_tables
from finance_tracker.identity import identity
from finance_tracker.observability import (
    RequestLogMiddleware,
    configure_logging,
    log_session_change,
)
from finance_tracker.routers.account import router as account_router
from finance_tracker.routers.auth import router as auth_router
from finance_tracker.routers.categories import router as categories_router
from finance_tracker.routers.dashboard import router as dashboard_router
from finance_tracker.routers.loans import router as loans_router
from finance_tracker.routers.recurring import router as recurring_router
from finance_tracker.routers.system import router as system_router
from finance_tracker.routers.transactions import router as transactions_router

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    unsubscribe = identity.subscribe(log_session_change)
    yield
    unsubscribe()


app = FastAPI(title="Finance Tracker", version="0.1.0", lifespan=lifespan)

# Middleware order: the last one added runs first, so the session is
# unpacked before the request logger looks for the user id.
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age,
    same_site="lax",
)

app.include_router(system_router)
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(categories_router)
app.include_router(transactions_router)
app.include_router(loans_router)
app.include_router(recurring_router)
app.include_router(account_router)
