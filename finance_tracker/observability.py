# finance_tracker/observability.py
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware

from finance_tracker.identity import AuthSession

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root logger setup; safe to call more than once."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())


def log_session_change(auth: AuthSession | None) -> None:
    """Identity-provider listener: one line per sign-in / sign-out."""
    log = logging.getLogger("ft.auth")
    if auth is None:
        log.info("session ended")
    else:
        log.info("session started user=%s", auth.user_id)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.perf_counter()

        # session only exists once SessionMiddleware has run
        sess = request.scope.get("session")
        user_id = sess.get("user_id") if sess else None

        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logging.getLogger("ft.req").log(
            level,
            "%s %s -> %s in %.1fms user=%s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            user_id,
        )
        return response
