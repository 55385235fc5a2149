from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from finance_tracker.security import get_user_id_from_session
from finance_tracker.templating import templates

router = APIRouter()


@router.get("/healthz", response_class=PlainTextResponse)
def healthz():
    return "ok"


@router.get("/")
def home(request: Request):
    # signed-in users go straight to their numbers
    if get_user_id_from_session(request) is not None:
        return RedirectResponse("/dashboard", status_code=303)
    return templates.TemplateResponse(request, "index.html", {})
