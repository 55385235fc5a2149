# finance_tracker/flash.py
"""
One-shot toast messages carried in the session across a redirect.

Routers queue a message with `flash(request, "Saved.", "success")`; the
base template calls `pop_flashes(request)` while rendering, so messages
queued by the very request that renders a page show up too.
"""

from __future__ import annotations

from typing import Any, Dict, List, MutableMapping

from fastapi import Request

_FLASH_KEY = "_toasts"
LEVELS = ("success", "info", "warning", "error")


def _store(request: Request) -> MutableMapping[str, Any]:
    # Without SessionMiddleware (bare unit tests) keep toasts on the request only.
    if "session" in request.scope:
        return request.session
    if not hasattr(request.state, "toasts"):
        request.state.toasts = {}
    return request.state.toasts


def flash(request: Request, message: str, level: str = "info") -> None:
    if level not in LEVELS:
        level = "info"
    store = _store(request)
    items: List[Dict[str, str]] = list(store.get(_FLASH_KEY, []))
    items.append({"level": level, "message": message})
    store[_FLASH_KEY] = items


def pop_flashes(request: Request) -> List[Dict[str, str]]:
    """Return queued toasts and clear them so they render once."""
    store = _store(request)
    items = list(store.get(_FLASH_KEY, []))
    if items:
        store[_FLASH_KEY] = []
    return items
