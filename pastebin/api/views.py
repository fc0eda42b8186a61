from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, render_template

from pastebin.api.clock import request_now
from pastebin.db import SessionLocal
from pastebin.services.paste_service import (
    PasteNotFoundError,
    PasteService,
    StoreUnavailableError,
)

views_bp = Blueprint("views", __name__)


@views_bp.route("/p/<paste_id>", methods=["GET"])
def view_paste(paste_id: str) -> tuple[str, int]:
    """
    Consume one view of a paste and render it as an HTML page.

    Same guarded retrieval as the JSON route; Jinja autoescaping keeps the
    content inert.
    """
    paste_service = PasteService(session_factory=SessionLocal)
    try:
        dto = paste_service.fetch_and_consume(paste_id, now=request_now())
    except PasteNotFoundError:
        page = render_template("error.html", title="404 - Not Found or Expired")
        return page, HTTPStatus.NOT_FOUND
    except StoreUnavailableError:
        page = render_template("error.html", title="503 - Service Unavailable")
        return page, HTTPStatus.SERVICE_UNAVAILABLE

    return render_template("paste.html", content=dto["content"]), HTTPStatus.OK
