from __future__ import annotations

import logging
from http import HTTPStatus

from flask import Blueprint, request
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from pastebin.api.clock import request_now
from pastebin.api.schemas import (
    HealthResponse,
    PasteCreateRequest,
    PasteCreateResponse,
    PasteResponse,
)
from pastebin.db import SessionLocal, ping
from pastebin.observability import get_correlation_id
from pastebin.services.paste_service import (
    InvalidPasteParameters,
    PasteNotFoundError,
    PasteService,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _paste_url(paste_id: str) -> str:
    protocol = request.headers.get("X-Forwarded-Proto") or request.scheme
    return f"{protocol}://{request.host}/p/{paste_id}"


@api_bp.route("/healthz", methods=["GET"])
def health() -> tuple[dict, int]:
    """Report whether the paste store is reachable."""
    try:
        ping()
    except SQLAlchemyError as exc:
        logger.warning(
            "Health check failed",
            extra={
                "event": "healthcheck_failed",
                "error_type": type(exc).__name__,
                "correlation_id": get_correlation_id(),
            },
        )
        return HealthResponse(ok=False).model_dump(), HTTPStatus.SERVICE_UNAVAILABLE

    return HealthResponse(ok=True).model_dump(), HTTPStatus.OK


@api_bp.route("/pastes", methods=["POST"])
def create_paste() -> tuple[dict, int]:
    """
    Create a new paste.

    Validation is handled by Pydantic; business rules by the service layer.
    """
    try:
        payload = PasteCreateRequest.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        return {"error": "Invalid request body", "details": str(exc)}, HTTPStatus.BAD_REQUEST

    paste_service = PasteService(session_factory=SessionLocal)
    try:
        dto = paste_service.create_paste(
            content=payload.content,
            ttl_seconds=payload.ttl_seconds,
            max_views=payload.max_views,
            now=request_now(),
        )
    except InvalidPasteParameters as exc:
        return {"error": str(exc)}, HTTPStatus.BAD_REQUEST
    except StoreUnavailableError as exc:
        return {"error": str(exc)}, HTTPStatus.SERVICE_UNAVAILABLE
    except Exception:
        logger.exception(
            "Failed to create paste",
            extra={
                "event": "paste_store_error",
                "correlation_id": get_correlation_id(),
            },
        )
        return {"error": "Server error creating paste"}, HTTPStatus.INTERNAL_SERVER_ERROR

    body = PasteCreateResponse(id=dto["id"], url=_paste_url(dto["id"]))
    return body.model_dump(), HTTPStatus.CREATED


@api_bp.route("/pastes/<paste_id>", methods=["GET"])
def get_paste(paste_id: str) -> tuple[dict, int]:
    """Consume one view of a paste and return it as JSON."""
    paste_service = PasteService(session_factory=SessionLocal)
    try:
        dto = paste_service.fetch_and_consume(paste_id, now=request_now())
    except PasteNotFoundError:
        return {"error": "Not found, expired, or limit reached"}, HTTPStatus.NOT_FOUND
    except StoreUnavailableError as exc:
        return {"error": str(exc)}, HTTPStatus.SERVICE_UNAVAILABLE

    return PasteResponse(**dto).model_dump(mode="json"), HTTPStatus.OK
