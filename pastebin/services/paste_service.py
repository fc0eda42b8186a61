from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from pastebin.domain.policy import as_utc
from pastebin.observability import get_correlation_id
from pastebin.repositories.paste_repository import PasteRepository


logger = logging.getLogger(__name__)

# Errors that mean the database could not be reached rather than that the
# statement itself was rejected.
_CONNECTIVITY_ERRORS = (OperationalError, InterfaceError)


class PasteError(Exception):
    """Base class for paste-related errors."""


class InvalidPasteParameters(PasteError):
    """Raised when creating a paste with invalid parameters."""


class PasteNotFoundError(PasteError):
    """Raised when a paste is absent, expired or out of views."""


class StoreUnavailableError(PasteError):
    """Raised when the paste store cannot be reached."""


# ``max_views`` is stored in a 32-bit INTEGER column.
MAX_VIEWS_LIMIT = 2**31 - 1

# Latest representable expiry; larger TTLs are clamped to it.
MAX_EXPIRES_AT = datetime.max.replace(tzinfo=timezone.utc)


def _normalize_max_views(max_views: Any) -> Optional[int]:
    if max_views is None:
        return None
    if isinstance(max_views, bool) or not isinstance(max_views, int):
        raise InvalidPasteParameters("max_views must be a positive integer.")
    if max_views < 1:
        raise InvalidPasteParameters("max_views must be >= 1.")
    if max_views > MAX_VIEWS_LIMIT:
        raise InvalidPasteParameters(f"max_views must be <= {MAX_VIEWS_LIMIT}.")
    return max_views


def _compute_expires_at(now: datetime, ttl_seconds: Any) -> Optional[datetime]:
    if ttl_seconds is None or isinstance(ttl_seconds, bool):
        return None
    if not isinstance(ttl_seconds, (int, float)) or ttl_seconds <= 0:
        return None
    try:
        return as_utc(now) + timedelta(seconds=ttl_seconds)
    except (OverflowError, ValueError):
        return MAX_EXPIRES_AT


@dataclass
class PasteService:
    """
    Application service coordinating paste-related use cases.

    Owns session lifecycle: creates a session per use case, commits on success,
    rolls back on exception, and closes the session in a finally block.
    Returns plain dict DTOs; no ORM entities escape this layer.

    The service keeps no locks and never retries: a conditional update that
    matches nothing is a final "not found" for that call.
    """

    session_factory: Callable[[], Session]

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------
    def create_paste(
        self,
        *,
        content: Optional[str],
        ttl_seconds: Optional[float] = None,
        max_views: Optional[int] = None,
        now: datetime,
    ) -> dict[str, Any]:
        """
        Create a new paste enforcing business rules:

        - ``content`` must be a non-empty string
        - ``max_views`` (if provided) must be an integer between 1 and ``MAX_VIEWS_LIMIT``
        - a positive ``ttl_seconds`` sets ``expires_at = now + ttl_seconds``
          (clamped to ``MAX_EXPIRES_AT``); anything else leaves the paste
          without a time limit

        Returns ``{"id": str, "expires_at": datetime | None}``.
        """
        try:
            if not isinstance(content, str) or content == "":
                raise InvalidPasteParameters("Content is required.")
            normalized_max_views = _normalize_max_views(max_views)
        except InvalidPasteParameters as exc:
            logger.warning(
                "Invalid parameters when creating paste",
                extra={
                    "event": "paste_create_invalid_parameters",
                    "error_type": str(exc),
                    "correlation_id": get_correlation_id(),
                },
            )
            raise

        expires_at = _compute_expires_at(now, ttl_seconds)

        session = self.session_factory()
        try:
            paste_repo = PasteRepository(session=session)
            paste = paste_repo.create_paste(
                content=content,
                max_views=normalized_max_views,
                expires_at=expires_at,
            )
            paste_id = str(paste.id)
            session.commit()
        except _CONNECTIVITY_ERRORS as exc:
            session.rollback()
            logger.exception(
                "Store unavailable while creating paste",
                extra={
                    "event": "paste_store_error",
                    "error_type": type(exc).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
            raise StoreUnavailableError("Paste store is unavailable.") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info(
            "Paste created",
            extra={
                "event": "paste_created",
                "paste_id": paste_id,
                "correlation_id": get_correlation_id(),
            },
        )
        return {"id": paste_id, "expires_at": expires_at}

    # -------------------------------------------------------------------------
    # Guarded retrieval
    # -------------------------------------------------------------------------
    def fetch_and_consume(self, paste_id: str | uuid.UUID, *, now: datetime) -> dict[str, Any]:
        """
        Consume one view of a paste and return it.

        The accessibility check and the view increment happen in a single
        conditional update. Absent, expired and exhausted pastes all raise
        ``PasteNotFoundError`` so callers cannot tell them apart.

        Returns ``{"content", "remaining_views", "expires_at"}`` where
        ``remaining_views`` is ``None`` for pastes without a view limit.
        """
        try:
            uid = paste_id if isinstance(paste_id, uuid.UUID) else uuid.UUID(str(paste_id))
        except ValueError as exc:
            logger.info(
                "Paste view rejected: malformed id",
                extra={
                    "event": "paste_view_rejected",
                    "correlation_id": get_correlation_id(),
                },
            )
            raise PasteNotFoundError("Paste not found.") from exc

        session = self.session_factory()
        try:
            paste_repo = PasteRepository(session=session)
            row = paste_repo.consume_view(uid, now)
            session.commit()
        except _CONNECTIVITY_ERRORS as exc:
            session.rollback()
            logger.exception(
                "Store unavailable while fetching paste",
                extra={
                    "event": "paste_store_error",
                    "paste_id": str(uid),
                    "error_type": type(exc).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
            raise StoreUnavailableError("Paste store is unavailable.") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning(
                "Store error while fetching paste; reporting not found",
                extra={
                    "event": "paste_store_error",
                    "paste_id": str(uid),
                    "error_type": type(exc).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
            raise PasteNotFoundError("Paste not found.") from exc
        finally:
            session.close()

        if row is None:
            logger.info(
                "Paste view rejected",
                extra={
                    "event": "paste_view_rejected",
                    "paste_id": str(uid),
                    "correlation_id": get_correlation_id(),
                },
            )
            raise PasteNotFoundError("Paste not found.")

        remaining_views = None
        if row.max_views is not None:
            remaining_views = row.max_views - row.current_views

        logger.info(
            "Paste view consumed",
            extra={
                "event": "paste_view_consumed",
                "paste_id": str(uid),
                "remaining_views": remaining_views,
                "correlation_id": get_correlation_id(),
            },
        )
        return {
            "content": row.content,
            "remaining_views": remaining_views,
            "expires_at": as_utc(row.expires_at) if row.expires_at is not None else None,
        }

    # -------------------------------------------------------------------------
    # Cleanup
    # -------------------------------------------------------------------------
    def purge_expired(self, *, now: datetime) -> int:
        """Delete pastes whose time limit has passed at ``now``."""
        session = self.session_factory()
        try:
            purged = PasteRepository(session=session).purge_expired(now)
            session.commit()
            return purged
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
