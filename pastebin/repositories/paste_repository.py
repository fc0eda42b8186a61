from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    ColumnElement,
    Delete,
    Row,
    Update,
    and_,
    delete,
    or_,
    update,
)
from sqlalchemy.orm import Session

from pastebin.domain.models import Paste
from pastebin.domain.policy import as_utc
from pastebin.observability import get_correlation_id


logger = logging.getLogger(__name__)


def accessible_criteria(now: datetime) -> ColumnElement[bool]:
    """
    SQL form of ``pastebin.domain.policy.is_accessible``.

    The time clause and the count clause are each a complete ``OR`` group and
    are joined by an explicit ``AND`` so neither can replace the other.
    """
    now_utc = as_utc(now)
    return and_(
        or_(
            Paste.expires_at.is_(None),
            Paste.expires_at > now_utc,
        ),
        or_(
            Paste.max_views.is_(None),
            Paste.current_views < Paste.max_views,
        ),
    )


class PasteRepository:
    """
    Repository for Paste aggregates.

    All database interaction for Paste should go through this class.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_paste(
        self,
        *,
        content: str,
        max_views: Optional[int] = None,
        expires_at: Optional[datetime] = None,
    ) -> Paste:
        """
        Create and persist a new Paste.

        Note: Paste content is set only at creation time and is not exposed
        for updates via this repository.
        """

        paste = Paste(
            content=content,
            max_views=max_views,
            current_views=0,
            expires_at=as_utc(expires_at) if expires_at is not None else None,
        )
        self._session.add(paste)
        # Flush so that generated primary key and defaults are populated.
        self._session.flush()
        return paste

    def consume_view(self, paste_id: uuid.UUID, now: datetime) -> Optional[Row]:
        """
        Increment ``current_views`` only if the paste is accessible at ``now``.

        The check and the increment are one conditional UPDATE evaluated by
        the database, so concurrent callers are serialized on the row.
        Returns the post-increment row, or ``None`` if nothing matched.
        """

        stmt: Update = (
            update(Paste)
            .where(Paste.id == paste_id, accessible_criteria(now))
            .values(current_views=Paste.current_views + 1)
            .returning(
                Paste.id,
                Paste.content,
                Paste.max_views,
                Paste.current_views,
                Paste.expires_at,
            )
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).one_or_none()

    def purge_expired(self, now: datetime) -> int:
        """
        Delete pastes whose ``expires_at`` is at or before ``now``.

        Returns the number of deleted rows. Caller is responsible for committing.
        """

        stmt: Delete = (
            delete(Paste)
            .where(
                Paste.expires_at.isnot(None),
                Paste.expires_at <= as_utc(now),
            )
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        purged = int(result.rowcount or 0)

        if purged:
            logger.info(
                "Purged expired pastes",
                extra={
                    "event": "pastes_purged",
                    "purged_count": purged,
                    "correlation_id": get_correlation_id(),
                },
            )
        return purged
