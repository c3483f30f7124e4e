from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import Select, Update, or_, select, text, update
from sqlalchemy.orm import Session

from pastelite.domain.models import Paste


@dataclass(frozen=True)
class ConsumedView:
    """Row state returned by a successful view consumption."""

    id: uuid.UUID
    content: str
    max_views: Optional[int]
    remaining_views: Optional[int]
    expires_at: Optional[datetime]


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
        created_at: datetime,
        max_views: Optional[int] = None,
        expires_at: Optional[datetime] = None,
    ) -> Paste:
        """
        Create and persist a new Paste.

        ``remaining_views`` starts at ``max_views``. Content is set only at
        creation time and is not exposed for updates via this repository.
        """

        paste = Paste(
            content=content,
            max_views=max_views,
            remaining_views=max_views,
            expires_at=expires_at,
            created_at=created_at,
        )
        self._session.add(paste)
        # Flush so that generated primary key and defaults are populated.
        self._session.flush()
        return paste

    def get_paste_by_id(self, paste_id: uuid.UUID) -> Optional[Paste]:
        """Return a Paste by its id, or ``None`` if not found."""

        stmt: Select[tuple[Paste]] = select(Paste).where(Paste.id == paste_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def consume_view_atomic(
        self,
        paste_id: uuid.UUID,
        *,
        now: datetime,
    ) -> Optional[ConsumedView]:
        """
        Atomically consume one view of a Paste if it is still available.

        Visibility (not expired at ``now``, view budget left) and the
        decrement happen in a single conditional UPDATE, so concurrent
        readers cannot both take the last view. Returns the post-decrement
        row, or ``None`` when the paste is missing, expired or exhausted.
        """

        stmt: Update = (
            update(Paste)
            .where(
                Paste.id == paste_id,
                or_(Paste.expires_at.is_(None), Paste.expires_at > now),
                or_(Paste.max_views.is_(None), Paste.remaining_views > 0),
            )
            # NULL - 1 stays NULL, leaving unlimited pastes untouched.
            .values(remaining_views=Paste.remaining_views - 1)
            .returning(
                Paste.id,
                Paste.content,
                Paste.max_views,
                Paste.remaining_views,
                Paste.expires_at,
            )
            .execution_options(synchronize_session=False)
        )
        row = self._session.execute(stmt).one_or_none()
        if row is None:
            return None

        return ConsumedView(
            id=row.id,
            content=row.content,
            max_views=row.max_views,
            remaining_views=row.remaining_views,
            expires_at=row.expires_at,
        )

    def ping(self) -> None:
        """Issue a trivial query; raises if the database is unreachable."""

        self._session.execute(text("SELECT 1")).scalar_one()
