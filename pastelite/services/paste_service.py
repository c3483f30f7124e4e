from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from pastelite.clock import Clock
from pastelite.domain.availability import (
    PasteAvailability,
    as_utc,
    evaluate_availability,
)
from pastelite.observability import get_correlation_id
from pastelite.repositories.paste_repository import ConsumedView, PasteRepository


logger = logging.getLogger(__name__)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp as ISO-8601 UTC with milliseconds, e.g. ``...T10:00:00.000Z``."""
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _view_to_dto(view: ConsumedView) -> dict[str, Any]:
    """Convert a consumed view to a plain dict DTO."""
    return {
        "id": str(view.id),
        "content": view.content,
        "max_views": view.max_views,
        "remaining_views": view.remaining_views,
        "expires_at": format_timestamp(view.expires_at),
    }


class PasteError(Exception):
    """Base class for paste-related errors."""


class InvalidPasteParameters(PasteError):
    """Raised when creating a paste with invalid parameters."""


class PasteNotFoundError(PasteError):
    """
    Raised when a paste cannot be served.

    Expired and exhausted pastes are reported through subclasses so callers
    can treat all three cases identically.
    """

    reason = PasteAvailability.MISSING
    default_message = "Paste not found"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class PasteExpiredError(PasteNotFoundError):
    reason = PasteAvailability.EXPIRED
    default_message = "Paste expired"


class PasteViewLimitExceededError(PasteNotFoundError):
    reason = PasteAvailability.EXHAUSTED
    default_message = "View limit exceeded"


_ERROR_BY_AVAILABILITY: dict[PasteAvailability, type[PasteNotFoundError]] = {
    PasteAvailability.MISSING: PasteNotFoundError,
    PasteAvailability.EXPIRED: PasteExpiredError,
    PasteAvailability.EXHAUSTED: PasteViewLimitExceededError,
}


def parse_paste_id(raw: str) -> uuid.UUID:
    """Parse a public paste id; malformed ids are simply not found."""
    try:
        return uuid.UUID(raw)
    except (ValueError, TypeError) as exc:
        raise PasteNotFoundError() from exc


@dataclass
class PasteService:
    """
    Application service coordinating paste-related use cases.

    Owns session lifecycle: creates a session per use case, commits on success,
    rolls back on exception, and closes the session in a finally block.
    Returns plain dict DTOs; no ORM entities escape this layer.
    """

    session_factory: Callable[[], Session]
    clock: Clock

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------
    def create_paste(
        self,
        *,
        content: str,
        ttl_seconds: Optional[int] = None,
        max_views: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Create a new paste enforcing business rules:

        - ``content`` must be a non-empty string
        - ``ttl_seconds`` and ``max_views`` (if provided) must be integers >= 1
        """
        if not isinstance(content, str) or not content:
            self._log_invalid("content")
            raise InvalidPasteParameters("content must be a non-empty string.")

        for name, value in (("ttl_seconds", ttl_seconds), ("max_views", max_views)):
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                self._log_invalid(name)
                raise InvalidPasteParameters(f"{name} must be an integer >= 1.")

        now = self.clock.now()
        expires_at = now + timedelta(seconds=ttl_seconds) if ttl_seconds else None

        session = self.session_factory()
        try:
            paste_repo = PasteRepository(session=session)
            paste = paste_repo.create_paste(
                content=content,
                created_at=now,
                max_views=max_views,
                expires_at=expires_at,
            )
            paste_id = str(paste.id)
            session.commit()
            logger.info(
                "Paste created",
                extra={
                    "event": "paste_created",
                    "paste_id": paste_id,
                    "correlation_id": get_correlation_id(),
                },
            )
            return {
                "id": paste_id,
                "max_views": max_views,
                "remaining_views": max_views,
                "expires_at": format_timestamp(expires_at),
                "created_at": format_timestamp(now),
            }
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -------------------------------------------------------------------------
    # Retrieval / viewing
    # -------------------------------------------------------------------------
    def retrieve_paste_for_view(self, paste_id: uuid.UUID) -> dict[str, Any]:
        """
        Retrieve a paste and consume one view of it.

        Rules:
        - Missing paste → PasteNotFoundError
        - ``now >= expires_at`` → PasteExpiredError
        - view limit set and no views left → PasteViewLimitExceededError
        - Otherwise decrement ``remaining_views`` (only when a view limit is
          set) and return the post-decrement state.

        The check and the decrement are one conditional update; the paste is
        only re-read after a refusal to tell the caller why.
        """
        now = self.clock.now()
        session = self.session_factory()
        try:
            paste_repo = PasteRepository(session=session)
            view = paste_repo.consume_view_atomic(paste_id, now=now)

            if view is None:
                availability = evaluate_availability(
                    paste_repo.get_paste_by_id(paste_id), now
                )
                # AVAILABLE here means the row changed between the two
                # statements; the update is authoritative, so refuse anyway.
                error_cls = _ERROR_BY_AVAILABILITY.get(
                    availability, PasteViewLimitExceededError
                )
                logger.info(
                    "Paste view refused",
                    extra={
                        "event": "paste_view_refused",
                        "paste_id": str(paste_id),
                        "reason": error_cls.reason.value,
                        "correlation_id": get_correlation_id(),
                    },
                )
                raise error_cls()

            session.commit()
            logger.info(
                "Paste view consumed",
                extra={
                    "event": "paste_view_consumed",
                    "paste_id": str(view.id),
                    "remaining_views": view.remaining_views,
                    "correlation_id": get_correlation_id(),
                },
            )
            return _view_to_dto(view)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------
    def check_health(self) -> bool:
        """Return ``True`` when the database answers a trivial query."""
        session = self.session_factory()
        try:
            PasteRepository(session=session).ping()
            return True
        except Exception as exc:
            logger.warning(
                "Health check: database unreachable",
                extra={
                    "event": "healthcheck_failed",
                    "error_type": type(exc).__name__,
                    "correlation_id": get_correlation_id(),
                },
            )
            return False
        finally:
            session.close()

    def _log_invalid(self, field: str) -> None:
        logger.warning(
            "Invalid parameter when creating paste",
            extra={
                "event": "paste_create_invalid_parameters",
                "field": field,
                "correlation_id": get_correlation_id(),
            },
        )
