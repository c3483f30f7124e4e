from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from pastelite.clock import ManualClock
from pastelite.domain.models import Paste
from pastelite.services.paste_service import (
    InvalidPasteParameters,
    PasteExpiredError,
    PasteNotFoundError,
    PasteService,
    PasteViewLimitExceededError,
    format_timestamp,
    parse_paste_id,
)


def _count_pastes(session_factory) -> int:
    with session_factory() as s:
        return s.execute(select(func.count()).select_from(Paste)).scalar_one()


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def test_create_paste_without_limits(paste_service: PasteService) -> None:
    dto = paste_service.create_paste(content="hello")

    assert uuid.UUID(dto["id"])
    assert dto["expires_at"] is None
    assert dto["remaining_views"] is None
    assert dto["created_at"] == "2024-01-01T00:00:00.000Z"


def test_create_paste_computes_expiry_from_clock(paste_service: PasteService) -> None:
    dto = paste_service.create_paste(content="hello", ttl_seconds=90, max_views=4)

    assert dto["expires_at"] == "2024-01-01T00:01:30.000Z"
    assert dto["max_views"] == 4
    assert dto["remaining_views"] == 4


@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": ""},
        {"content": "x", "ttl_seconds": 0},
        {"content": "x", "max_views": -1},
        {"content": "x", "max_views": True},
        {"content": "x", "ttl_seconds": 1.5},
    ],
)
def test_create_paste_rejects_invalid_parameters(
    paste_service: PasteService, session_factory, kwargs
) -> None:
    with pytest.raises(InvalidPasteParameters):
        paste_service.create_paste(**kwargs)

    assert _count_pastes(session_factory) == 0


# ---------------------------------------------------------------------------
# Retrieval / viewing
# ---------------------------------------------------------------------------


def test_unlimited_paste_can_be_read_indefinitely(
    paste_service: PasteService, clock: ManualClock
) -> None:
    paste_id = uuid.UUID(paste_service.create_paste(content="hello")["id"])

    for _ in range(5):
        clock.advance(3600 * 24 * 365)
        dto = paste_service.retrieve_paste_for_view(paste_id)
        assert dto["content"] == "hello"
        assert dto["remaining_views"] is None
        assert dto["expires_at"] is None


def test_paste_expires_after_ttl(paste_service: PasteService, clock: ManualClock) -> None:
    paste_id = uuid.UUID(paste_service.create_paste(content="ttl", ttl_seconds=1)["id"])

    clock.advance(0.5)
    assert paste_service.retrieve_paste_for_view(paste_id)["content"] == "ttl"

    clock.advance(0.5)
    with pytest.raises(PasteExpiredError) as excinfo:
        paste_service.retrieve_paste_for_view(paste_id)
    assert str(excinfo.value) == "Paste expired"


def test_single_view_paste(paste_service: PasteService) -> None:
    paste_id = uuid.UUID(paste_service.create_paste(content="once", max_views=1)["id"])

    first = paste_service.retrieve_paste_for_view(paste_id)
    assert first["remaining_views"] == 0

    with pytest.raises(PasteViewLimitExceededError) as excinfo:
        paste_service.retrieve_paste_for_view(paste_id)
    assert str(excinfo.value) == "View limit exceeded"


def test_unknown_paste_is_not_found(paste_service: PasteService) -> None:
    with pytest.raises(PasteNotFoundError) as excinfo:
        paste_service.retrieve_paste_for_view(uuid.uuid4())
    assert str(excinfo.value) == "Paste not found"


def test_refusals_share_the_not_found_family() -> None:
    assert issubclass(PasteExpiredError, PasteNotFoundError)
    assert issubclass(PasteViewLimitExceededError, PasteNotFoundError)


def test_parse_paste_id_rejects_garbage() -> None:
    with pytest.raises(PasteNotFoundError):
        parse_paste_id("not-a-uuid")


def test_format_timestamp() -> None:
    value = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)
    assert format_timestamp(value) == "2024-05-06T07:08:09.123Z"
    assert format_timestamp(None) is None


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


def test_health_check_ok(paste_service: PasteService) -> None:
    assert paste_service.check_health() is True


def test_health_check_reports_unreachable_database(clock: ManualClock, tmp_path) -> None:
    missing = tmp_path / "missing-dir" / "db.sqlite"
    engine = create_engine(f"sqlite+pysqlite:///{missing}", future=True)
    service = PasteService(session_factory=sessionmaker(bind=engine), clock=clock)

    assert service.check_health() is False


def test_invalid_parameters_are_logged_with_structured_field(
    paste_service: PasteService, caplog
) -> None:
    with caplog.at_level(logging.WARNING, logger="pastelite.services.paste_service"):
        with pytest.raises(InvalidPasteParameters):
            paste_service.create_paste(content="x", max_views=0)

    (record,) = [r for r in caplog.records if r.name == "pastelite.services.paste_service"]
    assert record.getMessage() == "Invalid parameter when creating paste"
    assert record.event == "paste_create_invalid_parameters"
    assert record.field == "max_views"
