from __future__ import annotations

from pastelite.clock import get_clock
from pastelite.db import SessionLocal
from pastelite.services.paste_service import PasteService


def get_paste_service() -> PasteService:
    """Build a PasteService bound to the request's session and the app clock."""
    return PasteService(session_factory=SessionLocal, clock=get_clock())
