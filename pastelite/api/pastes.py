from __future__ import annotations

import json
from http import HTTPStatus

from flask import Blueprint, request
from pydantic import ValidationError

from pastelite.api.dependencies import get_paste_service
from pastelite.api.schemas import (
    HealthResponse,
    PasteCreateRequest,
    PasteCreatedResponse,
    PasteViewResponse,
)
from pastelite.services.paste_service import (
    InvalidPasteParameters,
    PasteNotFoundError,
    parse_paste_id,
)

api_bp = Blueprint("api", __name__, url_prefix="/api")


def build_paste_url(paste_id: str) -> str:
    """Public URL of a paste, derived from the incoming request's headers."""
    protocol = request.headers.get("X-Forwarded-Proto") or "http"
    host = request.headers.get("Host", "")
    return f"{protocol}://{host}/p/{paste_id}"


@api_bp.route("/healthz", methods=["GET"])
def healthz() -> tuple[dict, int]:
    """Liveness check against the database."""

    if get_paste_service().check_health():
        return HealthResponse(ok=True).model_dump(), HTTPStatus.OK
    return HealthResponse(ok=False).model_dump(), HTTPStatus.INTERNAL_SERVER_ERROR


@api_bp.route("/pastes", methods=["POST"])
def create_paste() -> tuple[dict, int]:
    """
    Create a new paste.

    Validation is handled by Pydantic; business rules by the service layer.
    """
    # Parsed regardless of Content-Type.
    body = request.get_json(force=True, silent=True)
    if body is None:
        return {"error": "Request body must be valid JSON"}, HTTPStatus.BAD_REQUEST

    try:
        payload = PasteCreateRequest.model_validate(body)
    except ValidationError as exc:
        return {
            "error": "Invalid request body",
            "details": json.loads(exc.json(include_url=False)),
        }, HTTPStatus.BAD_REQUEST

    try:
        dto = get_paste_service().create_paste(
            content=payload.content,
            ttl_seconds=payload.ttl_seconds,
            max_views=payload.max_views,
        )
    except InvalidPasteParameters as exc:
        return {"error": str(exc)}, HTTPStatus.BAD_REQUEST

    response = PasteCreatedResponse(id=dto["id"], url=build_paste_url(dto["id"]))
    return response.model_dump(), HTTPStatus.CREATED


@api_bp.route("/pastes/<paste_id>", methods=["GET"])
def get_paste(paste_id: str) -> tuple[dict, int]:
    """Return a paste's content, consuming one view."""

    try:
        dto = get_paste_service().retrieve_paste_for_view(parse_paste_id(paste_id))
    except PasteNotFoundError as exc:
        return {"error": str(exc)}, HTTPStatus.NOT_FOUND

    return PasteViewResponse.model_validate(dto).model_dump(), HTTPStatus.OK
