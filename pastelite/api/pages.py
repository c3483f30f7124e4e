from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, render_template

from pastelite.api.dependencies import get_paste_service
from pastelite.services.paste_service import PasteNotFoundError, parse_paste_id

pages_bp = Blueprint("pages", __name__)

NOT_FOUND_HTML = "<h1>404 Paste Not Found</h1>"


@pages_bp.route("/p/<paste_id>", methods=["GET"])
def view_paste(paste_id: str) -> tuple[str, int]:
    """
    Render a paste as an HTML page, consuming one view.

    Content is autoescaped by the template, so ``<script>`` shows up as text.
    The remaining-views figure is the count stored after this view.
    """
    try:
        dto = get_paste_service().retrieve_paste_for_view(parse_paste_id(paste_id))
    except PasteNotFoundError:
        return NOT_FOUND_HTML, HTTPStatus.NOT_FOUND

    return render_template("paste.html", paste=dto), HTTPStatus.OK
