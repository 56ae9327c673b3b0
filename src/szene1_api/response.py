"""Interpretation of Szene1 API response bodies.

Bodies are XML documents. They are decoded with xmltodict into nested dicts
rooted at the document element's children, then checked for the top-level
``errorcode``/``errormessage`` pair the service uses to report failures.
"""

import html
from typing import Any
from xml.parsers.expat import ExpatError

import structlog
import xmltodict

from .errors import ApiError, DecodeError

logger = structlog.get_logger(__name__)

EXCERPT_LENGTH = 200


def _excerpt(content: bytes) -> str:
    text = content.decode("utf-8", errors="replace")
    return html.escape(text[:EXCERPT_LENGTH])


def parse_document(content: bytes) -> dict[str, Any]:
    """Decode an XML response body.

    Args:
        content: Raw response body.

    Returns:
        The children of the document element as a dict. A document element
        holding only text is returned as ``{"#text": text}``, an empty one
        as ``{}``.

    Raises:
        DecodeError: If the body is not well-formed XML.
    """
    try:
        document = xmltodict.parse(content)
    except (ExpatError, ValueError) as exc:
        msg = f"Response is not a valid XML document ({exc})"
        raise DecodeError(msg, excerpt=_excerpt(content)) from exc

    # xmltodict always yields exactly one entry: the document element
    _root, payload = next(iter(document.items()))
    if payload is None:
        return {}
    if isinstance(payload, str):
        return {"#text": payload}
    return dict(payload)


def _element_text(value: Any) -> str:
    """Reduce a decoded element to its text content."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("#text")
    return "" if value is None else str(value)


def find_api_error(payload: dict[str, Any]) -> ApiError | None:
    """Return the application error reported in a payload, if any.

    Raises:
        DecodeError: If ``errorcode`` is present but not an integer.
    """
    if "errorcode" not in payload:
        return None

    raw_code = _element_text(payload["errorcode"]).strip()
    try:
        code = int(raw_code)
    except ValueError as exc:
        msg = "Response carries a non-numeric errorcode"
        raise DecodeError(msg, excerpt=html.escape(raw_code)) from exc

    message = _element_text(payload.get("errormessage"))
    logger.debug("API error response", error_code=code, error_message=message)
    return ApiError(code, message)


def field_text(payload: dict[str, Any], key: str) -> str | None:
    """Return the text of a top-level field, or None if it is absent."""
    if key not in payload:
        return None
    return _element_text(payload[key])
