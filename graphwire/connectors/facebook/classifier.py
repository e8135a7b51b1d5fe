"""Graphwire response classification.

The API does not reliably use HTTP status codes for errors: a domain error
may come back as a 200 or as a 400/401/500 with a JSON error body. So an error
payload is looked for first, and only a 401/500 without one is reported as a
bare status-code failure.

Two payload shapes exist:

* legacy REST / FQL: ``{"error_code": 190, "error_msg": "..."}``
* Graph API: ``{"error": {"type": "OAuthException", "message": "..."}}``
"""

import json
from typing import Any, Dict, Optional

from graphwire.connectors.facebook.transport import Response
from graphwire.core.exceptions import (
    FacebookGraphError,
    FacebookJsonMappingError,
    FacebookNetworkError,
    FacebookResponseStatusError,
)
from graphwire.core.logging import get_logger

logger = get_logger("facebook.classifier")

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_INTERNAL_ERROR = 500

RECOGNIZED_STATUS_CODES = frozenset(
    {HTTP_OK, HTTP_BAD_REQUEST, HTTP_UNAUTHORIZED, HTTP_INTERNAL_ERROR}
)
PAYLOAD_REQUIRED_STATUS_CODES = frozenset({HTTP_UNAUTHORIZED, HTTP_INTERNAL_ERROR})

LEGACY_ERROR_CODE_ATTRIBUTE_NAME = "error_code"
LEGACY_ERROR_MSG_ATTRIBUTE_NAME = "error_msg"
ERROR_ATTRIBUTE_NAME = "error"
ERROR_TYPE_ATTRIBUTE_NAME = "type"
ERROR_MESSAGE_ATTRIBUTE_NAME = "message"


def _decode_error_object(body: str, strict: bool) -> Optional[Dict[str, Any]]:
    """Parse the body if it looks like a JSON object.

    With ``strict`` a malformed object is a mapping error; otherwise it is
    treated as "no payload".
    """
    text = body.strip()
    if not text.startswith("{"):
        return None
    try:
        decoded = json.loads(text)
    except ValueError as e:
        if strict:
            raise FacebookJsonMappingError(
                f"Unable to process the Facebook API response: {e}"
            ) from e
        return None
    return decoded if isinstance(decoded, dict) else None


def raise_for_error_payload(body: str, strict: bool = True) -> None:
    """Raise the typed error encoded in ``body``, if any."""
    error_object = _decode_error_object(body, strict)
    if error_object is None:
        return

    if LEGACY_ERROR_CODE_ATTRIBUTE_NAME in error_object:
        raw_code = error_object[LEGACY_ERROR_CODE_ATTRIBUTE_NAME]
        try:
            error_code = int(raw_code)
        except (TypeError, ValueError) as e:
            raise FacebookJsonMappingError(
                f"Legacy error response has a non-numeric error_code: {raw_code!r}"
            ) from e
        raise FacebookResponseStatusError(
            error_code, str(error_object.get(LEGACY_ERROR_MSG_ATTRIBUTE_NAME, ""))
        )

    if ERROR_ATTRIBUTE_NAME in error_object:
        inner = error_object[ERROR_ATTRIBUTE_NAME]
        if not isinstance(inner, dict):
            raise FacebookJsonMappingError(
                f"Graph error response has an unexpected 'error' value: {inner!r}"
            )
        raise FacebookGraphError(
            str(inner.get(ERROR_TYPE_ATTRIBUTE_NAME, "")),
            str(inner.get(ERROR_MESSAGE_ATTRIBUTE_NAME, "")),
        )


def process_response(response: Response) -> str:
    """Classify one response; return its body when it is a success."""
    status_code = response.status_code

    # Anything other than 200/400/401/500 is a failure without further inspection
    if status_code not in RECOGNIZED_STATUS_CODES:
        logger.warning(
            f"Facebook request failed with unexpected status {status_code}",
            extra={"status_code": status_code},
        )
        raise FacebookNetworkError("Facebook request failed", status_code=status_code)

    body = response.body or ""
    payload_required = status_code in PAYLOAD_REQUIRED_STATUS_CODES

    try:
        raise_for_error_payload(body, strict=not payload_required)
    except (FacebookResponseStatusError, FacebookGraphError) as e:
        logger.warning(f"Facebook returned an error payload: {e}", extra={"status_code": status_code})
        raise

    # A 401/500 with nothing machine-readable means something odd upstream
    if payload_required:
        logger.warning(
            f"Facebook request failed with status {status_code} and no error payload",
            extra={"status_code": status_code},
        )
        raise FacebookNetworkError("Facebook request failed", status_code=status_code)

    return body
