"""
Single authorized path for writing a row back to the sheet.

Every edit, whether it comes from the edit form or the JSON endpoint, goes
through forward_update(). It re-checks ownership against the signed-in
user's email before making exactly one call to the Apps Script web app.
"""

import json
import logging

import requests
from django.conf import settings

from sheetrows.utils.errors import (
    AuthError, ForbiddenError, NetworkError, ParseError, ValidationError,
)
from sheetrows.utils.ownership import normalize_identity, owner_matches
from sheetrows.utils.table import HEADER_ROW

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("scriptUrl", "rowIndex", "data")


def validate_payload(payload):
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    missing = [k for k in REQUIRED_FIELDS if not payload.get(k)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    row_index = payload["rowIndex"]
    # JSON clients may send 2.0 for row 2
    if isinstance(row_index, float) and row_index.is_integer():
        row_index = int(row_index)
    if isinstance(row_index, bool) or not isinstance(row_index, int):
        raise ValidationError("rowIndex must be an integer")
    if row_index <= HEADER_ROW:
        raise ValidationError("rowIndex must point at a data row")

    data = payload["data"]
    if not isinstance(data, list):
        raise ValidationError("data must be a list of cell values")

    return payload["scriptUrl"], row_index, [("" if v is None else str(v)) for v in data]


def post_to_script(script_url, row_index, data, session=None):
    http = session or requests
    try:
        resp = http.post(
            script_url,
            json={"rowIndex": row_index, "data": data},
            timeout=settings.SCRIPT_POST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error("Script call failed: %s", e)
        raise NetworkError(f"Could not reach script: {e}") from e

    body = resp.text
    logger.info("Script response: %s", body[:500])

    try:
        result = json.loads(body)
    except ValueError:
        logger.error("Failed to parse script response: %s", body[:500])
        raise ParseError()

    if not isinstance(result, dict):
        logger.error("Script response is not an object: %s", body[:500])
        raise ParseError()

    return result


def forward_update(payload, identity, session=None):
    """
    Check and forward one row update.

    ``identity`` is the authenticated caller's email (None when the caller is
    anonymous). Returns the script's JSON result unchanged.
    """
    user_email = normalize_identity(identity)
    if not user_email:
        logger.warning("Update rejected: caller not authenticated")
        raise AuthError()

    script_url, row_index, data = validate_payload(payload)

    if not owner_matches(data, user_email):
        logger.warning(
            "Email mismatch: row_email=%r user_email=%r",
            normalize_identity(data[0]) if data else None, user_email,
        )
        raise ForbiddenError()

    logger.info("Updating sheet: row_index=%s user_email=%s", row_index, user_email)
    return post_to_script(script_url, row_index, data, session=session)
