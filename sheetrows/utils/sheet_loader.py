"""
Fetch the published sheet as CSV and turn it into a Table.

Uses the public export endpoint:
  https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}

This is NOT authenticated; the sheet must be shared as "anyone with the link".
"""

import logging

import requests
from django.conf import settings

from sheetrows.utils.csv_parser import parse_csv
from sheetrows.utils.errors import NetworkError
from sheetrows.utils.ownership import filter_owned
from sheetrows.utils.table import Table

logger = logging.getLogger(__name__)

EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"


def export_url(sheet_id=None, gid=None):
    return EXPORT_URL.format(
        sheet_id=sheet_id or settings.SHEET_ID,
        gid=gid or settings.SHEET_GID,
    )


def fetch_csv(url, session=None):
    http = session or requests
    try:
        resp = http.get(url, timeout=settings.SHEET_FETCH_TIMEOUT)
    except requests.RequestException as e:
        logger.error("Sheet fetch failed: %s", e)
        raise NetworkError(f"Failed to fetch sheet data: {e}") from e

    if not resp.ok:
        logger.error("Sheet fetch returned HTTP %s", resp.status_code)
        raise NetworkError(f"Failed to fetch sheet data (HTTP {resp.status_code})")

    body = resp.text
    lower = body[:2000].lower()
    if "<html" in lower and ("accounts.google.com" in lower or "sign in" in lower):
        raise NetworkError("Sheet export returned a sign-in page. Is the sheet published?")

    return body


def load_table(identity=None, *, sheet_id=None, gid=None, session=None):
    """
    Load the sheet. Row indices are assigned before filtering, so a filtered
    table still carries the real sheet positions.
    """
    text = fetch_csv(export_url(sheet_id, gid), session=session)
    table = Table.from_records(parse_csv(text))

    if identity:
        return Table(table.headers, filter_owned(table.rows, identity))
    return table
