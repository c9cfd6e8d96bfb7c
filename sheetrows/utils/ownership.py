"""
Row ownership: column A of every row holds the email allowed to edit it.

This is the only authorization rule in the app. The sheet page uses it to
decide which rows get an edit button, and the update proxy runs it again
before anything is forwarded. Both must call these functions.
"""


def normalize_identity(value):
    if value is None:
        return None
    return str(value).strip().lower()


def owner_matches(cells, identity):
    """True when the first cell of ``cells`` names ``identity``."""
    wanted = normalize_identity(identity)
    if not wanted or not cells:
        return False
    return normalize_identity(cells[0]) == wanted


def is_owner(row, identity):
    return owner_matches(row.data, identity)


def filter_owned(rows, identity):
    return [row for row in rows if is_owner(row, identity)]
