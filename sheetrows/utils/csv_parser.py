from sheetrows.utils.errors import ParseError

BOM = "\ufeff"


def _is_blank(record):
    return all(field.strip() == "" for field in record)


# ==============================================================
# CSV -> LIST OF RECORDS
# ==============================================================

def parse_csv(text):
    """
    Split published-sheet CSV text into records of string fields.

    Quoted fields may hold commas, newlines and doubled quotes (``""`` is a
    literal quote). Records end at ``\\n`` or ``\\r\\n``; a lone ``\\r``
    outside quotes is ignored. Records made only of blank fields are dropped,
    which also drops a genuinely empty sheet row.

    An unterminated quote simply runs to the end of the input.
    """
    if not isinstance(text, str):
        raise ParseError(f"CSV input must be text, got {type(text).__name__}")

    if text.startswith(BOM):
        text = text[1:]

    records = []
    record = []
    field = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if in_quotes:
            if ch == '"' and nxt == '"':
                field.append('"')
                i += 1
            elif ch == '"':
                in_quotes = False
            else:
                field.append(ch)

        elif ch == '"':
            in_quotes = True
        elif ch == ",":
            record.append("".join(field))
            field = []
        elif ch == "\n" or (ch == "\r" and nxt == "\n"):
            record.append("".join(field))
            if not _is_blank(record):
                records.append(record)
            record = []
            field = []
            if ch == "\r":
                i += 1
        elif ch != "\r":
            field.append(ch)

        i += 1

    # last record without a trailing newline
    if field or record:
        record.append("".join(field))
        if not _is_blank(record):
            records.append(record)

    return records
