from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# Sheet row 1 holds the headers, data starts on row 2.
HEADER_ROW = 1


def unique_keys(headers):
    """
    Column names made unique by position.

    The first "Name" stays "Name", a later one becomes "Name (2)", then
    "Name (3)". A generated key that collides with a real header keeps
    counting up.
    """
    keys = []
    seen = set(headers)
    counts = {}
    for h in headers:
        n = counts.get(h, 0) + 1
        counts[h] = n
        if n == 1:
            keys.append(h)
            continue
        key = f"{h} ({n})"
        while key in seen or key in keys:
            n += 1
            key = f"{h} ({n})"
        keys.append(key)
    return keys


@dataclass(frozen=True)
class Row:
    """
    One data row of the sheet.

    ``data`` stays positional because the write endpoint overwrites cells by
    position. ``headers`` lets callers read cells by column name instead.
    Repeated header names are told apart by position, see unique_keys():
    ``row["Name (2)"]`` is the second "Name" column.
    """
    row_index: int
    data: Tuple[str, ...]
    headers: Tuple[str, ...] = ()

    @property
    def owner(self) -> Optional[str]:
        return self.data[0] if self.data else None

    @property
    def keys(self) -> List[str]:
        return unique_keys(self.headers)

    def get(self, name, default=""):
        try:
            pos = self.keys.index(name)
        except ValueError:
            return default
        return self.data[pos] if pos < len(self.data) else ""

    def __getitem__(self, name):
        if name not in self.keys:
            raise KeyError(name)
        return self.get(name)

    def as_record(self):
        return {k: self.get(k) for k in self.keys}


@dataclass(frozen=True)
class Table:
    headers: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    @classmethod
    def from_records(cls, records):
        if not records:
            return cls([], [])

        headers = list(records[0])
        header_key = tuple(headers)
        rows = [
            Row(row_index=i + HEADER_ROW + 1, data=tuple(rec), headers=header_key)
            for i, rec in enumerate(records[1:])
        ]
        return cls(headers, rows)

    def find_row(self, row_index):
        for row in self.rows:
            if row.row_index == row_index:
                return row
        return None
