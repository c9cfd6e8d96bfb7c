import io

import pandas as pd


def table_to_frame(table):
    width = len(table.headers)
    records = [
        [row.data[i] if i < len(row.data) else "" for i in range(width)]
        for row in table.rows
    ]
    df = pd.DataFrame(records, columns=table.headers)
    df.insert(0, "Sheet Row", [row.row_index for row in table.rows], allow_duplicates=True)
    return df


def table_to_excel_bytes(table, sheet_name="My rows"):
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as w:
        table_to_frame(table).to_excel(w, index=False, sheet_name=sheet_name)
    buf.seek(0)
    return buf.read()
