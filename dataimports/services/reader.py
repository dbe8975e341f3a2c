# dataimports/services/reader.py
import logging
import os

import pandas as pd

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ('.csv', '.xlsx', '.xls')


def _cell(value):
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _read_csv(source):
    # the header decides the width; longer rows are trimmed, shorter ones padded
    width = pd.read_csv(source, header=None, nrows=1, dtype=str, keep_default_na=False).shape[1]
    if hasattr(source, 'seek'):
        source.seek(0)
    return pd.read_csv(
        source,
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine='python',
        on_bad_lines=lambda fields: fields[:width],
    )


def read_sheet(source, filename=None):
    """
    Read the first sheet of a CSV/Excel file.

    `source` is a path or file object; `filename` decides the format when a
    file object is given. Returns (headers, rows): the first row is the header,
    every value is a string and empty cells are ''.
    """
    name = filename or str(source)
    extension = os.path.splitext(name)[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {extension or name}")

    if hasattr(source, 'seek'):
        source.seek(0)
    try:
        if extension == '.csv':
            df = _read_csv(source)
        else:
            df = pd.read_excel(source, sheet_name=0, header=None, dtype=object)
    except pd.errors.EmptyDataError:
        return [], []

    df = df.dropna(how='all')
    rows = [[_cell(v) for v in row] for row in df.where(pd.notna(df), None).values.tolist()]
    if not rows:
        return [], []
    headers = [h.strip() for h in rows[0]]
    return headers, rows[1:]


def read_records(path):
    """Rows of a stored import as (records, rows): header-keyed dicts and the raw rows."""
    headers, rows = read_sheet(path)
    records = [dict(zip(headers, row)) for row in rows]
    return records, rows
