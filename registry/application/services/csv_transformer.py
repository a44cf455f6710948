"""Spreadsheet import/export for certificates and members.

Handles:
- Reading .csv and .xlsx uploads (comma, semicolon or tab delimited)
- Normalizing column headers to model field names
- Turning rows into certificate payloads
- Writing members and certificates back out as CSV
"""

import io
import os
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from registry.core.exceptions import ValidationFailed
from registry.domain.models.certificate import Certificate
from registry.domain.models.user import User

# Spreadsheet header (case-insensitive) → certificate field
CERTIFICATE_COLUMN_MAP = {
    "Number": "number",
    "Certificate Number": "number",
    "CertificateNumber": "number",
    "Certificate No": "number",
    "Recipient": "recipient",
    "Recipient Name": "recipient",
    "Name": "recipient",
    "Email": "email",
    "Title": "title",
    "Type": "type",
    "Description": "description",
    "Issue Date": "issue_date",
    "IssueDate": "issue_date",
    "Date Issued": "issue_date",
    "Valid Until": "valid_until",
    "ValidUntil": "valid_until",
    "Expiry Date": "valid_until",
    "User Id": "user_id",
    "UserId": "user_id",
}

VALID_CERTIFICATE_COLS = set(CERTIFICATE_COLUMN_MAP.values())

CERTIFICATE_EXPORT_COLUMNS = [
    ("Number", "number"),
    ("Recipient", "recipient"),
    ("Email", "email"),
    ("Title", "title"),
    ("Type", "type"),
    ("Status", "status"),
    ("Issue Date", "issue_date"),
    ("Valid Until", "valid_until"),
    ("Serial Number", "serial_number"),
    ("Revoked Reason", "revoked_reason"),
]

MEMBER_EXPORT_COLUMNS = [
    ("Name", "name"),
    ("Email", "email"),
    ("Code", "code"),
    ("Position", "position"),
    ("State", "state"),
    ("Zone", "zone"),
    ("Date Added", "date_added"),
    ("Active", "is_active"),
    ("Card Generated", "card_generated"),
]

_EMPTY_MARKERS = ("", "nan", "NaT", "#REF!", "#ERROR!", "#N/A")


def _clean_column_name(col) -> str:
    return col.strip() if isinstance(col, str) else str(col)


def _detect_separator(text: str) -> str:
    first_line = text.split("\n", 1)[0]
    if ";" in first_line:
        return ";"
    if "\t" in first_line:
        return "\t"
    return ","


def _decode(content: bytes) -> str:
    for enc in ("utf-8-sig", "latin-1"):
        try:
            return content.decode(enc)
        except UnicodeDecodeError:
            continue
    return content.decode("latin-1", errors="replace")


def read_table(content: bytes, filename: str) -> pd.DataFrame:
    """Load an uploaded .csv or .xlsx into a DataFrame of strings."""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext == ".csv":
        text = _decode(content)
        df = pd.read_csv(io.StringIO(text), sep=_detect_separator(text), dtype=str, on_bad_lines="skip")
    elif ext in (".xlsx", ".xls"):
        df = pd.read_excel(io.BytesIO(content), engine="openpyxl", sheet_name=0, dtype=str)
    else:
        raise ValidationFailed("Only .csv and .xlsx files are accepted", {"filename": filename})

    df.columns = [_clean_column_name(c) for c in df.columns]
    return df.dropna(how="all")


def _rename_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename spreadsheet columns to model field names using case-insensitive matching."""
    lookup = {header.upper(): field for header, field in CERTIFICATE_COLUMN_MAP.items()}
    rename_map = {}
    for df_col in df.columns:
        field = lookup.get(df_col.upper())
        if field and field not in rename_map.values():
            rename_map[df_col] = field

    df = df.rename(columns=rename_map)
    return df[[c for c in df.columns if c in VALID_CERTIFICATE_COLS]]


def _clean_value(value) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    s = str(value).strip()
    return None if s in _EMPTY_MARKERS else s


def _normalize_date(value: Optional[str]) -> Optional[str]:
    """Excel cells come back as "2024-01-31 00:00:00"; day-first strings are accepted too."""
    if value is None:
        return None
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.strptime(value, fmt).isoformat()
        except ValueError:
            continue
    return value


def certificate_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """One dict per spreadsheet row, keyed by certificate field."""
    df = _rename_columns(df)
    if "number" not in df.columns:
        raise ValidationFailed("Spreadsheet must contain a certificate number column")

    rows = []
    for _, row in df.iterrows():
        record = {col: _clean_value(row[col]) for col in df.columns}
        for col in ("issue_date", "valid_until"):
            if col in record:
                record[col] = _normalize_date(record[col])
        rows.append({k: v for k, v in record.items() if v is not None})
    return rows


def _format_cell(value):
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return value if value is not None else ""


def _to_csv(records: Iterable[Any], columns) -> str:
    data = [
        {header: _format_cell(getattr(record, attr)) for header, attr in columns}
        for record in records
    ]
    df = pd.DataFrame(data, columns=[header for header, _ in columns])
    return df.to_csv(index=False)


def certificates_to_csv(certificates: Iterable[Certificate]) -> str:
    return _to_csv(certificates, CERTIFICATE_EXPORT_COLUMNS)


def members_to_csv(users: Iterable[User]) -> str:
    return _to_csv(users, MEMBER_EXPORT_COLUMNS)
