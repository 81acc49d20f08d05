"""
Tabular export of normalized transactions (CSV, XLSX, failed-record report).
"""

import io
from typing import List, Sequence

import pandas as pd

from .aggregator import parse_amount
from .models import ParsedTransaction

# Column order is fixed by the bookkeeping import template.
EXPORT_COLUMNS = [
    "Transaction Date",
    "Customer Name",
    "Payment Method",
    "Deposit To Account Name",
    "Reference No",
    "Journal No",
    "Amount",
    "Reference",
    "Country Code",
    "Exchange Rate",
]


def export_row(tx: ParsedTransaction) -> List[str]:
    return [
        tx.transaction_date,
        tx.display_name,
        tx.operation_or_payment_method,
        tx.product_label,
        tx.reference_id,
        tx.journal_number,
        tx.amount,
        tx.memo,
        tx.country_code,
        tx.exchange_rate,
    ]


def to_dataframe(transactions: Sequence[ParsedTransaction]) -> pd.DataFrame:
    rows = [export_row(tx) for tx in transactions]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS, dtype=object)


def to_csv_bytes(transactions: Sequence[ParsedTransaction]) -> bytes:
    """CSV with a UTF-8 BOM so spreadsheet apps detect the encoding."""
    df = to_dataframe(transactions)
    return df.to_csv(index=False).encode("utf-8-sig")


def to_excel_bytes(
    transactions: Sequence[ParsedTransaction], sheet_name: str = "Transactions"
) -> bytes:
    df = to_dataframe(transactions)
    df["Amount"] = [float(parse_amount(tx.amount)) for tx in transactions]

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


def failed_records_report(failed: Sequence[ParsedTransaction]) -> str:
    """Plain-text listing of failed lines for manual review."""
    separator = "-" * 50
    blocks = [
        f"Record {i}:\n{tx.raw_line}\nError: {tx.error_message or 'Unknown'}\n{separator}"
        for i, tx in enumerate(failed, start=1)
    ]
    return "\n\n".join(blocks)
