import io

import pandas as pd

from packages.statement_engine.export import (
    EXPORT_COLUMNS,
    failed_records_report,
    to_csv_bytes,
    to_dataframe,
    to_excel_bytes,
)
from packages.statement_engine.identity import apply_mappings
from packages.statement_engine.models import ParsedTransaction
from packages.statement_engine.parser import parse_transactions
from packages.statement_engine.tests.fakes import CRDB_LINE


def test_dataframe_uses_fixed_columns(mappings):
    result = parse_transactions(CRDB_LINE, "CRDB")
    df = to_dataframe(apply_mappings(result.successful, mappings))

    assert list(df.columns) == EXPORT_COLUMNS
    row = df.iloc[0]
    assert row["Customer Name"] == "Hassan Ngunde"
    assert row["Deposit To Account Name"] == "CRDB Collection AC"
    assert row["Reference No"] == "19bdb0f42ad57818"
    assert row["Amount"] == "12,500.00"


def test_unmapped_rows_fall_back_to_counterparty():
    result = parse_transactions(CRDB_LINE, "CRDB")
    df = to_dataframe(result.successful)
    assert df.iloc[0]["Customer Name"] == "HASSAN SAIDI NGUNDE"


def test_csv_has_bom_and_header():
    data = to_csv_bytes([ParsedTransaction(amount="1.00", is_valid=True)])

    assert data.startswith(b"\xef\xbb\xbf")
    assert data.decode("utf-8-sig").splitlines()[0] == ",".join(EXPORT_COLUMNS)


def test_excel_amount_is_numeric():
    transactions = parse_transactions(CRDB_LINE, "CRDB").successful
    data = to_excel_bytes(transactions)

    df = pd.read_excel(io.BytesIO(data), engine="openpyxl")
    assert list(df.columns) == EXPORT_COLUMNS
    assert df.iloc[0]["Amount"] == 12500.0


def test_failed_records_report():
    failed = [
        ParsedTransaction.failure("bad one", "Empty line"),
        ParsedTransaction.failure("bad two", None),
    ]
    report = failed_records_report(failed)

    assert report.startswith("Record 1:\nbad one\nError: Empty line")
    assert "Record 2:\nbad two\nError: Unknown" in report


def test_failed_records_report_empty():
    assert failed_records_report([]) == ""
