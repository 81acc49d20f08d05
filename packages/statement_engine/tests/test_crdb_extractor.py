"""Tests for the CRDB line extractor and its amount selection."""

import pytest

from packages.statement_engine.extractors.crdb import (
    CRDBExtractor,
    find_amounts,
    select_credit_amount,
)
from packages.statement_engine.tests.fakes import CRDB_LINE


class TestCRDBExtractor:
    def test_documented_line(self):
        tx = CRDBExtractor().parse(CRDB_LINE)

        assert tx.is_valid
        assert tx.reference_id == "19bdb0f42ad57818"
        assert tx.account_or_user_id == "963330000396"
        assert tx.account_number == "963330000396"
        assert tx.amount == "12,500.00"
        assert tx.counterparty_name == "HASSAN SAIDI NGUNDE"
        assert tx.transaction_date == "20-01-2026"

    def test_fixed_classification(self):
        tx = CRDBExtractor().parse(CRDB_LINE)

        assert tx.product_label == "CRDB Collection AC"
        assert tx.operation_or_payment_method == "Transfer"
        assert tx.transaction_type == "Credit"
        assert tx.memo == CRDB_LINE
        assert tx.bank_format == "CRDB"

    def test_slash_date_separator(self):
        tx = CRDBExtractor(date_separator="/").parse(CRDB_LINE)
        assert tx.transaction_date == "20/01/2026"

    def test_rejects_unknown_separator(self):
        with pytest.raises(ValueError):
            CRDBExtractor(date_separator=".")

    def test_date_alone_is_valid(self):
        tx = CRDBExtractor().parse("21.01.2026 reversal pending")
        assert tx.is_valid
        assert tx.amount == ""

    def test_reference_without_amount_or_date_fails(self):
        tx = CRDBExtractor().parse("REF:ABC123 narrative only")

        assert not tx.is_valid
        assert tx.error_message == "Could not extract required fields from CRDB line"

    def test_empty_line(self):
        tx = CRDBExtractor().parse("  ")
        assert tx.error_message == "Empty line"


class TestAmountSelection:
    def test_dotted_dates_are_not_amounts(self):
        assert find_amounts("20.01.2026 13:59:00 posted 20.01.2026") == []

    def test_finds_grouped_and_plain_amounts(self):
        assert find_amounts(CRDB_LINE) == ["0.00", "12,500.00", "437,129,784.78"]

    @pytest.mark.parametrize(
        "amounts, expected",
        [
            ([], ""),
            (["5.00"], "5.00"),
            (["5.00", "7.00"], "7.00"),
            (["0.00", "12,500.00", "1,000.00"], "12,500.00"),
            (["1.00", "2.00", "3.00", "4.00"], "3.00"),
        ],
    )
    def test_select_credit_amount(self, amounts, expected):
        assert select_credit_amount(amounts) == expected
