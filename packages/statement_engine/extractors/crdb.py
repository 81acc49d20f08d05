"""
CRDB statement line extractor.

Layout: ``DD.MM.YYYY HH:MM:SS  REF:<alnum> <narrative>:<NAME>:<account> ...
<debit> <credit> <balance>``. The trailing debit/credit/balance triple is the
only reliable anchor for the amount, see ``select_credit_amount``.
"""

import re
from typing import List

from ..models import BankFormat, ParsedTransaction
from ..rules import RegexRule, first_match
from .base import StatementLineExtractor

MISSING_FIELDS_ERROR = "Could not extract required fields from CRDB line"
DEFAULT_PRODUCT_LABEL = "CRDB Collection AC"
DEFAULT_PAYMENT_METHOD = "Transfer"

# Two-decimal numbers, optionally comma grouped. Fragments of dotted dates
# ("20.01.2026") are not numbers and are rejected by the lookarounds.
AMOUNT_PATTERN = re.compile(r"(?<![\d.,])(\d{1,3}(?:,\d{3})+|\d+)\.\d{2}(?![\d.])")

DATE_RULES = [
    RegexRule("dotted_date", r"(\d{2}\.\d{2}\.\d{4})"),
]

ACCOUNT_RULES = [
    RegexRule("colon_account", r":(\d{10,14})\s+"),
]

REFERENCE_RULES = [
    RegexRule("ref_token", r"REF:([a-zA-Z0-9]+)"),
]

NAME_RULES = [
    RegexRule("name_before_account", r":([a-zA-Z\s]+):(?=\d{10,14})"),
]


def find_amounts(line: str) -> List[str]:
    """All two-decimal numbers in the line, left to right."""
    return [m.group(0) for m in AMOUNT_PATTERN.finditer(line)]


def select_credit_amount(amounts: List[str]) -> str:
    """
    Pick the credit column out of the numbers found on a CRDB line.

    Lines end with debit, credit and running balance, so with three or more
    numbers the second-to-last is the credit. With two, the last one is
    taken; with one, that one.
    """
    if len(amounts) >= 3:
        return amounts[-2]
    if amounts:
        return amounts[-1]
    return ""


class CRDBExtractor(StatementLineExtractor):
    bank_format = BankFormat.CRDB

    def __init__(self, date_separator: str = "-"):
        if date_separator not in ("-", "/"):
            raise ValueError(f"Unsupported date separator: {date_separator!r}")
        self.date_separator = date_separator

    def amount_rule(self, line: str) -> str:
        return select_credit_amount(find_amounts(line))

    def extract(self, line: str) -> ParsedTransaction:
        raw_date = first_match(DATE_RULES, line)
        transaction_date = raw_date.replace(".", self.date_separator)

        amount = self.amount_rule(line)
        account_number = first_match(ACCOUNT_RULES, line)
        reference_id = first_match(REFERENCE_RULES, line)
        counterparty_name = first_match(NAME_RULES, line)

        is_valid = bool(amount or transaction_date)

        return ParsedTransaction(
            transaction_date=transaction_date,
            reference_id=reference_id,
            account_or_user_id=account_number,
            account_number=account_number,
            amount=amount,
            counterparty_name=counterparty_name,
            product_label=DEFAULT_PRODUCT_LABEL,
            product_type="Transfer",
            operation_or_payment_method=DEFAULT_PAYMENT_METHOD,
            transaction_type="Credit",
            memo=line,
            raw_line=line,
            bank_format=self.bank_format.value,
            is_valid=is_valid,
            error_message=None if is_valid else MISSING_FIELDS_ERROR,
        )
