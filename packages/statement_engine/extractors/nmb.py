"""
NMB statement line extractor.

NMB exports are tab-delimited: posting date, value date, a description
block carrying ``@<user id>@``, ``Description <digits>`` and ``=> NAME``,
then the amount and the ``TZS <balance>`` column. Copy-pasting frequently
turns tabs into runs of spaces, so every field has its own fallback chain.
"""

import re

from ..models import BankFormat, ParsedTransaction
from ..rules import KeywordRule, RegexRule, collapse_whitespace, first_match
from .base import StatementLineExtractor

MISSING_FIELDS_ERROR = "Could not extract required fields"
DEFAULT_PRODUCT_LABEL = "NMB Banking"
DEFAULT_PAYMENT_METHOD = "Cash"

_NUMBER = r"\d+(?:,\d{3})*(?:\.\d{2})?"

DATE_RULES = [
    RegexRule("day_month_year", r"(\d{1,2}\s+[A-Za-z]{3}\s+\d{4})", transform=collapse_whitespace),
]

REFERENCE_RULES = [
    RegexRule("description_digits", r"Description\s+(\d+)", re.IGNORECASE),
]

USER_ID_RULES = [
    RegexRule("at_delimited", r"@(\d+)@"),
]

NAME_RULES = [
    RegexRule("arrow_name", r"=>\s*([A-Z\s]+?)(?:\t|$)", re.IGNORECASE),
]

# Tried strictly in order; a later pattern is only used when all earlier ones miss.
AMOUNT_RULES = [
    RegexRule("tab_then_tzs", rf"\t({_NUMBER})\t+(?:TZS|$)", re.IGNORECASE),
    RegexRule("tab_before_tzs", rf"\t({_NUMBER})\s*\t*\s*TZS", re.IGNORECASE),
    RegexRule("any_before_tab_or_tzs", rf"({_NUMBER})\s*(?:\t|TZS)"),
]

PAYMENT_METHOD_RULES = [
    KeywordRule("Transfer", ["transfer"]),
    KeywordRule("Mobile Banking", ["mobile"]),
    KeywordRule("ATM", ["atm"]),
    KeywordRule("Cheque", ["cheque"]),
]

PRODUCT_TYPE_RULES = [
    KeywordRule("Cash Deposit", ["cash deposit"]),
    KeywordRule("Transfer", ["transfer"]),
    KeywordRule("Withdrawal", ["withdrawal"]),
    KeywordRule("Payment", ["payment"]),
]

PRODUCT_LABEL_RULES = [
    RegexRule("branch_name", r"\d{3}\s*-\s*([^-]+)\s*-"),
]

DEBIT_RULES = [
    KeywordRule("Debit", ["withdrawal", "debit", "payment"]),
]


class NMBExtractor(StatementLineExtractor):
    bank_format = BankFormat.NMB

    def extract(self, line: str) -> ParsedTransaction:
        transaction_date = first_match(DATE_RULES, line)
        reference_id = first_match(REFERENCE_RULES, line)
        counterparty_name = first_match(NAME_RULES, line)

        user_id = first_match(USER_ID_RULES, line)
        if not user_id and counterparty_name:
            user_id = counterparty_name

        amount = first_match(AMOUNT_RULES, line)

        is_valid = bool(reference_id or amount or transaction_date)

        return ParsedTransaction(
            transaction_date=transaction_date,
            reference_id=reference_id,
            account_or_user_id=user_id,
            amount=amount,
            counterparty_name=counterparty_name,
            product_label=first_match(PRODUCT_LABEL_RULES, line, DEFAULT_PRODUCT_LABEL),
            product_type=first_match(PRODUCT_TYPE_RULES, line, "Cash Deposit"),
            operation_or_payment_method=first_match(
                PAYMENT_METHOD_RULES, line, DEFAULT_PAYMENT_METHOD
            ),
            transaction_type=first_match(DEBIT_RULES, line, "Credit"),
            raw_line=line,
            bank_format=self.bank_format.value,
            is_valid=is_valid,
            error_message=None if is_valid else MISSING_FIELDS_ERROR,
        )
