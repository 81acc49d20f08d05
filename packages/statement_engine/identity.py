"""
Identity Resolver - overlays known customer identity onto parsed records.

Lookup tiers, strictly in order (the whole mapping list is scanned for a
tier before moving on to the next one):

1. member id == record.account_or_user_id
2. reference id == record.reference_id
3. account number == record.account_or_user_id or record.reference_id
4. member id == member code embedded in the raw line (MC###XXX)

Within a tier the first mapping in list order wins.
"""

import logging
import re
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from .models import CustomerMapping, ParsedTransaction

logger = logging.getLogger(__name__)

MEMBER_CODE_PATTERN = re.compile(r"\b(MC\d{3}[A-Z]{3})\b", re.IGNORECASE)

Matcher = Callable[[CustomerMapping, ParsedTransaction], bool]


def extract_member_code(text: str) -> str:
    """Find an embedded member code such as ``MC241EPW``; uppercase it."""
    if not text:
        return ""
    match = MEMBER_CODE_PATTERN.search(text)
    return match.group(1).upper() if match else ""


def _by_member_id(mapping: CustomerMapping, tx: ParsedTransaction) -> bool:
    return bool(mapping.member_id) and mapping.member_id == tx.account_or_user_id


def _by_reference_id(mapping: CustomerMapping, tx: ParsedTransaction) -> bool:
    return bool(mapping.reference_id) and mapping.reference_id == tx.reference_id


def _by_account_number(mapping: CustomerMapping, tx: ParsedTransaction) -> bool:
    if not mapping.account_number:
        return False
    return mapping.account_number in (tx.account_or_user_id, tx.reference_id)


MATCH_TIERS: List[tuple] = [
    ("member_id", _by_member_id),
    ("reference_id", _by_reference_id),
    ("account_number", _by_account_number),
]


class IdentityResolver:
    """Match parsed transactions against a read-only mapping set."""

    def __init__(self, mappings: Sequence[CustomerMapping]):
        self.mappings = list(mappings)

    def find_mapping(self, tx: ParsedTransaction) -> Optional[CustomerMapping]:
        for tier, matcher in MATCH_TIERS:
            for mapping in self.mappings:
                if matcher(mapping, tx):
                    logger.debug(f"Mapping matched by {tier}: {mapping.member_id}")
                    return mapping

        member_code = extract_member_code(tx.raw_line)
        if member_code:
            for mapping in self.mappings:
                if mapping.member_id and mapping.member_id.upper() == member_code:
                    logger.debug(f"Mapping matched by embedded member code {member_code}")
                    return mapping

        return None

    def resolve(self, tx: ParsedTransaction) -> ParsedTransaction:
        """Return ``tx`` with identity fields overlaid, or unchanged."""
        if not tx.is_valid or not self.mappings:
            return tx

        mapping = self.find_mapping(tx)
        if mapping is None:
            return tx

        updates = {}
        if mapping.customer_name:
            updates["customer_name"] = mapping.customer_name
            updates["memo"] = f"Mapped to {mapping.customer_name}"
        if mapping.member_id:
            updates["member_id"] = mapping.member_id
        if mapping.product_label:
            updates["product_label"] = mapping.product_label
        if mapping.national_id:
            updates["national_id"] = mapping.national_id
        if mapping.account_number and not tx.account_number:
            updates["account_number"] = mapping.account_number

        return replace(tx, **updates)

    def resolve_all(self, transactions: Sequence[ParsedTransaction]) -> List[ParsedTransaction]:
        resolved = [self.resolve(tx) for tx in transactions]
        matched = sum(1 for before, after in zip(transactions, resolved) if before is not after)
        logger.info(f"Identity resolution matched {matched}/{len(resolved)} transactions")
        return resolved


def apply_mappings(
    transactions: Sequence[ParsedTransaction], mappings: Sequence[CustomerMapping]
) -> List[ParsedTransaction]:
    """Convenience wrapper around ``IdentityResolver.resolve_all``."""
    return IdentityResolver(mappings).resolve_all(transactions)
