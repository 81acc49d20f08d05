"""
Batch Aggregator - totals for persistence and reporting.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from .models import ParsedTransaction, ParseResult


def parse_amount(value: Optional[str]) -> Decimal:
    """Parse a comma-grouped amount string; unparseable values count as zero."""
    if not value:
        return Decimal("0")
    cleaned = str(value).replace(",", "").strip()
    try:
        amount = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


def total_amount(transactions: Iterable[ParsedTransaction]) -> Decimal:
    return sum((parse_amount(tx.amount) for tx in transactions), Decimal("0"))


@dataclass
class BatchTotals:
    total_lines: int
    success_count: int
    fail_count: int
    total_amount: Decimal

    @property
    def success_rate(self) -> float:
        if self.total_lines == 0:
            return 0.0
        return self.success_count / self.total_lines * 100

    def to_dict(self) -> dict:
        return {
            "total_lines": self.total_lines,
            "success_count": self.success_count,
            "fail_count": self.fail_count,
            "total_amount": float(self.total_amount),
            "success_rate": round(self.success_rate, 2),
        }


def summarize(result: ParseResult) -> BatchTotals:
    return BatchTotals(
        total_lines=result.total_lines,
        success_count=result.success_count,
        fail_count=result.fail_count,
        total_amount=total_amount(result.successful),
    )
