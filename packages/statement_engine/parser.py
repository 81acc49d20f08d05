"""
Statement Parser - line dispatch and batch partitioning.

Raw pasted text is split on line breaks, blank lines are discarded, each
remaining line is handed to the extractor for the selected bank format and
the results are partitioned into successful and failed records in input
order.
"""

import logging
from typing import Optional, Union

from .extractors import StatementLineExtractor, get_extractor
from .models import BankFormat, ParsedTransaction, ParseResult

logger = logging.getLogger(__name__)


def parse_line(
    line: str,
    bank_format: Union[str, BankFormat] = BankFormat.NMB,
    extractor: Optional[StatementLineExtractor] = None,
) -> ParsedTransaction:
    """
    Parse a single statement line.

    Args:
        line: Raw line as pasted by the user.
        bank_format: Layout selector (NMB or CRDB).
        extractor: Pre-built extractor, mainly to reuse configuration.

    Returns:
        A ParsedTransaction; failures are returned, never raised.
    """
    extractor = extractor or get_extractor(bank_format)
    return extractor.parse(line)


class StatementParser:
    """
    Batch parser for one pasted statement.

    Supports NMB and CRDB layouts. The format is chosen by the caller,
    there is no auto-detection.
    """

    def __init__(
        self,
        bank_format: Union[str, BankFormat] = BankFormat.NMB,
        crdb_date_separator: str = "-",
    ):
        self.bank_format = BankFormat.parse(bank_format)
        self.extractor = get_extractor(
            self.bank_format, crdb_date_separator=crdb_date_separator
        )

    def split_lines(self, raw_text: str) -> list:
        """Split on newline characters only and drop blank lines."""
        if not raw_text:
            return []
        lines = (line.rstrip("\r") for line in raw_text.split("\n"))
        return [line for line in lines if line.strip()]

    def parse(self, raw_text: str) -> ParseResult:
        lines = self.split_lines(raw_text)
        result = ParseResult(bank_format=self.bank_format, total_lines=len(lines))

        for line in lines:
            parsed = self.extractor.parse(line)
            if parsed.is_valid:
                result.successful.append(parsed)
            else:
                result.failed.append(parsed)

        logger.info(
            f"Parsed {result.total_lines} {self.bank_format.value} lines: "
            f"{result.success_count} ok, {result.fail_count} failed"
        )
        return result


def parse_transactions(
    raw_text: str,
    bank_format: Union[str, BankFormat] = BankFormat.NMB,
    crdb_date_separator: str = "-",
) -> ParseResult:
    """
    Convenience function to parse a pasted statement.

    Args:
        raw_text: Multi-line text blob.
        bank_format: Layout selector (NMB or CRDB).
        crdb_date_separator: Separator used when normalizing CRDB dates.

    Returns:
        ParseResult with successful/failed records and counters.
    """
    parser = StatementParser(bank_format, crdb_date_separator=crdb_date_separator)
    return parser.parse(raw_text)
