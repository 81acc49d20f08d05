import logging
from abc import ABC, abstractmethod

from ..models import BankFormat, ParsedTransaction

logger = logging.getLogger(__name__)

EMPTY_LINE_ERROR = "Empty line"


class StatementLineExtractor(ABC):
    """
    Base class for per-bank line extractors.

    Subclasses implement ``extract`` for a trimmed, non-empty line.
    ``parse`` never raises: empty input and any fault inside a rule are
    turned into failed records.
    """

    bank_format: BankFormat

    @abstractmethod
    def extract(self, line: str) -> ParsedTransaction:
        """Apply the rule tables to one trimmed line."""

    def parse(self, line: str) -> ParsedTransaction:
        trimmed = (line or "").strip()
        if not trimmed:
            return ParsedTransaction.failure(
                line, EMPTY_LINE_ERROR, self.bank_format.value
            )

        try:
            return self.extract(trimmed)
        except Exception as e:
            logger.warning(f"{self.bank_format.value} extraction failed: {e}")
            return ParsedTransaction.failure(
                trimmed, f"Parse error: {e}", self.bank_format.value
            )
