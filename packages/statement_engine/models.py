"""
Statement Engine data models.

ParsedTransaction is the canonical per-line output of the extractors.
CustomerMapping is validated at the ingestion boundary so that loosely
shaped spreadsheet or database rows never reach the identity resolver.
"""

from dataclasses import dataclass, field, fields, replace, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class BankFormat(str, Enum):
    """Statement layouts the engine knows how to extract."""

    NMB = "NMB"
    CRDB = "CRDB"

    @classmethod
    def parse(cls, value: "str | BankFormat") -> "BankFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported bank format: {value!r}")


@dataclass
class ParsedTransaction:
    """Normalized transaction extracted from one statement line."""

    transaction_date: str = ""
    reference_id: str = ""
    account_or_user_id: str = ""
    account_number: str = ""
    amount: str = ""
    counterparty_name: str = ""
    product_label: str = ""
    product_type: str = ""
    operation_or_payment_method: str = ""
    transaction_type: str = ""
    memo: str = ""
    journal_number: str = ""
    country_code: str = ""
    exchange_rate: str = ""
    raw_line: str = ""
    bank_format: str = ""
    is_valid: bool = False
    error_message: Optional[str] = None

    # Identity enrichment, populated only by the resolver
    customer_name: str = ""
    member_id: str = ""
    national_id: str = ""

    @classmethod
    def failure(
        cls, raw_line: str, error_message: str, bank_format: str = ""
    ) -> "ParsedTransaction":
        """Build a failed record carrying only the line and the reason."""
        return cls(
            raw_line=raw_line,
            bank_format=bank_format,
            is_valid=False,
            error_message=error_message,
        )

    @property
    def display_name(self) -> str:
        return self.customer_name or self.counterparty_name

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedTransaction":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


TRANSACTION_FIELDS = frozenset(f.name for f in fields(ParsedTransaction))


@dataclass
class ParseResult:
    """Outcome of parsing one submitted batch of raw lines."""

    bank_format: BankFormat
    successful: List[ParsedTransaction] = field(default_factory=list)
    failed: List[ParsedTransaction] = field(default_factory=list)
    total_lines: int = 0

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def fail_count(self) -> int:
        return len(self.failed)

    def with_successful(self, successful: List[ParsedTransaction]) -> "ParseResult":
        return replace(self, successful=list(successful))

    def with_edit(self, index: int, field_name: str, value: Any) -> "ParseResult":
        """Return a copy with one successful record's field replaced."""
        if field_name not in TRANSACTION_FIELDS:
            raise KeyError(f"Unknown transaction field: {field_name}")
        if not 0 <= index < len(self.successful):
            raise IndexError(f"No successful transaction at index {index}")

        successful = list(self.successful)
        successful[index] = replace(successful[index], **{field_name: value})
        return self.with_successful(successful)


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("nan", "none", "null"):
        return None
    return text


class CustomerMapping(BaseModel):
    """One customer directory entry. Unknown columns are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    member_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("member_id", "Member ID", "MemberID", "memberId"),
    )
    reference_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "reference_id", "ref_id", "ReferenceID", "Reference ID", "refId"
        ),
    )
    customer_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "customer_name", "Client Name", "ClientName", "Customer Name"
        ),
    )
    account_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "account_number", "Account Number", "AccountNumber", "accountNumber"
        ),
    )
    product_label: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "product_label", "loan_product", "Loan Product", "Product Name"
        ),
    )
    national_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("national_id", "National ID", "NationalID", "NIDA"),
    )

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Optional[str]:
        return _blank_to_none(value)

    @property
    def is_identifiable(self) -> bool:
        return bool(self.member_id or self.reference_id)

    def to_row(self) -> Dict[str, Optional[str]]:
        """Column layout of the ``customer_mappings`` table."""
        return {
            "member_id": self.member_id,
            "ref_id": self.reference_id,
            "customer_name": self.customer_name,
            "account_number": self.account_number,
            "loan_product": self.product_label,
            "national_id": self.national_id,
        }


def mappings_from_rows(rows: List[Dict[str, Any]]) -> List[CustomerMapping]:
    """Coerce raw rows into mappings, dropping rows with no usable key."""
    mappings = [CustomerMapping.model_validate(row) for row in rows]
    return [m for m in mappings if m.is_identifiable]
