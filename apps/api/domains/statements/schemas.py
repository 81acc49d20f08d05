"""Pydantic schemas for the statements domain."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from apps.api.domains.statements.service import ExportFormat
from packages.statement_engine.models import BankFormat, ParsedTransaction


class TransactionOut(BaseModel):
    """A parsed statement line, successful or failed."""

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
    customer_name: str = ""
    member_id: str = ""
    national_id: str = ""

    @classmethod
    def from_parsed(cls, tx: ParsedTransaction) -> "TransactionOut":
        return cls(**tx.to_dict())

    def to_parsed(self) -> ParsedTransaction:
        return ParsedTransaction.from_dict(self.model_dump())


class StatementRequest(BaseModel):
    raw_text: str
    bank_format: BankFormat

    @field_validator("bank_format", mode="before")
    @classmethod
    def _parse_format(cls, value):
        return BankFormat.parse(value)


class ParseRequest(StatementRequest):
    apply_mappings: bool = True


class ParseResponse(BaseModel):
    bank_format: BankFormat
    total_lines: int
    success_count: int
    fail_count: int
    total_amount: float
    success_rate: float
    successful: list[TransactionOut]
    failed: list[TransactionOut]


class SaveRequest(StatementRequest):
    batch_name: Optional[str] = Field(default=None, max_length=200)


class SaveResponse(BaseModel):
    batch_id: Optional[str] = None
    bank_format: str
    total_lines: int
    success_count: int
    fail_count: int
    duplicates_skipped: int
    inserted_count: int
    failed_chunks: int = 0
    partial: bool = False
    total_amount: float = 0.0
    dedup_key: str


class FieldEdit(BaseModel):
    """Replace one field of one successful record before export."""

    index: int = Field(..., ge=0)
    field: str
    value: str


class ExportRequest(BaseModel):
    transactions: list[TransactionOut]
    edits: list[FieldEdit] = Field(default_factory=list)
    bank_format: BankFormat = BankFormat.NMB
    format: ExportFormat = ExportFormat.CSV
    filename: Optional[str] = None

    @field_validator("bank_format", mode="before")
    @classmethod
    def _parse_format(cls, value):
        return BankFormat.parse(value)


class FailedReportRequest(BaseModel):
    failed: list[TransactionOut]
