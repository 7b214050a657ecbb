"""Pydantic models for parsed OFX statements."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FormatInfo(BaseModel):
    """Wire format of an OFX document, detected once per document."""

    model_config = ConfigDict(frozen=True)

    version_major: Literal["1", "2"]
    is_sgml: bool
    header_version: str
    encoding: str
    charset: str


class ParsedTransaction(BaseModel):
    """A single STMTTRN block that passed field validation."""

    model_config = ConfigDict(frozen=True)

    fit_id: str = Field(min_length=1)
    type_code: str
    date: str  # YYYY-MM-DD
    amount: Decimal  # Signed, negative for debits
    description: str = Field(min_length=1)
    memo: str | None = None
    check_number: str | None = None
    ref_number: str | None = None


class ParsedStatement(BaseModel):
    """Account metadata, balance and transactions of one OFX file."""

    model_config = ConfigDict(frozen=True)

    bank_id: str
    account_id: str
    account_type: str
    currency: str
    balance: Decimal | None = None
    balance_date: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    transactions: tuple[ParsedTransaction, ...] = ()  # Most recent first
    format_info: FormatInfo | None = None
