"""Data models for Finledger."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ledger.parsers.document_types import FormatInfo

# OFX dates are kept as text; day-of-month is not checked against the calendar
OFX_DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"


class TransactionType(str, Enum):
    """Direction of a ledger movement."""

    INCOME = "income"
    EXPENSE = "expense"


class AccountType(str, Enum):
    """Supported account kinds."""

    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    INVESTMENT = "investment"
    CASH = "cash"


class AccountCreate(BaseModel):
    """Account data for creation."""

    name: str = Field(min_length=1)
    type: AccountType = AccountType.CHECKING
    balance: Decimal = Decimal("0.00")
    currency: str = "BRL"


class Account(AccountCreate):
    """A ledger account owned by one user."""

    id: int
    user_id: int

    model_config = ConfigDict(from_attributes=True)


class Transaction(BaseModel):
    """A persisted ledger transaction."""

    id: int
    user_id: int
    account_id: int
    fit_id: str | None = None  # Set only for OFX-imported rows
    date: str  # YYYY-MM-DD
    amount: Decimal  # Unsigned, direction is in `type`
    type: TransactionType
    description: str
    category_id: int | None = None
    created_at: str

    model_config = ConfigDict(from_attributes=True)


class ImportCandidate(BaseModel):
    """A parsed OFX transaction prepared for review and persistence."""

    fit_id: str
    date: str  # YYYY-MM-DD
    amount: str  # Unsigned, two decimal places
    direction: TransactionType
    description: str
    is_duplicate: bool
    selected: bool
    category_id: int | None = None


class CategoryPatternCreate(BaseModel):
    """Category mapping data for creation."""

    pattern: str = Field(min_length=1, max_length=255)
    category_id: int


class CategoryMapping(CategoryPatternCreate):
    """A user-defined description pattern that pre-fills a category."""

    id: int
    user_id: int
    is_active: bool = True


class OFXImport(BaseModel):
    """Import-history record written once per committed OFX import."""

    id: int | None = None
    user_id: int
    account_id: int
    file_name: str | None = None
    file_hash: str | None = None
    bank_id: str | None = None
    bank_account_id: str | None = None
    transaction_count: int
    duplicate_count: int = 0
    start_date: str | None = None
    end_date: str | None = None
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())


class OFXValidationResponse(BaseModel):
    """Result of a standalone structural check."""

    valid: bool
    error: str | None = None


class OFXParseResponse(BaseModel):
    """Preview of an OFX file against a target account."""

    account_id: int
    file_name: str | None = None
    file_hash: str
    bank_id: str
    bank_account_id: str
    account_type: str
    currency: str
    balance: Decimal | None = None
    balance_date: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    format_info: FormatInfo | None = None
    transactions: list[ImportCandidate]
    total: int
    duplicates: int
    new: int


class OFXImportTransaction(BaseModel):
    """A reviewed transaction the user chose to import."""

    fit_id: str = Field(min_length=1)
    date: str = Field(pattern=OFX_DATE_PATTERN)
    amount: Decimal = Field(ge=0)
    type: TransactionType
    description: str = Field(min_length=1)
    category_id: int | None = None


class OFXImportRequest(BaseModel):
    """Commit request for a reviewed OFX selection."""

    account_id: int
    file_name: str | None = None
    file_hash: str | None = None
    bank_id: str | None = None
    bank_account_id: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    duplicate_count: int = 0
    transactions: list[OFXImportTransaction]
    update_balance: bool = True


class OFXImportResponse(BaseModel):
    """Response after committing an OFX import."""

    import_id: int
    imported: int
    skipped_duplicates: int
    new_balance: Decimal | None = None
    message: str
