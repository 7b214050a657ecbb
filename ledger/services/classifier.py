"""Income/expense classification of OFX transactions."""

from decimal import Decimal
from types import MappingProxyType

from ledger.models import TransactionType

# OFX TRNTYPE codes, consulted only when the amount is exactly zero
TRANSACTION_TYPE_MAP = MappingProxyType(
    {
        "CREDIT": TransactionType.INCOME,
        "DEP": TransactionType.INCOME,
        "DIRECTDEP": TransactionType.INCOME,
        "INT": TransactionType.INCOME,
        "DIV": TransactionType.INCOME,
        "DEBIT": TransactionType.EXPENSE,
        "CHECK": TransactionType.EXPENSE,
        "PAYMENT": TransactionType.EXPENSE,
        "FEE": TransactionType.EXPENSE,
        "SRVCHG": TransactionType.EXPENSE,
        "ATM": TransactionType.EXPENSE,
        "POS": TransactionType.EXPENSE,
        "XFER": TransactionType.EXPENSE,  # Can be either, expense unless signed
        "OTHER": TransactionType.EXPENSE,
    }
)


def classify_transaction(type_code: str, amount: Decimal) -> TransactionType:
    """
    Decide whether a transaction is income or expense.

    The amount sign wins. Zero-amount movements fall back to the TRNTYPE
    table, and unknown codes are treated as expenses.
    """
    if amount > 0:
        return TransactionType.INCOME
    if amount < 0:
        return TransactionType.EXPENSE

    return TRANSACTION_TYPE_MAP.get((type_code or "").upper(), TransactionType.EXPENSE)
