"""Deduplication logic for OFX imports."""

import hashlib
from collections.abc import Set
from decimal import ROUND_HALF_UP, Decimal

from ledger.models import ImportCandidate
from ledger.parsers.document_types import ParsedStatement
from ledger.services.classifier import classify_transaction

TWO_PLACES = Decimal("0.01")


def compute_file_hash(contents: bytes) -> str:
    """Compute SHA256 hash of file contents."""
    return hashlib.sha256(contents).hexdigest()


def format_amount(amount: Decimal) -> str:
    """Render an amount as an unsigned string with two decimal places."""
    return str(abs(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def prepare_transactions_for_import(
    statement: ParsedStatement,
    existing_fit_ids: Set[str],
) -> list[ImportCandidate]:
    """
    Turn parsed transactions into import candidates.

    A transaction whose FITID was already imported into the same account is
    flagged as a duplicate and left unselected. Duplicates stay in the list
    so the user can see them and override the selection.

    Args:
        statement: Parsed OFX statement
        existing_fit_ids: FITIDs already stored for the (account, user) pair.
            Only used for membership tests.

    Returns:
        Candidates in statement order (most recent first)
    """
    candidates = []
    for txn in statement.transactions:
        is_duplicate = txn.fit_id in existing_fit_ids
        candidates.append(
            ImportCandidate(
                fit_id=txn.fit_id,
                date=txn.date,
                amount=format_amount(txn.amount),
                direction=classify_transaction(txn.type_code, txn.amount),
                description=txn.description,
                is_duplicate=is_duplicate,
                selected=not is_duplicate,
            )
        )
    return candidates


def count_duplicates(candidates: list[ImportCandidate]) -> int:
    """Count candidates flagged as already imported."""
    return sum(1 for c in candidates if c.is_duplicate)
