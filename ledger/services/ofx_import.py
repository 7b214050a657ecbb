"""OFX upload processing service.

Import is two-step: ``parse_statement_upload`` previews a file against an
account (duplicates flagged, categories suggested), then
``commit_ofx_import`` persists the rows the user kept selected and writes
one import-history record.
"""

import logging
from datetime import datetime

from ledger.config import settings
from ledger.db.sqlite import db
from ledger.models import (
    OFXImport,
    OFXImportRequest,
    OFXImportResponse,
    OFXParseResponse,
    OFXValidationResponse,
)
from ledger.parsers.ofx import parse_ofx
from ledger.parsers.validation import ValidationError, decode_statement_bytes, validate_ofx
from ledger.services.categorizer import apply_category_suggestions
from ledger.services.dedup import compute_file_hash, count_duplicates, prepare_transactions_for_import

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".ofx", ".qfx")


class AccountNotFound(LookupError):
    """Raised when the target account does not exist for the user."""

    pass


def check_upload(filename: str | None, contents: bytes) -> None:
    """
    Reject uploads that cannot be OFX statements before decoding them.

    Raises:
        ValueError: On a missing name, wrong extension, empty or oversized file
    """
    if not filename:
        raise ValueError("No filename provided")

    if not filename.lower().endswith(ALLOWED_EXTENSIONS):
        raise ValueError("Only .ofx and .qfx files are supported")

    if not contents:
        raise ValueError("Empty file")

    if len(contents) > settings.max_upload_bytes:
        max_mb = settings.max_upload_bytes / (1024 * 1024)
        raise ValueError(f"File too large. Maximum: {max_mb:g}MB")


def validate_upload(contents: bytes) -> OFXValidationResponse:
    """Run the structural check on an uploaded file without parsing it."""
    try:
        text = decode_statement_bytes(contents)
    except ValidationError as e:
        return OFXValidationResponse(valid=False, error=str(e))
    result = validate_ofx(text, min_length=settings.min_ofx_length)
    return OFXValidationResponse(valid=result.valid, error=result.error)


def parse_statement_upload(user_id: int, account_id: int, filename: str | None, contents: bytes) -> OFXParseResponse:
    """
    Parse an OFX upload and prepare it for review.

    Raises:
        AccountNotFound: If the account does not belong to the user
        InvalidFormat: If the file is not a valid OFX statement
    """
    account = db.get_account(account_id, user_id)
    if account is None:
        raise AccountNotFound(f"Account {account_id} not found")

    file_hash = compute_file_hash(contents)
    text = decode_statement_bytes(contents)
    statement = parse_ofx(text, default_currency=settings.default_currency)

    # One snapshot of known FITIDs per request
    existing_fit_ids = db.get_existing_fit_ids(account_id, user_id)
    candidates = prepare_transactions_for_import(statement, existing_fit_ids)

    mappings = db.get_category_mappings(user_id)
    candidates = apply_category_suggestions(candidates, mappings)

    duplicates = count_duplicates(candidates)
    logger.info(
        f"Parsed {filename}: {len(candidates)} transactions, {duplicates} already imported "
        f"into account {account_id}"
    )

    if statement.currency != account.currency:
        logger.warning(
            f"Statement currency {statement.currency} differs from account {account_id} currency {account.currency}"
        )

    return OFXParseResponse(
        account_id=account_id,
        file_name=filename,
        file_hash=file_hash,
        bank_id=statement.bank_id,
        bank_account_id=statement.account_id,
        account_type=statement.account_type,
        currency=statement.currency,
        balance=statement.balance,
        balance_date=statement.balance_date,
        start_date=statement.start_date,
        end_date=statement.end_date,
        format_info=statement.format_info,
        transactions=candidates,
        total=len(candidates),
        duplicates=duplicates,
        new=len(candidates) - duplicates,
    )


def commit_ofx_import(user_id: int, request: OFXImportRequest) -> OFXImportResponse:
    """
    Persist the reviewed selection of an OFX preview.

    Raises:
        AccountNotFound: If the account does not belong to the user
        ValueError: If no transactions were selected
    """
    if db.get_account(request.account_id, user_id) is None:
        raise AccountNotFound(f"Account {request.account_id} not found")

    if not request.transactions:
        raise ValueError("No transactions selected for import")

    import_record = OFXImport(
        user_id=user_id,
        account_id=request.account_id,
        file_name=request.file_name,
        file_hash=request.file_hash,
        bank_id=request.bank_id,
        bank_account_id=request.bank_account_id,
        transaction_count=len(request.transactions),
        duplicate_count=request.duplicate_count,
        start_date=request.start_date,
        end_date=request.end_date,
        created_at=datetime.now().isoformat(),
    )

    import_id, added, skipped, new_balance = db.import_ofx_transactions(
        user_id,
        request.account_id,
        request.transactions,
        import_record,
        update_balance=request.update_balance,
    )

    logger.info(f"Imported {added} transactions into account {request.account_id}, skipped {skipped} duplicates")

    message = f"Successfully imported {added} transactions"
    if skipped > 0:
        message += f" ({skipped} duplicates skipped)"

    return OFXImportResponse(
        import_id=import_id,
        imported=added,
        skipped_duplicates=skipped,
        new_balance=new_balance,
        message=message,
    )
