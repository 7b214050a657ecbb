"""Parser for OFX bank and credit card statements (OFX 1.x SGML and 2.x XML)."""

import re

from ledger.parsers.document_types import ParsedStatement, ParsedTransaction
from ledger.parsers.ofx_format import detect_format
from ledger.parsers.ofx_tags import extract_blocks, extract_tag_value
from ledger.parsers.validation import (
    ParseResult,
    log_parse_result,
    logger,
    parse_amount_safe,
    validate_ofx_contents,
)

DEFAULT_CURRENCY = "BRL"
DEFAULT_DESCRIPTION = "Transação OFX"
DEFAULT_TYPE_CODE = "OTHER"
UNKNOWN = "UNKNOWN"

_TIMEZONE_SUFFIX = re.compile(r"\[.*\]")
_DATE_DIGITS = re.compile(r"[0-9]{8}")
_OFX_ROOT = re.compile(r"<OFX>", re.IGNORECASE)
_CREDIT_CARD_SECTION = re.compile(r"CREDITCARDMSGSRSV1|CCSTMTRS", re.IGNORECASE)


def parse_ofx(content: str, default_currency: str = DEFAULT_CURRENCY) -> ParsedStatement:
    """
    Parse an OFX statement.

    Handles both OFX 1.x (SGML, unclosed leaf tags, ``KEY:VALUE`` header)
    and OFX 2.x (XML). Transaction blocks that lack a required field or
    carry an unparseable date or amount are skipped and logged.

    Returned transactions are sorted by date, most recent first. Transactions
    on the same date keep the order in which they appear in the file.

    Args:
        content: Decoded file content
        default_currency: Currency used when the statement has no CURDEF

    Raises:
        InvalidFormat: If the content is not a structurally valid OFX statement
    """
    validate_ofx_contents(content)

    format_info = detect_format(content)
    text = _normalize(content)

    bank_id = extract_tag_value(text, "BANKID") or extract_tag_value(text, "ORG") or UNKNOWN
    account_id = extract_tag_value(text, "ACCTID") or UNKNOWN
    account_type = extract_tag_value(text, "ACCTTYPE")
    if not account_type:
        account_type = "CREDIT_CARD" if _CREDIT_CARD_SECTION.search(text) else "CHECKING"

    currency = extract_tag_value(text, "CURDEF") or default_currency

    start_date = parse_ofx_date(extract_tag_value(text, "DTSTART"))
    end_date = parse_ofx_date(extract_tag_value(text, "DTEND"))

    balance, balance_date = _extract_balance(text)

    result = ParseResult(transactions=[])
    for block in extract_blocks(text, "STMTTRN"):
        result.blocks_processed += 1
        transaction = parse_transaction_block(block, result)
        if transaction is None:
            result.blocks_skipped += 1
            continue
        result.transactions.append(transaction)

    if not result.transactions:
        result.errors.append(f"No usable transactions in {result.blocks_processed} STMTTRN block(s)")

    log_parse_result(result, f"OFX {format_info.version_major}.x")

    # sorted() is stable, so same-day transactions keep block order
    transactions = sorted(result.transactions, key=lambda t: t.date, reverse=True)

    return ParsedStatement(
        bank_id=bank_id,
        account_id=account_id,
        account_type=account_type,
        currency=currency,
        balance=balance,
        balance_date=balance_date,
        start_date=start_date,
        end_date=end_date,
        transactions=tuple(transactions),
        format_info=format_info,
    )


def parse_transaction_block(block: str, result: ParseResult | None = None) -> ParsedTransaction | None:
    """
    Parse a single STMTTRN block.

    FITID, DTPOSTED and TRNAMT are required. The description is NAME,
    then MEMO, then a fixed placeholder.

    Returns:
        The parsed transaction, or None if the block must be skipped
    """
    fit_id = extract_tag_value(block, "FITID")
    date_posted = extract_tag_value(block, "DTPOSTED")
    amount_str = extract_tag_value(block, "TRNAMT")

    if not fit_id or not date_posted or not amount_str:
        missing = [
            name
            for name, value in (("FITID", fit_id), ("DTPOSTED", date_posted), ("TRNAMT", amount_str))
            if not value
        ]
        _skip(result, f"Transaction {fit_id or '?'}: Missing required field(s) {', '.join(missing)}")
        return None

    amount = parse_amount_safe(amount_str)
    if amount is None:
        _skip(result, f"Transaction {fit_id}: Invalid amount '{amount_str}'")
        return None

    txn_date = parse_ofx_date(date_posted)
    if txn_date is None:
        _skip(result, f"Transaction {fit_id}: Invalid date '{date_posted}'")
        return None

    name = extract_tag_value(block, "NAME")
    memo = extract_tag_value(block, "MEMO")

    return ParsedTransaction(
        fit_id=fit_id,
        type_code=extract_tag_value(block, "TRNTYPE") or DEFAULT_TYPE_CODE,
        date=txn_date,
        amount=amount,
        description=name or memo or DEFAULT_DESCRIPTION,
        memo=memo or None,
        check_number=extract_tag_value(block, "CHECKNUM") or None,
        ref_number=extract_tag_value(block, "REFNUM") or None,
    )


def parse_ofx_date(date_str: str) -> str | None:
    """
    Convert an OFX datetime to ``YYYY-MM-DD``.

    OFX dates look like ``20240115``, ``20240115120000`` or
    ``20240115120000.000[-3:BRT]``. Only the date part is kept. Month and
    day ranges are checked, day-of-month against the calendar is not.

    Returns:
        The ISO date string, or None if the value is not a usable date
    """
    if not date_str:
        return None

    cleaned = _TIMEZONE_SUFFIX.sub("", date_str).strip()
    if len(cleaned) < 8 or not _DATE_DIGITS.match(cleaned):
        return None

    year, month, day = cleaned[0:4], cleaned[4:6], cleaned[6:8]
    if not 1 <= int(month) <= 12 or not 1 <= int(day) <= 31:
        return None

    return f"{year}-{month}-{day}"


def _normalize(content: str) -> str:
    """Drop the SGML header and unify line endings."""
    root = _OFX_ROOT.search(content)
    if root:
        content = content[root.start():]
    return content.replace("\r\n", "\n").replace("\r", "\n")


def _extract_balance(text: str):
    """Return (balance, balance_date), preferring the LEDGERBAL aggregate."""
    for ledger_block in extract_blocks(text, "LEDGERBAL"):
        balance = parse_amount_safe(extract_tag_value(ledger_block, "BALAMT"))
        if balance is not None:
            return balance, parse_ofx_date(extract_tag_value(ledger_block, "DTASOF"))

    balance = parse_amount_safe(extract_tag_value(text, "BALAMT"))
    if balance is None:
        return None, None
    return balance, parse_ofx_date(extract_tag_value(text, "DTASOF"))


def _skip(result: ParseResult | None, message: str) -> None:
    logger.debug(f"OFX: {message}")
    if result is not None:
        result.warnings.append(message)
