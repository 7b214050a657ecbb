"""Shared validation utilities for statement parsers."""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

# Configure logging for parsers
logger = logging.getLogger("finledger.parsers")

MIN_OFX_LENGTH = 50

# Stays well inside the default 28-digit decimal context once quantized to cents
MAX_AMOUNT = Decimal("1000000000000")

_OFX_MARKER = re.compile(r"<OFX>|OFXHEADER|DATA:OFXSGML", re.IGNORECASE)
_STATEMENT_SECTION = re.compile(r"BANKMSGSRSV1|CREDITCARDMSGSRSV1", re.IGNORECASE)
_TRANSACTION_LIST = re.compile(r"BANKTRANLIST|STMTTRNRS|CCSTMTRS|CCSTMTTRNRS", re.IGNORECASE)
_TRANSACTION_OPEN = re.compile(r"<STMTTRN>", re.IGNORECASE)

_SGML_CHARSET = re.compile(rb"CHARSET\s*:\s*(\w+)", re.IGNORECASE)
_SGML_ENCODING = re.compile(rb"ENCODING\s*:\s*([\w-]+)", re.IGNORECASE)


@dataclass
class ParseResult:
    """Result of parsing a statement's transaction blocks."""

    transactions: list[Any]
    blocks_processed: int = 0
    blocks_skipped: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Calculate the parsing success rate."""
        if self.blocks_processed == 0:
            return 0.0
        parsed = len(self.transactions)
        return (parsed / self.blocks_processed) * 100


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


class InvalidFormat(ValidationError):
    """Raised when content is not a structurally valid OFX statement."""

    pass


@dataclass(frozen=True)
class OFXValidation:
    """Outcome of a structural check; ``error`` is set only when invalid."""

    valid: bool
    error: str | None = None


def validate_file_contents(contents: bytes, min_size: int = 10) -> None:
    """
    Validate file contents before parsing.

    Args:
        contents: Raw file bytes
        min_size: Minimum expected file size in bytes

    Raises:
        ValidationError: If validation fails
    """
    if not contents:
        raise ValidationError("File is empty")

    if len(contents) < min_size:
        raise ValidationError(f"File too small ({len(contents)} bytes), minimum {min_size} bytes expected")


def decode_statement_bytes(contents: bytes) -> str:
    """
    Decode an uploaded statement file to text.

    OFX 1.x files declare their charset in the SGML header, most Brazilian
    bank exports use ``CHARSET:1252``. That hint is tried first; otherwise
    UTF-8 is tried before the single-byte fallbacks.

    Raises:
        ValidationError: If the file is empty
    """
    validate_file_contents(contents)

    encodings = ["utf-8-sig", "cp1252", "latin-1"]

    head = contents[:1024]
    charset = _SGML_CHARSET.search(head)
    encoding = _SGML_ENCODING.search(head)
    declared_utf8 = encoding is not None and b"UTF" in encoding.group(1).upper()
    if charset and charset.group(1) == b"1252" and not declared_utf8:
        encodings = ["cp1252", "utf-8-sig", "latin-1"]

    for name in encodings:
        try:
            return contents.decode(name)
        except UnicodeDecodeError:
            continue

    # latin-1 maps every byte, so this is unreachable in practice
    raise ValidationError("Could not decode file with any supported encoding (utf-8, cp1252, latin-1)")


def validate_ofx(content: str, min_length: int = MIN_OFX_LENGTH) -> OFXValidation:
    """
    Check that content has the structure of an OFX bank statement.

    Checks run in order and stop at the first failure, whose reason is
    returned. The content is never modified.

    Args:
        content: Decoded file content
        min_length: Minimum number of characters for a plausible file

    Returns:
        OFXValidation with ``valid`` and, when invalid, a human-readable reason
    """
    if not content or len(content) < min_length:
        return OFXValidation(False, "File is empty or too small to be an OFX statement")

    if not _OFX_MARKER.search(content):
        return OFXValidation(False, "File does not appear to be a valid OFX file")

    if not _STATEMENT_SECTION.search(content):
        return OFXValidation(False, "OFX file is missing a bank or credit card statement section")

    if not _TRANSACTION_LIST.search(content):
        return OFXValidation(False, "OFX file is missing a transaction list")

    if not _TRANSACTION_OPEN.search(content):
        return OFXValidation(False, "No transactions found in OFX file")

    return OFXValidation(True)


def validate_ofx_contents(content: str, min_length: int = MIN_OFX_LENGTH) -> None:
    """
    Raising form of :func:`validate_ofx`.

    Raises:
        InvalidFormat: With the reason of the first failing check
    """
    result = validate_ofx(content, min_length=min_length)
    if not result.valid:
        raise InvalidFormat(result.error)


def clean_amount_string(amount_str: str) -> str:
    """
    Clean an OFX amount string for parsing.

    OFX amounts carry no thousand separators, but some banks write the
    decimal separator as a comma.
    """
    if not amount_str:
        return ""

    cleaned = amount_str.replace(" ", "").strip()
    return cleaned.replace(",", ".", 1)


def validate_amount(amount: Decimal | None, min_val: Decimal = -MAX_AMOUNT, max_val: Decimal = MAX_AMOUNT) -> bool:
    """
    Validate that an amount is within reasonable bounds.

    Args:
        amount: The amount to validate
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        True if valid, False otherwise
    """
    if amount is None:
        return False

    # Check for NaN or infinity
    if not amount.is_finite():
        return False

    return min_val <= amount <= max_val


def parse_amount_safe(amount_str: str) -> Decimal | None:
    """
    Safely parse an amount string.

    Returns:
        The signed amount, or None if the value is not a finite number
        within the accepted bounds
    """
    cleaned = clean_amount_string(amount_str)
    if not cleaned:
        return None

    try:
        amount = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return None

    if not validate_amount(amount):
        return None

    return amount


def log_parse_result(result: ParseResult, parser_name: str) -> None:
    """
    Log parsing results for debugging.

    Args:
        result: The parse result
        parser_name: Name of the parser
    """
    logger.info(
        f"{parser_name}: Parsed {len(result.transactions)} transactions "
        f"(processed {result.blocks_processed}, "
        f"skipped {result.blocks_skipped})"
    )

    if result.errors:
        for error in result.errors[:5]:  # Log first 5 errors
            logger.warning(f"{parser_name}: {error}")

    if result.warnings:
        for warning in result.warnings[:5]:  # Log first 5 warnings
            logger.debug(f"{parser_name}: {warning}")
