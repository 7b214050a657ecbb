"""Tests for the parser validation module."""

from decimal import Decimal

import pytest

from ledger.parsers.validation import (
    MAX_AMOUNT,
    InvalidFormat,
    ParseResult,
    ValidationError,
    clean_amount_string,
    decode_statement_bytes,
    parse_amount_safe,
    validate_amount,
    validate_file_contents,
    validate_ofx,
    validate_ofx_contents,
)

PADDING = " " * 60


class TestValidateFileContents:
    """Test file contents validation."""

    def test_rejects_empty_contents(self):
        """Should reject empty file contents."""
        with pytest.raises(ValidationError, match="empty"):
            validate_file_contents(b"")

    def test_rejects_too_small_contents(self):
        """Should reject files smaller than minimum size."""
        with pytest.raises(ValidationError, match="too small"):
            validate_file_contents(b"abc", min_size=10)

    def test_accepts_valid_contents(self):
        """Should accept valid file contents."""
        validate_file_contents(b"Valid file contents here", min_size=10)


class TestDecodeStatementBytes:
    """Test decoding of uploaded statement bytes."""

    def test_decodes_utf8(self):
        """Should decode UTF-8 content."""
        text = decode_statement_bytes("<OFX><NAME>Padaria São João</NAME></OFX>".encode("utf-8"))
        assert "São João" in text

    def test_strips_utf8_bom(self):
        """Should drop a UTF-8 byte order mark."""
        text = decode_statement_bytes(b"\xef\xbb\xbf<OFX></OFX> and more")
        assert text.startswith("<OFX>")

    def test_uses_cp1252_when_declared(self):
        """Should honor CHARSET:1252 from the SGML header."""
        raw = "OFXHEADER:100\nENCODING:USASCII\nCHARSET:1252\n<OFX>\n<NAME>Transação\n".encode("cp1252")
        assert "Transação" in decode_statement_bytes(raw)

    def test_falls_back_when_not_utf8(self):
        """Should decode legacy bytes without a charset header."""
        raw = "<OFX>\n<NAME>Açougue\n".encode("latin-1")
        assert "Açougue" in decode_statement_bytes(raw)

    def test_rejects_empty_bytes(self):
        """Should reject empty uploads."""
        with pytest.raises(ValidationError, match="empty"):
            decode_statement_bytes(b"")


class TestValidateOfx:
    """Test structural OFX validation, in check order."""

    def test_accepts_sgml_statement(self, sgml_statement):
        """Should accept a complete SGML statement."""
        result = validate_ofx(sgml_statement)
        assert result.valid is True
        assert result.error is None

    def test_accepts_xml_statement(self, xml_statement):
        """Should accept a complete XML statement."""
        assert validate_ofx(xml_statement).valid is True

    def test_accepts_credit_card_statement(self, credit_card_statement):
        """Should accept a credit card statement."""
        assert validate_ofx(credit_card_statement).valid is True

    def test_rejects_empty(self):
        """Should reject empty content."""
        result = validate_ofx("")
        assert result.valid is False
        assert "empty" in result.error

    def test_rejects_short_content(self):
        """Should reject content under 50 characters."""
        result = validate_ofx("<OFX><BANKMSGSRSV1><STMTTRN></OFX>")
        assert result.valid is False
        assert "too small" in result.error

    def test_rejects_missing_ofx_marker(self):
        """Should reject content without an OFX root or header."""
        result = validate_ofx("<HTML><BODY>BANKMSGSRSV1 BANKTRANLIST <STMTTRN></BODY></HTML>" + PADDING)
        assert result.valid is False
        assert "not appear to be a valid OFX" in result.error

    def test_rejects_missing_statement_section(self):
        """Should reject an OFX file without bank or card messages."""
        result = validate_ofx("<OFX><SIGNONMSGSRSV1></SIGNONMSGSRSV1></OFX>" + PADDING)
        assert result.valid is False
        assert "statement section" in result.error

    def test_rejects_missing_transaction_list(self):
        """Should reject a statement section without a transaction list."""
        result = validate_ofx("<OFX><BANKMSGSRSV1></BANKMSGSRSV1></OFX>" + PADDING)
        assert result.valid is False
        assert "transaction list" in result.error

    def test_rejects_missing_transactions(self):
        """Should reject a transaction list without STMTTRN blocks."""
        result = validate_ofx("<OFX><BANKMSGSRSV1><BANKTRANLIST></BANKTRANLIST></BANKMSGSRSV1></OFX>" + PADDING)
        assert result.valid is False
        assert "No transactions" in result.error

    def test_reports_first_failing_check(self):
        """Should report the earliest failure when several checks fail."""
        result = validate_ofx("plain text without any markers at all, long enough to pass size")
        assert "not appear to be a valid OFX" in result.error

    def test_does_not_mutate_content(self, sgml_statement):
        """Should leave the content untouched."""
        copy = str(sgml_statement)
        validate_ofx(sgml_statement)
        assert sgml_statement == copy


class TestValidateOfxContents:
    """Test the raising form of validation."""

    def test_raises_invalid_format(self):
        """Should raise InvalidFormat with the reason."""
        with pytest.raises(InvalidFormat, match="too small"):
            validate_ofx_contents("<OFX>")

    def test_invalid_format_is_validation_error(self):
        """Should be catchable as a ValidationError."""
        with pytest.raises(ValidationError):
            validate_ofx_contents("")

    def test_valid_content_passes(self, xml_statement):
        """Should not raise for a valid statement."""
        validate_ofx_contents(xml_statement)


class TestParseAmount:
    """Test amount parsing."""

    def test_parses_negative_amount(self):
        """Should parse signed amounts."""
        assert parse_amount_safe("-45.90") == Decimal("-45.90")

    def test_parses_comma_decimal_separator(self):
        """Should accept a comma as decimal separator."""
        assert parse_amount_safe("3500,00") == Decimal("3500.00")

    def test_parses_explicit_plus_sign(self):
        """Should accept a leading plus sign."""
        assert parse_amount_safe("+10.5") == Decimal("10.5")

    def test_rejects_non_numeric(self):
        """Should return None for non-numeric values."""
        assert parse_amount_safe("abc") is None
        assert parse_amount_safe("") is None

    def test_rejects_nan_and_infinity(self):
        """Should reject non-finite values."""
        assert parse_amount_safe("NaN") is None
        assert parse_amount_safe("Infinity") is None

    def test_rejects_out_of_range_amounts(self):
        """Should reject amounts that cannot be quantized to cents."""
        assert parse_amount_safe("123456789012345678901234567890.00") is None
        assert parse_amount_safe("1E30") is None
        assert parse_amount_safe("-1E30") is None

    def test_accepts_large_amount_within_bounds(self):
        """Should keep large but plausible amounts."""
        assert parse_amount_safe("999999999999.99") == Decimal("999999999999.99")

    def test_clean_amount_string(self):
        """Should strip spaces and swap the decimal comma."""
        assert clean_amount_string(" -1 234,56 ") == "-1234.56"


class TestValidateAmount:
    """Test amount bounds."""

    def test_valid_amounts(self):
        """Should accept amounts within bounds."""
        assert validate_amount(Decimal("100.00")) is True
        assert validate_amount(Decimal("-50.25")) is True
        assert validate_amount(Decimal("0")) is True

    def test_invalid_amounts(self):
        """Should reject None, non-finite and out-of-bounds amounts."""
        assert validate_amount(None) is False
        assert validate_amount(Decimal("NaN")) is False
        assert validate_amount(Decimal("Infinity")) is False
        assert validate_amount(MAX_AMOUNT + 1) is False
        assert validate_amount(-MAX_AMOUNT - 1) is False

    def test_custom_bounds(self):
        """Should respect custom bounds."""
        assert validate_amount(Decimal("50"), min_val=Decimal("0"), max_val=Decimal("10")) is False


class TestParseResult:
    """Test ParseResult dataclass."""

    def test_success_rate_calculation(self):
        """Should calculate success rate correctly."""
        result = ParseResult(transactions=[1, 2, 3], blocks_processed=4)
        assert result.success_rate == 75.0

    def test_success_rate_zero_processed(self):
        """Should return 0 when no blocks processed."""
        result = ParseResult(transactions=[])
        assert result.success_rate == 0.0
