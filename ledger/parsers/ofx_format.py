"""OFX wire format detection (SGML 1.x vs XML 2.x)."""

import re

from ledger.parsers.document_types import FormatInfo

SGML_HEADER_MARKERS = ("OFXHEADER:", "DATA:OFXSGML")

# Defaults for SGML header keys that a bank export leaves out
DEFAULT_SGML_VERSION = "102"
DEFAULT_SGML_ENCODING = "USASCII"
DEFAULT_SGML_CHARSET = "1252"

DEFAULT_XML_VERSION = "200"
DEFAULT_XML_ENCODING = "UTF-8"
DEFAULT_XML_CHARSET = "NONE"

_XML_DECLARATION = re.compile(r"<\?(?:xml|OFX)\b", re.IGNORECASE)
_XML_ENCODING = re.compile(r"<\?xml[^>]*\bencoding\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
_OFX_PI_VERSION = re.compile(r"<\?OFX[^>]*\bVERSION\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)

# A leaf tag whose value is not followed by its own closing tag
_SGML_LEAF = re.compile(r"<([A-Za-z0-9.]+)>[^<\s][^<\r\n]*\s*<(?!/\1>)", re.IGNORECASE)

_HEADER_LINE = re.compile(r"^\s*([A-Za-z]+)\s*:\s*(.*?)\s*$", re.MULTILINE)
_OFX_ROOT = re.compile(r"<OFX>", re.IGNORECASE)


def detect_format(content: str) -> FormatInfo:
    """
    Classify a document as OFX 1.x (SGML) or OFX 2.x (XML).

    Detection is a best-effort heuristic and always returns a result.
    Documents without any recognizable marker are treated as SGML.
    """
    if any(marker in content for marker in SGML_HEADER_MARKERS):
        return _sgml_format(content)

    if _XML_DECLARATION.search(content):
        return _xml_format(content)

    if _SGML_LEAF.search(content):
        return _sgml_format(content)

    # Lenient fallback: headerless exports are usually SGML
    return _sgml_format(content)


def parse_sgml_header(content: str) -> dict[str, str]:
    """
    Parse the ``KEY:VALUE`` header block that precedes the ``<OFX>`` root.

    Returns:
        Mapping of upper-cased header keys to values
    """
    root = _OFX_ROOT.search(content)
    header_text = content[: root.start()] if root else content

    return {key.upper(): value for key, value in _HEADER_LINE.findall(header_text)}


def _sgml_format(content: str) -> FormatInfo:
    headers = parse_sgml_header(content)
    return FormatInfo(
        version_major="1",
        is_sgml=True,
        header_version=headers.get("VERSION") or DEFAULT_SGML_VERSION,
        encoding=headers.get("ENCODING") or DEFAULT_SGML_ENCODING,
        charset=headers.get("CHARSET") or DEFAULT_SGML_CHARSET,
    )


def _xml_format(content: str) -> FormatInfo:
    version = _OFX_PI_VERSION.search(content)
    encoding = _XML_ENCODING.search(content)
    return FormatInfo(
        version_major="2",
        is_sgml=False,
        header_version=version.group(1) if version else DEFAULT_XML_VERSION,
        encoding=encoding.group(1) if encoding else DEFAULT_XML_ENCODING,
        charset=DEFAULT_XML_CHARSET,
    )
