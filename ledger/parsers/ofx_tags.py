"""Low-level tag scanning for OFX content.

OFX 1.x is SGML: leaf tags have no closing counterpart and aggregates may
or may not be closed. OFX 2.x is XML: every tag is closed. Each function
here tries the XML shape first and falls back to the SGML shape, so callers
never need to know which format they are looking at.
"""

import re

# Closing tags that end an unterminated SGML transaction block
SGML_CONTAINER_CLOSERS = ("BANKTRANLIST", "STMTRS", "CCSTMTRS")


def extract_tag_value(text: str, tag_name: str) -> str:
    """
    Return the trimmed value of the first occurrence of a tag.

    Prefers a closed ``<TAG>value</TAG>`` pair; otherwise treats the tag as
    self-closing and reads up to the next ``<`` or line break.

    Args:
        text: OFX content (whole document or a single block)
        tag_name: Tag name without angle brackets, case-insensitive

    Returns:
        The value, or an empty string if the tag is absent or empty
    """
    tag = re.escape(tag_name)
    patterns = [
        re.compile(rf"<{tag}>([^<]*)</{tag}>", re.IGNORECASE),
        re.compile(rf"<{tag}>([^<\r\n]+)", re.IGNORECASE),
    ]

    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1).strip()

    return ""


def extract_blocks(text: str, block_name: str) -> list[str]:
    """
    Return every occurrence of an aggregate block, in document order.

    XML-style ``<BLOCK>...</BLOCK>`` pairs are collected first. Only when
    none exist is the SGML fallback used, where a block runs from its
    opening tag to the next opening tag of the same name, a closing
    container tag, or the end of input.
    """
    blocks = _extract_xml_blocks(text, block_name)
    if blocks:
        return blocks
    return _extract_sgml_blocks(text, block_name)


def _extract_xml_blocks(text: str, block_name: str) -> list[str]:
    """Collect closed ``<BLOCK>...</BLOCK>`` pairs (non-greedy)."""
    tag = re.escape(block_name)
    pattern = re.compile(rf"<{tag}>[\s\S]*?</{tag}>", re.IGNORECASE)
    return [match.group(0) for match in pattern.finditer(text)]


def _extract_sgml_blocks(text: str, block_name: str) -> list[str]:
    """Split unterminated SGML blocks on their opening tags."""
    tag = re.escape(block_name)
    opening = re.compile(rf"<{tag}>", re.IGNORECASE)
    closers = "|".join(re.escape(name) for name in (block_name, *SGML_CONTAINER_CLOSERS))
    closing = re.compile(rf"</(?:{closers})>", re.IGNORECASE)

    starts = [match.end() for match in opening.finditer(text)]
    blocks = []

    for i, start in enumerate(starts):
        # Fragment ends where the next block opens (the opening tag itself is excluded)
        end = starts[i + 1] - len(block_name) - 2 if i + 1 < len(starts) else len(text)
        fragment = text[start:end]

        close = closing.search(fragment)
        if close:
            fragment = fragment[: close.start()]

        # Synthetic opening tag so downstream extraction sees a uniform block
        blocks.append(f"<{block_name.upper()}>{fragment}")

    return blocks
