"""Pattern-based category suggestion for imported transactions."""

from collections.abc import Mapping, Sequence
from typing import Any

from ledger.models import ImportCandidate


def _pattern_of(mapping: Any) -> tuple[str, int]:
    """Read (pattern, category_id) from a model or a plain dict."""
    if isinstance(mapping, Mapping):
        return mapping.get("pattern") or "", mapping.get("category_id", mapping.get("categoryId"))
    return mapping.pattern or "", mapping.category_id


def suggest_category(description: str, patterns: Sequence[Any]) -> int | None:
    """
    Suggest a category for a transaction description.

    Patterns are tried in the given order and the first case-insensitive
    substring match wins. Each pattern is a ``CategoryMapping`` (or any
    object with ``pattern`` and ``category_id``) or an equivalent dict.

    Returns:
        The matching category id, or None
    """
    normalized = description.lower()

    for mapping in patterns:
        pattern, category_id = _pattern_of(mapping)
        if pattern and pattern.lower() in normalized:
            return category_id

    return None


def apply_category_suggestions(
    candidates: list[ImportCandidate],
    patterns: Sequence[Any],
) -> list[ImportCandidate]:
    """Return copies of the candidates with ``category_id`` pre-filled where a pattern matches."""
    if not patterns:
        return list(candidates)

    return [
        candidate.model_copy(update={"category_id": suggest_category(candidate.description, patterns)})
        if candidate.category_id is None
        else candidate
        for candidate in candidates
    ]
