"""Case-insensitive multi-keyword matching shared by both discovery paths."""

from typing import List, Union


def parse_keywords(keywords: str) -> List[str]:
    """Split a comma-separated keyword string into trimmed, lowercased tokens."""
    if not keywords:
        return []
    return [k.strip().lower() for k in keywords.split(",") if k.strip()]


def match_keywords(text: str, keywords: Union[str, List[str]]) -> List[str]:
    """
    Return the keywords that occur in text, in input order.

    Args:
        text: Visible text of a card or list item
        keywords: Raw comma-separated string or an already parsed list

    Returns:
        Matched subset (empty when nothing matched)
    """
    if isinstance(keywords, str):
        keywords = parse_keywords(keywords)
    text_lower = (text or "").lower()
    return [keyword for keyword in keywords if keyword in text_lower]
