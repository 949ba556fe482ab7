"""Keyword extraction for matching questions against transcripts."""

import re

from .config import MAX_KEYWORDS

# Question words dropped before matching
STOPWORDS = frozenset([
    # Wh-words
    "what", "how", "when", "where", "why", "who",
    # Verbs and articles
    "is", "are", "the", "a", "an",
    # Conjunctions
    "and", "or", "but",
    # Prepositions
    "in", "on", "at", "to", "for", "of", "with", "by", "about",
])

# Tokens this short never carry meaning on their own
MIN_WORD_LENGTH = 3

_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_keywords(question: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Extract search keywords from a question.

    Lowercases, strips punctuation, drops short words and stopwords.

    Args:
        question: Free-text question
        limit: Max keywords to keep (first ones in question order)

    Returns:
        Keywords in the order they appear in the question
    """
    words = _PUNCTUATION.sub("", question.lower()).split()
    keywords = [w for w in words if len(w) >= MIN_WORD_LENGTH and w not in STOPWORDS]
    return keywords[:limit]


def count_occurrences(keyword: str, text: str) -> int:
    """Count non-overlapping case-insensitive occurrences of keyword in text."""
    if not keyword:
        return 0
    return text.lower().count(keyword.lower())
