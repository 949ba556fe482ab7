"""Transcript segment search."""

from dataclasses import dataclass

from .config import KEYWORD_MATCH_WEIGHT, MAX_RELEVANT_SEGMENTS
from .keywords import count_occurrences, extract_keywords
from .models import TranscriptSegment


@dataclass
class SegmentHit:
    """A transcript segment with its keyword score."""

    segment: TranscriptSegment
    score: int
    index: int  # Position in the transcript


def score_segment(keywords: list[str], segment: TranscriptSegment) -> int:
    """Score a segment: each keyword occurrence is worth KEYWORD_MATCH_WEIGHT."""
    return sum(KEYWORD_MATCH_WEIGHT * count_occurrences(kw, segment.text) for kw in keywords)


def score_segments(question: str, segments: list[TranscriptSegment]) -> list[SegmentHit]:
    """Score every segment against the question's keywords.

    Args:
        question: Free-text question
        segments: Transcript segments in chronological order

    Returns:
        Hits with a positive score, best first. Ties keep transcript order.
    """
    keywords = extract_keywords(question)
    if not keywords:
        return []

    hits = []
    for index, segment in enumerate(segments):
        score = score_segment(keywords, segment)
        if score > 0:
            hits.append(SegmentHit(segment=segment, score=score, index=index))

    # sorted() is stable, so equal scores stay in transcript order
    return sorted(hits, key=lambda hit: hit.score, reverse=True)


def find_relevant_segments(
    question: str,
    segments: list[TranscriptSegment],
    limit: int = MAX_RELEVANT_SEGMENTS,
) -> list[TranscriptSegment]:
    """Find the transcript segments most relevant to a question.

    Returns:
        At most `limit` segments, most relevant first
    """
    return [hit.segment for hit in score_segments(question, segments)[:limit]]


def search_transcript(segments: list[TranscriptSegment], query: str) -> list[TranscriptSegment]:
    """Find segments containing the whole query text (case-insensitive)."""
    query_lower = query.lower()
    return [seg for seg in segments if query_lower in seg.text.lower()]
