"""Question classification for response selection."""

from enum import Enum


class TopicCategory(Enum):
    """What kind of answer a video question is after."""

    SUMMARY = "summary"
    EXPLANATION = "explanation"
    EXAMPLE = "example"
    PROCESS = "process"
    DEFAULT = "default"


class GeneralTopic(Enum):
    """Subject area of a question unrelated to the video."""

    TECHNOLOGY = "technology"
    BUSINESS = "business"
    LEARNING = "learning"
    GENERAL = "general"


# Phrases that mark a question as being about the video itself
VIDEO_KEYWORDS = (
    "video", "transcript", "speaker", "mentioned", "discussed", "explained",
    "said", "talked about", "covered", "example", "demonstration", "tutorial",
    "lesson", "content", "topic", "subject", "timestamp", "minute", "second",
)

# Checked in order, first match wins
TOPIC_RULES: list[tuple[TopicCategory, tuple[str, ...]]] = [
    (TopicCategory.SUMMARY, ("summary", "summarize", "main points")),
    (TopicCategory.EXPLANATION, ("how", "explain", "what is")),
    (TopicCategory.EXAMPLE, ("example", "demonstrate", "show me")),
    (TopicCategory.PROCESS, ("process", "steps", "method")),
]

GENERAL_TOPIC_RULES: list[tuple[GeneralTopic, tuple[str, ...]]] = [
    (
        GeneralTopic.TECHNOLOGY,
        ("programming", "code", "software", "technology", "ai", "machine learning",
         "web development", "app"),
    ),
    (
        GeneralTopic.BUSINESS,
        ("business", "marketing", "brand", "startup", "entrepreneur", "strategy", "sales"),
    ),
    (
        GeneralTopic.LEARNING,
        ("learn", "study", "education", "skill", "course", "tutorial", "practice"),
    ),
]

# Words this short are too common to link a question to a title or transcript
MIN_OVERLAP_WORD_LENGTH = 4


def _long_words(text: str) -> list[str]:
    return [w for w in text.lower().split(" ") if len(w) >= MIN_OVERLAP_WORD_LENGTH]


def has_transcript_overlap(question: str, transcript: str) -> bool:
    """Check if any longer question word appears in the transcript."""
    if not transcript:
        return False
    transcript_lower = transcript.lower()
    return any(word in transcript_lower for word in _long_words(question))


def is_video_related(question: str, video_title: str, transcript: str) -> bool:
    """Decide whether a question is about the loaded video.

    Args:
        question: Free-text question
        video_title: Title of the current video ("" if none)
        transcript: Full transcript text ("" if none)

    Returns:
        True if the question uses video vocabulary, mentions a title word,
        or shares a word with the transcript
    """
    question_lower = question.lower()
    if any(keyword in question_lower for keyword in VIDEO_KEYWORDS):
        return True
    if any(word in question_lower for word in _long_words(video_title)):
        return True
    return has_transcript_overlap(question, transcript)


def categorize_topic(question: str) -> TopicCategory:
    """Categorize the kind of answer a question asks for."""
    question_lower = question.lower()
    for category, phrases in TOPIC_RULES:
        if any(phrase in question_lower for phrase in phrases):
            return category
    return TopicCategory.DEFAULT


def categorize_general_topic(question: str) -> GeneralTopic:
    """Categorize a general-knowledge question by subject area."""
    question_lower = question.lower()
    for topic, keywords in GENERAL_TOPIC_RULES:
        if any(keyword in question_lower for keyword in keywords):
            return topic
    return GeneralTopic.GENERAL
