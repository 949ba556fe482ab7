"""Answer composition: remote generation with a template fallback.

The composer first tries the remote generator once (when configured). Any
failure there is logged and the answer is built locally from the template
tables instead, so `generate` never raises for a remote problem.

Local answers depend on two classifications of the question:

- related to the video and matching transcript segments: a template for the
  topic category, pointing at the best segment's timestamp;
- related but nothing matched: a "not found, try asking about..." template;
- unrelated: a template for the general subject area.
"""

import asyncio
import logging
import random
import re

from .classify import (
    GeneralTopic,
    TopicCategory,
    categorize_general_topic,
    categorize_topic,
    is_video_related,
)
from .config import (
    BRIEF_COMPOSE_DELAY,
    BRIEF_CONFIDENCE_RANGE,
    BRIEF_EXCERPT_CHARS,
    BRIEF_SECOND_SENTENCE_MAX_CHARS,
    DETAILED_COMPOSE_DELAY,
    DETAILED_CONFIDENCE_RANGE,
    get_simulated_delay,
)
from .models import AIResponse, ResponseMode, TranscriptSegment, VideoContext
from .openai_client import RemoteGenerator, build_prompt
from .search import find_relevant_segments
from .templates import DEFAULT_TEMPLATES, ResponseTemplates
from .transcript import format_timestamp

logger = logging.getLogger(__name__)

# A second sentence survives brief mode only if it mentions one of these
IMPORTANT_KEYWORDS = (
    "example", "specifically", "important", "key", "main", "essential",
    "timestamp", "minute", "second", "explains", "demonstrates", "shows",
)

_SENTENCE_END = re.compile(r"[.!?]+")

# Title keywords -> suggestion table
SUGGESTION_RULES = [
    ("business", ("brand", "business", "marketing")),
    ("programming", ("react", "programming", "code")),
    ("learning", ("learn", "tutorial", "guide")),
]


def is_important_sentence(sentence: str) -> bool:
    sentence_lower = sentence.lower()
    return any(keyword in sentence_lower for keyword in IMPORTANT_KEYWORDS)


def make_brief(content: str) -> str:
    """Shorten an answer to its first sentence, plus an important second one.

    Answers of two sentences or fewer are returned unchanged.
    """
    sentences = [s for s in _SENTENCE_END.split(content) if s.strip()]
    if len(sentences) <= 2:
        return content

    brief = sentences[0].strip() + "."
    second = sentences[1].strip()
    if len(second) < BRIEF_SECOND_SENTENCE_MAX_CHARS and is_important_sentence(second):
        brief += " " + second + "."
    return brief


class ResponseComposer:
    """Builds answers to questions about the current video.

    Args:
        generator: Remote generator tried first (None = templates only)
        templates: Template tables for local answers
        rng: Random source for template choice and confidence
        delay_scale: Scale for simulated thinking time (0 = none, None = config)
    """

    def __init__(
        self,
        generator: RemoteGenerator | None = None,
        templates: ResponseTemplates = DEFAULT_TEMPLATES,
        rng: random.Random | None = None,
        delay_scale: float | None = 0.0,
    ):
        self.generator = generator
        self.templates = templates
        self.rng = rng or random.Random()
        self.delay_scale = delay_scale
        self._remote_ready: bool | None = None

    @property
    def remote_enabled(self) -> bool:
        """Whether the remote generator is usable; checked once, then cached."""
        if self.generator is None:
            return False
        if self._remote_ready is None:
            self._remote_ready = self.generator.is_configured()
        return self._remote_ready

    async def generate(
        self,
        question: str,
        context: VideoContext,
        mode: ResponseMode = "brief",
    ) -> AIResponse:
        """Answer a question about the video.

        Args:
            question: Free-text question
            context: Video the question is asked against
            mode: "brief" or "detailed"

        Returns:
            AIResponse with content, confidence, and matched segments
        """
        related = is_video_related(question, context.title, context.transcript)
        segments = find_relevant_segments(question, context.segments) if related else []

        content = None
        if self.generator is not None:
            content = await self._generate_remote(question, context, mode)

        if content is None:
            await asyncio.sleep(self._compose_delay(mode))
            content = self.compose_local(question, context, mode, related, segments)

        return AIResponse(
            content=content,
            confidence=self.confidence(mode),
            relevant_segments=segments,
            timestamp=format_timestamp(segments[0].start) if segments else None,
            is_video_related=related,
        )

    async def _generate_remote(
        self, question: str, context: VideoContext, mode: ResponseMode
    ) -> str | None:
        """Single remote attempt; None means fall back to templates."""
        try:
            # The Ollama check is a blocking HTTP call
            if not await asyncio.to_thread(lambda: self.remote_enabled):
                return None
            logger.info(f"Using {self.generator.name} for {mode} response")
            text = await self.generator.generate(build_prompt(question, context, mode), mode)
        except Exception:
            logger.exception(f"{self.generator.name} generation failed, using templates")
            return None
        return make_brief(text) if mode == "brief" else text

    def compose_local(
        self,
        question: str,
        context: VideoContext,
        mode: ResponseMode,
        related: bool,
        segments: list[TranscriptSegment],
    ) -> str:
        """Pick and fill a template for the question."""
        if related and segments:
            return self._video_answer(question, segments, mode)
        if related:
            return self._not_found_answer(context, mode)
        return self._general_answer(question, mode)

    def _choose(self, options: list[str]) -> str:
        return options[self.rng.randrange(len(options))]

    def _video_answer(
        self, question: str, segments: list[TranscriptSegment], mode: ResponseMode
    ) -> str:
        category = categorize_topic(question).value
        primary = segments[0]
        timestamp = format_timestamp(primary.start)
        fallback = TopicCategory.DEFAULT.value

        if mode == "brief":
            template = self._choose(
                self.templates.pick_table(self.templates.brief_video, category, fallback)
            )
            return template.format(timestamp=timestamp, excerpt=primary.text[:BRIEF_EXCERPT_CHARS])

        followup = ""
        if len(segments) > 1:
            followup_template = (
                self.templates.detailed_followup.get(category)
                or self.templates.detailed_followup[fallback]
            )
            followup = followup_template.format(
                second_timestamp=format_timestamp(segments[1].start)
            )
        template = self._choose(
            self.templates.pick_table(self.templates.detailed_video, category, fallback)
        )
        return template.format(timestamp=timestamp, text=primary.text, followup=followup)

    def _not_found_answer(self, context: VideoContext, mode: ResponseMode) -> str:
        table = self.templates.brief_not_found if mode == "brief" else self.templates.detailed_not_found
        return self._choose(table).format(title=context.title or "this video")

    def _general_answer(self, question: str, mode: ResponseMode) -> str:
        topic = categorize_general_topic(question).value
        fallback = GeneralTopic.GENERAL.value
        if mode == "brief":
            return self._choose(
                self.templates.pick_table(self.templates.brief_general, topic, fallback)
            )
        body = self._choose(
            self.templates.pick_table(self.templates.detailed_general, topic, fallback)
        )
        return f"{body}\n\n{self.templates.credential_nudge}"

    def confidence(self, mode: ResponseMode) -> float:
        """Draw a display confidence from the mode's band."""
        low, high = BRIEF_CONFIDENCE_RANGE if mode == "brief" else DETAILED_CONFIDENCE_RANGE
        return low + self.rng.random() * (high - low)

    def _compose_delay(self, mode: ResponseMode) -> float:
        delay_range = BRIEF_COMPOSE_DELAY if mode == "brief" else DETAILED_COMPOSE_DELAY
        return get_simulated_delay(delay_range, self.delay_scale, self.rng)

    def suggest_questions(self, context: VideoContext) -> list[str]:
        """Suggest starter questions based on the video title."""
        suggestions = self.templates.suggestions
        if not context.title or not context.transcript:
            return list(suggestions["fallback"])

        title_lower = context.title.lower()
        for table, keywords in SUGGESTION_RULES:
            if any(keyword in title_lower for keyword in keywords):
                return list(suggestions[table])
        return list(suggestions["general"])
