"""Transcript providers and timestamp formatting."""

import asyncio
import logging
import random
from typing import Protocol

from .config import TRANSCRIPT_SOURCE_ENV, TRANSCRIPTION_DELAY, get_simulated_delay, get_source
from .discovery import ProviderError
from .models import TranscriptionResult, TranscriptSegment

logger = logging.getLogger(__name__)


class TranscriptError(ProviderError):
    """Error fetching or producing a transcript."""

    pass


class TranscriptUnavailable(TranscriptError):
    """Transcript not available for this video."""

    pass


def format_timestamp(seconds: float) -> str:
    """Format seconds as M:SS (minutes are not padded)."""
    minutes = int(seconds // 60)
    remaining = int(seconds % 60)
    return f"{minutes}:{remaining:02d}"


def parse_timestamp(timestamp: str) -> int:
    """Parse M:SS (or H:MM:SS) back to whole seconds."""
    total = 0
    for part in timestamp.split(":"):
        total = total * 60 + int(part)
    return total


def format_transcript_for_chat(segments: list[TranscriptSegment]) -> str:
    """Format segments as timestamped paragraphs."""
    return "\n\n".join(f"[{format_timestamp(seg.start)}] {seg.text}" for seg in segments)


def build_result(
    segments: list[TranscriptSegment], language: str = "en", confidence: float = 1.0
) -> TranscriptionResult:
    """Bundle segments with their joined text."""
    return TranscriptionResult(
        segments=segments,
        full_text=" ".join(seg.text for seg in segments),
        language=language,
        confidence=confidence,
    )


class TranscriptionProvider(Protocol):
    async def transcribe(self, video_id: str) -> TranscriptionResult: ...


class YouTubeTranscriptProvider:
    """Captions fetched with youtube-transcript-api."""

    def __init__(self, languages: list[str] | None = None):
        self.languages = languages or ["en"]

    def _fetch(self, video_id: str) -> TranscriptionResult:
        from youtube_transcript_api import YouTubeTranscriptApi
        from youtube_transcript_api._errors import (
            NoTranscriptFound,
            TranscriptsDisabled,
            VideoUnavailable,
        )

        try:
            fetched = YouTubeTranscriptApi().fetch(video_id, languages=self.languages)
        except (NoTranscriptFound, TranscriptsDisabled, VideoUnavailable) as e:
            raise TranscriptUnavailable(f"No transcript available: {e}") from e
        except Exception as e:
            raise TranscriptError(f"Error fetching transcript: {e}") from e

        segments = [
            TranscriptSegment(
                text=item.text,
                start=max(item.start, 0.0),
                # Caption lines occasionally report a zero duration
                duration=item.duration if item.duration > 0 else 0.1,
            )
            for item in fetched
            if item.text.strip()
        ]
        language = getattr(fetched, "language_code", self.languages[0])
        return build_result(segments, language=language)

    async def transcribe(self, video_id: str) -> TranscriptionResult:
        return await asyncio.to_thread(self._fetch, video_id)


# Demo transcripts, one is picked per video ID
TRANSCRIPT_SETS = [
    # Business / brand building
    [
        "Welcome everyone to this comprehensive guide on building a powerful brand that stands out in today's competitive marketplace.",
        "Building a brand isn't just about creating a logo or choosing colors - it's about creating a complete experience and emotional connection.",
        "The first fundamental principle of brand building is understanding your target audience at a deep, psychological level.",
        "You need to know not just who they are demographically, but what keeps them awake at night, what their aspirations are.",
        "Your brand story should be authentic and compelling, something that resonates with your audience's values and beliefs.",
        "Consistency is absolutely crucial - every touchpoint with your brand should reinforce the same message and feeling.",
        "Social media has revolutionized brand building, giving you direct access to your audience like never before.",
        "Content marketing allows you to provide value first, building trust and authority before asking for anything in return.",
        "Partnerships and collaborations can exponentially increase your brand's reach and credibility in the marketplace.",
        "Remember, building a strong brand is a long-term investment that requires patience, consistency, and unwavering commitment to your values.",
        "The most successful brands are those that solve real problems and make their customers' lives genuinely better.",
        "Your brand positioning should be unique and defensible - something competitors can't easily replicate.",
        "Customer experience is your brand in action - every interaction shapes how people perceive and remember you.",
        "Measuring brand success goes beyond sales - it includes awareness, sentiment, and customer loyalty metrics.",
        "The digital age has made brand building more accessible but also more challenging due to increased competition and noise.",
    ],
    # Programming / React
    [
        "Hello developers, welcome to this comprehensive tutorial on building modern web applications with React.",
        "React has revolutionized front-end development by introducing a component-based architecture that's both powerful and intuitive.",
        "Today we'll build a complete application from scratch, covering all the essential concepts you need to know.",
        "Components are the fundamental building blocks of React - think of them as custom HTML elements with their own logic.",
        "The beauty of functional components is their simplicity and the powerful hooks system that React provides.",
        "useState is your go-to hook for managing component state - it's simple yet incredibly powerful for most use cases.",
        "useEffect handles side effects like API calls, subscriptions, and DOM manipulation in a clean, declarative way.",
        "Let's implement routing to create a single-page application that feels like a traditional multi-page website.",
        "State management becomes critical as your application grows - we'll explore both local and global state patterns.",
        "Code organization and project structure are often overlooked but crucial for maintainable applications.",
        "We'll cover best practices for component composition, prop drilling solutions, and performance optimization.",
        "Testing your React components ensures reliability and makes refactoring safer as your codebase evolves.",
        "The React ecosystem is vast - we'll discuss the most important libraries and tools you should know about.",
        "Deployment strategies have evolved significantly - we'll cover modern approaches for getting your app live.",
        "By the end of this tutorial, you'll have the confidence to build production-ready React applications.",
    ],
    # Digital marketing
    [
        "Digital marketing has completely transformed how businesses connect with their customers in the modern era.",
        "The strategies that worked five years ago are often obsolete today - the digital landscape evolves incredibly quickly.",
        "Understanding your customer journey is fundamental to creating effective digital marketing campaigns.",
        "Content marketing isn't just about creating blog posts - it's about providing genuine value at every stage of the buyer's journey.",
        "Social media marketing requires a deep understanding of each platform's unique culture and user behavior.",
        "Search engine optimization remains one of the most cost-effective ways to drive qualified traffic to your website.",
        "Paid advertising platforms like Google Ads and Facebook Ads offer incredible targeting capabilities when used correctly.",
        "Email marketing is far from dead - it's actually one of the highest ROI channels when done strategically.",
        "Marketing automation allows you to scale personalized communication and nurture leads more effectively.",
        "Data analytics and measurement are crucial - you can't improve what you don't measure accurately.",
        "The key to successful digital marketing is integration - all channels should work together harmoniously.",
        "Mobile optimization isn't optional anymore - the majority of your audience is accessing content on mobile devices.",
        "Video content continues to dominate engagement metrics across all digital platforms and demographics.",
        "Influencer marketing has matured into a sophisticated channel with measurable ROI when executed properly.",
        "The future of digital marketing lies in personalization, artificial intelligence, and privacy-first approaches.",
    ],
    # Learning
    [
        "Learning new skills in today's rapidly changing world isn't just beneficial - it's absolutely essential for career success.",
        "The traditional education model is being disrupted by online learning platforms and self-directed learning approaches.",
        "Effective learning requires understanding how your brain processes and retains information most efficiently.",
        "Active learning techniques like spaced repetition and retrieval practice are scientifically proven to improve retention.",
        "Setting clear learning goals and tracking your progress helps maintain motivation and ensures you're making real progress.",
        "The Feynman Technique - explaining concepts in simple terms - is one of the best ways to test your understanding.",
        "Building a learning habit through consistent daily practice is more effective than sporadic intensive study sessions.",
        "Finding the right learning resources can be overwhelming - focus on quality over quantity and stick to proven sources.",
        "Practical application of new knowledge through projects and real-world scenarios accelerates the learning process.",
        "Learning communities and study groups provide accountability, motivation, and different perspectives on complex topics.",
        "Embracing failure as part of the learning process helps build resilience and deeper understanding.",
        "Technology has made learning more accessible than ever, but it also requires more self-discipline and focus.",
        "The most valuable skills to learn today are those that complement artificial intelligence rather than compete with it.",
        "Continuous learning isn't just about professional development - it's about staying curious and engaged with the world.",
        "The key to lifelong learning is developing meta-learning skills - learning how to learn more effectively.",
    ],
    # Entrepreneurship
    [
        "Entrepreneurship is one of the most challenging yet rewarding paths you can take in your professional life.",
        "The entrepreneurial mindset is fundamentally different from the employee mindset - it requires embracing uncertainty and risk.",
        "Every successful business starts with identifying a real problem that people are willing to pay to solve.",
        "Market validation is crucial before you invest significant time and money into building your solution.",
        "The lean startup methodology has revolutionized how we think about building and launching new businesses.",
        "Your minimum viable product should be the simplest version that still provides value to your target customers.",
        "Customer feedback is invaluable - it will guide your product development and business strategy more than any expert advice.",
        "Building a strong team is often more important than having the perfect product - execution beats ideas every time.",
        "Funding options have expanded dramatically, from traditional venture capital to crowdfunding and bootstrapping.",
        "Cash flow management can make or break your startup - many profitable businesses fail due to poor cash flow.",
        "Scaling a business requires different skills than starting one - you need systems, processes, and strong leadership.",
        "Failure is not just possible in entrepreneurship, it's probable - but each failure teaches valuable lessons.",
        "The most successful entrepreneurs are those who can adapt quickly to changing market conditions and customer needs.",
        "Building a personal brand as an entrepreneur opens doors and creates opportunities you never expected.",
        "Remember, entrepreneurship is a marathon, not a sprint - sustainable growth beats rapid burnout every time.",
    ],
]

# Spacing of demo segments: start = i * SEGMENT_SPACING + U(0, START_JITTER)
SEGMENT_SPACING = 28
START_JITTER = 8
MIN_DURATION = 22
DURATION_JITTER = 12


class SimulatedTranscriptionProvider:
    """Demo transcripts chosen deterministically from the video ID."""

    def __init__(self, delay_scale: float | None = None, rng: random.Random | None = None):
        self.delay_scale = delay_scale
        self.rng = rng or random.Random()

    def generate_segments(self, video_id: str) -> list[TranscriptSegment]:
        if not video_id:
            raise TranscriptUnavailable("No video ID given")
        texts = TRANSCRIPT_SETS[ord(video_id[0]) % len(TRANSCRIPT_SETS)]
        return [
            TranscriptSegment(
                text=text,
                start=i * SEGMENT_SPACING + self.rng.uniform(0, START_JITTER),
                duration=MIN_DURATION + self.rng.uniform(0, DURATION_JITTER),
            )
            for i, text in enumerate(texts)
        ]

    async def transcribe(self, video_id: str) -> TranscriptionResult:
        await asyncio.sleep(get_simulated_delay(TRANSCRIPTION_DELAY, self.delay_scale, self.rng))
        segments = self.generate_segments(video_id)
        result = build_result(segments, confidence=0.94 + self.rng.uniform(0, 0.05))
        logger.info(
            f"Generated transcript for {video_id}: {len(segments)} segments, "
            f"{len(result.full_text)} characters"
        )
        return result


def get_transcription_provider() -> TranscriptionProvider:
    """Pick a transcript source: real captions on request, else the demo set."""
    if get_source(TRANSCRIPT_SOURCE_ENV) == "youtube":
        logger.info("Using youtube-transcript-api for transcripts")
        return YouTubeTranscriptProvider()
    return SimulatedTranscriptionProvider()
