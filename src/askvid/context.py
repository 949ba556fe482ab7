"""Process-wide slot for the currently loaded video."""

import logging

from .models import TranscriptSegment, VideoContext

logger = logging.getLogger(__name__)


class VideoContextHolder:
    """Holds the video context the service answers against.

    Composer calls never read this directly; the service passes
    `current` along with every question.
    """

    def __init__(self):
        self._context = VideoContext()

    @property
    def current(self) -> VideoContext:
        return self._context

    def set(self, context: VideoContext) -> None:
        self._context = context
        logger.info(
            f"Video context set: {context.title!r} "
            f"({len(context.segments)} segments, {len(context.transcript)} chars)"
        )

    def set_from_transcript(
        self,
        transcript: str,
        segments: list[TranscriptSegment],
        title: str = "",
        url: str = "",
    ) -> None:
        self.set(VideoContext(transcript=transcript, segments=segments, title=title, url=url))

    def clear(self) -> None:
        self._context = VideoContext()
        logger.debug("Video context cleared")
