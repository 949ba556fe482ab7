"""Pydantic models for askvid."""

from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant"]
ResponseMode = Literal["brief", "detailed"]


def as_utc(value: datetime) -> datetime:
    """Make a datetime timezone-aware (naive values are taken as local time)."""
    return value.astimezone(timezone.utc)


# Chat times are normalized to UTC
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TranscriptSegment(BaseModel):
    """Timestamped slice of transcript text."""

    model_config = ConfigDict(frozen=True)

    text: str
    start: float = Field(ge=0)  # seconds
    duration: float = Field(gt=0)  # seconds


class VideoContext(BaseModel):
    """Transcript state the answers are generated against."""

    model_config = ConfigDict(frozen=True)

    transcript: str = ""
    segments: list[TranscriptSegment] = Field(default_factory=list)
    title: str = ""
    url: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.transcript and not self.segments


class VideoInfo(BaseModel):
    """Video metadata returned by a metadata provider."""

    id: str
    title: str
    description: str = ""
    duration: str = "0:00"  # "M:SS" or "H:MM:SS"
    thumbnail: str = ""
    channel_title: str = ""
    published_at: datetime | None = None


class TranscriptionResult(BaseModel):
    """Output of a transcription provider."""

    segments: list[TranscriptSegment]
    full_text: str
    language: str = "en"
    confidence: float = 1.0


class VideoData(BaseModel):
    """Everything known about the submitted video."""

    id: str
    url: str
    title: str
    transcript: str
    duration: str
    thumbnail: str = ""
    channel_title: str | None = None
    published_at: datetime | None = None
    segments: list[TranscriptSegment] = Field(default_factory=list)


class _Persisted(BaseModel):
    """Base for records stored in the chat index (camelCase on disk)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(_Persisted):
    """A message in a chat session."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    role: Role
    content: str
    timestamp: UtcDatetime
    relevant_timestamp: str | None = None  # "M:SS" into the video


class ChatSession(_Persisted):
    """One conversation thread about a single video."""

    id: str
    title: str
    messages: list[ChatMessage]
    created_at: UtcDatetime
    video_id: str
    video_title: str

    @property
    def last_activity(self) -> datetime:
        """Latest of creation time and message timestamps."""
        return max([self.created_at, *(m.timestamp for m in self.messages)])

    @property
    def message_count(self) -> int:
        """Messages exchanged, not counting the initial greeting."""
        return max(len(self.messages) - 1, 0)


class VideoChatSummary(BaseModel):
    """Per-video row of the chat history overview."""

    video_id: str
    video_title: str
    session_count: int
    last_activity: datetime
    total_message_count: int


class AIResponse(BaseModel):
    """Composed answer to a question."""

    content: str
    confidence: float
    relevant_segments: list[TranscriptSegment] = Field(default_factory=list)
    timestamp: str | None = None  # "M:SS" of the best matching segment
    is_video_related: bool = False
