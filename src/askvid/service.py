"""askvid service - async interface used by the CLI."""

import asyncio
import logging
import random
import uuid

from .chat_store import ConversationStore
from .composer import ResponseComposer
from .config import SEND_DELAY, get_simulated_delay, get_templates_path
from .context import VideoContextHolder
from .discovery import MetadataProvider, get_metadata_provider, require_video_id
from .models import (
    AIResponse,
    ChatMessage,
    ChatSession,
    ResponseMode,
    TranscriptSegment,
    VideoData,
    utc_now,
)
from .openai_client import get_generator
from .search import search_transcript
from .storage import KeyValueStorage
from .templates import DEFAULT_TEMPLATES, ResponseTemplates, load_templates
from .transcript import TranscriptionProvider, get_transcription_provider, parse_timestamp

logger = logging.getLogger(__name__)

MAIN_CHAT_TITLE = "Main Chat"


class SessionError(Exception):
    """Unknown session, or a refused session operation."""

    pass


def video_url_at(url: str, timestamp: str) -> str:
    """Link to a video at an "M:SS" timestamp.

    Args:
        url: Video URL as submitted
        timestamp: Position in the video, e.g. "1:35"

    Returns:
        URL with a `t=<seconds>s` parameter
    """
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}t={parse_timestamp(timestamp)}s"


class ChatSessionManager:
    """Manages the chat sessions of one video.

    Sessions live in the conversation store; every change is written through
    immediately, so nothing here needs saving on exit.
    """

    def __init__(
        self,
        store: ConversationStore,
        video_id: str,
        video_title: str,
        templates: ResponseTemplates = DEFAULT_TEMPLATES,
    ):
        self.store = store
        self.video_id = video_id
        self.video_title = video_title
        self.templates = templates
        self._current_id: str | None = None

    @property
    def sessions(self) -> list[ChatSession]:
        """All sessions for this video, oldest first."""
        return self.store.get_sessions(self.video_id)

    @property
    def current_session(self) -> ChatSession | None:
        """The active session (falls back to the first one)."""
        sessions = self.sessions
        for session in sessions:
            if session.id == self._current_id:
                return session
        return sessions[0] if sessions else None

    def _greeting(self, template: str) -> ChatMessage:
        return ChatMessage(
            id=str(uuid.uuid4()),
            role="assistant",
            content=template.format(title=self.video_title),
            timestamp=utc_now(),
        )

    def _new_session(self, title: str, greeting_template: str) -> ChatSession:
        return ChatSession(
            id=str(uuid.uuid4()),
            title=title,
            messages=[self._greeting(greeting_template)],
            created_at=utc_now(),
            video_id=self.video_id,
            video_title=self.video_title,
        )

    def _create_main_session(self) -> ChatSession:
        session = self._new_session(MAIN_CHAT_TITLE, self.templates.greeting_main)
        self.store.save_sessions(self.video_id, [session])
        self._current_id = session.id
        return session

    def ensure_sessions(self) -> ChatSession:
        """Select the first existing session, or create "Main Chat"."""
        sessions = self.sessions
        if sessions:
            self._current_id = sessions[0].id
            return sessions[0]
        logger.info(f"Creating main chat for {self.video_id}")
        return self._create_main_session()

    def create_session(self) -> ChatSession:
        """Start a new session and make it current."""
        sessions = self.sessions
        session = self._new_session(f"Chat {len(sessions) + 1}", self.templates.greeting_new_chat)
        self.store.save_sessions(self.video_id, [*sessions, session])
        self._current_id = session.id
        logger.info(f"Created session {session.id[:8]} for {self.video_id}")
        return session

    def find_session(self, session_id: str) -> ChatSession:
        """Find a session by ID or ID prefix.

        Raises:
            SessionError: If no session matches
        """
        sessions = self.sessions
        for session in sessions:
            if session.id == session_id:
                return session
        for session in sessions:
            if session.id.startswith(session_id):
                return session
        raise SessionError(f"Session not found: {session_id}")

    def switch_session(self, session_id: str) -> ChatSession:
        """Make another session current (ID prefix match)."""
        session = self.find_session(session_id)
        self._current_id = session.id
        return session

    def _require_current(self) -> ChatSession:
        session = self.current_session
        if session is None:
            raise SessionError("No active session. Call ensure_sessions() first.")
        return session

    def _replace(self, updated: ChatSession) -> None:
        sessions = [updated if s.id == updated.id else s for s in self.sessions]
        self.store.save_sessions(self.video_id, sessions)

    def _append(self, message: ChatMessage) -> ChatMessage:
        session = self._require_current()
        self._replace(session.model_copy(update={"messages": [*session.messages, message]}))
        return message

    def add_user_message(self, content: str) -> ChatMessage:
        """Add a user message to the current session."""
        return self._append(
            ChatMessage(id=str(uuid.uuid4()), role="user", content=content, timestamp=utc_now())
        )

    def add_assistant_message(
        self, content: str, relevant_timestamp: str | None = None
    ) -> ChatMessage:
        """Add an assistant message to the current session."""
        return self._append(
            ChatMessage(
                id=str(uuid.uuid4()),
                role="assistant",
                content=content,
                timestamp=utc_now(),
                relevant_timestamp=relevant_timestamp,
            )
        )

    def clear_current(self) -> ChatSession:
        """Reset the current session to just a greeting."""
        session = self._require_current()
        cleared = session.model_copy(
            update={"messages": [self._greeting(self.templates.greeting_new_chat)]}
        )
        self._replace(cleared)
        return cleared

    def delete_session(self, session_id: str) -> ChatSession:
        """Delete a session (ID prefix match).

        Raises:
            SessionError: If not found, or if it is the last session
        """
        session = self.find_session(session_id)
        if len(self.sessions) <= 1:
            raise SessionError("Can't delete the last chat session. Use clear instead.")
        self.store.delete_session(self.video_id, session.id)
        if self._current_id == session.id:
            remaining = self.sessions
            self._current_id = remaining[0].id if remaining else None
        logger.info(f"Deleted session {session.id[:8]} of {self.video_id}")
        return session

    def reset_video(self) -> ChatSession:
        """Delete every session of the video and start over with "Main Chat"."""
        self.store.clear_video(self.video_id)
        return self._create_main_session()

    def rename_session(self, title: str) -> ChatSession:
        """Rename the current session."""
        session = self._require_current()
        renamed = session.model_copy(update={"title": title})
        self._replace(renamed)
        return renamed


class AskVidService:
    """Loads a video and answers questions about it.

    Args:
        metadata: Video metadata source
        transcription: Transcript source
        composer: Answer composer
        store: Conversation store for chat sessions
        holder: Slot for the current video context
        delay_scale: Scale for the simulated send delay (0 = none, None = config)
        rng: Random source for delays
    """

    def __init__(
        self,
        metadata: MetadataProvider,
        transcription: TranscriptionProvider,
        composer: ResponseComposer,
        store: ConversationStore,
        holder: VideoContextHolder | None = None,
        delay_scale: float | None = None,
        rng: random.Random | None = None,
    ):
        self.metadata = metadata
        self.transcription = transcription
        self.composer = composer
        self.store = store
        self.holder = holder or VideoContextHolder()
        self.delay_scale = delay_scale
        self.rng = rng or random.Random()
        self.video: VideoData | None = None
        self.sessions: ChatSessionManager | None = None

    async def submit_video(self, url: str) -> VideoData:
        """Fetch metadata and transcript, then open the video's chat sessions.

        Raises:
            InvalidInput: If the URL has no recognizable video ID
            ProviderError: If metadata or transcript can't be fetched
        """
        url = url.strip()
        video_id = require_video_id(url)
        logger.info(f"Submitting video {video_id}")

        info = await self.metadata.get_video_info(url)
        result = await self.transcription.transcribe(info.id)

        video = VideoData(
            id=info.id,
            url=url,
            title=info.title,
            transcript=result.full_text,
            duration=info.duration,
            thumbnail=info.thumbnail,
            channel_title=info.channel_title or None,
            published_at=info.published_at,
            segments=result.segments,
        )
        self.holder.set_from_transcript(
            video.transcript, video.segments, title=video.title, url=video.url
        )
        self.video = video
        self.sessions = ChatSessionManager(
            self.store, video.id, video.title, self.composer.templates
        )
        self.sessions.ensure_sessions()
        return video

    def _require_sessions(self) -> ChatSessionManager:
        if self.sessions is None:
            raise SessionError("No video loaded. Call submit_video() first.")
        return self.sessions

    async def ask(
        self, question: str, mode: ResponseMode = "detailed"
    ) -> tuple[ChatMessage, AIResponse]:
        """Ask a question in the current session.

        The question and the answer are both appended to the session. If the
        composer fails, the answer is an apology message instead.

        Args:
            question: Free-text question
            mode: "brief" or "detailed"

        Returns:
            Tuple of (assistant ChatMessage, AIResponse)
        """
        question = question.strip()
        if not question:
            raise ValueError("Question is empty")

        sessions = self._require_sessions()
        sessions.add_user_message(question)
        await asyncio.sleep(get_simulated_delay(SEND_DELAY, self.delay_scale, self.rng))

        try:
            response = await self.composer.generate(question, self.holder.current, mode)
        except Exception:
            logger.exception("Error generating answer")
            response = AIResponse(
                content=self.composer.templates.error_apology,
                confidence=self.composer.confidence(mode),
            )

        message = sessions.add_assistant_message(response.content, response.timestamp)
        return message, response

    def suggest_questions(self) -> list[str]:
        return self.composer.suggest_questions(self.holder.current)

    def search(self, query: str) -> list[TranscriptSegment]:
        """Find transcript segments containing the query text."""
        return search_transcript(self.holder.current.segments, query)


def create_service(storage: KeyValueStorage) -> AskVidService:
    """Build a service from configured providers.

    Args:
        storage: Backing storage for chat sessions
    """
    composer = ResponseComposer(
        generator=get_generator(),
        templates=load_templates(get_templates_path()),
        delay_scale=None,
    )
    return AskVidService(
        metadata=get_metadata_provider(),
        transcription=get_transcription_provider(),
        composer=composer,
        store=ConversationStore(storage),
    )
