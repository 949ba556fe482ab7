"""Persistent chat sessions, grouped by video."""

import json
import logging

from pydantic import TypeAdapter, ValidationError

from .config import VIDEO_CHAT_STORAGE_KEY
from .models import ChatSession, VideoChatSummary
from .storage import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)

VideoChatIndex = dict[str, list[ChatSession]]

_index_adapter = TypeAdapter(VideoChatIndex)

UNKNOWN_VIDEO_TITLE = "Unknown Video"


class ConversationStore:
    """Chat sessions for every video, stored as one JSON blob.

    Every call reads from and writes through to storage, so there is no cache
    to go stale. Concurrent writers to the same storage are last-write-wins.
    """

    def __init__(self, storage: KeyValueStorage, key: str = VIDEO_CHAT_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def _parse(self, raw: str) -> VideoChatIndex:
        try:
            return _index_adapter.validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Malformed chat history under {self.key!r}: {e}") from e

    def load_index(self) -> VideoChatIndex:
        """Load the whole index; missing or unreadable data reads as empty."""
        try:
            raw = self.storage.get(self.key)
            if not raw:
                return {}
            index = self._parse(raw)
        except StorageError as e:
            logger.warning(f"Ignoring stored chat history: {e}")
            return {}
        # Never hand out empty lists; key presence means sessions exist
        return {video_id: sessions for video_id, sessions in index.items() if sessions}

    def _write_index(self, index: VideoChatIndex) -> None:
        try:
            if not index:
                self.storage.remove(self.key)
                return
            data = {
                video_id: [s.model_dump(mode="json", by_alias=True) for s in sessions]
                for video_id, sessions in index.items()
            }
            self.storage.set(self.key, json.dumps(data))
        except StorageError as e:
            logger.error(f"Error saving chat history: {e}")

    def get_sessions(self, video_id: str) -> list[ChatSession]:
        """Get sessions for a video, oldest first (empty if none)."""
        return self.load_index().get(video_id, [])

    def save_sessions(self, video_id: str, sessions: list[ChatSession]) -> None:
        """Replace the session list for a video. An empty list drops the video."""
        index = self.load_index()
        if sessions:
            index[video_id] = list(sessions)
        else:
            index.pop(video_id, None)
        self._write_index(index)

    def delete_session(self, video_id: str, session_id: str) -> None:
        """Delete one session; the video is dropped when none remain."""
        index = self.load_index()
        if video_id not in index:
            return
        remaining = [s for s in index[video_id] if s.id != session_id]
        if remaining:
            index[video_id] = remaining
        else:
            del index[video_id]
        self._write_index(index)

    def clear_video(self, video_id: str) -> None:
        """Delete every session for a video."""
        index = self.load_index()
        if index.pop(video_id, None) is not None:
            self._write_index(index)

    def clear_all(self) -> None:
        """Delete all chat history."""
        self._write_index({})

    def list_videos_with_chats(self) -> list[VideoChatSummary]:
        """Summarize each video with chats, most recently active first."""
        summaries = [
            VideoChatSummary(
                video_id=video_id,
                video_title=sessions[0].video_title or UNKNOWN_VIDEO_TITLE,
                session_count=len(sessions),
                last_activity=max(s.last_activity for s in sessions),
                total_message_count=sum(s.message_count for s in sessions),
            )
            for video_id, sessions in self.load_index().items()
        ]
        return sorted(summaries, key=lambda s: s.last_activity, reverse=True)
