import json
from datetime import datetime, timedelta, timezone

from askvid.chat_store import ConversationStore
from askvid.config import VIDEO_CHAT_STORAGE_KEY
from askvid.models import ChatMessage, ChatSession
from askvid.storage import MemoryStorage, StorageError

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_session(
    session_id: str,
    video_id: str = "vid1",
    created_at: datetime = T0,
    extra_messages: int = 0,
    video_title: str = "Video One",
) -> ChatSession:
    messages = [
        ChatMessage(id=f"{session_id}-0", role="assistant", content="Hello!", timestamp=created_at)
    ]
    for i in range(1, extra_messages + 1):
        messages.append(
            ChatMessage(
                id=f"{session_id}-{i}",
                role="user" if i % 2 else "assistant",
                content=f"message {i}",
                timestamp=created_at + timedelta(minutes=i),
                relevant_timestamp="1:35" if i % 2 == 0 else None,
            )
        )
    return ChatSession(
        id=session_id,
        title="Main Chat",
        messages=messages,
        created_at=created_at,
        video_id=video_id,
        video_title=video_title,
    )


class FailingWrites(MemoryStorage):
    def set(self, key, value):
        raise StorageError("disk full")

    def remove(self, key):
        raise StorageError("disk full")


def test_save_then_get_round_trips(store):
    sessions = [make_session("s1", extra_messages=2), make_session("s2", created_at=T0 + timedelta(hours=1))]

    store.save_sessions("vid1", sessions)

    assert store.get_sessions("vid1") == sessions
    assert store.get_sessions("other") == []


def test_stored_blob_uses_camel_case(store, storage):
    store.save_sessions("vid1", [make_session("s1", extra_messages=2)])

    data = json.loads(storage.data[VIDEO_CHAT_STORAGE_KEY])
    session = data["vid1"][0]
    assert session["videoId"] == "vid1"
    assert session["videoTitle"] == "Video One"
    assert "createdAt" in session
    assert session["messages"][2]["relevantTimestamp"] == "1:35"


def test_deleting_only_session_removes_video(store, storage):
    store.save_sessions("vid1", [make_session("s1")])

    store.delete_session("vid1", "s1")

    assert store.list_videos_with_chats() == []
    assert VIDEO_CHAT_STORAGE_KEY not in storage.data


def test_delete_keeps_other_sessions(store):
    store.save_sessions("vid1", [make_session("s1"), make_session("s2")])

    store.delete_session("vid1", "s1")
    store.delete_session("missing", "s2")

    assert [s.id for s in store.get_sessions("vid1")] == ["s2"]


def test_saving_empty_list_drops_video(store):
    store.save_sessions("vid1", [make_session("s1")])
    store.save_sessions("vid2", [make_session("s2", video_id="vid2")])

    store.save_sessions("vid1", [])

    assert [s.video_id for s in store.list_videos_with_chats()] == ["vid2"]


def test_clear_video_and_clear_all(store, storage):
    store.save_sessions("vid1", [make_session("s1")])
    store.save_sessions("vid2", [make_session("s2", video_id="vid2")])

    store.clear_video("vid1")
    assert store.get_sessions("vid1") == []
    assert store.get_sessions("vid2")

    store.clear_all()
    assert store.list_videos_with_chats() == []
    assert storage.data == {}


def test_summaries_sorted_by_last_activity(store):
    store.save_sessions("old", [make_session("a", video_id="old", created_at=T0)])
    store.save_sessions("new", [make_session("b", video_id="new", created_at=T0 + timedelta(days=1))])

    assert [s.video_id for s in store.list_videos_with_chats()] == ["new", "old"]

    later = make_session("c", video_id="old", created_at=T0 + timedelta(days=2))
    store.save_sessions("old", [*store.get_sessions("old"), later])

    summaries = store.list_videos_with_chats()
    assert [s.video_id for s in summaries] == ["old", "new"]
    assert summaries[0].session_count == 2
    assert summaries[0].last_activity == T0 + timedelta(days=2)


def test_last_activity_includes_messages(store):
    store.save_sessions("vid1", [make_session("s1", extra_messages=3)])

    summary = store.list_videos_with_chats()[0]

    assert summary.last_activity == T0 + timedelta(minutes=3)


def test_summary_counts_and_title_fallback(store):
    store.save_sessions(
        "vid1",
        [
            make_session("s1", extra_messages=2, video_title=""),
            make_session("s2", extra_messages=4, video_title=""),
        ],
    )

    summary = store.list_videos_with_chats()[0]

    assert summary.video_title == "Unknown Video"
    assert summary.total_message_count == 6


def test_malformed_blob_reads_as_empty(caplog):
    store = ConversationStore(MemoryStorage({VIDEO_CHAT_STORAGE_KEY: "{broken"}))

    assert store.get_sessions("vid1") == []
    assert store.list_videos_with_chats() == []
    assert "Ignoring stored chat history" in caplog.text


def test_invalid_sessions_read_as_empty():
    blob = json.dumps({"vid1": [{"id": "s1", "title": "no other fields"}]})
    store = ConversationStore(MemoryStorage({VIDEO_CHAT_STORAGE_KEY: blob}))

    assert store.get_sessions("vid1") == []


def test_empty_lists_in_blob_are_ignored():
    store = ConversationStore(MemoryStorage({VIDEO_CHAT_STORAGE_KEY: json.dumps({"vid1": []})}))

    assert store.list_videos_with_chats() == []


def test_write_failures_are_logged_not_raised(caplog):
    store = ConversationStore(FailingWrites())

    store.save_sessions("vid1", [make_session("s1")])
    store.clear_all()

    assert store.get_sessions("vid1") == []
    assert "Error saving chat history" in caplog.text


def test_custom_storage_key(storage):
    store = ConversationStore(storage, key="other_key")

    store.save_sessions("vid1", [make_session("s1")])

    assert list(storage.data) == ["other_key"]


def test_naive_and_utc_times_are_comparable(store, storage):
    storage.data[VIDEO_CHAT_STORAGE_KEY] = json.dumps(
        {
            "vid1": [
                {
                    "id": "s1",
                    "title": "Main Chat",
                    "messages": [
                        {
                            "id": "m1",
                            "role": "assistant",
                            "content": "Hello!",
                            "timestamp": "2024-05-01T10:00:00",
                        },
                        {
                            "id": "m2",
                            "role": "user",
                            "content": "hi",
                            "timestamp": "2024-05-01T10:05:00.000Z",
                        },
                    ],
                    "createdAt": "2024-05-01T10:00:00.000Z",
                    "videoId": "vid1",
                    "videoTitle": "Video One",
                }
            ]
        }
    )

    session = store.get_sessions("vid1")[0]

    assert all(m.timestamp.tzinfo is not None for m in session.messages)
    assert store.list_videos_with_chats()[0].session_count == 1
