import pytest

from askvid.chat_store import ConversationStore
from askvid.storage import MemoryStorage, SqliteStorage, StorageError


def test_memory_storage():
    storage = MemoryStorage()

    assert storage.get("k") is None
    storage.set("k", "v")
    assert storage.get("k") == "v"
    storage.remove("k")
    storage.remove("k")
    assert storage.get("k") is None


def test_sqlite_storage_overwrites_and_removes(tmp_path):
    with SqliteStorage(tmp_path / "db.sqlite") as storage:
        storage.set("k", "one")
        storage.set("k", "two")
        assert storage.get("k") == "two"
        storage.remove("k")
        assert storage.get("k") is None


def test_sqlite_storage_persists(tmp_path):
    db_path = tmp_path / "nested" / "db.sqlite"
    with SqliteStorage(db_path) as storage:
        storage.set("k", '{"a": 1}')

    with SqliteStorage(db_path) as storage:
        assert storage.get("k") == '{"a": 1}'


def test_sqlite_default_path(isolated_config):
    storage = SqliteStorage()
    storage.init()
    storage.close()

    assert (isolated_config / "db.sqlite").exists()


def test_unopenable_database_raises_storage_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    storage = SqliteStorage(blocker / "db.sqlite")

    with pytest.raises(StorageError):
        storage.get("k")


def test_unopenable_database_reads_as_empty(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = ConversationStore(SqliteStorage(blocker / "db.sqlite"))

    assert store.get_sessions("vid1") == []
    assert store.list_videos_with_chats() == []
