import pytest
from typer.testing import CliRunner

from askvid import cli, storage as storage_module
from askvid.chat_store import ConversationStore
from askvid.composer import ResponseComposer
from askvid.discovery import SimulatedMetadataProvider
from askvid.service import AskVidService
from askvid.storage import SqliteStorage
from askvid.transcript import SimulatedTranscriptionProvider

runner = CliRunner()

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.fixture(autouse=True)
def chat_history_file(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "CHAT_HISTORY_FILE", tmp_path / "chat_history")


@pytest.fixture
def demo_service(monkeypatch, rng):
    def create_service(storage):
        return AskVidService(
            metadata=SimulatedMetadataProvider(delay_scale=0, rng=rng),
            transcription=SimulatedTranscriptionProvider(delay_scale=0, rng=rng),
            composer=ResponseComposer(rng=rng),
            store=ConversationStore(storage),
            delay_scale=0,
        )

    monkeypatch.setattr(cli, "create_service", create_service)


def _stored_sessions(video_id: str):
    with SqliteStorage() as storage:
        return ConversationStore(storage).get_sessions(video_id)


def test_history_empty():
    result = runner.invoke(cli.app, ["history"])

    assert result.exit_code == 0
    assert "No chat history yet" in result.output


def test_unopenable_database_reads_as_empty(tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    monkeypatch.setattr(storage_module, "DB_PATH", blocker / "db.sqlite")

    history = runner.invoke(cli.app, ["history"])
    status = runner.invoke(cli.app, ["status"])
    cleared = runner.invoke(cli.app, ["clear", "--all"])

    assert history.exit_code == 0, history.output
    assert "No chat history yet" in history.output
    assert status.exit_code == 0, status.output
    assert cleared.exit_code == 0, cleared.output


def test_chat_session_is_saved(demo_service):
    result = runner.invoke(
        cli.app,
        ["chat", VIDEO_URL],
        input="What is the video about?\n/new\n/sessions\nexit\n",
    )

    assert result.exit_code == 0, result.output
    assert "Rick Astley" in result.output
    assert "Chat 2" in result.output
    assert "Goodbye!" in result.output

    sessions = _stored_sessions("dQw4w9WgXcQ")
    assert [s.title for s in sessions] == ["Main Chat", "Chat 2"]
    assert sessions[0].message_count == 2

    history = runner.invoke(cli.app, ["history"])
    assert "dQw4w9WgXcQ" in history.output


def test_chat_refuses_deleting_last_session(demo_service):
    runner.invoke(cli.app, ["chat", VIDEO_URL], input="exit\n")
    main = _stored_sessions("dQw4w9WgXcQ")[0]

    result = runner.invoke(cli.app, ["chat", VIDEO_URL], input=f"/delete {main.id[:8]}\nexit\n")

    assert result.exit_code == 0
    assert "Can't delete the last chat session" in result.output
    assert len(_stored_sessions("dQw4w9WgXcQ")) == 1


def test_chat_search_command(demo_service):
    result = runner.invoke(cli.app, ["chat", VIDEO_URL], input="/search rick roll nowhere\n/suggest\nq\n")

    assert result.exit_code == 0
    assert "No transcript lines contain" in result.output
    assert "1." in result.output


def test_chat_rejects_invalid_link(demo_service):
    result = runner.invoke(cli.app, ["chat", "https://example.com/watch"])

    assert result.exit_code == 1
    assert "Invalid YouTube URL" in result.output


def test_chat_unknown_session(demo_service):
    result = runner.invoke(cli.app, ["chat", VIDEO_URL, "--session", "nope"], input="exit\n")

    assert result.exit_code == 1
    assert "Session not found" in result.output


def test_sessions_delete_and_clear(demo_service):
    runner.invoke(cli.app, ["chat", VIDEO_URL, "--new"], input="exit\n")
    main, second = _stored_sessions("dQw4w9WgXcQ")

    listed = runner.invoke(cli.app, ["sessions", "dQw4w9WgXcQ"])
    assert "Main Chat" in listed.output
    assert "Chat 2" in listed.output

    deleted = runner.invoke(cli.app, ["delete-session", "dQw4w9WgXcQ", second.id[:8]])
    assert deleted.exit_code == 0
    assert [s.id for s in _stored_sessions("dQw4w9WgXcQ")] == [main.id]

    refused = runner.invoke(cli.app, ["delete-session", "dQw4w9WgXcQ", main.id])
    assert refused.exit_code == 1

    cleared = runner.invoke(cli.app, ["clear", "dQw4w9WgXcQ"])
    assert cleared.exit_code == 0
    assert _stored_sessions("dQw4w9WgXcQ") == []


def test_clear_needs_a_target():
    result = runner.invoke(cli.app, ["clear"])

    assert result.exit_code == 1


def test_clear_all(demo_service):
    runner.invoke(cli.app, ["chat", VIDEO_URL], input="exit\n")

    result = runner.invoke(cli.app, ["clear", "--all"])

    assert result.exit_code == 0
    assert _stored_sessions("dQw4w9WgXcQ") == []


def test_set_key(monkeypatch, isolated_config):
    monkeypatch.setenv("ASKVID_BACKEND", "openai")

    result = runner.invoke(cli.app, ["set-key", "ASKVID_BACKEND", "ollama"])

    assert result.exit_code == 0
    assert "ASKVID_BACKEND=ollama" in (isolated_config / ".env").read_text()


def test_status():
    result = runner.invoke(cli.app, ["status"])

    assert result.exit_code == 0
    assert "templates only" in result.output
    assert "Videos with chats" in result.output
