import random

import pytest

from askvid import config, storage as storage_module
from askvid.chat_store import ConversationStore
from askvid.models import TranscriptSegment, VideoContext
from askvid.storage import MemoryStorage

ASKVID_ENV_VARS = [
    "OPENAI_API_KEY",
    "YOUTUBE_API_KEY",
    "ASKVID_BACKEND",
    "ASKVID_METADATA_SOURCE",
    "ASKVID_TRANSCRIPT_SOURCE",
    "ASKVID_TEMPLATES",
]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from ~/.askvid and the developer's environment."""
    data_dir = tmp_path / "askvid-data"
    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    monkeypatch.setattr(config, "ENV_PATH", data_dir / ".env")
    monkeypatch.setattr(storage_module, "DB_PATH", data_dir / "db.sqlite")
    for name in ASKVID_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ASKVID_SIMULATE_DELAY", "0")
    return data_dir


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return ConversationStore(storage)


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def segments():
    return [
        TranscriptSegment(
            text="Welcome to this guide on building a brand that stands out.",
            start=0.0,
            duration=20.0,
        ),
        TranscriptSegment(
            text="Know your audience and what keeps them awake at night.",
            start=28.0,
            duration=25.0,
        ),
        TranscriptSegment(
            text="Consistency matters: every brand touchpoint should feel the same, brand brand.",
            start=95.0,
            duration=30.0,
        ),
        TranscriptSegment(
            text="Social media gives direct access to your audience.",
            start=130.0,
            duration=22.0,
        ),
    ]


@pytest.fixture
def context(segments):
    return VideoContext(
        transcript=" ".join(seg.text for seg in segments),
        segments=segments,
        title="How to Build a Brand",
        url="https://www.youtube.com/watch?v=abc123",
    )
