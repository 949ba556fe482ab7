"""Configuration and paths for askvid."""

import os
import random
from pathlib import Path

# Default data directory
DATA_DIR = Path.home() / ".askvid"
DB_PATH = DATA_DIR / "db.sqlite"
ENV_PATH = DATA_DIR / ".env"
CHAT_HISTORY_FILE = DATA_DIR / "chat_history"

# Storage key holding the whole video -> sessions index
VIDEO_CHAT_STORAGE_KEY = "askvid_video_chats"

# Segment matching
MAX_KEYWORDS = 8
MAX_RELEVANT_SEGMENTS = 3
KEYWORD_MATCH_WEIGHT = 2

# Response composition
BRIEF_EXCERPT_CHARS = 80
BRIEF_SECOND_SENTENCE_MAX_CHARS = 100
BRIEF_CONFIDENCE_RANGE = (0.87, 0.95)
DETAILED_CONFIDENCE_RANGE = (0.85, 0.95)

# Remote generation backends
BACKEND_ENV = "ASKVID_BACKEND"
DEFAULT_BACKEND = "openai"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"
OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "qwen2.5:7b-instruct"
DEFAULT_TEMPERATURE = 0.7
BRIEF_MAX_TOKENS = 150
DETAILED_MAX_TOKENS = 1000
# Max transcript characters sent to the remote model
MAX_PROMPT_TRANSCRIPT_CHARS = 12000

# Values shipped in example .env files that don't count as a real key
PLACEHOLDER_KEYS = frozenset(
    {
        "your_openai_api_key_here",
        "your_youtube_api_key_here",
        "sk-...",
    }
)

# YouTube Data API (metadata); yt-dlp or the demo catalog are used without a key
YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
METADATA_SOURCE_ENV = "ASKVID_METADATA_SOURCE"
TRANSCRIPT_SOURCE_ENV = "ASKVID_TRANSCRIPT_SOURCE"

# Simulated processing latency (seconds), scaled by ASKVID_SIMULATE_DELAY
SIMULATE_DELAY_ENV = "ASKVID_SIMULATE_DELAY"
METADATA_DELAY = (2.0, 2.0)
TRANSCRIPTION_DELAY = (3.0, 5.0)
SEND_DELAY = (0.5, 0.5)
BRIEF_COMPOSE_DELAY = (0.8, 2.0)
DETAILED_COMPOSE_DELAY = (1.5, 3.5)

# Optional JSON file replacing the built-in response templates
TEMPLATES_PATH_ENV = "ASKVID_TEMPLATES"


def ensure_data_dir() -> Path:
    """Create data directory if it doesn't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR


def load_env_file(path: Path | None = None) -> dict[str, str]:
    """Load environment variables from .env file."""
    path = path or ENV_PATH
    env_vars = {}
    if not path.exists():
        return env_vars

    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip("\"'")
            env_vars[key] = value
            os.environ.setdefault(key, value)

    return env_vars


def save_env_var(key: str, value: str, path: Path | None = None) -> None:
    """Save or update an environment variable in .env file."""
    path = path or ENV_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    existing_lines = []
    key_found = False

    if path.exists():
        with open(path) as f:
            for line in f:
                if line.strip().startswith(f"{key}="):
                    existing_lines.append(f"{key}={value}\n")
                    key_found = True
                else:
                    existing_lines.append(line)

    if not key_found:
        existing_lines.append(f"{key}={value}\n")

    with open(path, "w") as f:
        f.writelines(existing_lines)

    os.environ[key] = value


def get_api_key(key_name: str) -> str | None:
    """Get API key from environment (loads .env first).

    Blank values and known placeholders are treated as missing.
    """
    load_env_file()
    value = (os.environ.get(key_name) or "").strip()
    if not value or value in PLACEHOLDER_KEYS:
        return None
    return value


def get_backend() -> str:
    """Get the remote generation backend name ("openai" or "ollama")."""
    load_env_file()
    backend = os.environ.get(BACKEND_ENV, DEFAULT_BACKEND).strip().lower()
    if backend not in ("openai", "ollama"):
        return DEFAULT_BACKEND
    return backend


def get_source(env_name: str) -> str | None:
    """Get a collaborator source override such as "ytdlp" or "youtube"."""
    load_env_file()
    value = os.environ.get(env_name)
    return value.strip().lower() if value else None


def get_delay_scale() -> float:
    """Get the simulated latency scale factor.

    1.0 gives the full demo processing delays, 0 disables them.
    Override with ASKVID_SIMULATE_DELAY in .env file.
    """
    load_env_file()
    scale_str = os.environ.get(SIMULATE_DELAY_ENV)
    if scale_str:
        try:
            return max(float(scale_str), 0.0)
        except ValueError:
            pass
    return 1.0


def get_simulated_delay(
    delay_range: tuple[float, float],
    scale: float | None = None,
    rng: random.Random | None = None,
) -> float:
    """Get a random delay in seconds from a (min, max) range, scaled."""
    scale = get_delay_scale() if scale is None else scale
    if scale <= 0:
        return 0.0
    low, high = delay_range
    return (rng or random).uniform(low, high) * scale


def get_templates_path() -> Path | None:
    """Get path of a JSON template override file, if configured."""
    load_env_file()
    value = os.environ.get(TEMPLATES_PATH_ENV)
    return Path(value).expanduser() if value else None
