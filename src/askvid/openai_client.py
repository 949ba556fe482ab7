"""Remote answer generation through OpenAI or a local Ollama server."""

import logging
from typing import Protocol

import httpx
from openai import AsyncOpenAI, OpenAIError

from .config import (
    BRIEF_MAX_TOKENS,
    DEFAULT_CHAT_MODEL,
    DEFAULT_OLLAMA_MODEL,
    DEFAULT_TEMPERATURE,
    DETAILED_MAX_TOKENS,
    MAX_PROMPT_TRANSCRIPT_CHARS,
    OLLAMA_BASE_URL,
    get_api_key,
    get_backend,
)
from .models import ResponseMode, VideoContext
from .transcript import format_transcript_for_chat

logger = logging.getLogger(__name__)


class RemoteGenerationError(Exception):
    """Remote generation failed (transport, auth, quota, or empty reply)."""

    pass


class RemoteKeyMissing(RemoteGenerationError):
    """API key not configured."""

    pass


SYSTEM_PROMPT = """You are a helpful assistant answering questions about a YouTube video.

Use the transcript below when the question is about the video, and cite the
[M:SS] timestamp of the part you rely on. If the transcript doesn't cover the
question, say so briefly. You may also answer general questions that are not
about the video from your own knowledge.

Video title: {title}
Video URL: {url}

Transcript:
{transcript}"""

NO_VIDEO_SYSTEM_PROMPT = """You are a helpful assistant. No video is loaded, so answer from general knowledge."""

MODE_INSTRUCTIONS = {
    "brief": "Answer in one or two short sentences.",
    "detailed": "Give a thorough, well-structured answer.",
}


def build_system_prompt(context: VideoContext) -> str:
    """Build the system prompt carrying the video transcript."""
    if context.is_empty:
        return NO_VIDEO_SYSTEM_PROMPT
    if context.segments:
        transcript = format_transcript_for_chat(context.segments)
    else:
        transcript = context.transcript
    return SYSTEM_PROMPT.format(
        title=context.title or "Unknown",
        url=context.url or "n/a",
        transcript=transcript[:MAX_PROMPT_TRANSCRIPT_CHARS],
    )


def build_prompt(question: str, context: VideoContext, mode: ResponseMode) -> list[dict]:
    """Build chat messages for a question about the current video.

    Args:
        question: The user's question
        context: Current video context (may be empty)
        mode: "brief" or "detailed"

    Returns:
        List of message dicts with 'role' and 'content'
    """
    return [
        {"role": "system", "content": build_system_prompt(context)},
        {"role": "user", "content": f"{question}\n\n{MODE_INSTRUCTIONS[mode]}"},
    ]


def max_tokens_for(mode: ResponseMode) -> int:
    return BRIEF_MAX_TOKENS if mode == "brief" else DETAILED_MAX_TOKENS


class RemoteGenerator(Protocol):
    name: str

    def is_configured(self) -> bool: ...

    async def generate(self, prompt: list[dict], mode: ResponseMode) -> str: ...


class OpenAIGenerator:
    """Answers from the OpenAI chat completions API."""

    name = "openai"

    def __init__(self, model: str = DEFAULT_CHAT_MODEL, api_key: str | None = None):
        self.model = model
        self._api_key = api_key

    @property
    def api_key(self) -> str | None:
        return self._api_key or get_api_key("OPENAI_API_KEY")

    def is_configured(self) -> bool:
        return self.api_key is not None

    def get_client(self) -> AsyncOpenAI:
        """Get async OpenAI client, raising if key not configured."""
        api_key = self.api_key
        if not api_key:
            raise RemoteKeyMissing(
                "OPENAI_API_KEY not set. Add it to ~/.askvid/.env:\nOPENAI_API_KEY=sk-..."
            )
        return AsyncOpenAI(api_key=api_key)

    async def generate(self, prompt: list[dict], mode: ResponseMode) -> str:
        client = self.get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=prompt,
                temperature=DEFAULT_TEMPERATURE,
                max_tokens=max_tokens_for(mode),
            )
        except OpenAIError as e:
            raise RemoteGenerationError(f"OpenAI request failed: {e}") from e
        finally:
            await client.close()

        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise RemoteGenerationError("OpenAI returned an empty answer")
        return content


def check_ollama_running(base_url: str = OLLAMA_BASE_URL) -> bool:
    """Check if Ollama server is running."""
    try:
        response = httpx.get(f"{base_url}/api/tags", timeout=2.0)
        return response.status_code == 200
    except httpx.RequestError:
        return False


class OllamaGenerator:
    """Answers from a local Ollama server."""

    name = "ollama"

    def __init__(self, model: str = DEFAULT_OLLAMA_MODEL, base_url: str = OLLAMA_BASE_URL):
        self.model = model
        self.base_url = base_url

    def is_configured(self) -> bool:
        return check_ollama_running(self.base_url)

    async def generate(self, prompt: list[dict], mode: ResponseMode) -> str:
        try:
            async with httpx.AsyncClient(timeout=120.0) as client:
                response = await client.post(
                    f"{self.base_url}/api/chat",
                    json={
                        "model": self.model,
                        "messages": prompt,
                        "stream": False,
                        "options": {
                            "temperature": DEFAULT_TEMPERATURE,
                            "num_predict": max_tokens_for(mode),
                        },
                    },
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise RemoteGenerationError(f"Ollama request failed: {e}") from e

        content = (data.get("message", {}).get("content") or "").strip()
        if not content:
            raise RemoteGenerationError("Ollama returned an empty answer")
        return content


def get_generator(backend: str | None = None, model: str | None = None) -> RemoteGenerator:
    """Get the remote generator for the configured backend."""
    backend = backend or get_backend()
    if backend == "ollama":
        return OllamaGenerator(model=model or DEFAULT_OLLAMA_MODEL)
    return OpenAIGenerator(model=model or DEFAULT_CHAT_MODEL)
