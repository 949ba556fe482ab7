"""CLI commands for askvid."""

import asyncio
import logging
import os
from datetime import datetime

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .chat_store import ConversationStore
from .config import (
    CHAT_HISTORY_FILE,
    DB_PATH,
    METADATA_SOURCE_ENV,
    TRANSCRIPT_SOURCE_ENV,
    ensure_data_dir,
    get_api_key,
    get_backend,
    get_delay_scale,
    get_source,
    get_templates_path,
    save_env_var,
)
from .discovery import InvalidInput, ProviderError
from .models import ChatSession
from .openai_client import get_generator
from .service import AskVidService, ChatSessionManager, SessionError, create_service, video_url_at
from .storage import SqliteStorage
from .transcript import TranscriptError, format_timestamp

# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.WARNING),
    format="%(levelname)s %(name)s: %(message)s",
)
# Suppress per-request HTTP logging
logging.getLogger("httpx").setLevel(logging.WARNING)

app = typer.Typer(
    name="askvid",
    help="Ask questions about a YouTube video.",
    no_args_is_help=True,
)
console = Console()

CHAT_COMMANDS_HELP = (
    "/new, /sessions, /switch <id>, /clear, /delete <id>, /rename <title>, "
    "/suggest, /search <text>, /transcript"
)


def get_storage() -> SqliteStorage:
    """Get chat storage instance."""
    return SqliteStorage()


def _format_when(when: datetime) -> str:
    return when.astimezone().strftime("%Y-%m-%d %H:%M")


def _print_sessions(sessions: list[ChatSession], current_id: str | None = None) -> None:
    for s in sessions:
        marker = "*" if s.id == current_id else " "
        console.print(f"{marker} {s.id[:8]}: {s.title} ({s.message_count} msgs)")
    console.print()


def _print_answer(service: AskVidService, content: str, timestamp: str | None) -> None:
    console.print()
    console.print(content, markup=False)
    if timestamp and service.video:
        url = video_url_at(service.video.url, timestamp)
        console.print(f"[dim]Jump to {timestamp}:[/dim] [link={url}]{url}[/link]")
    console.print()


def _handle_command(service: AskVidService, query: str) -> None:
    """Run an in-chat slash command."""
    sessions = service.sessions
    cmd_parts = query[1:].split(maxsplit=1)
    cmd = cmd_parts[0].lower() if cmd_parts else ""
    cmd_arg = cmd_parts[1].strip() if len(cmd_parts) > 1 else ""

    if cmd == "new":
        session = sessions.create_session()
        console.print(f"[green]Started {session.title} ({session.id[:8]})[/green]")
        console.print(f"{session.messages[0].content}\n")
    elif cmd == "sessions":
        current = sessions.current_session
        _print_sessions(sessions.sessions, current.id if current else None)
    elif cmd == "switch" and cmd_arg:
        session = sessions.switch_session(cmd_arg)
        console.print(f"[green]Switched to {session.title} ({session.message_count} messages)[/green]\n")
    elif cmd == "clear":
        sessions.clear_current()
        console.print("[green]Cleared current chat[/green]\n")
    elif cmd == "delete" and cmd_arg:
        session = sessions.delete_session(cmd_arg)
        console.print(f"[green]Deleted {session.title}[/green]\n")
    elif cmd == "rename" and cmd_arg:
        sessions.rename_session(cmd_arg)
        console.print(f"[green]Renamed to: {cmd_arg}[/green]\n")
    elif cmd == "suggest":
        for i, question in enumerate(service.suggest_questions(), 1):
            console.print(f"[cyan]{i}.[/cyan] {question}")
        console.print()
    elif cmd == "search" and cmd_arg:
        matches = service.search(cmd_arg)
        if not matches:
            console.print(f"[yellow]No transcript lines contain {cmd_arg!r}[/yellow]\n")
            return
        for seg in matches:
            console.print(f"[cyan][{format_timestamp(seg.start)}][/cyan] {seg.text}")
        console.print()
    elif cmd == "transcript":
        for seg in service.holder.current.segments:
            console.print(f"[cyan][{format_timestamp(seg.start)}][/cyan] {seg.text}")
        console.print()
    elif cmd in ("switch", "delete", "rename", "search"):
        console.print(f"[yellow]Usage: /{cmd} <argument>[/yellow]\n")
    else:
        console.print(f"[yellow]Unknown command: /{cmd}[/yellow]")
        console.print(f"[dim]Commands: {CHAT_COMMANDS_HELP}[/dim]\n")


@app.command()
def chat(
    url: str = typer.Argument(..., help="YouTube video URL"),
    brief: bool = typer.Option(False, "--brief", help="Short answers instead of detailed ones"),
    new: bool = typer.Option(False, "--new", help="Start a new chat session"),
    session: str = typer.Option(None, "-s", "--session", help="Resume session by ID prefix"),
):
    """Interactive chat about a YouTube video.

    Without flags, resumes the video's first chat session or creates
    "Main Chat" for a video seen for the first time.
    """
    import readline

    ensure_data_dir()
    try:
        readline.read_history_file(CHAT_HISTORY_FILE)
    except (FileNotFoundError, OSError):
        pass  # First run, no history yet
    readline.set_history_length(1000)

    mode = "brief" if brief else "detailed"
    storage = get_storage()
    service = create_service(storage)

    async def run_chat():
        with console.status("[bold]Analyzing video...[/bold]"):
            video = await service.submit_video(url)

        sessions = service.sessions
        if new:
            current = sessions.create_session()
        elif session:
            current = sessions.switch_session(session)
        else:
            current = sessions.current_session

        console.print(f"[bold]{video.title}[/bold] [dim]({video.duration})[/dim]")
        if video.channel_title:
            console.print(f"[dim]{video.channel_title}[/dim]")
        engine = "AI" if service.composer.remote_enabled else "templates"
        console.print(f"[dim]Session: {current.title} ({current.id[:8]}) | {mode} answers | {engine}[/dim]")
        console.print("Type your questions. Use 'exit' or Ctrl+C to quit.")
        console.print(f"[dim]Commands: {CHAT_COMMANDS_HELP}[/dim]\n")
        console.print(f"{current.messages[-1].content}\n")

        while True:
            try:
                query = input("> ")
            except (EOFError, KeyboardInterrupt):
                console.print("\nGoodbye!")
                break

            query = query.strip()
            if not query:
                continue
            if query.lower() in ("exit", "quit", "q"):
                console.print("Goodbye!")
                break

            if query.startswith("/"):
                try:
                    _handle_command(service, query)
                except SessionError as e:
                    console.print(f"[yellow]{e}[/yellow]\n")
                continue

            with console.status("[dim]Thinking...[/dim]"):
                message, _ = await service.ask(query, mode)
            _print_answer(service, message.content, message.relevant_timestamp)

    try:
        asyncio.run(run_chat())
    except InvalidInput as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("Use a link like https://www.youtube.com/watch?v=VIDEO_ID or https://youtu.be/VIDEO_ID")
        raise typer.Exit(1)
    except TranscriptError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("The video may have captions disabled. Try another video.")
        raise typer.Exit(1)
    except ProviderError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("Check the URL and your YOUTUBE_API_KEY, or unset it to use demo data.")
        raise typer.Exit(1)
    except SessionError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        try:
            readline.write_history_file(CHAT_HISTORY_FILE)
        except OSError:
            pass
        storage.close()


@app.command()
def history():
    """List videos with saved chats, most recently active first."""
    with get_storage() as storage:
        summaries = ConversationStore(storage).list_videos_with_chats()

    if not summaries:
        console.print("[yellow]No chat history yet[/yellow]")
        return

    table = Table(title="Chat History")
    table.add_column("Video ID", style="dim")
    table.add_column("Title", max_width=50)
    table.add_column("Chats", justify="right")
    table.add_column("Messages", justify="right")
    table.add_column("Last activity")

    for s in summaries:
        table.add_row(
            s.video_id,
            s.video_title,
            str(s.session_count),
            str(s.total_message_count),
            _format_when(s.last_activity),
        )
    console.print(table)


@app.command()
def sessions(video_id: str = typer.Argument(..., help="Video ID")):
    """List chat sessions of a video."""
    with get_storage() as storage:
        video_sessions = ConversationStore(storage).get_sessions(video_id)

    if not video_sessions:
        console.print(f"[yellow]No chat sessions for {video_id}[/yellow]")
        return

    table = Table(title=f"Chat Sessions: {video_sessions[0].video_title}")
    table.add_column("ID", style="dim")
    table.add_column("Title", max_width=50)
    table.add_column("Messages", justify="right")
    table.add_column("Last activity")

    for s in video_sessions:
        table.add_row(s.id[:8], s.title, str(s.message_count), _format_when(s.last_activity))
    console.print(table)


@app.command("delete-session")
def delete_session(
    video_id: str = typer.Argument(..., help="Video ID"),
    session_id: str = typer.Argument(..., help="Session ID or prefix"),
):
    """Delete one chat session of a video."""
    with get_storage() as storage:
        store = ConversationStore(storage)
        video_sessions = store.get_sessions(video_id)
        if not video_sessions:
            console.print(f"[red]No chat sessions for {video_id}[/red]")
            raise typer.Exit(1)

        manager = ChatSessionManager(store, video_id, video_sessions[0].video_title)
        try:
            deleted = manager.delete_session(session_id)
        except SessionError as e:
            console.print(f"[yellow]{e}[/yellow]")
            raise typer.Exit(1)

    console.print(f"[green]Deleted {deleted.title} ({deleted.id[:8]})[/green]")


@app.command()
def clear(
    video_id: str = typer.Argument(None, help="Video ID to clear"),
    all_videos: bool = typer.Option(False, "--all", help="Clear chat history of every video"),
):
    """Delete saved chats of one video, or of all videos."""
    if not video_id and not all_videos:
        console.print("[red]Give a VIDEO_ID or use --all[/red]")
        raise typer.Exit(1)

    with get_storage() as storage:
        store = ConversationStore(storage)
        if all_videos:
            store.clear_all()
            console.print("[green]Cleared all chat history[/green]")
        else:
            store.clear_video(video_id)
            console.print(f"[green]Cleared chats for {video_id}[/green]")


@app.command("set-key")
def set_key(
    name: str = typer.Argument(..., help="Variable name, e.g. OPENAI_API_KEY"),
    value: str = typer.Argument(..., help="Value to store"),
):
    """Save a key or setting to ~/.askvid/.env."""
    save_env_var(name, value)
    console.print(f"[green]Saved {name}[/green]")


@app.command()
def status():
    """Show configuration and chat history statistics."""
    backend = get_backend()
    generator = get_generator(backend)
    with get_storage() as storage:
        summaries = ConversationStore(storage).list_videos_with_chats()

    table = Table(title="askvid Status")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Backend", backend)
    if generator.is_configured():
        table.add_row("  Remote answers", "[green]enabled[/green]")
    else:
        table.add_row("  Remote answers", "[yellow]templates only[/yellow]")
    youtube = "YouTube API" if get_api_key("YOUTUBE_API_KEY") else None
    table.add_row("Metadata", youtube or get_source(METADATA_SOURCE_ENV) or "demo")
    table.add_row("Transcripts", get_source(TRANSCRIPT_SOURCE_ENV) or "demo")
    table.add_row("Delay scale", f"{get_delay_scale():g}")
    templates_path = get_templates_path()
    table.add_row("Templates", str(templates_path) if templates_path else "built-in")
    table.add_row("Database", str(DB_PATH))

    table.add_section()
    table.add_row("Videos with chats", str(len(summaries)))
    table.add_row("Chat sessions", str(sum(s.session_count for s in summaries)))
    table.add_row("Messages", str(sum(s.total_message_count for s in summaries)))

    console.print(table)


@app.command()
def version():
    """Show version."""
    console.print(f"askvid {__version__}")
