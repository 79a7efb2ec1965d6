"""Command-line interface using Typer."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from clip_engine import __version__
from clip_engine.domain.enums import PlanTier
from clip_engine.domain.errors import ClipEngineError
from clip_engine.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="clip-engine",
    help="Clip Engine - turn long videos into scored short clips",
    add_completion=False,
)

# Subcommand groups
users_app = typer.Typer(help="User account commands")
videos_app = typer.Typer(help="Video commands")
jobs_app = typer.Typer(help="Generation job commands")
analytics_app = typer.Typer(help="Analytics commands")
captions_app = typer.Typer(help="Caption suggestion commands")
app.add_typer(users_app, name="users")
app.add_typer(videos_app, name="videos")
app.add_typer(jobs_app, name="jobs")
app.add_typer(analytics_app, name="analytics")
app.add_typer(captions_app, name="captions")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Clip Engine v{__version__}")
        raise typer.Exit()


def fail(error: ClipEngineError) -> None:
    console.print(f"[bold red]{error.message}[/bold red]")
    raise typer.Exit(code=1)


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Clip Engine - upload, clip, schedule and measure short-form videos."""
    pass


# =============================================================================
# USERS
# =============================================================================


@users_app.command("create")
def users_create(
    name: str = typer.Option(..., "--name", "-n", help="Display name"),
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    plan: PlanTier = typer.Option(PlanTier.FREE, "--plan", "-p", help="Plan tier"),
    clips_limit: Optional[int] = typer.Option(None, "--clips-limit", help="Clip quota"),
) -> None:
    """Create a user account."""
    from clip_engine.db.session import get_session_context
    from clip_engine.services.users import create_user

    with get_session_context() as session:
        try:
            user = create_user(session, name, email, plan=plan, clips_limit=clips_limit)
        except ClipEngineError as e:
            fail(e)

        console.print("[bold green]User created successfully![/bold green]")
        console.print(f"[cyan]ID:[/cyan] {user.id}")
        console.print(f"[cyan]Email:[/cyan] {user.email}")
        console.print(f"[cyan]Quota:[/cyan] {user.clips_limit} clips")

        console.print("\n[dim]Issue an API token with:[/dim]")
        console.print(f"[dim]  clip-engine users token {user.id}[/dim]")


@users_app.command("show")
def users_show(
    user_id: int = typer.Argument(..., help="User ID"),
) -> None:
    """Show a user's plan and quota."""
    from sqlalchemy import func, select

    from clip_engine.db.models import VideoModel
    from clip_engine.db.session import get_session_context
    from clip_engine.services.users import get_user

    with get_session_context() as session:
        try:
            user = get_user(session, user_id)
        except ClipEngineError as e:
            fail(e)

        video_count = session.execute(
            select(func.count(VideoModel.id)).where(VideoModel.user_id == user_id)
        ).scalar()

        console.print(Panel.fit(
            f"[bold]{user.name}[/bold]\n\n"
            f"[cyan]ID:[/cyan] {user.id}\n"
            f"[cyan]Email:[/cyan] {user.email}\n"
            f"[cyan]Plan:[/cyan] {user.plan}\n"
            f"[cyan]Clips:[/cyan] {user.clips_used}/{user.clips_limit} "
            f"({user.clips_remaining} remaining)\n"
            f"[cyan]Videos:[/cyan] {video_count}\n"
            f"[cyan]Created:[/cyan] {user.created_at.strftime('%Y-%m-%d %H:%M') if user.created_at else 'N/A'}",
            title="User Details",
            border_style="blue",
        ))


@users_app.command("token")
def users_token(
    user_id: int = typer.Argument(..., help="User ID"),
    days: Optional[int] = typer.Option(None, "--days", help="Token lifetime in days"),
) -> None:
    """Issue a bearer token for an existing user."""
    from datetime import timedelta

    from clip_engine.api.security import issue_token
    from clip_engine.db.session import get_session_context
    from clip_engine.services.users import get_user

    with get_session_context() as session:
        try:
            user = get_user(session, user_id)
        except ClipEngineError as e:
            fail(e)

    token = issue_token(user.id, timedelta(days=days) if days else None)
    console.print(token)


# =============================================================================
# VIDEOS & JOBS
# =============================================================================


@videos_app.command("list")
def videos_list(
    user_id: int = typer.Option(..., "--user", "-u", help="User ID"),
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum videos to show"),
) -> None:
    """List a user's videos."""
    from clip_engine.db.session import get_session_context
    from clip_engine.services.videos import list_videos

    with get_session_context() as session:
        videos = list_videos(session, user_id, limit=limit)

        if not videos:
            console.print("[dim]No videos found.[/dim]")
            return

        table = Table(title="Videos")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Status")
        table.add_column("Duration")
        table.add_column("Clips", justify="right")
        table.add_column("Created")

        status_colors = {
            "uploaded": "yellow",
            "processing": "blue",
            "ready": "green",
            "failed": "red",
        }

        for video in videos:
            color = status_colors.get(video.status, "white")
            table.add_row(
                str(video.id),
                video.original_name or video.filename,
                f"[{color}]{video.status}[/{color}]",
                f"{video.duration:.1f}s" if video.duration else "-",
                str(len(video.clips)),
                video.created_at.strftime("%Y-%m-%d %H:%M") if video.created_at else "-",
            )

        console.print(table)


@jobs_app.command("recover")
def jobs_recover(
    minutes: Optional[int] = typer.Option(
        None, "--older-than", help="Fail running jobs started more than this many minutes ago"
    ),
) -> None:
    """Fail generation jobs left running by a crashed worker."""
    from datetime import timedelta

    from clip_engine.db.session import get_session_context
    from clip_engine.services.generation import recover_stale_jobs

    with get_session_context() as session:
        recovered = recover_stale_jobs(
            session, timedelta(minutes=minutes) if minutes else None
        )

    if recovered:
        console.print(f"[yellow]Recovered {len(recovered)} stale job(s): {recovered}[/yellow]")
    else:
        console.print("[green]No stale jobs.[/green]")


# =============================================================================
# ANALYTICS & CAPTIONS
# =============================================================================


@analytics_app.command("ingest")
def analytics_ingest() -> None:
    """Pull engagement for due scheduled posts from platform adapters."""
    from clip_engine.db.session import get_session_context
    from clip_engine.services.analytics import ingest_post_metrics

    with get_session_context() as session:
        written = ingest_post_metrics(session)

    console.print(f"[green]Recorded {written} analytics record(s).[/green]")


@captions_app.command("suggest")
def captions_suggest(
    context: Optional[str] = typer.Argument(None, help="What the clip is about"),
) -> None:
    """Suggest a caption for a clip."""
    from clip_engine.services.captions import suggest_caption

    try:
        caption = asyncio.run(suggest_caption(context))
    except ClipEngineError as e:
        fail(e)

    console.print(caption)


if __name__ == "__main__":
    app()
