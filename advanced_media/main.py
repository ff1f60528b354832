"""CLI entry point for the Advanced Media core."""

from pathlib import Path

from dotenv import load_dotenv
load_dotenv()  # Load .env file automatically

import click
from PySide6.QtCore import QCoreApplication, QEventLoop
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import AVAILABLE_LANGUAGES, Config, PLANS
from .errors import AdvancedMediaError, TranslationError
from .gui.engagement_moderator import EngagementModerator
from .models import Comment, Done, Failed, InFlight, TranslationState
from .store import JsonCommentStore
from .translator import GeminiTranslator

console = Console()


def print_banner():
    """Print the application banner."""
    console.print(Panel.fit(
        "[bold blue]Advanced Media[/bold blue]\n"
        "[dim]Playback limits and comment moderation[/dim]",
        border_style="blue"
    ))


def print_comments(comments: list[Comment]):
    """Print the comment collection as a table, newest first."""
    if not comments:
        console.print("[dim]No comments yet.[/dim]")
        return

    table = Table(title="Comments")
    table.add_column("Id", style="cyan")
    table.add_column("Author", style="green")
    table.add_column("Likes", style="yellow", justify="right")
    table.add_column("Dislikes", style="yellow", justify="right")
    table.add_column("Text", style="white", max_width=50)
    table.add_column("Translation", style="magenta", max_width=40)

    for comment in comments:
        state = comment.translation
        if isinstance(state, Done):
            translation = escape(f"[{state.target_lang}] {state.text}")
        elif isinstance(state, Failed):
            translation = escape(f"[{state.target_lang}] {state.message}")
        else:
            translation = ""
        table.add_row(
            comment.id[:8],
            comment.author,
            str(comment.likes),
            str(comment.dislikes),
            comment.text,
            translation,
        )

    console.print(table)


def _make_config(comments_path: str | None) -> Config:
    if comments_path:
        return Config(comments_path=Path(comments_path))
    return Config()


def _resolve_id(moderator: EngagementModerator, prefix: str) -> str:
    """Expand a shortened comment id as printed by the comments table."""
    matches = [c.id for c in moderator.comments if c.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise click.ClickException(f"Comment id prefix '{prefix}' is ambiguous")
    return prefix


def _moderator(comments_path: str | None, with_translator: bool = False) -> EngagementModerator:
    config = _make_config(comments_path)
    return EngagementModerator(
        JsonCommentStore(config.comments_path),
        GeminiTranslator(config) if with_translator else None,
        config=config,
        dislike_threshold=config.dislike_threshold,
    )


def _wait_for_translation(moderator: EngagementModerator, comment_id: str) -> TranslationState:
    """Run the Qt event loop until the comment's translation settles."""
    loop = QEventLoop()

    def on_changed(changed_id: str, state: TranslationState):
        if changed_id == comment_id and not isinstance(state, InFlight):
            loop.quit()

    moderator.translation_changed.connect(on_changed)
    try:
        loop.exec()
    finally:
        moderator.translation_changed.disconnect(on_changed)
    return moderator.get(comment_id).translation


comments_option = click.option(
    "--comments-path", type=click.Path(dir_okay=False), envvar="ADVANCED_MEDIA_COMMENTS",
    help="Comment store file (default: ~/.advanced_media/comments.json)"
)


@click.group()
def cli():
    """Advanced Media - playback limits and comment moderation."""


@cli.command()
def plans():
    """List the subscription plans and their watch-time limits."""
    table = Table(title="Subscription Plans")
    table.add_column("Plan", style="cyan")
    table.add_column("Price", style="green", justify="right")
    table.add_column("Time Limit", style="yellow")
    table.add_column("Features", style="white")

    for plan in PLANS:
        limit = "Unlimited" if plan.is_unlimited else f"{plan.time_limit_seconds // 60} min"
        price = f"₹{plan.price}" + ("/month" if plan.price > 0 else "")
        table.add_row(plan.name, price, limit, ", ".join(plan.features))

    console.print(table)


@cli.command()
@comments_option
@click.option("--clear", is_flag=True, help="Delete all stored comments")
def comments(comments_path: str | None, clear: bool):
    """Show stored comments, newest first."""
    if clear:
        JsonCommentStore(_make_config(comments_path).comments_path).clear()
        console.print("[green]✓[/green] Comments cleared")
        return
    print_comments(_moderator(comments_path).comments)


@cli.command()
@click.argument("author")
@click.argument("text")
@comments_option
def post(author: str, text: str, comments_path: str | None):
    """Post a comment as AUTHOR."""
    moderator = _moderator(comments_path)
    try:
        comment = moderator.submit(author, text)
    except AdvancedMediaError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]✓[/green] Posted comment {comment.id[:8]}")


@cli.command()
@click.argument("comment_id")
@comments_option
def like(comment_id: str, comments_path: str | None):
    """Like a comment."""
    moderator = _moderator(comments_path)
    comment = moderator.like(_resolve_id(moderator, comment_id))
    if comment is None:
        console.print(f"[yellow]Comment {comment_id} not found[/yellow]")
    else:
        console.print(f"[green]✓[/green] {comment.likes} likes")


@cli.command()
@click.argument("comment_id")
@comments_option
def dislike(comment_id: str, comments_path: str | None):
    """Dislike a comment (removed on reaching the dislike threshold)."""
    moderator = _moderator(comments_path)
    resolved = _resolve_id(moderator, comment_id)
    if moderator.get(resolved) is None:
        console.print(f"[yellow]Comment {comment_id} not found[/yellow]")
        return
    if not moderator.dislike(resolved):
        console.print(f"[green]✓[/green] {moderator.get(resolved).dislikes} dislikes")


@cli.command()
@click.argument("text")
@click.option("--lang", "target_lang", type=click.Choice(AVAILABLE_LANGUAGES), default="en",
              help="Target language code")
@click.option("--model", default=None, help="Gemini model (default from config)")
def translate(text: str, target_lang: str, model: str | None):
    """Translate TEXT with the configured Gemini model."""
    config = Config(translation_model=model) if model else Config()
    translator = GeminiTranslator(config)
    if not translator.is_available():
        raise click.ClickException("Translation unavailable (API key missing)")

    try:
        console.print(translator.translate(text, target_lang))
    except TranslationError as e:
        raise click.ClickException(f"Translation failed: {e}")


@cli.command("translate-comment")
@click.argument("comment_id")
@click.option("--lang", "target_lang", type=click.Choice(AVAILABLE_LANGUAGES), default="en",
              help="Target language code")
@comments_option
def translate_comment(comment_id: str, target_lang: str, comments_path: str | None):
    """Translate a stored comment; a repeat is served from the saved translation."""
    # Worker results are delivered through the Qt event loop
    app = QCoreApplication.instance() or QCoreApplication([])

    moderator = _moderator(comments_path, with_translator=True)
    resolved = _resolve_id(moderator, comment_id)
    try:
        state = moderator.request_translation(resolved, target_lang)
    except AdvancedMediaError as e:
        raise click.ClickException(str(e))

    if isinstance(state, InFlight):
        console.print(f"[dim]Translating comment {resolved[:8]} to {target_lang}...[/dim]")
        state = _wait_for_translation(moderator, resolved)

    if isinstance(state, Failed):
        raise click.ClickException(state.message)
    translation = escape(f"[{state.target_lang}] {state.text}")
    console.print(f"[green]✓[/green] {translation}")


@cli.command()
@click.option("--user", "author_id", default=None, help="Logged-in user name for posting comments")
@click.option("--plan", "plan_id", type=click.Choice([p.id for p in PLANS]), default="free",
              help="Subscription plan to start with")
@comments_option
def watch(author_id: str | None, plan_id: str, comments_path: str | None):
    """Open the watch window."""
    from .gui_main import main as gui_main

    print_banner()
    config = _make_config(comments_path)
    config.default_plan_id = plan_id
    gui_main(author_id=author_id, config=config)


if __name__ == "__main__":
    cli()
