"""CLI commands for the book club platform.

Commands:
- init-db: create the database schema
- seed: insert the achievement catalog and sample challenges
- serve: run the API with uvicorn
- tiers: show tier limits and features
- characters: list the prebuilt literary characters
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from bookclub.config.app_config import load_app_config
from bookclub.config.characters import list_characters
from bookclub.config.tiers import TIER_ORDER, get_chat_limits, get_subscription_features, get_tier_limits
from bookclub.core.achievements import seed_catalog
from bookclub.core.challenges import seed_sample_challenges
from bookclub.db.database import get_db_path, init_db

app = typer.Typer(
    name="bookclub",
    help="Book club platform: reading tracking, community and AI characters.",
    no_args_is_help=True,
)

console = Console()


def _db_path(db: Path | None) -> Path:
    return db or Path(load_app_config().database.path)


def _limit(value: int | None) -> str:
    if value is None or value < 0:
        return "unlimited"
    return str(value)


@app.command(name="init-db")
def init_database(
    db: Path | None = typer.Option(None, "--db", help="Database file (default from config)"),
) -> None:
    """Create the database schema."""
    init_db(_db_path(db))
    console.print(f"[green]✓ Database ready[/green] [dim]{get_db_path()}[/dim]")


@app.command()
def seed(
    db: Path | None = typer.Option(None, "--db", help="Database file (default from config)"),
) -> None:
    """Insert the achievement catalog and sample challenges. Safe to re-run."""
    init_db(_db_path(db))
    achievements = seed_catalog()
    challenges = seed_sample_challenges()
    console.print(f"[green]✓ {achievements} achievements in catalog[/green]")
    console.print(f"[green]✓ {challenges} sample challenges added[/green]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API."""
    import uvicorn

    console.print(f"[blue]Starting API on http://{host}:{port}[/blue]")
    uvicorn.run("bookclub.web.api:app", host=host, port=port, reload=reload)


@app.command()
def tiers() -> None:
    """Show subscription tier limits and features."""
    table = Table(title="Subscription tiers")
    table.add_column("Limit / feature", style="bold")
    for tier in TIER_ORDER:
        table.add_column(tier)

    limits = {tier: get_tier_limits(tier) for tier in TIER_ORDER}
    chat_limits = {tier: get_chat_limits(tier) for tier in TIER_ORDER}
    table.add_row("diary books", *(_limit(limits[t].diary_books) for t in TIER_ORDER))
    table.add_row("booklist size", *(_limit(limits[t].max_booklist_size) for t in TIER_ORDER))
    table.add_row("AI chats / month", *(_limit(limits[t].ai_chats_per_month) for t in TIER_ORDER))
    table.add_row("active AI chats", *(_limit(chat_limits[t].max_active_chats) for t in TIER_ORDER))
    table.add_row("AI messages / day", *(_limit(chat_limits[t].max_messages_per_day) for t in TIER_ORDER))

    features = {tier: get_subscription_features(tier) for tier in TIER_ORDER}
    for name in features["free"]:
        cells = []
        for tier in TIER_ORDER:
            value = features[tier][name]
            if isinstance(value, bool):
                cells.append("[green]yes[/green]" if value else "[dim]no[/dim]")
            else:
                cells.append(_limit(value))
        table.add_row(name.replace("_", " "), *cells)

    console.print(table)


@app.command()
def characters() -> None:
    """List the prebuilt literary characters."""
    table = Table(title="Prebuilt characters")
    table.add_column("id", style="cyan")
    table.add_column("name")
    table.add_column("book")
    table.add_column("author", style="dim")
    for character in list_characters():
        table.add_row(character.id, character.name, character.book, character.author)
    console.print(table)


if __name__ == "__main__":
    app()
