"""Command-line interface for igsnap."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from igsnap import ProfileScraper, ScraperConfig, save_json, __version__
from igsnap.config import LogFormat
from igsnap.core.exporter import save_csv
from igsnap.exceptions import IgsnapError
from igsnap.models.snapshot import ProfileSnapshot, SnapshotStatus

app = typer.Typer(
    name="igsnap",
    help="Instagram profile snapshots via Apify",
    add_completion=False,
)
console = Console()

STATUS_STYLES = {
    SnapshotStatus.SUCCESS: "green",
    SnapshotStatus.PARTIAL_DATA: "yellow",
    SnapshotStatus.EMPTY_OR_PRIVATE: "yellow",
    SnapshotStatus.ERROR: "red",
    SnapshotStatus.NOT_FOUND: "red",
}


def version_callback(value: bool):
    if value:
        console.print(f"igsnap version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """igsnap - Instagram profile snapshots via Apify."""
    pass


@app.command()
def scrape(
    usernames: list[str] = typer.Argument(..., help="Instagram usernames to scrape"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Also write each snapshot as JSON into this directory"
    ),
    delay: int = typer.Option(
        1000, "--delay", "-d", help="Delay between profiles in ms"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress output, only show errors"
    ),
):
    """Scrape one or more profiles and store the snapshots."""
    config = ScraperConfig(
        request_delay_ms=delay,
        log_format=LogFormat.CONSOLE if not quiet else LogFormat.JSON,
    )

    async def run():
        async with ProfileScraper(config) as scraper:
            snapshots = await scraper.run_many(usernames)

            for snapshot in snapshots:
                if not quiet or snapshot.status != SnapshotStatus.SUCCESS:
                    _print_snapshot(snapshot)

                if output:
                    filepath = save_json(snapshot, output / f"{snapshot.username}.json")
                    console.print(f"[dim]Saved to {filepath}[/dim]")

            success_count = sum(1 for s in snapshots if s.status == SnapshotStatus.SUCCESS)
            console.print(f"\n[bold]Scraped {success_count}/{len(snapshots)} profiles[/bold]")

    try:
        asyncio.run(run())
    except IgsnapError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)


@app.command()
def show(
    username: str = typer.Argument(..., help="Instagram username"),
    refresh: bool = typer.Option(
        False, "--refresh", "-r", help="Scrape even if a snapshot is stored"
    ),
):
    """Show the stored snapshot for a profile, scraping it if missing."""
    config = ScraperConfig()

    async def run():
        async with ProfileScraper(config) as scraper:
            if refresh:
                return await scraper.run(username)
            return await scraper.lookup(username)

    try:
        snapshot = asyncio.run(run())
    except IgsnapError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)

    if snapshot is None:
        console.print(f"[red]No snapshot stored for @{username}[/red]")
        raise typer.Exit(1)

    _print_profile_table(snapshot)


@app.command()
def export(
    username: str = typer.Argument(..., help="Instagram username"),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Write the snapshot as JSON"),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Write the posts as CSV (needs pandas)"),
):
    """Export a stored snapshot without scraping."""
    if not json_path and not csv_path:
        console.print("[red]Pass --json and/or --csv[/red]")
        raise typer.Exit(1)

    config = ScraperConfig(scrape_on_miss=False)

    async def run():
        async with ProfileScraper(config) as scraper:
            return await scraper.get(username)

    try:
        snapshot = asyncio.run(run())
    except IgsnapError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)

    if snapshot is None:
        console.print(f"[red]No snapshot stored for @{username}[/red]")
        raise typer.Exit(1)

    if json_path:
        console.print(f"[green]✓[/green] Saved {save_json(snapshot, json_path)}")
    if csv_path:
        try:
            console.print(f"[green]✓[/green] Saved {save_csv(snapshot, csv_path)}")
        except ImportError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("igsnap.api:app", host=host, port=port)


def _print_snapshot(snapshot: ProfileSnapshot):
    """Print snapshot summary."""
    p = snapshot.user
    style = STATUS_STYLES.get(snapshot.status, "white")

    console.print(f"\n[bold]@{p.username}[/bold] [{style}]{snapshot.status.value}[/{style}]")
    if p.full_name:
        console.print(f"  {p.full_name}")
    if p.biography:
        console.print(f"  [dim]{p.biography[:80]}{'...' if len(p.biography) > 80 else ''}[/dim]")
    console.print(f"  [blue]{p.followers_count:,}[/blue] followers · {p.following_count:,} following")
    console.print(f"  [dim]{len(snapshot.posts)} posts fetched[/dim]")
    if snapshot.error:
        console.print(f"  [{style}]{snapshot.error}[/{style}]")


def _print_profile_table(snapshot: ProfileSnapshot):
    """Print detailed profile as table."""
    p = snapshot.user

    table = Table(title=f"@{p.username}", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("Full Name", p.full_name or "-")
    table.add_row("Biography", p.biography or "-")
    table.add_row("Followers", f"{p.followers_count:,}")
    table.add_row("Following", f"{p.following_count:,}")
    table.add_row("Verified", "✓" if p.verified else "✗")
    table.add_row("Website", p.external_url or "-")
    table.add_row("Status", snapshot.status.value)
    table.add_row("Scraped At", snapshot.scraped_at.isoformat())

    console.print(table)

    if snapshot.posts:
        console.print(f"\n[bold]Recent Posts ({len(snapshot.posts)})[/bold]")
        for post in snapshot.posts[:5]:
            caption = post.caption.replace("\n", " ")
            text = caption[:60] + "..." if len(caption) > 60 else caption
            console.print(f"[dim]{post.likes_count:>7,}♥ {len(post.images)}img[/dim]  {text}")


if __name__ == "__main__":
    app()
