"""Command-line interface for resourcedb.

This module provides a Typer-based CLI for operating the resource store
directly, without the web front end.

Commands:
- init: Create the document store
- status: Show topics with resource and pin counts
- topics / create-topic / rename-topic / drop-topic: Manage topics
- list / add / update / delete: Manage resources in a topic
- pin / unpin: Maintain the pin index
- move: Move a resource to another topic
- reconcile: Rebuild pin indexes from the resources' pinned flags

Example:
    $ resourcedb create-topic python
    $ resourcedb add python -D "Docs" -k "reference,stdlib" -l https://docs.python.org
    $ resourcedb list python
    $ resourcedb reconcile
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from resourcedb.config import settings
from resourcedb.errors import ResourceDBError
from resourcedb.logging import setup_logging
from resourcedb.service import ResourceService, open_service
from resourcedb.utils import utc_now_millis

# Initialize CLI app
app = typer.Typer(
    name="resourcedb",
    help="Topic-organized bookmark store with pinned resources",
    add_completion=False,
)
console = Console()

DatabaseOption = typer.Option(
    None,
    "--database",
    "-d",
    help="Path to the SQLite store (defaults to settings.database_path)",
)
VerboseOption = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Enable verbose logging",
)
JsonOption = typer.Option(
    False,
    "--json",
    help="Print raw JSON instead of a table",
)


# =============================================================================
# Helper Functions
# =============================================================================


def configure_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, set DEBUG level; otherwise WARNING
    """
    setup_logging(
        level="DEBUG" if verbose else "WARNING",
        json_logs=settings.log_json,
        log_file=settings.log_file,
        colorize=not settings.log_json,
    )


@contextmanager
def service_for(database: Optional[Path], action: str) -> Iterator[ResourceService]:
    """Open a service and turn store errors into a red message and exit 1."""
    try:
        with open_service(database_path=database) as service:
            yield service
    except ResourceDBError as e:
        console.print(f"\n❌ [bold red]{action} failed: {escape(e.message)}[/bold red]")
        raise typer.Exit(code=1)


def print_resources(resources: list[dict[str, Any]], title: str, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(resources, indent=2))
        return

    table = Table(title=title)
    table.add_column("", width=2)
    table.add_column("ID", style="dim")
    table.add_column("Description", style="cyan")
    table.add_column("Keywords", style="yellow")
    table.add_column("Link", style="green")
    for resource in resources:
        table.add_row(
            "📌" if resource.get("isPinned") else "",
            resource["id"],
            escape(resource["description"]),
            escape(", ".join(resource["keywords"])),
            escape(resource["link"]),
        )
    console.print(table)


def merged_body(
    service: ResourceService,
    topic: str,
    doc_id: str,
    description: Optional[str],
    keywords: Optional[str],
    link: Optional[str],
) -> dict[str, Any]:
    """Fill options the user left out with the resource's current values."""
    if description is not None and keywords is not None and link is not None:
        return {"description": description, "keywords": keywords, "link": link}
    current = service.resources.get(topic, doc_id)
    return {
        "description": current.description if description is None else description,
        "keywords": current.keywords if keywords is None else keywords,
        "link": current.link if link is None else link,
    }


# =============================================================================
# Store Commands
# =============================================================================


@app.command()
def init(
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Create the document store if it does not exist yet.

    Examples:
        $ resourcedb init
        $ resourcedb init --database ./bookmarks.db
    """
    configure_logging(verbose)

    db_path = database or settings.database_path
    existed = Path(str(db_path)).exists()
    with service_for(database, "Initialization"):
        pass

    if existed:
        console.print(f"⚠️  Store already exists at [yellow]{db_path}[/yellow]")
    else:
        console.print(f"✅ Store created at [yellow]{db_path}[/yellow]")


@app.command()
def status(
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show every topic with its resource and pin counts.

    Examples:
        $ resourcedb status
    """
    configure_logging(verbose)

    console.print("📊 [bold cyan]resourcedb Status[/bold cyan]\n")
    console.print(f"📍 Store: [yellow]{database or settings.database_path}[/yellow]\n")

    with service_for(database, "Status") as service:
        table = Table(title="Topics")
        table.add_column("Topic", style="cyan")
        table.add_column("Resources", justify="right", style="green")
        table.add_column("Pinned", justify="right", style="yellow")
        table.add_column("Pin index", justify="right", style="magenta")

        for topic in service.topics.list_topics():
            resources = service.resources.list(topic)
            pinned = sum(1 for resource in resources if resource.isPinned)
            table.add_row(
                escape(topic),
                f"{len(resources):,}",
                f"{pinned:,}",
                f"{len(service.pinned_ids(topic)):,}",
            )

        console.print(table)


# =============================================================================
# Topic Commands
# =============================================================================


@app.command()
def topics(
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """List all topics."""
    configure_logging(verbose)

    with service_for(database, "Listing topics") as service:
        for name in service.get_collections().namespaces:
            console.print(f"• {name}", markup=False)


@app.command("create-topic")
def create_topic(
    name: str = typer.Argument(..., help="Topic name"),
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Create an empty topic.

    Examples:
        $ resourcedb create-topic "node.js"
    """
    configure_logging(verbose)

    with service_for(database, "Create topic") as service:
        created = service.create_collection({"collection": name})
    console.print(f"✅ [bold green]Created topic[/bold green] {escape(created.newNamespace)}")


@app.command("rename-topic")
def rename_topic(
    from_topic: str = typer.Argument(..., help="Current topic name"),
    to_topic: str = typer.Argument(..., help="New topic name"),
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Rename a topic, keeping its resources and pins."""
    configure_logging(verbose)

    with service_for(database, "Rename topic") as service:
        renamed = service.rename_collection(from_topic, to_topic)
    console.print(f"✅ [bold green]Renamed topic to[/bold green] {escape(renamed.updatedCollection)}")


@app.command("drop-topic")
def drop_topic(
    name: str = typer.Argument(..., help="Topic name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Drop a topic with all of its resources."""
    configure_logging(verbose)

    if not yes:
        typer.confirm(f"Drop topic {name!r} and all its resources?", abort=True)

    with service_for(database, "Drop topic") as service:
        service.drop_collection(name)
    console.print(f"🗑️  [bold green]Dropped topic[/bold green] {escape(name)}")


# =============================================================================
# Resource Commands
# =============================================================================


@app.command("list")
def list_resources(
    topic: str = typer.Argument(..., help="Topic name"),
    as_json: bool = JsonOption,
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """List a topic's resources, newest first."""
    configure_logging(verbose)

    with service_for(database, "Listing resources") as service:
        page = service.get_resources(topic)
    print_resources(page.docs, f"Resources in {topic}", as_json)


@app.command()
def add(
    topic: str = typer.Argument(..., help="Topic name"),
    description: str = typer.Option(..., "--description", "-D", help="What the link is about"),
    keywords: str = typer.Option(..., "--keywords", "-k", help="Comma-separated keywords"),
    link: str = typer.Option(..., "--link", "-l", help="URL of the resource"),
    created_at: Optional[float] = typer.Option(
        None,
        "--created-at",
        help="Creation time in epoch milliseconds (defaults to now)",
    ),
    as_json: bool = JsonOption,
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Add a resource to a topic.

    Examples:
        $ resourcedb add python -D "Docs" -k "reference,stdlib" -l https://docs.python.org
    """
    configure_logging(verbose)

    body = {
        "description": description,
        "keywords": keywords,
        "link": link,
        "createdAt": utc_now_millis() if created_at is None else created_at,
    }
    with service_for(database, "Add") as service:
        resource = service.create_resource(topic, body)
    print_resources([resource], "Added", as_json)


@app.command()
def update(
    topic: str = typer.Argument(..., help="Topic name"),
    doc_id: str = typer.Argument(..., metavar="ID", help="Resource id"),
    description: Optional[str] = typer.Option(None, "--description", "-D"),
    keywords: Optional[str] = typer.Option(None, "--keywords", "-k", help="Comma-separated keywords"),
    link: Optional[str] = typer.Option(None, "--link", "-l"),
    as_json: bool = JsonOption,
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Change a resource's description, keywords or link."""
    configure_logging(verbose)

    with service_for(database, "Update") as service:
        body = merged_body(service, topic, doc_id, description, keywords, link)
        resource = service.update_resource(topic, doc_id, body)
    print_resources([resource], "Updated", as_json)


@app.command()
def move(
    from_topic: str = typer.Argument(..., help="Current topic"),
    to_topic: str = typer.Argument(..., help="Destination topic"),
    doc_id: str = typer.Argument(..., metavar="ID", help="Resource id"),
    description: Optional[str] = typer.Option(None, "--description", "-D"),
    keywords: Optional[str] = typer.Option(None, "--keywords", "-k", help="Comma-separated keywords"),
    link: Optional[str] = typer.Option(None, "--link", "-l"),
    as_json: bool = JsonOption,
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Move a resource to another topic (it gets a new id)."""
    configure_logging(verbose)

    with service_for(database, "Move") as service:
        body = merged_body(service, from_topic, doc_id, description, keywords, link)
        resource = service.move_resource(from_topic, to_topic, doc_id, body)
    print_resources([resource], f"Moved to {to_topic}", as_json)


@app.command()
def delete(
    topic: str = typer.Argument(..., help="Topic name"),
    doc_id: str = typer.Argument(..., metavar="ID", help="Resource id"),
    as_json: bool = JsonOption,
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Delete a resource."""
    configure_logging(verbose)

    with service_for(database, "Delete") as service:
        resource = service.delete_resource(topic, doc_id)
    print_resources([resource], "Deleted", as_json)


# =============================================================================
# Pin Commands
# =============================================================================


@app.command()
def pin(
    topic: str = typer.Argument(..., help="Topic name"),
    doc_id: str = typer.Argument(..., metavar="ID", help="Resource id"),
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Pin a resource."""
    configure_logging(verbose)

    with service_for(database, "Pin") as service:
        resource = service.add_pin(topic, doc_id)
    console.print(f"📌 [bold green]Pinned[/bold green] {resource['id']}")


@app.command()
def unpin(
    topic: str = typer.Argument(..., help="Topic name"),
    doc_id: str = typer.Argument(..., metavar="ID", help="Resource id"),
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Unpin a resource."""
    configure_logging(verbose)

    with service_for(database, "Unpin") as service:
        resource = service.remove_pin(topic, doc_id)
    console.print(f"✅ [bold green]Unpinned[/bold green] {resource['id']}")


@app.command()
def reconcile(
    topic: Optional[str] = typer.Argument(None, help="Topic to repair (all topics if omitted)"),
    database: Optional[Path] = DatabaseOption,
    verbose: bool = VerboseOption,
) -> None:
    """Rebuild pin indexes from the resources' pinned flags.

    Use after a crash or store failure left pins and flags disagreeing.

    Examples:
        $ resourcedb reconcile
        $ resourcedb reconcile python
    """
    configure_logging(verbose)

    with service_for(database, "Reconcile") as service:
        report = service.reconcile(topic)

    table = Table(title="Pin index reconciliation")
    table.add_column("Topic", style="cyan")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Removed", justify="right", style="red")
    for name, (added, removed) in report.items():
        table.add_row(escape(name), str(len(added)), str(len(removed)))
    console.print(table)

    drifted = sum(1 for added, removed in report.values() if added or removed)
    if drifted:
        console.print(f"\n🔧 [bold yellow]Repaired {drifted} topic(s)[/bold yellow]")
    else:
        console.print("\n✅ [bold green]All pin indexes consistent[/bold green]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
