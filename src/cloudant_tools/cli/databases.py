"""Database management commands."""

import json

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..client import CloudantV1

console = Console()


@click.group()
def db():
    """Manage databases."""
    pass


@db.command("list")
@click.option("--limit", "-l", type=int, help="Max databases")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_databases(limit: int | None, as_json: bool):
    """List all databases."""
    with CloudantV1() as service:
        result = service.get_all_dbs(limit=limit).result

        if as_json:
            console.print_json(json.dumps(result))
            return

        if not result:
            console.print("[yellow]No databases found.[/yellow]")
            return

        table = Table(title="Databases")
        table.add_column("Name", style="cyan")
        for name in result:
            table.add_row(name)

        console.print(table)


@db.command("info")
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def database_info(name: str, as_json: bool):
    """Show database details."""
    with CloudantV1() as service:
        result = service.get_database_information(db=name).result

        if as_json:
            console.print_json(json.dumps(result))
            return

        sizes = result.get("sizes", {})
        props = result.get("props", {})
        console.print(Panel(
            f"[bold]Documents:[/bold] {result.get('doc_count', '-')}\n"
            f"[bold]Deleted:[/bold] {result.get('doc_del_count', '-')}\n"
            f"[bold]Active size:[/bold] {sizes.get('active', '-')}\n"
            f"[bold]File size:[/bold] {sizes.get('file', '-')}\n"
            f"[bold]Partitioned:[/bold] {'yes' if props.get('partitioned') else 'no'}",
            title=f"[cyan]{name}[/cyan]",
        ))


@db.command("create")
@click.argument("name")
@click.option("--partitioned", is_flag=True, help="Create a partitioned database")
@click.option("--shards", "-q", type=int, help="Number of shards")
def create_database(name: str, partitioned: bool, shards: int | None):
    """Create a database."""
    with CloudantV1() as service:
        service.put_database(db=name, partitioned=partitioned or None, q=shards)
        console.print(f"[green]Created database:[/green] {name}")


@db.command("delete")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def delete_database(name: str, yes: bool):
    """Delete a database."""
    if not yes:
        click.confirm(f"Delete database '{name}' and ALL its documents?", abort=True)

    with CloudantV1() as service:
        service.delete_database(db=name)
        console.print(f"[green]Deleted database:[/green] {name}")
