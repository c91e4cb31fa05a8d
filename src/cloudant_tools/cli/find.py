"""Query command."""

import json

import click
from rich.console import Console
from rich.table import Table

from ..client import CloudantV1
from ..pagination import PagerType, Pagination

console = Console()


def _cell(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, str):
        return value
    return json.dumps(value)


@click.command()
@click.argument("db_name")
@click.argument("selector")
@click.option("--limit", "-l", default=25, type=click.IntRange(1, 200), help="Results per page")
@click.option("--fields", "-f", multiple=True, help="Field to return (repeatable)")
@click.option("--all", "fetch_all", is_flag=True, help="Fetch every page of results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def find(db_name: str, selector: str, limit: int, fields: tuple[str, ...], fetch_all: bool, as_json: bool):
    """Find documents matching a selector.

    SELECTOR is a Mango selector as JSON, e.g. '{"type": "order"}'.
    """
    try:
        selector_dict = json.loads(selector)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid selector JSON: {e}[/red]")
        return

    with CloudantV1() as service:
        params = {
            "db": db_name,
            "selector": selector_dict,
            "limit": limit,
            "fields": list(fields) or None,
        }

        if fetch_all:
            pagination = Pagination.new_pagination(service, PagerType.POST_FIND, **params)
            docs = pagination.pager().get_all()
            warning = None
        else:
            result = service.post_find(**params).result
            docs = result.get("docs", [])
            warning = result.get("warning")

        if as_json:
            console.print_json(json.dumps(docs))
            return

        if not docs:
            console.print("[yellow]No documents found.[/yellow]")
            return

        columns = list(fields) or ["_id", "_rev"]
        table = Table(title=f"{db_name} ({len(docs)} documents)")
        for column in columns:
            table.add_column(column, style="cyan" if column == "_id" else None)

        for d in docs:
            table.add_row(*(_cell(d.get(c)) for c in columns))

        console.print(table)

        if warning:
            console.print(f"\n[yellow]{warning}[/yellow]")
        if not fetch_all and len(docs) == limit:
            console.print("\n[dim]More results may be available. Use --all to fetch every page.[/dim]")
