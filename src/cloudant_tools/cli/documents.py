"""Document management commands."""

import json
import sys

import click
from rich.console import Console

from ..client import CloudantNotFoundError, CloudantV1

console = Console()


@click.group()
def doc():
    """Manage documents."""
    pass


@doc.command("get")
@click.argument("db_name")
@click.argument("doc_id")
@click.option("--rev", "-r", help="Document revision")
@click.option("--conflicts", is_flag=True, help="Include conflicted revisions")
def get_document(db_name: str, doc_id: str, rev: str | None, conflicts: bool):
    """Get a document as JSON."""
    with CloudantV1() as service:
        try:
            result = service.get_document(
                db=db_name, doc_id=doc_id, rev=rev, conflicts=conflicts or None
            ).result
        except CloudantNotFoundError:
            console.print(f"[red]Document not found:[/red] {doc_id}")
            raise click.Abort()

        console.print_json(json.dumps(result))


@doc.command("put")
@click.argument("db_name")
@click.argument("doc_id")
@click.argument("document")
@click.option("--rev", "-r", help="Revision to update")
def put_document(db_name: str, doc_id: str, document: str, rev: str | None):
    """Create or update a document from a JSON string.

    Use '-' as DOCUMENT to read the JSON from stdin.
    """
    if document == "-":
        document = sys.stdin.read()
    try:
        body = json.loads(document)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid document JSON: {e}[/red]")
        return

    if not isinstance(body, dict):
        console.print("[red]Document must be a JSON object[/red]")
        return

    with CloudantV1() as service:
        result = service.put_document(db=db_name, doc_id=doc_id, document=body, rev=rev).result
        console.print(f"[green]Saved document:[/green] {result.get('id', doc_id)} (rev {result.get('rev', '?')})")


@doc.command("delete")
@click.argument("db_name")
@click.argument("doc_id")
@click.option("--rev", "-r", required=True, help="Revision to delete")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def delete_document(db_name: str, doc_id: str, rev: str, yes: bool):
    """Delete a document."""
    if not yes:
        click.confirm(f"Delete document '{doc_id}'?", abort=True)

    with CloudantV1() as service:
        result = service.delete_document(db=db_name, doc_id=doc_id, rev=rev).result
        console.print(f"[green]Deleted document:[/green] {doc_id} (rev {result.get('rev', '?')})")
