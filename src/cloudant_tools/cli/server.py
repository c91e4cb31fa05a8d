"""Server information commands."""

import json

import click
from rich.console import Console

from ..client import CloudantConfig, CloudantV1

console = Console()


@click.group()
def server():
    """Inspect the server."""
    pass


@server.command("info")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def info(as_json: bool):
    """Show server version and features."""
    config = CloudantConfig()
    service = CloudantV1(config)

    if not as_json:
        console.print(f"[bold]URL:[/bold] {config.url}")
        console.print(f"[bold]Auth:[/bold] {config.resolved_auth_type}")
        console.print()

    try:
        result = service.get_server_information().result

        if as_json:
            console.print_json(json.dumps(result))
            return

        console.print(f"[green]{result.get('couchdb', 'Server')}[/green] version {result.get('version', 'unknown')}")

        vendor = result.get("vendor", {})
        if vendor:
            console.print(f"[bold]Vendor:[/bold] {vendor.get('name', 'unknown')} {vendor.get('version', '')}".rstrip())

        features = result.get("features", [])
        if features:
            console.print(f"[bold]Features:[/bold] {', '.join(features)}")

        if service.last_request_id:
            console.print(f"\n[dim]Request ID: {service.last_request_id}[/dim]")

    except Exception as e:
        console.print(f"[red]Server check failed:[/red] {e}")
        raise click.Abort()

    finally:
        service.close()


@server.command("uuids")
@click.option("--count", "-c", default=1, type=click.IntRange(1, 1000), help="Number of UUIDs")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def uuids(count: int, as_json: bool):
    """Generate UUIDs on the server."""
    with CloudantV1() as service:
        result = service.get_uuids(count=count).result

        if as_json:
            console.print_json(json.dumps(result))
            return

        for uuid in result.get("uuids", []):
            console.print(uuid)
