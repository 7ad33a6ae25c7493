"""
NFT Gallery CLI entrypoint
"""

import asyncio
import json
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import config
from .engine import AggregationEngine
from .errors import InvalidArgumentError
from .logging_setup import configure_logging
from .models import Item, QueryParams, SortDirection, SortKey
from .simulator import ActionSimulator

app = typer.Typer(help="NFT Gallery - browse, search and inspect NFT collections")
console = Console()


def get_engine() -> AggregationEngine:
    return AggregationEngine.from_config(config)


def get_simulator() -> ActionSimulator:
    return ActionSimulator.from_config(config)


@app.callback()
def main(log_level: str = typer.Option(config.log_level, "--log-level", help="Log level")):
    configure_logging(log_level)


def _run(description: str, coro, engine: Optional[AggregationEngine] = None):
    """Run a coroutine behind a spinner, closing ``engine`` afterwards"""

    async def run():
        try:
            return await coro
        finally:
            if engine is not None:
                await engine.close()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        return asyncio.run(run())


def _short(value: str, width: int = 20) -> str:
    return value[:width] + "..." if len(value) > width else value


def _items_table(title: str, items: List[Item]) -> Table:
    table = Table(title=title)
    table.add_column("Collection", style="magenta")
    table.add_column("Token ID", style="yellow")
    table.add_column("Name", style="white")
    table.add_column("Price (ETH)", style="green", justify="right")
    table.add_column("Listed", style="cyan")

    for item in items:
        table.add_row(
            item.collection.name if item.collection else _short(item.contract_address),
            _short(item.token_id),
            item.name,
            item.price,
            "✓" if item.is_listed else "✗",
        )
    return table


def _save(output: Optional[str], records: list):
    if output:
        with open(output, "w") as f:
            json.dump(records, f, indent=2, default=str)
        console.print(f"\n[green]Saved to {output}[/green]")


def _show_items(title: str, items: List[Item], output: Optional[str]):
    console.print(f"\n[bold green]Found {len(items)} items[/bold green]")
    if items:
        console.print(_items_table(title, items))
    _save(output, [item.dict() for item in items])


@app.command()
def owned(
    address: str = typer.Argument(..., help="Owner wallet address"),
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (JSON)"),
):
    """List items owned by a wallet"""
    engine = get_engine()
    items = _run(f"Fetching items owned by {address}...", engine.list_by_owner(address, network), engine)
    _show_items(f"Items owned by {address}", items, output)


@app.command()
def browse(
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum number of items"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (JSON)"),
):
    """Browse listed items across well-known collections"""
    engine = get_engine()
    items = _run("Fetching listed items...", engine.list_browsable(network, limit), engine)
    _show_items(f"Listed items on {network}", items, output)


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to match against collection and item names"),
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum number of items"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (JSON)"),
):
    """Search items by collection and item name"""
    engine = get_engine()
    items = _run(f"Searching for '{query}'...", engine.search(query, network, limit), engine)
    _show_items(f"Results for '{query}'", items, output)


@app.command()
def item(
    contract: str = typer.Argument(..., help="Collection contract address"),
    token_id: str = typer.Argument(..., help="Token ID (hex, with or without 0x)"),
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
):
    """Show a single item"""
    engine = get_engine()
    try:
        result = _run(f"Fetching {contract}#{token_id}...", engine.get_item_detail(contract, token_id, network), engine)
    except InvalidArgumentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    if result is None:
        console.print("[yellow]Item not found or unavailable[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=result.name)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Collection", result.collection.name if result.collection else "Unknown")
    table.add_row("Contract", result.contract_address)
    table.add_row("Token ID", result.token_id)
    table.add_row("Owner", result.owner)
    table.add_row("Price", f"{result.price} ETH")
    table.add_row("Listed", "✓" if result.is_listed else "✗")
    table.add_row("Image", result.image_url or "-")
    for trait in result.attributes:
        table.add_row(f"  {trait.trait_type}", str(trait.value))
    console.print(table)


@app.command()
def collections(
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
    page: int = typer.Option(1, help="Page number"),
    page_size: int = typer.Option(10, help="Collections per page"),
):
    """List well-known collections"""
    engine = get_engine()
    records = _run("Fetching collections...", engine.list_collections(network, page, page_size), engine)

    table = Table(title=f"Collections on {network} (page {page}, {engine.count_collections(network)} total)")
    table.add_column("Name", style="magenta")
    table.add_column("Symbol", style="yellow")
    table.add_column("Supply", style="white", justify="right")
    table.add_column("Address", style="cyan")
    for record in records:
        table.add_row(record.name, record.symbol, record.total_supply, record.address)
    console.print(table)


@app.command()
def collection(
    contract: str = typer.Argument(..., help="Collection contract address"),
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
    page: int = typer.Option(1, help="Page number"),
    page_size: int = typer.Option(20, help="Items per page"),
    sort_by: str = typer.Option("token_id", help="Sort key (token_id, name, price)"),
    sort_dir: SortDirection = typer.Option(SortDirection.ASC, help="Sort direction"),
    query: str = typer.Option("", "--query", "-q", help="Filter by name or token number"),
    trait: List[str] = typer.Option([], "--trait", "-t", help="Attribute filter as trait=value (repeatable)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (JSON)"),
):
    """Browse one collection with filters and sorting"""
    attributes = {}
    for pair in trait:
        name, sep, value = pair.partition("=")
        if not sep:
            console.print(f"[red]Invalid --trait '{pair}', expected trait=value[/red]")
            raise typer.Exit(code=2)
        attributes.setdefault(name.strip(), []).append(value.strip())

    params = QueryParams(
        network=network,
        page=page,
        page_size=page_size,
        sort_by=SortKey.from_string(sort_by),
        sort_dir=sort_dir,
        query=query,
        attributes=attributes,
    )
    engine = get_engine()
    result = _run(f"Fetching collection {contract}...", engine.browse_collection(contract, params), engine)

    _show_items(f"Collection {contract}", result.items, None)
    for name, values in result.facets.items():
        console.print(f"[dim]{name}:[/dim] {', '.join(values)}")
    if result.has_more:
        console.print(f"\n[dim]More items on page {page + 1}[/dim]")
    _save(output, [record.dict() for record in result.items])


@app.command()
def buy(
    contract: str = typer.Argument(..., help="Collection contract address"),
    token_id: str = typer.Argument(..., help="Token ID"),
    buyer: str = typer.Option(..., "--buyer", help="Buyer wallet address"),
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
):
    """Simulate buying an item (no transaction is sent)"""
    try:
        receipt = _run("Confirming purchase...", get_simulator().purchase(token_id, contract, network, buyer))
    except InvalidArgumentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)
    console.print(f"[bold green]Simulated purchase[/bold green] tx {receipt.transaction_hash}")


@app.command(name="list")
def list_for_sale(
    contract: str = typer.Argument(..., help="Collection contract address"),
    token_id: str = typer.Argument(..., help="Token ID"),
    price: str = typer.Option(..., "--price", help="Price in ETH"),
    owner: str = typer.Option(..., "--owner", help="Owner wallet address"),
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
):
    """Simulate listing an item for sale (no transaction is sent)"""
    try:
        receipt = _run("Confirming listing...", get_simulator().list_item(token_id, contract, price, owner, network))
    except InvalidArgumentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)
    console.print(f"[bold green]Simulated listing at {receipt.price} ETH[/bold green] tx {receipt.transaction_hash}")


@app.command()
def cancel(
    contract: str = typer.Argument(..., help="Collection contract address"),
    token_id: str = typer.Argument(..., help="Token ID"),
    owner: str = typer.Option(..., "--owner", help="Owner wallet address"),
    network: str = typer.Option(config.default_network, help="Network (mainnet, sepolia)"),
):
    """Simulate cancelling a listing (no transaction is sent)"""
    try:
        receipt = _run("Cancelling listing...", get_simulator().cancel_listing(token_id, contract, owner, network))
    except InvalidArgumentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)
    console.print(f"[bold green]Simulated cancellation[/bold green] tx {receipt.transaction_hash}")


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run the API server on"),
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
):
    """Start the JSON API server"""
    import uvicorn
    from .api import app as api_app

    console.print(f"[bold green]Starting API server on {host}:{port}[/bold green]")
    uvicorn.run(api_app, host=host, port=port)


if __name__ == "__main__":
    app()
