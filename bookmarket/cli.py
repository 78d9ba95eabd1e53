# bookmarket/cli.py
"""Command line helpers: create tables, add users, browse the catalog."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .auth import hash_password
from .catalog import CatalogQueryService
from .config import get_settings
from .database import init_models
from .errors import BookMarketError
from .schemas import CatalogQuery
from .store import build_stores
from .store.json_file import write_json
from .validation import parse_user

console = Console()
app = typer.Typer(help="Book marketplace administration")


@app.command("init-db")
def init_db() -> None:
    """Create the SQL tables, or empty JSON files for the file backend."""
    settings = get_settings()
    stores = build_stores(settings)
    if stores.engine is not None:

        async def run() -> None:
            await init_models(stores.engine)
            await stores.engine.dispose()

        asyncio.run(run())
        console.print(f"[green]Tables created in {settings.database_url}[/green]")
        return
    for path in (settings.books_file, settings.users_file):
        if not path.exists():
            write_json(path, [])
    console.print(f"[green]Data files ready in {settings.data_dir}[/green]")


@app.command("create-user")
def create_user(
    name: str = typer.Argument(..., help="Display name"),
    email: str = typer.Option(..., "--email", "-e", help="Login email"),
    password: str = typer.Option(..., "--password", "-p", help="Password (at least 6 characters)"),
    image: Optional[str] = typer.Option(None, "--image", help="Avatar URL"),
) -> None:
    """Add a user who can log in."""
    stores = build_stores(get_settings())

    async def run():
        try:
            user = parse_user({"name": name, "email": email, "password": password, "image": image})
            user = user.model_copy(update={"password": hash_password(user.password)})
            return await stores.users.create(user)
        finally:
            if stores.engine is not None:
                await stores.engine.dispose()

    try:
        created = asyncio.run(run())
    except BookMarketError as e:
        console.print(f"[red]❌ Failed to create user: {e.message}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"[green]Created user {created.id} <{created.email}>[/green]")


@app.command("list-books")
def list_books(
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(10, "--page-size", min=1),
    search: str = typer.Option("", "--search", "-s", help="Title substring"),
    sort: str = typer.Option("none", "--sort", help="asc, desc or none"),
    owner: Optional[int] = typer.Option(None, "--owner", help="Only books of this user id"),
    category: Optional[str] = typer.Option(None, "--category", "-c"),
) -> None:
    """Print one page of the catalog."""
    if sort not in ("asc", "desc", "none"):
        console.print("[red]--sort must be one of asc, desc, none[/red]")
        raise typer.Exit(code=2)
    settings = get_settings()
    stores = build_stores(settings)
    catalog = CatalogQueryService(stores.books, strict_reads=True)
    params = CatalogQuery(
        page=page, page_size=page_size, search=search, sort=sort, owner_id=owner, category=category
    )

    async def run():
        try:
            return await catalog.query(params)
        finally:
            if stores.engine is not None:
                await stores.engine.dispose()

    try:
        result = asyncio.run(run())
    except BookMarketError as e:
        console.print(f"[red]❌ Failed to list books: {e.message}[/red]")
        raise typer.Exit(code=1) from e

    if not result.items:
        console.print(f"[yellow]No books found ({result.total} matching)[/yellow]")
        return

    table = Table(title=f"Books, page {result.page} of {result.total_pages}")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Author", style="blue")
    table.add_column("Category", style="magenta")
    table.add_column("Price", justify="right")
    table.add_column("Owner", style="yellow")
    for book in result.items:
        table.add_row(
            str(book.id), book.title, book.author, book.category, f"{book.price:.2f}", str(book.owner_id)
        )
    console.print(table)
    console.print(f"\n[green]{result.total} matching books[/green]")


if __name__ == "__main__":
    app()
