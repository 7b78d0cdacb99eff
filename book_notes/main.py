import os
import subprocess
import sys
import webbrowser
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from book_notes.config import configure_logging, settings
from book_notes.exceptions import BookValidationError, StoreError
from book_notes.library import Library, SortKey
from book_notes.storage import STORES, create_store

APP_NAME = "Book Notes CLI"

console = Console()
app = typer.Typer(help=APP_NAME, no_args_is_help=True)


class CLIState:
    """Store selection shared by every command."""

    def __init__(self) -> None:
        self.settings = settings

    @contextmanager
    def library(self) -> Iterator[Library]:
        store = create_store(self.settings)
        store.open()
        try:
            yield Library(store)
        finally:
            store.close()


state = CLIState()


@app.callback()
def _global_options(
    store: Optional[str] = typer.Option(
        None,
        "--store",
        "-s",
        help=f"Record store: {' | '.join(sorted(STORES))} (default: {settings.store_backend})",
    ),
    path: Optional[str] = typer.Option(None, "--path", "-p", help="Database or JSON file to use"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level for CLI commands"),
):
    """Global options for every command."""
    configure_logging(log_level)
    selected = settings
    if store:
        if store not in STORES:
            console.print(f"[bold red]Unknown store '{escape(store)}'. Allowed: {', '.join(sorted(STORES))}[/]")
            raise typer.Exit(code=2)
        selected = replace(selected, store_backend=store)
    if path:
        field_name = "json_file" if selected.store_backend == "json" else "database_file"
        selected = replace(selected, **{field_name: path})
    state.settings = selected


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port"),
    open_browser: bool = typer.Option(False, "--open-browser", help="Open the web UI in a browser"),
):
    """Run the web UI with uvicorn."""
    host = host or state.settings.api_host
    port = port or state.settings.api_port
    url = f"http://{host}:{port}"
    console.print(f"Starting web UI on {url} ({state.settings.store_backend} store: {state.settings.store_path})")
    if open_browser:
        webbrowser.open(url)
    env_overrides = {
        "BOOK_STORE": state.settings.store_backend,
        "LIBRARY_DB_FILE": state.settings.database_file,
        "LIBRARY_JSON_FILE": state.settings.json_file,
    }
    subprocess.run(
        [sys.executable, "-m", "uvicorn", "book_notes.api:app", "--host", host, "--port", str(port)],
        env={**os.environ, **env_overrides},
        check=False,
    )


@app.command("init")
def cli_init():
    """Create the record store if it does not exist yet."""
    try:
        with state.library() as library:
            total = library.count()
    except StoreError as e:
        console.print(f"[bold red]Could not initialise store: {escape(str(e))}[/]")
        raise typer.Exit(code=1)
    console.print(f"Store ready at {state.settings.store_path} ({total} books).")


@app.command("list")
def cli_list(
    sort: Optional[str] = typer.Option(None, help="rating | alphabetical"),
    search: Optional[str] = typer.Option(None, help="Filter on title or author"),
):
    """List books (covers are not looked up here)."""
    if sort and SortKey.parse(sort) is None:
        console.print(f"[yellow]Unknown sort '{escape(sort)}', using storage order.[/]")
    with state.library() as library:
        books = library.find_books(sort=sort, search=search)

    if not books:
        console.print("No books in library.")
        return

    table = Table(title="Books")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Rating", justify="center")
    table.add_column("ISBN")
    for book in books:
        table.add_row(
            str(book.id),
            escape(book.title),
            escape(book.author),
            "★" * book.rating,
            escape(book.cover_identifier or "-"),
        )
    console.print(table)


@app.command("add")
def cli_add(
    title: str,
    author: str,
    rating: str,
    isbn: Optional[str] = typer.Option(None, help="ISBN used for the cover lookup"),
    notes: Optional[str] = typer.Option(None, help="Free-text notes"),
):
    """Add a book."""
    form = {"title": title, "author": author, "rating": rating, "isbn": isbn, "notes": notes}
    try:
        with state.library() as library:
            book = library.add_book(form)
    except BookValidationError as e:
        for message in e.messages:
            console.print(f"[red]{escape(message)}[/]")
        raise typer.Exit(code=1)
    except StoreError as e:
        console.print(f"[bold red]Could not add book: {escape(str(e))}[/]")
        raise typer.Exit(code=1)
    console.print(f"Successfully added: {escape(book.title)} by {escape(book.author)} (id {book.id})")


@app.command("remove")
def cli_remove(book_id: int):
    """Remove a book by id."""
    with state.library() as library:
        removed = library.remove_book(book_id)
    if removed:
        console.print(f"Book {book_id} has been removed.")
    else:
        console.print(f"Book {book_id} not found, nothing removed.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
