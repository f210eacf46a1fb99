import subprocess
import sys
from typing import Any, Optional

import httpx
import typer
from rich.console import Console

from config import settings
from utils.ui_helpers import set_output_mode, print_list_result, print_book_result

APP_NAME = "Book Catalog CLI"

console = Console()


# --- HTTP helpers ---
def _api_url(path: str = "") -> str:
    url = f"{settings.api_base_url}{settings.api_prefix}"
    return f"{url}/{path}" if path else url


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    return str(detail) if detail is not None else f"HTTP {response.status_code}"


def _call_api(method: str, path: str = "", **kwargs) -> Optional[Any]:
    """Send one request to the catalog API.

    Prints the server's error detail and returns None on a 4xx/5xx answer;
    exits with code 1 when the server cannot be reached.
    """
    try:
        response = httpx.request(method, _api_url(path), timeout=settings.cli_timeout, **kwargs)
    except httpx.RequestError as exc:
        print(f"Could not reach the API at {settings.api_base_url}: {exc}")
        raise typer.Exit(code=1)
    if response.status_code >= 400:
        print(f"Error: {_error_detail(response)}")
        return None
    return response.json()


# --- Typer CLI application ---
app = typer.Typer(help=APP_NAME)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global options for the CLI (e.g. output mode)."""
    if output:
        set_output_mode(output)


@app.command("list")
def cli_list():
    """List all books in the catalog."""
    books = _call_api("GET")
    if books is not None:
        print_list_result(books)


@app.command("recommend")
def cli_recommend():
    """Show up to three books available for borrowing."""
    books = _call_api("GET", "recommendations")
    if books is not None:
        print_list_result(books, empty_message="No books available right now.")


@app.command("add")
def cli_add(title: str, author: str, genre: str):
    """Add a book to the catalog."""
    book = _call_api("POST", json={"title": title, "author": author, "genre": genre})
    if book is not None:
        print(f"Successfully added: {book['title']} by {book['author']} (ID: {book['id']})")


@app.command("update")
def cli_update(
    book_id: str,
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    author: Optional[str] = typer.Option(None, "--author", help="New author"),
    genre: Optional[str] = typer.Option(None, "--genre", help="New genre"),
):
    """Change the title, author and/or genre of a book."""
    changes = {name: value for name, value in (("title", title), ("author", author), ("genre", genre))
               if value is not None}
    if not changes:
        print("Nothing to update. Provide --title, --author and/or --genre.")
        return
    book = _call_api("PUT", book_id, json=changes)
    if book is not None:
        print_book_result(book, "Book Updated")


@app.command("remove")
def cli_remove(book_id: str):
    """Remove a book by ID."""
    if _call_api("DELETE", book_id) is not None:
        print(f"Book with ID {book_id} has been removed.")


@app.command("borrow")
def cli_borrow(book_id: str, borrower_id: str):
    """Borrow a book for seven days."""
    book = _call_api("POST", f"{book_id}/borrow", json={"borrowerId": borrower_id})
    if book is not None:
        print_book_result(book, "Book Borrowed")


@app.command("return")
def cli_return(book_id: str):
    """Return a borrowed book."""
    book = _call_api("POST", f"{book_id}/return")
    if book is not None:
        print_book_result(book, "Book Returned")


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Port (default: API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Start the API with Uvicorn."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    print(f"Starting API on http://{host}:{port}{settings.api_prefix}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    try:
        subprocess.run(args, check=False)
    except KeyboardInterrupt:
        console.print("[yellow]Server stopped.[/]")


if __name__ == "__main__":
    app()
