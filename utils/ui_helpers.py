import os
import json
from typing import List, Any, Dict
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _status(book: Dict[str, Any]) -> str:
    if book.get("isBorrowed"):
        return f"borrowed by {book.get('borrowerId', '?')} until {book.get('dueDate', '?')}"
    return "available"


def print_list_result(books: List[Dict[str, Any]], empty_message: str = "No books in library.") -> None:
    """Print a list of book payloads in the current output mode.
    - plain: 'ID - Title by Author [Genre] (status)' lines
    - json: the payloads as a JSON array
    - rich: a Rich table
    """
    mode = get_output_mode()

    if not books:
        print(empty_message)
        return

    if mode == "json":
        print(json.dumps(books, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Genre", style="white")
        table.add_column("Status", style="green")
        for b in books:
            table.add_row(b.get("id", ""), b.get("title", ""), b.get("author", ""), b.get("genre", ""), _status(b))
        _console.print(table)
    else:
        for b in books:
            print(f"{b.get('id', '')} - {b.get('title', '')} by {b.get('author', '')} [{b.get('genre', '')}] ({_status(b)})")


def print_book_result(book: Dict[str, Any], heading: str) -> None:
    """Print a single book payload under a heading line."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book, ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]ID:[/] {book.get('id', '')}\n"
            f"[bold]Title:[/] {book.get('title', '')}\n"
            f"[bold]Author:[/] {book.get('author', '')}\n"
            f"[bold]Genre:[/] {book.get('genre', '')}\n"
            f"[bold]Status:[/] {_status(book)}"
        )
        _console.print(Panel.fit(content, title=heading, border_style="blue"))
    else:
        print(heading)
        print(f"ID: {book.get('id', '')}")
        print(f"Title: {book.get('title', '')}")
        print(f"Author: {book.get('author', '')}")
        print(f"Genre: {book.get('genre', '')}")
        print(f"Status: {_status(book)}")
