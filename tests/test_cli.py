import json

import httpx
import pytest
from typer.testing import CliRunner
from unittest.mock import patch

from config import settings
from main import app
from utils.ui_helpers import OUTPUT_MODE_ENV

runner = CliRunner()


@pytest.fixture(autouse=True)
def api(client, monkeypatch):
    """Route the CLI's httpx calls into the in-process test app."""
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")
    calls = []

    def fake_request(method, url, timeout=None, **kwargs):
        assert url.startswith(settings.api_base_url)
        calls.append((method, url, kwargs))
        return client.request(method, url[len(settings.api_base_url):], follow_redirects=False, **kwargs)

    monkeypatch.setattr("main.httpx.request", fake_request)
    return calls


def test_list(api):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "1 - The Great Gatsby by F. Scott Fitzgerald [Fiction] (available)" in result.stdout
    assert api[0][0] == "GET"
    assert api[0][1] == f"{settings.api_base_url}{settings.api_prefix}"


def test_list_no_books(lib):
    for book in lib.list_books():
        lib.remove_book(book.id)
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "No books in library." in result.stdout


def test_list_json_output():
    result = runner.invoke(app, ["--output", "json", "list"])
    assert result.exit_code == 0
    books = json.loads(result.stdout)
    assert [b["id"] for b in books] == ["1", "2", "3"]


def test_add_book_success(lib):
    result = runner.invoke(app, ["add", "Dune", "Frank Herbert", "Sci-Fi"])
    assert result.exit_code == 0
    assert "Successfully added: Dune by Frank Herbert (ID: 4)" in result.stdout
    assert lib.find_book("4").title == "Dune"


def test_add_book_blank_field(lib):
    result = runner.invoke(app, ["add", "Dune", " ", "Sci-Fi"])
    assert result.exit_code == 0
    assert "Error: Missing required fields: author" in result.stdout
    assert len(lib.list_books()) == 3


def test_update_book(lib):
    result = runner.invoke(app, ["update", "2", "--genre", "Political Fiction"])
    assert result.exit_code == 0
    assert "Book Updated" in result.stdout
    assert "Genre: Political Fiction" in result.stdout
    assert lib.find_book("2").genre == "Political Fiction"


def test_update_without_changes(api):
    result = runner.invoke(app, ["update", "2"])
    assert result.exit_code == 0
    assert "Nothing to update." in result.stdout
    assert api == []


def test_update_book_not_found():
    result = runner.invoke(app, ["update", "99", "--title", "X"])
    assert "Error: Book with ID 99 not found" in result.stdout


def test_remove_book_success(lib):
    result = runner.invoke(app, ["remove", "1"])
    assert result.exit_code == 0
    assert "Book with ID 1 has been removed." in result.stdout
    assert lib.find_book("1") is None


def test_remove_book_not_found():
    result = runner.invoke(app, ["remove", "nonexistent"])
    assert result.exit_code == 0
    assert "Error: Book not found." in result.stdout


def test_borrow_and_return(lib):
    result = runner.invoke(app, ["borrow", "2", "12345"])
    assert result.exit_code == 0
    assert "Book Borrowed" in result.stdout
    assert "borrowed by 12345 until" in result.stdout

    result = runner.invoke(app, ["borrow", "2", "other"])
    assert "Error: Book is not available for borrowing." in result.stdout

    result = runner.invoke(app, ["return", "2"])
    assert result.exit_code == 0
    assert "Book Returned" in result.stdout
    assert "Status: available" in result.stdout
    assert lib.find_book("2").is_borrowed is False


def test_return_not_borrowed():
    result = runner.invoke(app, ["return", "3"])
    assert "Error: Book is not currently borrowed." in result.stdout


def test_recommend(lib):
    lib.borrow_book("1", "a")
    result = runner.invoke(app, ["recommend"])
    assert result.exit_code == 0
    assert "The Great Gatsby" not in result.stdout
    assert "2 - 1984 by George Orwell" in result.stdout


def test_recommend_nothing_available(lib):
    for book in lib.list_books():
        lib.borrow_book(book.id, "a")
    result = runner.invoke(app, ["recommend"])
    assert "No books available right now." in result.stdout


def test_unreachable_server(monkeypatch):
    def refuse(method, url, timeout=None, **kwargs):
        raise httpx.ConnectError("Connection refused")

    monkeypatch.setattr("main.httpx.request", refuse)
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "Could not reach the API" in result.stdout


@patch('subprocess.run')
def test_serve_command(mock_subprocess_run):
    result = runner.invoke(app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    assert "Starting API on" in result.stdout
    mock_subprocess_run.assert_called_once()
    # Check if uvicorn is called with correct arguments
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "api:app" in args
    assert "--host" in args
    assert args[args.index("--port") + 1] == "9000"
