import pytest
from fastapi.testclient import TestClient

from bookshelf.catalog.store import BookStore
from bookshelf.config import Settings
from bookshelf.main import create_app


SAMPLE_BOOKS = [
    {
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "country": "United Kingdom",
        "language": "English",
        "pages": 226,
        "year": 1813,
        "genres": ["Romance", "Satire"],
        "link": "https://en.wikipedia.org/wiki/Pride_and_Prejudice",
    },
    {
        "title": "Crime and Punishment",
        "author": "Fyodor Dostoevsky",
        "year": 1866,
        "genres": ["Philosophical fiction", "Psychological fiction"],
    },
    {
        "title": "The Brothers Karamazov",
        "author": "Fyodor Dostoevsky",
        "year": 1880,
        "genres": ["Philosophical fiction", "Mystery"],
    },
    {
        "title": "Ficciones",
        "author": "Jorge Luis Borges",
        "year": 1944,
        "genres": ["Short stories", "Fantasy"],
    },
]


@pytest.fixture
def store():
    # fresh copies so tests can mutate freely
    return BookStore([dict(book) for book in SAMPLE_BOOKS])


@pytest.fixture
def client_dir(tmp_path):
    root = tmp_path / "client"
    root.mkdir()
    (root / "client.html").write_text("<html><body>Bookshelf</body></html>", encoding="utf-8")
    (root / "style.css").write_text("body { margin: 0; }", encoding="utf-8")
    (root / "documentation.html").write_text("<html><body>Docs</body></html>", encoding="utf-8")
    (root / "notes.txt").write_text("hello", encoding="utf-8")
    return root


@pytest.fixture
def app(store, client_dir, tmp_path):
    settings = Settings(data_file=tmp_path / "unused.json", client_dir=client_dir)
    return create_app(settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
