import os
from pathlib import Path

from dotenv import load_dotenv

from backend.store import ArticleStore

load_dotenv()

DEFAULT_ARTICLES_PATH = Path(__file__).resolve().parent / "data" / "articles.json"
ARTICLES_PATH = os.getenv("ARTICLES_PATH") or str(DEFAULT_ARTICLES_PATH)

store = ArticleStore(ARTICLES_PATH)


def get_store() -> ArticleStore:
    return store


def init_store() -> None:
    """Make sure the backing file exists before the first request."""
    store.ensure_file()
