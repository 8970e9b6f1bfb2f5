import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class ArticleStore:
    """Article collection kept as a single JSON array on disk.

    Every operation reads the whole file and every mutation rewrites it,
    pretty-printed with a 2-space indent. The instance lock serializes
    read-modify-write sequences inside one process; separate processes
    sharing the file still overwrite each other.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._last_id = 0

    def ensure_file(self) -> None:
        """Create an empty collection if the backing file does not exist."""
        with self._lock:
            if self.path.exists():
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write([])
            logger.info("Created empty articles file at %s", self.path)

    def list_all(self) -> List[Record]:
        with self._lock:
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    data = json.load(f)
            except OSError as e:
                logger.error("Cannot read articles file %s: %s", self.path, e)
                raise
            except json.JSONDecodeError as e:
                logger.error("Articles file %s is not valid JSON: %s", self.path, e)
                raise
            if not isinstance(data, list):
                raise ValueError(f"Articles file {self.path} must contain a JSON array")
            return data

    def find_by_id(self, article_id: Optional[int]) -> Optional[Record]:
        if article_id is None:
            return None
        return next(
            (a for a in self.list_all() if _matches(a, article_id)), None
        )

    def append(self, article: Record) -> None:
        with self._lock:
            articles = self.list_all()
            articles.append(article)
            self._write(articles)
        logger.info("Added article id=%s", article.get("id"))

    def replace_by_id(self, article_id: Optional[int], patch: Record) -> None:
        with self._lock:
            articles = self.list_all()
            index = next(
                (
                    i
                    for i, a in enumerate(articles)
                    if article_id is not None and _matches(a, article_id)
                ),
                None,
            )
            if index is None:
                logger.warning("No article with id=%s to update", article_id)
                return
            articles[index] = {**articles[index], **patch}
            self._write(articles)
        logger.info("Updated article id=%s", article_id)

    def remove_by_id(self, article_id: Optional[int]) -> None:
        with self._lock:
            articles = [
                a
                for a in self.list_all()
                if article_id is None or not _matches(a, article_id)
            ]
            self._write(articles)
        logger.info("Removed article id=%s", article_id)

    def next_id(self) -> int:
        """Millisecond timestamp, bumped when two calls share a millisecond."""
        with self._lock:
            self._last_id = max(int(time.time() * 1000), self._last_id + 1)
            return self._last_id

    def _write(self, articles: List[Record]) -> None:
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(articles, f, indent=2, ensure_ascii=False)


def _matches(article: Record, article_id: int) -> bool:
    value = article.get("id")
    # bool is an int subclass; JSON true must not equal id 1
    return not isinstance(value, bool) and value == article_id
