import os
import re
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from backend.db import get_store, init_store
from backend.schemas import Article, ArticleForm
from backend.store import ArticleStore

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

PORT = int(os.getenv("PORT", "4111"))

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

init_store()

app = FastAPI()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def parse_id(raw: str) -> Optional[int]:
    """Parse the leading integer of a path segment; ``None`` if there is none."""
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else None


async def read_form(request: Request) -> ArticleForm:
    content_type = request.headers.get("content-type", "")
    data: Any = {}
    if content_type.startswith("application/json"):
        body = await request.body()
        try:
            data = json.loads(body) if body else {}
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
    elif content_type.startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        data = dict(await request.form())
    if not isinstance(data, dict):
        return ArticleForm()
    try:
        return ArticleForm.model_validate(data)
    except ValidationError as e:
        logger.info("Ignoring malformed article form (%d errors)", e.error_count())
        return ArticleForm()


def _render(request: Request, name: str, context: Optional[Dict[str, Any]] = None):
    return templates.TemplateResponse(request, name, context or {})


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


@app.get("/")
def list_articles(request: Request, store: ArticleStore = Depends(get_store)):
    return _render(request, "index.html", {"articles": store.list_all()})


@app.api_route("/articles/new", methods=["GET", "POST"])
def add_article(
    request: Request,
    form: ArticleForm = Depends(read_form),
    store: ArticleStore = Depends(get_store),
):
    if not form.is_complete:
        return _render(request, "addarticle.html")
    article = Article(id=store.next_id(), title=form.title, content=form.content)
    store.append(article.model_dump())
    return _redirect("/")


@app.get("/articles/{article_id}")
def get_article(
    article_id: str, request: Request, store: ArticleStore = Depends(get_store)
):
    article = store.find_by_id(parse_id(article_id))
    if article is None:
        return PlainTextResponse("Article not found", status_code=404)
    return _render(request, "article.html", {"article": article})


@app.api_route("/articles/update/{article_id}", methods=["GET", "POST"])
def update_article(
    article_id: str,
    request: Request,
    form: ArticleForm = Depends(read_form),
    store: ArticleStore = Depends(get_store),
):
    parsed_id = parse_id(article_id)
    if not form.is_complete:
        return _render(
            request, "updatearticle.html", {"article": store.find_by_id(parsed_id)}
        )
    store.replace_by_id(
        parsed_id, {"id": parsed_id, "title": form.title, "content": form.content}
    )
    return _redirect(f"/articles/{parsed_id if parsed_id is not None else article_id}")


@app.get("/articles/delete/{article_id}")
def delete_article(article_id: str, store: ArticleStore = Depends(get_store)):
    store.remove_by_id(parse_id(article_id))
    return _redirect("/")


class ArticlesServer(uvicorn.Server):
    """Uvicorn server that reports its port once the socket is bound."""

    async def startup(self, sockets=None):
        await super().startup(sockets=sockets)
        if self.started:
            logger.info("Server has started at port %s", self.config.port)


def main() -> None:
    config = uvicorn.Config(app, host="0.0.0.0", port=PORT)
    ArticlesServer(config).run()


if __name__ == "__main__":
    main()
