from pydantic import BaseModel, ConfigDict
from typing import Optional


class Article(BaseModel):
    id: int
    title: str
    content: str


class ArticleForm(BaseModel):
    """Submitted body of the create and update forms.

    Both fields are optional so that a partial submission can still be
    parsed; ``is_complete`` decides whether the handler may write it.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    content: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.title) and bool(self.content)
