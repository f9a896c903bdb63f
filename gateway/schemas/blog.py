from pydantic import BaseModel
from typing import Optional

from gateway.schemas.product import DisplayName, RecordId


class BlogPost(BaseModel):
    id: RecordId
    title: DisplayName
    slug: str
    content: Optional[str] = None
    author: Optional[str] = None
    published_date: Optional[str] = None

    model_config = {"extra": "ignore"}
