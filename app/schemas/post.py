from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List

class PostMeta(BaseModel):
    """Propriétés utiles d'une page de la base Notion"""
    id: str
    title: str = "Untitled"
    slug: Optional[str] = None
    status: Optional[str] = None
    draft_password: Optional[str] = None
    published: Optional[datetime] = None
    last_edited: Optional[datetime] = None
    tags: List[str] = []

    @property
    def is_draft(self) -> bool:
        return self.status == "Draft"

    @property
    def is_published(self) -> bool:
        return self.status == "Published"
