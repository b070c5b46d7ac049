# IMPORTS
from dateutil.parser import isoparse
from typing import List, Optional
import logging

from app.core.errors import NotFoundError
from app.schemas.post import PostMeta

logger = logging.getLogger(__name__)


def _plain_text(items: Optional[list]) -> Optional[str]:
    if not items:
        return None
    return items[0].get("plain_text") or (items[0].get("text") or {}).get("content")


def _parse_date(value: Optional[str]):
    return isoparse(value) if value else None


# func 1: parse_post()
def parse_post(page: dict) -> PostMeta:
    properties = page.get("properties") or {}

    title = _plain_text((properties.get("Name") or {}).get("title"))
    slug = _plain_text((properties.get("Slug") or {}).get("rich_text"))
    status = ((properties.get("Status") or {}).get("select") or {}).get("name")
    password = _plain_text((properties.get("Draft Password") or {}).get("rich_text"))
    published = ((properties.get("Published") or {}).get("date") or {}).get("start")
    tags = [tag.get("name", "") for tag in (properties.get("Tags") or {}).get("multi_select") or []]

    return PostMeta(
        id=page["id"],
        title=title or "Untitled",
        slug=slug,
        status=status,
        draft_password=password,
        published=_parse_date(published),
        last_edited=_parse_date(page.get("last_edited_time")),
        tags=tags,
    )


# func 2: list_posts()
def list_posts(source, database_id: str) -> List[PostMeta]:
    return [parse_post(page) for page in source.query_database(database_id)]


# func 3: list_published()
def list_published(source, database_id: str) -> List[PostMeta]:
    posts = [post for post in list_posts(source, database_id) if post.is_published]
    # plus récents d'abord, les posts sans date à la fin
    posts.sort(key=lambda post: post.published.timestamp() if post.published else float("-inf"), reverse=True)
    return posts


# func 4: find_post()
def find_post(source, database_id: str, slug: str) -> PostMeta:
    """Cherche un post par slug, puis par id de page"""
    posts = list_posts(source, database_id)
    for post in posts:
        if post.slug == slug:
            return post
    for post in posts:
        if post.id == slug:
            return post
    raise NotFoundError("Page not found")


# func 5: get_post()
def get_post(source, page_id: str) -> PostMeta:
    return parse_post(source.retrieve_page(page_id))
