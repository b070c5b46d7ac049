from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
from pathlib import Path
import logging
import requests

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import BlogError
from app.services import block_loader, comment_service, draft_service, post_service
from app.services.anchors import anchor_is_stale
from app.services.highlights import anchors_by_block
from app.services.notion_client import get_notion_client
from app.services.renderer import RenderContext, render, render_blocks

logger = logging.getLogger(__name__)

router = APIRouter(tags=["posts"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _lazy_children(source):
    # niveaux plus profonds que load() chargés au rendu
    return lambda block: block_loader.resolve_children(source, block)


@router.get("/")
def index(request: Request, source=Depends(get_notion_client)):
    posts = post_service.list_published(source, settings.NOTION_DATABASE_ID)
    return templates.TemplateResponse(request, "index.html", {"posts": posts})


@router.get("/posts/{slug}")
def show_post(slug: str, request: Request, source=Depends(get_notion_client)):
    post = post_service.find_post(source, settings.NOTION_DATABASE_ID, slug)
    root = block_loader.load(source, post.id)
    content = render(root, RenderContext(resolve=_lazy_children(source)))
    return templates.TemplateResponse(request, "post.html", {"post": post, "content": content})


@router.get("/draft/{token}")
def show_draft(token: str, request: Request, db: Session = Depends(get_db), source=Depends(get_notion_client)):
    """Page draft: blocks + surlignages + fils de commentaires par block"""
    try:
        draft_token = draft_service.validate_token(db, token)
        post = post_service.get_post(source, draft_token.document_id)
        if not post.is_draft:
            return _denied(request, "This post is no longer in draft status", 403)
        root = block_loader.resolve_tree(source, block_loader.load(source, post.id))
    except BlogError as e:
        return _denied(request, e.message, e.status_code)
    except requests.RequestException as e:
        logger.error(f"Failed to load draft {token[:6]}...: {e}")
        return _denied(request, "An error occurred while loading the draft", 500)

    comments = comment_service.list_comments(db, draft_token)
    anchors = anchors_by_block(comments)
    # block -> section de premier niveau qui le contient (fils des blocks imbriqués)
    blocks, section_of = {}, {}
    for top in root.children or []:
        for block in block_loader.walk(top):
            blocks[block.id] = block
            section_of[block.id] = top.id
    stale = {
        c.id for c in comments
        if c.block_id in blocks and c.selection_start is not None and c.selection_end is not None
        and anchor_is_stale(blocks[c.block_id], c.selection_start, c.selection_end, c.selected_text)
    }

    threads = {}
    for root_comment, replies in comment_service.list_threads(db, draft_token):
        section = section_of.get(root_comment.block_id)
        if section is not None:
            threads.setdefault(section, []).append((root_comment, replies))

    context = RenderContext(anchors=anchors, interactive=True)
    sections = [
        (block, render_blocks([block], context), threads.get(block.id, []))
        for block in root.children or []
    ]
    return templates.TemplateResponse(request, "draft.html", {
        "post": post,
        "sections": sections,
        "comments": comments,
        "stale": stale,
        "token": draft_token.token,
        "slug": draft_token.slug or draft_token.document_id,
    })


def _denied(request: Request, message: str, status_code: int):
    return templates.TemplateResponse(request, "denied.html", {"message": message}, status_code=status_code)
