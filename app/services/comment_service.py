"""
Commentaires d'un draft: lecture / écriture scopées par le draft token.

Chaque écriture réussie publie un CommentEvent sur le flux de changements.
"""

from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional, Tuple
import logging

from app.core.config import settings
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.models.comment import Comment
from app.models.draft_token import DraftToken
from app.schemas.comment import CommentCreate, CommentResponse
from app.services import block_loader
from app.services.anchors import SelectionPoint, resolve_anchor
from app.services.live_sync import ChangeFeed, CommentEvent, EventType

logger = logging.getLogger(__name__)


def comment_to_dict(comment: Comment) -> dict:
    return CommentResponse.model_validate(comment).model_dump(mode="json")


def _publish(feed: Optional[ChangeFeed], event: CommentEvent) -> None:
    if feed is not None:
        feed.publish(event)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _get_scoped(db: Session, draft_token: DraftToken, comment_id: Optional[int]) -> Comment:
    comment = db.query(Comment).filter(
        Comment.id == comment_id,
        Comment.draft_token_id == draft_token.id
    ).first()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def _check_author(comment: Comment, author_name: Optional[str]) -> None:
    # contrôle au niveau API seulement (pas d'identité vérifiée)
    if author_name is not None and author_name.strip() != comment.author_name:
        raise ForbiddenError("Only the author can modify this comment")


def list_comments(db: Session, draft_token: DraftToken) -> List[Comment]:
    return db.query(Comment).filter(
        Comment.draft_token_id == draft_token.id
    ).order_by(Comment.created_at, Comment.id).all()


def list_threads(db: Session, draft_token: DraftToken) -> List[Tuple[Comment, List[Comment]]]:
    """Commentaires racines + leurs réponses. Une réponse dont la racine a été supprimée devient racine."""
    comments = list_comments(db, draft_token)
    ids = {comment.id for comment in comments}
    replies = {}
    roots = []
    for comment in comments:
        if comment.parent_comment_id is not None and comment.parent_comment_id in ids:
            replies.setdefault(comment.parent_comment_id, []).append(comment)
        else:
            roots.append(comment)
    return [(root, replies.get(root.id, [])) for root in roots]


def resolve_selection(source, data: CommentCreate) -> CommentCreate:
    """
    Remplace data.selection (points run/offset du navigateur) par l'ancre calculée
    sur le texte actuel du block. Sélection vide -> commentaire sur le block entier.
    """
    block_id = _clean(data.block_id)
    if data.selection is None or not block_id:
        return data
    try:
        block = block_loader.fetch_block(source, block_id)
    except NotFoundError:
        raise ValidationError("Block not found")

    start, end = data.selection.start, data.selection.end
    anchor = resolve_anchor(
        block,
        SelectionPoint(block_id if start.block_id is None else start.block_id, start.run, start.offset),
        SelectionPoint(block_id if end.block_id is None else end.block_id, end.run, end.offset),
    )
    if anchor is None:
        logger.debug(f"Empty selection on block {block_id}, comment kept on the whole block")
        update = {"selection_start": None, "selection_end": None, "selected_text": None}
    else:
        update = {"selection_start": anchor.start, "selection_end": anchor.end,
                  "selected_text": anchor.selected_text}
    update["selection"] = None
    return data.model_copy(update=update)


def create_comment(db: Session, draft_token: DraftToken, data: CommentCreate,
                   feed: Optional[ChangeFeed] = None) -> Comment:
    block_id = _clean(data.block_id)
    content = _clean(data.content)
    author_name = _clean(data.author_name)
    if not block_id or not content or not author_name:
        raise ValidationError("Missing required fields")

    parent_id = None
    if data.parent_comment_id is not None:
        parent = db.query(Comment).filter(
            Comment.id == data.parent_comment_id,
            Comment.draft_token_id == draft_token.id
        ).first()
        if not parent:
            raise ValidationError("Parent comment not found")
        # un seul niveau: une réponse à une réponse va dans le fil de la racine
        parent_id = parent.parent_comment_id or parent.id

    comment = Comment(
        draft_token_id=draft_token.id,
        document_id=draft_token.document_id,
        block_id=block_id,
        content=content,
        author_name=author_name,
        author_email=_clean(data.author_email),
        author_color=_clean(data.author_color) or settings.DEFAULT_AUTHOR_COLOR,
        parent_comment_id=parent_id,
        selection_start=data.selection_start,
        selection_end=data.selection_end,
        selected_text=data.selected_text or None,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    logger.info(f"Comment {comment.id} created on block {block_id} (draft {draft_token.id})")
    _publish(feed, CommentEvent(EventType.INSERT, comment.document_id, new=comment_to_dict(comment)))
    return comment


def update_comment(db: Session, draft_token: DraftToken, comment_id: Optional[int], content: Optional[str],
                   is_resolved: Optional[bool] = None, author_name: Optional[str] = None,
                   feed: Optional[ChangeFeed] = None) -> Comment:
    content = _clean(content)
    if comment_id is None or not content:
        raise ValidationError("Missing required fields")

    comment = _get_scoped(db, draft_token, comment_id)
    _check_author(comment, author_name)

    comment.content = content
    if is_resolved is not None:
        comment.is_resolved = is_resolved
    comment.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(comment)

    logger.info(f"Comment {comment.id} updated")
    _publish(feed, CommentEvent(EventType.UPDATE, comment.document_id, new=comment_to_dict(comment)))
    return comment


def delete_comment(db: Session, draft_token: DraftToken, comment_id: Optional[int],
                   author_name: Optional[str] = None, feed: Optional[ChangeFeed] = None) -> None:
    """Suppression définitive; les réponses ne sont pas supprimées"""
    if comment_id is None:
        raise ValidationError("Missing comment_id")

    comment = _get_scoped(db, draft_token, comment_id)
    _check_author(comment, author_name)

    old = {"id": comment.id, "block_id": comment.block_id}
    document_id = comment.document_id
    db.delete(comment)
    db.commit()

    logger.info(f"Comment {comment_id} deleted")
    _publish(feed, CommentEvent(EventType.DELETE, document_id, old=old))
