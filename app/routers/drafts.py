import asyncio
from contextlib import suppress
from fastapi import APIRouter, Depends, Header, Query, Request, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import UnauthorizedError
from app.models.draft_token import DraftToken
from app.schemas.comment import CommentCreate, CommentUpdate, CommentDelete, CommentEnvelope, CommentList
from app.schemas.draft_token import TokenRequest, TokenResponse
from app.services import comment_service, draft_service, post_service
from app.services.live_sync import LiveSyncController
from app.services.notion_client import get_notion_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/draft", tags=["drafts"])

def get_draft_token(slug: str, db: Session = Depends(get_db), token: Optional[str] = Header(None)) -> DraftToken:
    """Vérifie le header token pour le draft {slug} (avant toute opération)"""
    return draft_service.validate_token(db, token, slug=slug)

def get_change_feed(request: Request):
    return request.app.state.change_feed

@router.post("/{slug}/token", response_model=TokenResponse)
def request_token(slug: str, body: Optional[TokenRequest] = None, db: Session = Depends(get_db),
                  source=Depends(get_notion_client)):
    """Retourne le token actif du draft ou en crée un (7 jours)"""
    post = post_service.find_post(source, settings.NOTION_DATABASE_ID, slug)
    draft_service.check_draft_access(post, body.password if body else None)

    draft_token = draft_service.get_or_create_token(db, post)
    return {"token": draft_token.token, "expires_at": draft_token.expires_at}

@router.get("/{slug}/comments", response_model=CommentList)
def list_comments(draft_token: DraftToken = Depends(get_draft_token), db: Session = Depends(get_db)):
    return {"comments": comment_service.list_comments(db, draft_token)}

@router.post("/{slug}/comments", response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
def create_comment(data: CommentCreate, draft_token: DraftToken = Depends(get_draft_token),
                   db: Session = Depends(get_db), feed=Depends(get_change_feed),
                   source=Depends(get_notion_client)):
    data = comment_service.resolve_selection(source, data)
    comment = comment_service.create_comment(db, draft_token, data, feed=feed)
    return {"comment": comment}

@router.put("/{slug}/comments", response_model=CommentEnvelope)
def update_comment(data: CommentUpdate, draft_token: DraftToken = Depends(get_draft_token),
                   db: Session = Depends(get_db), feed=Depends(get_change_feed)):
    comment = comment_service.update_comment(
        db, draft_token, data.comment_id, data.content,
        is_resolved=data.is_resolved, author_name=data.author_name, feed=feed
    )
    return {"comment": comment}

@router.delete("/{slug}/comments")
def delete_comment(data: CommentDelete, draft_token: DraftToken = Depends(get_draft_token),
                   db: Session = Depends(get_db), feed=Depends(get_change_feed)):
    comment_service.delete_comment(db, draft_token, data.comment_id, author_name=data.author_name, feed=feed)
    return {"success": True}

@router.websocket("/{slug}/comments/live")
async def comments_live(websocket: WebSocket, slug: str, token: Optional[str] = Query(None),
                        db: Session = Depends(get_db)):
    """
    Flux temps réel des commentaires d'un draft.

    Envoie un snapshot puis chaque insert/update/delete réconcilié.
    L'abonnement est libéré à la fermeture de la socket.
    """
    try:
        draft_token = draft_service.validate_token(db, token, slug=slug)
    except UnauthorizedError as e:
        await websocket.close(code=4401, reason=e.message)
        return

    draft_id, document_id = draft_token.id, draft_token.document_id
    await websocket.accept()
    outbox = asyncio.Queue()
    controller = LiveSyncController(websocket.app.state.change_feed, document_id, on_change=outbox.put_nowait)

    async def forward_events():
        while True:
            event = await outbox.get()
            await websocket.send_json(event.to_dict())

    with controller:
        # abonné avant la lecture: un commentaire écrit entre les deux arrive par le flux
        comments = [comment_service.comment_to_dict(c) for c in comment_service.list_comments(db, draft_token)]
        db.close()
        controller.load_snapshot(comments)
        await websocket.send_json({"type": "snapshot", "comments": controller.comments})
        forwarder = asyncio.create_task(forward_events())
        try:
            # le client n'envoie rien d'utile, on attend la déconnexion
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug(f"Live comments socket closed for draft {draft_id}")
        finally:
            forwarder.cancel()
            with suppress(asyncio.CancelledError):
                await forwarder
