"""Draft tokens: création, réutilisation et validation"""

from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional
import logging
import random
import string

from app.core.config import settings
from app.core.errors import ForbiddenError, UnauthorizedError
from app.models.draft_token import DraftToken
from app.schemas.post import PostMeta

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 32
TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_token() -> str:
    # TODO: passer à secrets.choice; random n'est pas cryptographique (gap connu)
    return "".join(random.choices(TOKEN_ALPHABET, k=TOKEN_LENGTH))


def get_active_token(db: Session, document_id: str) -> Optional[DraftToken]:
    return db.query(DraftToken).filter(
        DraftToken.document_id == document_id,
        DraftToken.is_active == True
    ).order_by(DraftToken.created_at.desc()).first()


def check_draft_access(post: PostMeta, password: Optional[str]) -> None:
    if not post.is_draft:
        raise ForbiddenError("Page is not a draft")
    if post.draft_password and password != post.draft_password:
        raise UnauthorizedError("Invalid password")


def get_or_create_token(db: Session, post: PostMeta, now: datetime = None) -> DraftToken:
    """
    Retourne le token actif et non expiré du document, sinon en crée un (7 jours).

    Un token actif mais expiré est désactivé avant d'en créer un nouveau
    (un seul token actif par document, vérifié par lecture avant insert).
    """
    now = now or datetime.utcnow()

    existing = get_active_token(db, post.id)
    if existing and not existing.is_expired(now):
        return existing
    if existing:
        existing.is_active = False

    draft_token = DraftToken(
        token=generate_token(),
        document_id=post.id,
        slug=post.slug,
        title=post.title or "Untitled",
        expires_at=now + timedelta(days=settings.DRAFT_TOKEN_TTL_DAYS),
        is_active=True,
        created_at=now,
    )
    db.add(draft_token)
    db.commit()
    db.refresh(draft_token)
    logger.info(f"Draft token minted for document {post.id}, expires {draft_token.expires_at}")
    return draft_token


def validate_token(db: Session, token: Optional[str], slug: Optional[str] = None,
                   now: datetime = None) -> DraftToken:
    """
    Vérifie un token de draft avant toute opération sur les commentaires.

    Si slug est fourni, il doit correspondre au slug ou à l'id du document du
    token: un token valide pour un autre draft est refusé (401).
    """
    if not token:
        raise UnauthorizedError("Invalid or expired token")

    draft_token = db.query(DraftToken).filter(
        DraftToken.token == token,
        DraftToken.is_active == True
    ).first()
    if not draft_token:
        raise UnauthorizedError("Invalid or expired token")

    if draft_token.is_expired(now):
        raise UnauthorizedError("Token expired")

    if slug is not None and slug not in (draft_token.slug, draft_token.document_id):
        raise UnauthorizedError("Invalid or expired token")

    return draft_token
