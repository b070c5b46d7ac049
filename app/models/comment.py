"""Comment model"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from datetime import datetime
from app.core.database import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    draft_token_id = Column(Integer, ForeignKey("draft_tokens.id"), nullable=False, index=True)
    document_id = Column(String, nullable=False, index=True)
    block_id = Column(String, nullable=False, index=True)

    content = Column(String, nullable=False)
    author_name = Column(String, nullable=False)
    author_email = Column(String, nullable=True)
    author_color = Column(String, default="#3B82F6")

    # pas de ForeignKey: les réponses restent quand la racine est supprimée
    parent_comment_id = Column(Integer, nullable=True, index=True)

    # ancre dans le texte du block
    selection_start = Column(Integer, nullable=True)
    selection_end = Column(Integer, nullable=True)
    selected_text = Column(String, nullable=True)

    is_resolved = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
