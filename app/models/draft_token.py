"""DraftToken model"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from datetime import datetime
from app.core.database import Base


class DraftToken(Base):
    __tablename__ = "draft_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(32), unique=True, nullable=False, index=True)
    document_id = Column(String, nullable=False, index=True)  # id de la page Notion
    slug = Column(String, nullable=True, index=True)
    title = Column(String, default="Untitled")

    expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def is_expired(self, now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        return self.expires_at is not None and self.expires_at < now
