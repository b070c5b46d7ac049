from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List

# Les champs obligatoires sont vérifiés dans comment_service (400 "Missing required fields")

class SelectionEdge(BaseModel):
    block_id: Optional[str] = None  # défaut: block du commentaire
    run: int = 0
    offset: int = 0

class CommentSelection(BaseModel):
    """Sélection navigateur (run, offset) résolue en offsets de block à la création"""
    start: SelectionEdge
    end: SelectionEdge

class CommentCreate(BaseModel):
    block_id: Optional[str] = None
    content: Optional[str] = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    author_color: Optional[str] = None
    parent_comment_id: Optional[int] = None
    selection_start: Optional[int] = None
    selection_end: Optional[int] = None
    selected_text: Optional[str] = None
    selection: Optional[CommentSelection] = None

class CommentUpdate(BaseModel):
    comment_id: Optional[int] = None
    content: Optional[str] = None
    is_resolved: Optional[bool] = None
    author_name: Optional[str] = None

class CommentDelete(BaseModel):
    comment_id: Optional[int] = None
    author_name: Optional[str] = None

class CommentResponse(BaseModel):
    id: int
    draft_token_id: int
    document_id: str
    block_id: str
    content: str
    author_name: str
    author_email: Optional[str]
    author_color: str
    parent_comment_id: Optional[int]
    selection_start: Optional[int]
    selection_end: Optional[int]
    selected_text: Optional[str]
    is_resolved: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class CommentEnvelope(BaseModel):
    comment: CommentResponse

class CommentList(BaseModel):
    comments: List[CommentResponse] = []
