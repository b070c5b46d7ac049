from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class TokenRequest(BaseModel):
    password: Optional[str] = None

class TokenResponse(BaseModel):
    token: str
    expires_at: Optional[datetime]
