from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.models.comment import Comment
from app.models.draft_token import DraftToken

router = APIRouter()

@router.get("/z")
def healthz():
    # Check si l'API est up
    return {"status": "ok"}

@router.get("/db")
def health_db(db: Session = Depends(get_db)):
    # Check que les tables draft_tokens / comments répondent
    errors = {}
    for name, model in (("draft_tokens", DraftToken), ("comments", Comment)):
        try:
            db.query(func.count(model.id)).scalar()
            errors[name] = "OK"
        except SQLAlchemyError as e:
            db.rollback()
            errors[name] = str(e)

    if any(value != "OK" for value in errors.values()):
        return JSONResponse(status_code=500, content={"success": False, "tables": errors})
    return {"success": True, "tables": errors}
