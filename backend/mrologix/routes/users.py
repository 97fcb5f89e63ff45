from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..database import get_db
from .. import models, schemas, auth

router = APIRouter(prefix="/api/users", tags=["users"])

SEARCH_LIMIT = 10


@router.get("")
def list_users(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user),
):
    users = db.query(models.User).order_by(models.User.first_name, models.User.last_name).all()
    return {"success": True, "users": schemas.serialize_all(schemas.UserOut, users)}


@router.get("/search")
def search_users(
    q: str = "",
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user),
):
    term = q.strip()
    if not term:
        raise HTTPException(status_code=400, detail="Search query is required")
    pattern = f"%{term}%"
    users = (
        db.query(models.User)
        .filter(
            or_(
                models.User.first_name.ilike(pattern),
                models.User.last_name.ilike(pattern),
                models.User.username.ilike(pattern),
                models.User.email.ilike(pattern),
            )
        )
        .order_by(models.User.first_name)
        .limit(SEARCH_LIMIT)
        .all()
    )
    return {"success": True, "users": schemas.serialize_all(schemas.UserOut, users)}
