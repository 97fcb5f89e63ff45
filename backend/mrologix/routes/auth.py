import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..auth import (
    decode_token,
    get_current_user,
    get_password_hash,
    token_for,
    verify_password,
)
from ..config import settings
from ..database import get_db
from ..notify import Mailer, get_mailer, send_pin_email
from ..pins import generate_pin, validate_pin
from .. import activity, models, schemas

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)


def rate_limit(limit: str):
    if settings.testing:
        def wrapper(func):
            return func
        return wrapper
    return limiter.limit(limit)


router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/register", status_code=201)
@rate_limit("5/minute")
def register(
    request: Request,
    data: schemas.RegisterRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    if not all([data.first_name, data.last_name, data.username, data.email, data.password]):
        raise HTTPException(status_code=400, detail="Missing required fields")
    existing = (
        db.query(models.User)
        .filter(or_(models.User.email == data.email, models.User.username == data.username))
        .first()
    )
    if existing:
        field = "Email" if existing.email == data.email else "Username"
        raise HTTPException(status_code=409, detail=f"{field} already exists")

    pin = generate_pin(settings.pin.length)
    user = models.User(
        first_name=data.first_name,
        last_name=data.last_name,
        username=data.username,
        email=data.email,
        hashed_password=get_password_hash(data.password),
        pin=pin,
        pin_created_at=models.utcnow(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    if not send_pin_email(mailer, user.email, pin, user.first_name):
        logger.warning("Verification email for user %s was not delivered", user.id)
    return {
        "success": True,
        "message": "User registered. Please verify your email with the PIN sent.",
        "userId": str(user.id),
    }


@router.post("/verify")
@rate_limit("10/minute")
def verify(request: Request, data: schemas.VerifyRequest, db: Session = Depends(get_db)):
    if not data.user_id or not data.pin:
        raise HTTPException(status_code=400, detail="Missing required fields")
    user = db.get(models.User, data.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    result = validate_pin(user.pin, data.pin, user.pin_created_at)
    if not result.valid:
        raise HTTPException(status_code=400, detail=result.reason)
    user.verified = True
    user.pin = None
    user.pin_created_at = None
    db.commit()
    return {"success": True, "message": "Email verification successful"}


@router.post("/resend-pin")
@rate_limit("3/minute")
def resend_pin(
    request: Request,
    data: schemas.ResendPinRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    if not data.user_id:
        raise HTTPException(status_code=400, detail="User ID is required")
    user = db.get(models.User, data.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    pin = generate_pin(settings.pin.length)
    user.pin = pin
    user.pin_created_at = models.utcnow()
    db.commit()
    if not send_pin_email(mailer, user.email, pin, user.first_name):
        logger.warning("Verification email for user %s was not delivered", user.id)
    return {"success": True, "message": "New PIN sent successfully"}


@router.post("/signin")
@rate_limit("10/minute")
def signin(
    request: Request,
    response: Response,
    data: schemas.SignInRequest,
    db: Session = Depends(get_db),
):
    if not data.identifier or not data.password:
        raise HTTPException(status_code=400, detail="Email/username and password are required")
    user = (
        db.query(models.User)
        .filter(or_(models.User.email == data.identifier, models.User.username == data.identifier))
        .first()
    )
    if not user or not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    response.set_cookie(
        key=settings.auth.cookie_name,
        value=token_for(user),
        httponly=True,
        path="/",
        secure=settings.auth.secure_cookie,
        max_age=settings.auth.max_age_seconds,
        samesite="strict",
    )
    activity.log_activity(
        db,
        user.id,
        activity.LOGIN,
        resource_type=activity.AUTHENTICATION,
        resource_title=f"User login: {user.full_name}",
        metadata={"identifier": data.identifier, "loginMethod": "password"},
        **activity.request_info(request),
    )
    return {"success": True, "user": schemas.serialize(schemas.UserOut, user)}


@router.post("/signout")
def signout(request: Request, response: Response, db: Session = Depends(get_db)):
    token = request.cookies.get(settings.auth.cookie_name)
    payload = decode_token(token) if token else None
    if payload and payload.get("id"):
        activity.log_activity(
            db,
            payload["id"],
            activity.LOGOUT,
            resource_type=activity.AUTHENTICATION,
            resource_title=f"User logout: {payload.get('name', '')}".strip(),
            metadata={"logoutMethod": "manual"},
            **activity.request_info(request),
        )
    response.delete_cookie(settings.auth.cookie_name, path="/")
    return {"success": True, "message": "Signed out successfully"}


@router.get("/auth/check")
def check(current_user: models.User = Depends(get_current_user)):
    return {"authenticated": True, "user": schemas.serialize(schemas.UserOut, current_user)}


@router.post("/verify-password")
def verify_account_password(
    data: schemas.VerifyPasswordRequest,
    current_user: models.User = Depends(get_current_user),
):
    if data.check_only:
        return {"success": True}
    if not data.password or not verify_password(data.password, current_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid password")
    return {"success": True}
