# cacs_api/routes/auth.py
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cacs_api.config import Settings, get_settings
from cacs_api.database import get_db
from cacs_api.errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from cacs_api.models.users import User
from cacs_api.schemas import user as schemas
from cacs_api.utils.mailer import welcome_email
from cacs_api.utils.tokenJWT import admin_required, get_current_user, issue_token_or_fail

router = APIRouter(prefix="/api/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _find_by_email(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def _require_owner_or_admin(db: Session, claims: dict, user_id: str):
    # Accounts may only be changed by their owner or by an admin
    if claims["userId"] == user_id:
        return
    caller = db.query(User).filter(User.id == claims["userId"]).first()
    if caller is None or not caller.is_admin:
        raise Forbidden("You can only modify your own account")


# Register a new user
@router.post("/signup", response_model=schemas.UserEnvelope, status_code=status.HTTP_201_CREATED)
def signup(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    if not payload.full_name or not payload.email or not payload.password:
        raise BadRequest("Please provide all required fields: fullName, email, and password")

    normalized_email = payload.email.strip().lower()
    if _find_by_email(db, normalized_email):
        logger.info("Signup rejected, email already registered: %s", normalized_email)
        raise Conflict("User already exists with this email")

    user = User(full_name=payload.full_name, email=normalized_email, password=payload.password)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent signup with the same email
        db.rollback()
        raise Conflict("User already exists with this email")
    db.refresh(user)
    logger.info("User created: id=%s email=%s", user.id, user.email)

    request.app.state.notifier.enqueue(welcome_email(user.full_name, user.email))

    return {"success": True, "message": "User created successfully. Welcome email sent!", "user": user}


# Authenticate user and issue a token
@router.post("/signin", response_model=schemas.TokenResponse)
def signin(payload: schemas.UserLogin, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    if not payload.email or not payload.password:
        raise BadRequest("Please provide both email and password")

    user = _find_by_email(db, payload.email)
    # Same message whether the account is unknown or the password is wrong
    if not user or not user.check_password(payload.password):
        logger.info("Failed signin for %s", payload.email.lower())
        raise Unauthorized(INVALID_CREDENTIALS)

    token = issue_token_or_fail({"userId": user.id, "email": user.email}, settings)
    return {"success": True, "message": "Sign in successful", "token": token, "user": user}


# Admin-only login; the admin flag is checked before the password
@router.post("/admin/login", response_model=schemas.TokenResponse)
def admin_login(payload: schemas.UserLogin, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    if not payload.email or not payload.password:
        raise BadRequest("Please provide both email and password")

    user = _find_by_email(db, payload.email)
    if not user:
        raise Unauthorized(INVALID_CREDENTIALS)

    if not user.is_admin:
        logger.warning("Admin login attempted by non-admin %s", user.email)
        raise Forbidden("Access denied. Admin privileges required.")

    if not user.check_password(payload.password):
        raise Unauthorized(INVALID_CREDENTIALS)

    token = issue_token_or_fail({"userId": user.id, "email": user.email, "isAdmin": True}, settings)
    return {"success": True, "message": "Admin login successful", "token": token, "user": user}


# Retrieve all users (Admin only)
@router.get("/users", response_model=schemas.UserList)
def list_users(db: Session = Depends(get_db), claims: dict = Depends(admin_required)):
    users = db.query(User).order_by(User.created_at.desc()).all()
    return {"success": True, "count": len(users), "users": users}


# Retrieve a single user
@router.get("/users/{user_id}", response_model=schemas.UserEnvelope)
def get_user(user_id: str, db: Session = Depends(get_db), claims: dict = Depends(get_current_user)):
    return {"success": True, "user": _get_user_or_404(db, user_id)}


# Update profile fields; a new password is re-hashed
@router.put("/users/{user_id}", response_model=schemas.UserEnvelope)
def update_user(
    user_id: str,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    claims: dict = Depends(get_current_user),
):
    user = _get_user_or_404(db, user_id)
    _require_owner_or_admin(db, claims, user_id)

    if payload.full_name:
        user.full_name = payload.full_name
    if payload.email:
        new_email = payload.email.strip().lower()
        existing = _find_by_email(db, new_email)
        if existing and existing.id != user.id:
            raise Conflict("User already exists with this email")
        user.email = new_email
    if payload.password:
        user.password = payload.password

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists with this email")
    db.refresh(user)
    logger.info("User updated: id=%s by=%s", user.id, claims["userId"])

    return {"success": True, "message": "User updated", "user": user}


# Grant or revoke admin rights (Admin only)
@router.put("/users/{user_id}/admin", response_model=schemas.UserEnvelope)
def set_admin_flag(
    user_id: str,
    payload: schemas.AdminFlagUpdate,
    db: Session = Depends(get_db),
    claims: dict = Depends(admin_required),
):
    user = _get_user_or_404(db, user_id)

    if user.id == claims["userId"] and not payload.is_admin:
        raise BadRequest("You cannot revoke your own admin rights")

    user.is_admin = payload.is_admin
    db.commit()
    db.refresh(user)
    logger.info("Admin flag for %s set to %s by %s", user.email, user.is_admin, claims["userId"])

    return {"success": True, "message": f"User {user.email} admin flag set to {user.is_admin}", "user": user}


# Delete a user account
@router.delete("/users/{user_id}", response_model=schemas.MessageResponse)
def delete_user(user_id: str, db: Session = Depends(get_db), claims: dict = Depends(get_current_user)):
    user = _get_user_or_404(db, user_id)
    _require_owner_or_admin(db, claims, user_id)

    db.delete(user)
    db.commit()
    logger.info("User deleted: id=%s by=%s", user_id, claims["userId"])

    return {"success": True, "message": "User removed"}
