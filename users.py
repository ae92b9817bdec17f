import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote, urlparse

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import create_token, get_current_user, get_settings, hash_password, verify_password
from config import Settings
from database import create_document, get_db, serialize_doc
from schemas import LoginRequest, ProfileUpdateRequest, SignupRequest, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

AVATAR_URL = "https://i.pravatar.cc/150?u={}"

PROFILE_FIELDS = (
    "name", "email", "department", "year", "avatar", "location",
    "joined_date", "rating", "total_sales", "total_purchases", "is_profile_complete",
)


def default_avatar(name: str) -> str:
    return AVATAR_URL.format(quote(name))


def is_profile_complete(user: dict) -> bool:
    return all(user.get(f) for f in ("name", "department", "year", "location", "avatar"))


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def resolve_avatar(avatar: str, name: str) -> str:
    """Data URIs are kept verbatim, URLs must be well formed."""
    if avatar.startswith("data:") or is_valid_url(avatar):
        return avatar
    return default_avatar("".join(name.split()))


def public_profile(user: dict, token: Optional[str] = None) -> dict:
    out = serialize_doc({k: user.get(k) for k in PROFILE_FIELDS})
    out["id"] = str(user["_id"])
    if token is not None:
        out["token"] = token
    return out


@router.post("", status_code=201)
def register(
    payload: SignupRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    email = payload.email.lower()
    if db["user"].find_one({"email": email}):
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        department=payload.department,
        year=payload.year,
        avatar=payload.avatar or default_avatar(payload.name),
        location=payload.location or "Campus",
    )
    user.is_profile_complete = is_profile_complete(user.model_dump())
    try:
        user_id = create_document(db, "user", user)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")

    user_doc = db["user"].find_one({"email": email})
    db["wishlist"].update_one(
        {"user": user_doc["_id"]},
        {"$setOnInsert": {"user": user_doc["_id"], "products": []}},
        upsert=True,
    )
    logger.info("Registered user %s", user_id)
    return public_profile(user_doc, create_token(user_doc["_id"], settings))


@router.post("/login")
def login(
    payload: LoginRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = db["user"].find_one({"email": payload.email.lower()})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return public_profile(user, create_token(user["_id"], settings))


@router.post("/logout")
def logout(user: dict = Depends(get_current_user)):
    return {"success": True, "message": "Logged out successfully"}


@router.get("/profile")
def get_profile(user: dict = Depends(get_current_user)):
    return public_profile(user)


@router.put("/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    updates = {}
    for field in ("name", "department", "year", "location"):
        value = getattr(payload, field)
        if value:
            updates[field] = value
    name = updates.get("name", user.get("name", ""))
    if payload.avatar:
        updates["avatar"] = resolve_avatar(payload.avatar, name)
    if payload.password:
        updates["password_hash"] = hash_password(payload.password)

    merged = {**user, **updates}
    updates["is_profile_complete"] = is_profile_complete(merged)
    updates["updated_at"] = datetime.now(timezone.utc)
    db["user"].update_one({"_id": user["_id"]}, {"$set": updates})

    updated = db["user"].find_one({"_id": user["_id"]})
    out = public_profile(updated, create_token(updated["_id"], settings))
    out["success"] = True
    return out
