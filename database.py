"""
MongoDB helpers

Collections: "user", "product", "wishlist", "order". Route handlers receive the
database handle through the `get_db` dependency so tests can hand in an
in-memory store.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from fastapi import HTTPException, Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import Settings

logger = logging.getLogger(__name__)


def get_database(settings: Settings) -> Optional[Database]:
    if not settings.database_url or not settings.database_name:
        logger.warning("DATABASE_URL or DATABASE_NAME not set; database disabled")
        return None
    client = MongoClient(settings.database_url)
    return client[settings.database_name]


def ensure_indexes(db: Database) -> None:
    try:
        db["user"].create_index([("email", ASCENDING)], unique=True)
        db["wishlist"].create_index([("user", ASCENDING)], unique=True)
        db["product"].create_index([("seller", ASCENDING)])
    except PyMongoError as exc:
        logger.warning("Unable to ensure indexes: %s", exc)


def get_db(request: Request) -> Database:
    db = request.app.state.db
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    return list(cursor)


def parse_object_id(value: Any, label: str = "Resource") -> ObjectId:
    """Convert an incoming identifier; malformed ids are reported as missing."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return ObjectId(value)


def as_utc(value: datetime) -> datetime:
    # pymongo hands back naive datetimes that are already UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    out: Dict[str, Any] = {}
    for k, v in doc.items():
        if k == "password_hash":
            continue
        out[k] = _serialize_value(v)
    if "_id" in out:
        out["id"] = out.pop("_id")
    return out


def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    if isinstance(value, dict):
        return serialize_doc(value)
    return value
