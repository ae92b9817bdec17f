"""
Product catalog: query composition, listing creation and product detail.
"""

import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from bson import ObjectId
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

from auth import get_current_user, get_settings
from config import Settings
from database import as_utc, create_document, get_db, get_documents, parse_object_id, serialize_doc
from schemas import Product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

ALL_CATEGORIES = "All Categories"
ALL_SUBJECTS = "All Subjects"
ALL_CONDITIONS = "All Conditions"

SORT_OPTIONS = {
    "newest": [("created_at", DESCENDING)],
    "oldest": [("created_at", ASCENDING)],
    "price-low-high": [("price", ASCENDING)],
    "price-high-low": [("price", DESCENDING)],
}

LIST_SELLER_FIELDS = {"name": 1, "rating": 1}
DETAIL_SELLER_FIELDS = {"name": 1, "rating": 1, "total_sales": 1, "avatar": 1, "department": 1, "year": 1}


def build_product_query(
    search: Optional[str] = None,
    category: Optional[str] = None,
    subject: Optional[str] = None,
    condition: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    blockchain_verified: Optional[str] = None,
    sort: Optional[str] = None,
) -> Tuple[Dict[str, Any], List[Tuple[str, int]]]:
    """Compose the Mongo filter and sort spec for a catalog request.

    Every supplied filter narrows the result (logical AND). "All ..." values
    and empty strings mean no filter; the price range only applies when both
    bounds are given. Unknown or missing sort keys fall back to newest first.
    """
    filter_q: Dict[str, Any] = {}

    if search:
        filter_q["title"] = {"$regex": re.escape(search), "$options": "i"}
    if category and category != ALL_CATEGORIES:
        filter_q["category"] = category
    if subject and subject != ALL_SUBJECTS:
        filter_q["subject"] = subject
    if condition and condition != ALL_CONDITIONS:
        filter_q["condition"] = condition
    if min_price is not None and max_price is not None:
        filter_q["price"] = {"$gte": min_price, "$lte": max_price}
    if blockchain_verified == "true":
        filter_q["is_blockchain_verified"] = True

    return filter_q, SORT_OPTIONS.get(sort or "newest", SORT_OPTIONS["newest"])


def posted_date(created_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[str]:
    if created_at is None:
        return None
    now = now or datetime.now(timezone.utc)
    days = abs(now - as_utc(created_at)).days
    if days < 1:
        return "Just now"
    if days == 1:
        return "1 day ago"
    if days < 7:
        return f"{days} days ago"
    if days < 14:
        return "1 week ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    return f"{days // 30} months ago"


def product_to_dict(doc: Dict[str, Any], seller: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    out = serialize_doc(doc)
    out["posted_date"] = posted_date(doc.get("created_at"))
    if seller is not None:
        out["seller"] = serialize_doc(seller)
    return out


def attach_sellers(db: Database, docs: List[Dict[str, Any]], fields: Dict[str, int]) -> List[Dict[str, Any]]:
    seller_ids = list({d["seller"] for d in docs if isinstance(d.get("seller"), ObjectId)})
    sellers = {}
    if seller_ids:
        for s in db["user"].find({"_id": {"$in": seller_ids}}, fields):
            sellers[s["_id"]] = s
    return [product_to_dict(d, sellers.get(d.get("seller"))) for d in docs]


def save_upload(upload: UploadFile, upload_dir: str) -> str:
    suffix = Path(upload.filename or "").suffix.lower()
    name = f"{uuid4().hex}{suffix}"
    os.makedirs(upload_dir, exist_ok=True)
    with open(os.path.join(upload_dir, name), "wb") as fh:
        fh.write(upload.file.read())
    return f"/uploads/{name}"


@router.get("")
def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    subject: Optional[str] = None,
    condition: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    blockchain_verified: Optional[str] = Query(None, alias="blockchainVerified"),
    sort: Optional[str] = None,
    db: Database = Depends(get_db),
):
    filter_q, sort_spec = build_product_query(
        search=search,
        category=category,
        subject=subject,
        condition=condition,
        min_price=min_price,
        max_price=max_price,
        blockchain_verified=blockchain_verified,
        sort=sort,
    )
    docs = get_documents(db, "product", filter_q, sort=sort_spec)
    return attach_sellers(db, docs, LIST_SELLER_FIELDS)


@router.get("/seller")
def list_seller_products(user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    docs = get_documents(db, "product", {"seller": user["_id"]}, sort=SORT_OPTIONS["newest"])
    return [product_to_dict(d) for d in docs]


@router.get("/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    doc = db["product"].find_one({"_id": parse_object_id(product_id, "Product")})
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    return attach_sellers(db, [doc], DETAIL_SELLER_FIELDS)[0]


@router.post("", status_code=201)
def create_product(
    title: str = Form(...),
    description: str = Form(...),
    price: float = Form(..., gt=0, allow_inf_nan=False),
    category: str = Form(...),
    condition: str = Form(...),
    subject: str = Form(...),
    location: Optional[str] = Form(None),
    is_blockchain_verified: bool = Form(False, alias="isBlockchainVerified"),
    image_url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    gallery: Optional[List[UploadFile]] = File(None),
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if image is not None and image.filename:
        image_path = save_upload(image, settings.upload_dir)
    elif image_url:
        image_path = image_url
    else:
        raise HTTPException(status_code=400, detail="Product image is required")
    images = [save_upload(g, settings.upload_dir) for g in gallery or [] if g.filename]

    product = Product(
        title=title,
        description=description,
        price=price,
        image=image_path,
        images=images,
        category=category,
        condition=condition,
        subject=subject,
        seller_name=user["name"],
        is_blockchain_verified=is_blockchain_verified,
        location=location or "Campus",
    )
    data = product.model_dump()
    data["seller"] = user["_id"]
    pid = create_document(db, "product", data)
    logger.info("Product %s listed by user %s", pid, user["_id"])
    return product_to_dict(db["product"].find_one({"_id": ObjectId(pid)}))
