"""
Per-user wishlist.

One document per user in the "wishlist" collection, created when the user
registers. Adds and removals are single atomic updates so concurrent requests
from the same user cannot store a product twice.
"""

from typing import Any, Dict, List

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from auth import get_current_user
from catalog import product_to_dict
from database import get_db, parse_object_id
from schemas import ProductRef

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


def populate_products(db: Database, wishlist: Dict[str, Any]) -> List[Dict[str, Any]]:
    ids = wishlist.get("products", [])
    if not ids:
        return []
    found = {p["_id"]: p for p in db["product"].find({"_id": {"$in": ids}})}
    return [product_to_dict(found[pid]) for pid in ids if pid in found]


def load_wishlist(db: Database, user_id) -> Dict[str, Any]:
    wishlist = db["wishlist"].find_one({"user": user_id})
    if not wishlist:
        raise HTTPException(status_code=404, detail="Wishlist not found")
    return wishlist


@router.get("")
def get_wishlist(user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    wishlist = db["wishlist"].find_one({"user": user["_id"]})
    if not wishlist:
        return []
    return populate_products(db, wishlist)


@router.post("", status_code=201)
def add_to_wishlist(
    payload: ProductRef,
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    product_id = parse_object_id(payload.product_id, "Product")
    if not db["product"].find_one({"_id": product_id}, {"_id": 1}):
        raise HTTPException(status_code=404, detail="Product not found")

    # accounts created before wishlists were provisioned at registration
    db["wishlist"].update_one(
        {"user": user["_id"]},
        {"$setOnInsert": {"user": user["_id"], "products": []}},
        upsert=True,
    )
    result = db["wishlist"].update_one(
        {"user": user["_id"], "products": {"$ne": product_id}},
        {"$push": {"products": product_id}},
    )
    if result.matched_count == 0:
        raise HTTPException(status_code=400, detail="Product already in wishlist")

    return populate_products(db, load_wishlist(db, user["_id"]))


@router.delete("/{product_id}")
def remove_from_wishlist(
    product_id: str,
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    load_wishlist(db, user["_id"])
    # malformed ids cannot be in the list
    if ObjectId.is_valid(product_id):
        db["wishlist"].update_one(
            {"user": user["_id"]},
            {"$pull": {"products": ObjectId(product_id)}},
        )
    return populate_products(db, load_wishlist(db, user["_id"]))


@router.delete("")
def clear_wishlist(user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    result = db["wishlist"].update_one({"user": user["_id"]}, {"$set": {"products": []}})
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Wishlist not found")
    return {"message": "Wishlist cleared"}
