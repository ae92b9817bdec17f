import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pymongo.database import Database

from auth import get_current_user, get_settings
from config import Settings
from database import create_document, get_db, parse_object_id
from gateway import GatewayError
from schemas import Order, PaymentVerifyRequest, ProductRef

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])


def get_gateway(request: Request) -> Any:
    gateway = request.app.state.gateway
    if gateway is None:
        raise HTTPException(status_code=500, detail="Payment gateway not configured properly")
    return gateway


def to_minor_units(price: float) -> int:
    return int(round(price * 100))


@router.post("/create-order")
def create_order(
    payload: ProductRef,
    user: dict = Depends(get_current_user),
    gateway: Any = Depends(get_gateway),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    product = db["product"].find_one({"_id": parse_object_id(payload.product_id, "Product")})
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    # receipt ids are limited to 40 characters by the gateway
    receipt = f"{product['_id']}_{int(time.time() * 1000)}"
    options = {
        "amount": to_minor_units(product["price"]),
        "currency": settings.payment_currency,
        "receipt": receipt,
        "payment_capture": 1,
    }
    try:
        remote = gateway.create_order(options)
    except GatewayError as exc:
        logger.error("Razorpay order creation failed for product %s: %s", product["_id"], exc)
        raise HTTPException(status_code=502, detail="Failed to create payment order")

    order = Order(
        gateway_order_id=remote["id"],
        amount=remote["amount"],
        currency=remote["currency"],
        receipt=remote.get("receipt") or receipt,
        status=remote.get("status", "created"),
    )
    data = order.model_dump()
    data["product_id"] = product["_id"]
    data["buyer"] = user["_id"]
    create_document(db, "order", data)
    logger.info("Created payment order %s for product %s", order.gateway_order_id, product["_id"])

    return {
        "id": order.gateway_order_id,
        "amount": order.amount,
        "currency": order.currency,
        "product": {
            "id": str(product["_id"]),
            "title": product["title"],
            "price": product["price"],
        },
    }


@router.post("/verify")
def verify_payment(
    payload: PaymentVerifyRequest,
    user: dict = Depends(get_current_user),
    gateway: Any = Depends(get_gateway),
    db: Database = Depends(get_db),
):
    if not gateway.verify_signature(
        payload.razorpay_order_id, payload.razorpay_payment_id, payload.razorpay_signature
    ):
        logger.warning("Signature mismatch for payment order %s", payload.razorpay_order_id)
        raise HTTPException(status_code=400, detail="Payment verification failed")

    db["order"].update_one(
        {"gateway_order_id": payload.razorpay_order_id},
        {"$set": {"status": "paid", "payment_id": payload.razorpay_payment_id, "updated_at": datetime.now(timezone.utc)}},
    )
    logger.info("Verified payment %s for order %s", payload.razorpay_payment_id, payload.razorpay_order_id)
    return {"success": True, "message": "Payment verified successfully"}
