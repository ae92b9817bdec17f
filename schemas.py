"""
Database Schemas for UniMart

Each Pydantic model correlates to a MongoDB collection. The collection name is the lowercase of the class name.
- User -> "user"
- Product -> "product"
- Wishlist -> "wishlist"
- Order -> "order"

References between collections (seller, user, product_id) are stored as ObjectIds
by the route handlers; the models below describe the remaining fields.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class User(BaseModel):
    name: str = Field(..., description="Display name")
    email: EmailStr = Field(..., description="College email address, immutable")
    password_hash: str = Field(..., description="BCrypt password hash")
    department: str
    year: str
    avatar: str = Field(..., description="Avatar URL or data URI")
    location: str = "Campus"
    joined_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    rating: float = Field(5.0, ge=0, le=5)
    total_sales: int = Field(0, ge=0)
    total_purchases: int = Field(0, ge=0)
    is_profile_complete: bool = False


class Product(BaseModel):
    title: str = Field(..., description="Listing title")
    description: str
    price: float = Field(..., gt=0, allow_inf_nan=False, description="Price in major currency units")
    image: str = Field(..., description="Primary image path or URL")
    images: List[str] = Field(default_factory=list, description="Gallery image paths")
    category: str
    condition: str
    subject: str
    seller_name: str
    rating: float = Field(5.0, ge=0, le=5)
    is_blockchain_verified: bool = False
    location: str = "Campus"


class Order(BaseModel):
    gateway_order_id: str = Field(..., description="Order id assigned by the payment gateway")
    amount: int = Field(..., ge=0, description="Amount in minor currency units")
    currency: str = Field(..., min_length=3, max_length=3)
    receipt: str
    status: str
    payment_id: Optional[str] = None


# Lightweight request models
class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    year: str = Field(..., min_length=1)
    avatar: Optional[str] = None
    location: Optional[str] = None


class LoginRequest(BaseModel):
    # not EmailStr: every failed lookup answers the same 401
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    department: Optional[str] = None
    year: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None
    password: Optional[str] = None


class ProductRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId")


class PaymentVerifyRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
