import os
from typing import List, Optional

from pydantic import BaseModel


class Settings(BaseModel):
    database_url: Optional[str] = None
    database_name: Optional[str] = None
    jwt_secret: str = "devsecret"
    jwt_expires_days: int = 30
    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    payment_currency: str = "INR"
    upload_dir: str = "uploads"
    cors_origins: List[str] = ["http://localhost:8080", "http://localhost:3000"]
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS")
        values = {
            "database_url": os.getenv("DATABASE_URL"),
            "database_name": os.getenv("DATABASE_NAME"),
            "jwt_secret": os.getenv("JWT_SECRET", "devsecret"),
            "jwt_expires_days": int(os.getenv("JWT_EXPIRES_DAYS", 30)),
            "razorpay_key_id": os.getenv("RAZORPAY_KEY_ID"),
            "razorpay_key_secret": os.getenv("RAZORPAY_KEY_SECRET"),
            "payment_currency": os.getenv("PAYMENT_CURRENCY", "INR"),
            "upload_dir": os.getenv("UPLOAD_DIR", "uploads"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }
        if origins:
            values["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
        return cls(**values)
