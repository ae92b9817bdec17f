import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import catalog
import payments
import users
import wishlist
from config import Settings
from database import ensure_indexes, get_database
from gateway import build_gateway

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
        fields.append(f"{'.'.join(loc) or 'request'}: {err.get('msg')}")
    return JSONResponse(status_code=400, content={"message": "; ".join(fields) or "Invalid request"})


async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"message": "Database unavailable"})


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[Database] = None,
    gateway: Optional[Any] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="UniMart API")
    app.state.settings = settings
    app.state.db = db if db is not None else get_database(settings)
    app.state.gateway = gateway if gateway is not None else build_gateway(settings)
    if app.state.db is not None:
        ensure_indexes(app.state.db)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)

    app.include_router(users.router)
    app.include_router(catalog.router)
    app.include_router(wishlist.router)
    app.include_router(payments.router)
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

    @app.get("/")
    def read_root():
        return {"message": "UniMart API is running..."}

    @app.get("/test")
    def test_database():
        response = {
            "backend": "running",
            "database": "not-configured",
            "payment_gateway": "configured" if app.state.gateway is not None else "not-configured",
            "collections": [],
        }
        if app.state.db is not None:
            try:
                response["collections"] = app.state.db.list_collection_names()[:10]
                response["database"] = "connected"
            except PyMongoError as e:
                response["database"] = f"error: {str(e)[:50]}"
        return response

    return app


load_dotenv()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
