import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import auth, books, profile
from .catalog import CatalogQueryService
from .config import Settings, get_settings
from .database import init_models
from .errors import BookMarketError, ValidationError
from .log import configure_logging
from .store import build_stores
from .uploads import ImageUploader


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Book Marketplace API",
        description="Browse, search and paginate a book catalog and manage your own listings.",
        version="1.0.0",
    )

    stores = build_stores(settings)
    app.state.settings = settings
    app.state.stores = stores
    app.state.catalog = CatalogQueryService(stores.books, strict_reads=settings.strict_reads)
    app.state.uploader = ImageUploader(
        settings.uploads_dir, settings.uploads_url_prefix, settings.max_upload_bytes
    )

    if stores.engine is not None:
        engine = stores.engine

        @app.on_event("startup")
        async def create_tables():
            await init_models(engine)

        @app.on_event("shutdown")
        async def dispose_engine():
            await engine.dispose()

    app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=str(settings.uploads_dir), check_dir=False),
        name="uploads",
    )

    app.include_router(books.router, prefix="/api")
    app.include_router(auth.router, prefix="/api")
    app.include_router(profile.router, prefix="/api")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        start = time.perf_counter()
        with logger.contextualize(request_id=request_id, method=request.method, path=request.url.path):
            logger.info("request.start")
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(status_code=response.status_code, duration_ms=round(duration_ms, 1)).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.exception_handler(BookMarketError)
    async def bookmarket_error_handler(request: Request, exc: BookMarketError):
        content = {"success": False, "message": exc.message}
        if isinstance(exc, ValidationError) and exc.field_errors:
            content["field_errors"] = exc.field_errors
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def custom_http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and request.url.path.startswith("/api") and exc.detail == "Not Found":
            return JSONResponse(status_code=404, content={"detail": "API endpoint not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    return app


app = create_app()
