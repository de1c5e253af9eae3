import logging
import os
import uuid
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.http.session import cleanup_session
from core.mapping.factory import get_mapping_provider
from map_screen.api import router as map_screen_router
from map_screen.controller import MapScreenController
from map_screen.services import ScreenServices, build_screen_services

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    cors_origins_str = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if cors_origins_str:
        origins = [
            origin.strip() for origin in cors_origins_str.split(",") if origin.strip()
        ]
        logger.info("CORS configured with specific origins: %s", origins)
        return origins
    origins = [
        "http://localhost:3000",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8080",
    ]
    logger.warning(
        "CORS_ALLOWED_ORIGINS not set. Using development defaults: %s",
        origins,
    )
    return origins


def create_app(services: ScreenServices | None = None) -> FastAPI:
    """Build the application; ``services`` overrides the configured provider."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        screen_services = services or build_screen_services(get_mapping_provider())
        app.state.map_screen = MapScreenController(screen_services)
        logger.info("Map screen ready (origin %s)", app.state.map_screen.origin)
        try:
            yield
        finally:
            await app.state.map_screen.wait_idle()
            await cleanup_session()
            logger.info("Application shutdown completed successfully")

    app = FastAPI(title="Map Screen", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.include_router(map_screen_router)

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: HTTPException):
        logger.warning("404 Not Found: %s. Detail: %s", request.url, exc.detail)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Not found", "detail": exc.detail},
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception):
        error_id = str(uuid.uuid4())
        logger.error(
            "Internal Server Error (ID: %s): Request %s %s failed. Exception: %s",
            error_id,
            request.method,
            request.url,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "error_id": error_id,
                "detail": str(exc),
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        log_level="info",
    )
