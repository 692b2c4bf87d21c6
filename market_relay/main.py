import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from market_relay.config import MAX_BODY_BYTES, VERCEL_ORIGIN_REGEX, ConfigError, Settings
from market_relay.routes import relay_routes
from market_relay.services.llm_service import GeminiService
from market_relay.services.media_client import MediaClient
from market_relay.utils.error_handler import create_error_response, register_error_handlers

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.media_client.aclose()


def create_app(
    settings: Settings,
    gemini_service: GeminiService | None = None,
    media_client: MediaClient | None = None,
) -> FastAPI:
    """Build the relay application around one immutable Settings object."""
    app = FastAPI(title="Market Relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.gemini_service = gemini_service or GeminiService.from_settings(settings)
    app.state.media_client = media_client or MediaClient.from_settings(settings)

    register_error_handlers(app)

    # --- Body size limit (base64 attachments) ---
    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        content_length = request.headers.get("content-length", "")
        if content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
            return create_error_response(413, "Request body exceeds the 50 MB limit.")
        return await call_next(request)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_origin_regex=VERCEL_ORIGIN_REGEX,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Include Routes ---
    app.include_router(relay_routes.router)

    # --- Serve frontend ---
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", response_class=FileResponse)
    async def get_index():
        return STATIC_DIR / "index.html"

    return app


def run():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        logging.critical(f"FATAL ERROR: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level)
    # Log key presence only, never the value
    logging.info(f"GEMINI_API_KEY loaded: {bool(settings.gemini_api_key)}")
    logging.info(f"Allowed origins: {settings.allowed_origins} + {VERCEL_ORIGIN_REGEX}")

    app = create_app(settings)
    logging.info(f"✅ Backend server listening at http://localhost:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
