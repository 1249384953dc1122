import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from esl_annotator.infrastructure import (
    GeminiClassifierClient,
    SupabaseResultStore,
    configure_classifier_client,
    configure_result_store,
)
from esl_annotator.routes import analyze, batch, history
from esl_annotator.workers.batch import BatchRunner, configure_batch_runner

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure logging for the annotation service."""
    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("esl_annotator").setLevel(log_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="ESL Annotation API", version="0.1.0")

    api_key = os.getenv("GEMINI_API_KEY")
    if api_key:
        client = GeminiClassifierClient(
            api_key,
            model=os.getenv("GEMINI_MODEL") or "gemini-2.5-flash",
            api_base=os.getenv("GEMINI_API_BASE") or "https://generativelanguage.googleapis.com",
        )
        configure_classifier_client(client)
    else:
        logger.warning("GEMINI_API_KEY is not set. Classification calls will fail until it is provided.")

    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_ANON_KEY")
    if supabase_url and supabase_key:
        table = os.getenv("SUPABASE_TABLE") or "essay_analyses"
        configure_result_store(SupabaseResultStore(supabase_url, supabase_key, table=table))

    item_delay_ms = int(os.getenv("BATCH_ITEM_DELAY_MS", "100"))
    recent_limit = int(os.getenv("BATCH_RECENT_LIMIT", "100"))
    configure_batch_runner(BatchRunner(item_delay=item_delay_ms / 1000, recent_limit=recent_limit))

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(analyze.router, prefix="/api")
    app.include_router(batch.router, prefix="/api")
    app.include_router(history.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "ESL Annotation API",
                "docs": "/docs",
                "health": "/healthz",
            }
        )

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> PlainTextResponse:
        return PlainTextResponse("ok")

    return app


app = create_app()
