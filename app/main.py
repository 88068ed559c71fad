# app/main.py

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_settings
from app.database import init_db
from app.logging_config import configure_logging
from app.routers import analytics_router, editorial_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(json_format=settings.LOG_JSON, level=settings.LOG_LEVEL)
    init_db()
    yield


app = FastAPI(title="Editorial Assistant", lifespan=lifespan)

app.include_router(editorial_router)
app.include_router(analytics_router)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/health")
def health() -> dict:
    settings = get_settings()
    return {
        "status": "ok",
        "service": "editorial-assistant",
        "llm_provider": settings.LLM_PROVIDER,
        "web_search": settings.search_enabled,
    }
