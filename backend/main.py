"""
Gemini Chat Relay - FastAPI Backend

Relays browser chat turns to Google's Gemini models, picking a working
model from a ranked candidate list and degrading gracefully when a model
is overloaded or does not support multi-turn sessions.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers import chat, health, models
from logging_config import setup_logging
from config import runtime_config

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown events"""
    if not runtime_config.has_api_key:
        logger.warning("GEMINI_API_KEY is not set; /api/chat will answer 500 until it is configured")
    logger.info(f"Runtime config: {runtime_config.to_dict()}")

    yield

    logger.info("Gemini chat relay signing off")


app = FastAPI(
    title="Gemini Chat Relay",
    description="Chat relay with model fallback and overload backoff",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=runtime_config.get_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router, tags=["chat"])
app.include_router(models.router, tags=["models"])
app.include_router(health.router, tags=["health"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=runtime_config.port)
