"""FastAPI entry point for the Lesson Studio conversation service."""

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from services.middleware import RequestIdMiddleware

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Lesson Studio",
    description="Conversational lesson planning and parallel slide generation",
    version="0.1.0",
)

# ── Middleware stack (outermost first) ─────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

# ── Register routers ────────────────────────────────────────
from api.health import router as health_router  # noqa: E402
from api.conversation import router as conversation_router  # noqa: E402
from api.context import router as context_router  # noqa: E402

app.include_router(health_router)
app.include_router(conversation_router)
app.include_router(context_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.debug,
        timeout_keep_alive=120,
    )
