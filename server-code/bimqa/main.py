# =========================
# bimqa/main.py
# =========================
from __future__ import annotations

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bimqa.routers import chat, health

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Quiet noisy third-party loggers (e.g., Pinecone plugin discovery)
logging.getLogger("pinecone_plugin_interface").setLevel(logging.WARNING)
logging.getLogger("pinecone").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

TAGS_METADATA = [
    {"name": "health", "description": "Liveness & readiness checks."},
    {
        "name": "chat",
        "description": (
            "Ask natural-language questions about a BIM model. "
            "POST `/chat/` with `{modelId, question, debug}`."
        ),
    },
]

app = FastAPI(
    title="BIM QA API",
    version="0.1.0",
    description=(
        "LLM-planned questions over BIM element data: Gemini for planning and answers, "
        "allow-listed parameterized SQL over the elements store (read-only), "
        "optional Pinecone candidate restriction."
    ),
    openapi_tags=TAGS_METADATA,
)

# CORS (dev-open; tighten for prod)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(chat.router)
