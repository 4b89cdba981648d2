"""FastAPI application exposing the lead file API."""

from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from app.config import CONFIG, reload_config

from .routes import files, webhooks


load_dotenv()
reload_config()

app = FastAPI(
    title=os.getenv("API_TITLE", "Lead Files API"),
    version=os.getenv("API_VERSION", "1.0.0"),
    description=(
        "Upload, resolve and delete lead documents stored in the primary object store "
        "with a Google Drive backup. Authenticate using a Supabase JWT in the Authorization header."
    ),
)

if CONFIG.api_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(CONFIG.api_cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.get("/health", tags=["health"])  # pragma: no cover - trivial fast check
def healthcheck() -> dict[str, str]:
    """Simple health endpoint for load balancers and smoke tests."""

    return {"status": "ok", "primary_backend": CONFIG.primary_storage_backend}


app.include_router(files.router, prefix="/v1", tags=["files"])
app.include_router(webhooks.router, prefix="/v1", tags=["webhooks"])
