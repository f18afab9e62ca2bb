from __future__ import annotations

import os

from fastapi import FastAPI

from .routes.layout import router as layout_router

app = FastAPI(title="Family Tree Layout API", version="0.1.0")


@app.get("/health")
def health() -> dict[str, object]:
    return {"status": "ok", "dataset": bool((os.environ.get("FAMILYTREE_DATA") or "").strip())}


app.include_router(layout_router)
