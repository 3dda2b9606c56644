from __future__ import annotations

from fastapi import FastAPI

from api.actions import config, health, rendering, runs

app = FastAPI(title="LexReview API")

app.include_router(health.router)
app.include_router(config.router)
app.include_router(runs.router)
app.include_router(rendering.router)
