"""Health check endpoint."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request

from hookgate import __version__

router = APIRouter()

_start_time = time.time()


@router.get("/health")
async def health(request: Request) -> dict:
    """Status, uptime and the registered endpoint."""
    config = request.app.state.config
    endpoint = request.app.state.endpoint

    return {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round(time.time() - _start_time, 1),
        "endpoint": {
            "path": f"/{endpoint.path}",
            "authentication": config.trigger.authentication,
            "outputs": endpoint.topology.labels,
        },
    }
