"""Event catalog and output topology endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/v1/events")
async def list_events(request: Request) -> dict:
    return {
        "api_version": request.app.state.api_version,
        "events": [{"name": option.name, "value": option.value} for option in request.app.state.catalog],
    }


@router.get("/v1/topology")
async def get_topology(request: Request) -> dict:
    topology = request.app.state.endpoint.topology
    return {
        "subscription": list(topology.subscription),
        "outputs": [
            {"index": channel.index, "token": channel.token, "label": channel.label}
            for channel in topology.channels
        ],
    }
