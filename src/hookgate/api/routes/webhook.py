"""Inbound WAHA webhook endpoint."""

from __future__ import annotations

import json
import uuid
from typing import Any

import structlog
from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from hookgate.controller import (
    NO_DATA,
    WORKFLOW_STARTED_BODY,
    RespondNow,
    WorkflowData,
    response_code,
    response_data,
)
from hookgate.gatekeeper import IncomingRequest
from hookgate.logging import bind_request_context, clear_request_context

logger = structlog.get_logger()

router = APIRouter()


def _proxy_chain(forwarded_for: str | None, trusted_hops: int) -> list[str]:
    """X-Forwarded-For entries added by trusted proxies, client side first.

    Each proxy appends the address it received from, so only the last
    ``trusted_hops`` entries are ours; anything before them is client supplied.
    """
    if not forwarded_for or trusted_hops <= 0:
        return []
    entries = [entry.strip() for entry in forwarded_for.split(",") if entry.strip()]
    return entries[-trusted_hops:]


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.info("webhook.body.not_json", size=len(raw))
        return None


async def to_incoming_request(request: Request, trusted_proxy_hops: int = 0) -> IncomingRequest:
    headers = {key.lower(): value for key, value in request.headers.items()}
    return IncomingRequest(
        headers=headers,
        remote_ip=request.client.host if request.client else None,
        proxy_ips=_proxy_chain(headers.get("x-forwarded-for"), trusted_proxy_hops),
        body=await _read_body(request),
    )


@router.post("/{path:path}")
async def receive_webhook(path: str, request: Request, background: BackgroundTasks) -> Response:
    state = request.app.state
    endpoint = state.endpoint
    if path.strip("/") != endpoint.path:
        raise HTTPException(status_code=404, detail="Webhook not registered")

    trigger = state.config.trigger
    incoming = await to_incoming_request(request, state.config.trusted_proxy_hops)
    bind_request_context(request_id=uuid.uuid4().hex, remote_ip=incoming.remote_ip)
    try:
        outcome = await endpoint.handle(
            incoming,
            trigger,
            state.credential_store.lookup_for(),
            state.bot_predicate,
        )
    finally:
        clear_request_context()

    if isinstance(outcome, RespondNow):
        return PlainTextResponse(outcome.body, status_code=outcome.status, headers=outcome.headers)

    if not isinstance(outcome, WorkflowData):
        return Response(status_code=200)

    channel = endpoint.topology.channels[outcome.channel_index]
    background.add_task(state.dispatcher.dispatch, channel, outcome.channels[outcome.channel_index])

    status = response_code(trigger.options)
    data = response_data(trigger)
    if status in (204, 304):
        return Response(status_code=status)
    if data is None:
        return JSONResponse(WORKFLOW_STARTED_BODY, status_code=status)
    if data == NO_DATA:
        return Response(status_code=status)
    return PlainTextResponse(data, status_code=status)
