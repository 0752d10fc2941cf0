"""Per-request orchestration of admission and routing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from hookgate.auth import CredentialLookup
from hookgate.config import TriggerConfig, TriggerOptions
from hookgate.gatekeeper import BotPredicate, IncomingRequest, Rejected, admit, is_bot
from hookgate.router import Drop, extract_event, route
from hookgate.topology import OutputTopology, resolve_topology

logger = structlog.get_logger()

WORKFLOW_STARTED_BODY = {"message": "Workflow was started"}
NO_DATA = "noData"


@dataclass(frozen=True)
class RespondNow:
    """The request was rejected; write this response and stop."""

    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NoWebhookResponse:
    reason: str


@dataclass(frozen=True)
class WorkflowData:
    channel_index: int
    channels: list[list[Any]]


WebhookOutcome = RespondNow | NoWebhookResponse | WorkflowData


def response_code(options: TriggerOptions) -> int:
    return options.response_code


def response_data(trigger: TriggerConfig) -> str | None:
    """Body to send once an event is accepted; ``None`` means the default message."""
    if trigger.options.response_data:
        return trigger.options.response_data
    if trigger.options.no_response_body:
        return NO_DATA
    return None


class WebhookEndpoint:
    """A registered trigger endpoint and the output channels it exposes."""

    def __init__(self, path: str, topology: OutputTopology) -> None:
        self.path = path
        self.topology = topology

    @classmethod
    def register(cls, trigger: TriggerConfig) -> WebhookEndpoint:
        topology = resolve_topology(trigger.events)
        logger.info("endpoint.registered", path=trigger.path, outputs=topology.labels)
        return cls(trigger.path, topology)

    async def handle(
        self,
        request: IncomingRequest,
        trigger: TriggerConfig,
        credential_lookup: CredentialLookup,
        bot_predicate: BotPredicate = is_bot,
    ) -> WebhookOutcome:
        admission = await admit(
            request,
            trigger.options,
            trigger.authentication,
            credential_lookup,
            bot_predicate,
        )
        if isinstance(admission, Rejected):
            return RespondNow(admission.status, admission.body, admission.headers)

        event = extract_event(request.body)
        decision = route(trigger.events, self.topology, event, request.body)
        if isinstance(decision, Drop):
            return NoWebhookResponse(decision.reason)

        logger.info(
            "endpoint.routed",
            waha_event=event.raw_name,
            channel=self.topology.channels[decision.channel_index].label,
        )
        return WorkflowData(decision.channel_index, decision.channels(self.topology))
