"""Routes an admitted event to exactly one output channel."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from hookgate.matching import normalize_event_name
from hookgate.topology import SELF_TOKEN, WILDCARD, OutputTopology

logger = structlog.get_logger()


class TopologyMismatchError(RuntimeError):
    """The topology was not resolved from the subscription being routed."""


@dataclass(frozen=True)
class InboundEvent:
    raw_name: str | None
    is_self_originated: bool = False


@dataclass(frozen=True)
class Deliver:
    channel_index: int
    payload: Any

    def channels(self, topology: OutputTopology) -> list[list[Any]]:
        """One list per channel; only the target channel carries the payload."""
        outputs: list[list[Any]] = [[] for _ in range(len(topology))]
        outputs[self.channel_index] = [self.payload]
        return outputs


@dataclass(frozen=True)
class Drop:
    reason: str


RoutingDecision = Deliver | Drop


def extract_event(body: Any) -> InboundEvent:
    """Pull the event name and ``payload.fromMe`` flag out of a WAHA body."""
    if not isinstance(body, dict):
        return InboundEvent(raw_name=None)

    name = body.get("event")
    payload = body.get("payload")
    from_me = payload.get("fromMe") if isinstance(payload, dict) else None
    return InboundEvent(
        raw_name=name if isinstance(name, str) else None,
        is_self_originated=from_me is True,
    )


def route(
    subscription: Sequence[str],
    topology: OutputTopology,
    event: InboundEvent,
    payload: Any,
) -> RoutingDecision:
    if topology.subscription != tuple(subscription):
        raise TopologyMismatchError(
            f"Topology resolved for {list(topology.subscription)} cannot route {list(subscription)}"
        )

    if not event.raw_name:
        return Drop("no_event")

    normalized = normalize_event_name(event.raw_name)
    if not (topology.wildcard or normalized in topology.subscription):
        logger.debug("router.dropped", waha_event=event.raw_name, reason="not_subscribed")
        return Drop("not_subscribed")

    if topology.wildcard:
        return Deliver(0, payload)

    token = normalized
    if event.is_self_originated and SELF_TOKEN in topology.subscription:
        token = SELF_TOKEN

    index = topology.index_of(token)
    if index is None:
        raise TopologyMismatchError(f"No output channel for subscribed token '{token}'")
    return Deliver(index, payload)
