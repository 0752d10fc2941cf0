"""Output channels derived from the event subscription."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

WILDCARD = "*"
# Reserved token: events the webhook owner sent themselves (payload.fromMe).
SELF_TOKEN = "self"
NO_EVENTS_TOKEN = "no_events"


def channel_label(token: str) -> str:
    """``session_status`` -> ``Session Status``."""
    return " ".join(part[:1].upper() + part[1:] for part in token.split("_"))


@dataclass(frozen=True)
class OutputChannel:
    index: int
    token: str
    label: str


@dataclass(frozen=True)
class OutputTopology:
    """Fixed set of output channels for one subscription.

    Resolved once when the endpoint is registered and shared read-only by every
    request routed through it.
    """

    subscription: tuple[str, ...]
    channels: tuple[OutputChannel, ...]

    @property
    def wildcard(self) -> bool:
        return WILDCARD in self.subscription

    @property
    def labels(self) -> list[str]:
        return [channel.label for channel in self.channels]

    def index_of(self, token: str) -> int | None:
        for channel in self.channels:
            if channel.token == token:
                return channel.index
        return None

    def __len__(self) -> int:
        return len(self.channels)


def resolve_topology(events: Sequence[str]) -> OutputTopology:
    subscription = tuple(events)

    if not subscription:
        channels = (OutputChannel(0, NO_EVENTS_TOKEN, "No Events"),)
    elif WILDCARD in subscription:
        # Tokens listed next to '*' get no channel of their own.
        channels = (OutputChannel(0, WILDCARD, "Any Event"),)
    else:
        channels = tuple(
            OutputChannel(index, token, channel_label(token)) for index, token in enumerate(subscription)
        )

    return OutputTopology(subscription=subscription, channels=channels)
