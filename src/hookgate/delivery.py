"""Delivery of routed channel payloads to log sinks and downstream webhooks."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import httpx
import structlog

from hookgate.topology import OutputChannel

logger = structlog.get_logger()

DEFAULT_TARGETS = ("log",)


class ChannelDispatcher:
    """Hands the populated output channel to its configured targets."""

    def __init__(self, *, targets: Mapping[str, Sequence[str]] | None = None, timeout_s: int = 10) -> None:
        self.targets = {token: list(values) for token, values in (targets or {}).items()}
        self.timeout_s = max(1, int(timeout_s))

    def targets_for(self, channel: OutputChannel) -> list[str]:
        return self.targets.get(channel.token) or list(DEFAULT_TARGETS)

    async def dispatch(self, channel: OutputChannel, items: list[Any]) -> bool:
        """Send ``items`` to every target of ``channel``; True if all succeeded."""
        delivered = True
        for target in self.targets_for(channel):
            for item in items:
                ok = await self.dispatch_target(target=target, channel=channel, payload=item)
                delivered = delivered and ok
        return delivered

    async def dispatch_target(self, *, target: str, channel: OutputChannel, payload: Any) -> bool:
        normalized = (target or "").strip()
        if not normalized:
            return False

        if normalized.lower() == "log":
            event = payload.get("event") if isinstance(payload, dict) else None
            logger.info("delivery.log", channel=channel.label, waha_event=event, payload=payload)
            return True

        if normalized.startswith("webhook:"):
            return await self._post(url=normalized.split(":", 1)[1].strip(), channel=channel, payload=payload)

        if normalized.startswith("http://") or normalized.startswith("https://"):
            return await self._post(url=normalized, channel=channel, payload=payload)

        logger.warning("delivery.unhandled", channel=channel.label, target=normalized)
        return False

    async def _post(self, *, url: str, channel: OutputChannel, payload: Any) -> bool:
        if not url:
            logger.warning("delivery.webhook.invalid", reason="missing_url", channel=channel.label)
            return False

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_s)) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"X-Hookgate-Channel": channel.token},
                )
            if response.status_code >= 400:
                logger.warning(
                    "delivery.webhook.failed",
                    status_code=response.status_code,
                    url=url,
                    body=response.text[:300],
                )
                return False
            return True
        except httpx.HTTPError as exc:
            logger.warning("delivery.webhook.error", url=url, error=str(exc))
            return False
