"""Admission pipeline: domain, IP, bot and authentication checks."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog
from user_agents import parse as parse_user_agent

from hookgate.auth import DEFAULT_AUTH_FAILURE_MESSAGE, CredentialLookup, authenticate
from hookgate.config import AuthenticationMode, TriggerOptions
from hookgate.matching import whitelist_allows

logger = structlog.get_logger()

DOMAIN_REJECTED_MESSAGE = "Domain is not whitelisted to access the webhook!"
IP_REJECTED_MESSAGE = "IP is not whitelisted to access the webhook!"
AUTH_CHALLENGE_HEADERS = {"WWW-Authenticate": 'Basic realm="Webhook"'}

BotPredicate = Callable[[str | None], Awaitable[bool] | bool]


@dataclass
class IncomingRequest:
    """What the host hands over for one delivery. Header keys are lower-cased."""

    headers: dict[str, str]
    remote_ip: str | None = None
    proxy_ips: list[str] = field(default_factory=list)
    body: Any = None

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


@dataclass(frozen=True)
class Admitted:
    pass


@dataclass(frozen=True)
class Rejected:
    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)


AdmissionResult = Admitted | Rejected


def is_bot(user_agent: str | None) -> bool:
    """Default bot predicate: crawlers, link previewers and other spiders."""
    if not user_agent:
        return False
    return parse_user_agent(user_agent).is_bot


async def admit(
    request: IncomingRequest,
    options: TriggerOptions,
    authentication: AuthenticationMode,
    credential_lookup: CredentialLookup,
    bot_predicate: BotPredicate = is_bot,
) -> AdmissionResult:
    """Run the admission checks in order, stopping at the first rejection."""
    host = request.header("host")
    origin = request.header("origin")
    domains = [value for value in (host, origin) if value]
    if not whitelist_allows(options.domain_whitelist, domains, host):
        logger.warning("gatekeeper.rejected", check="domain", host=host, origin=origin)
        return Rejected(403, DOMAIN_REJECTED_MESSAGE)

    if not whitelist_allows(options.ip_whitelist, request.proxy_ips, request.remote_ip):
        logger.warning(
            "gatekeeper.rejected",
            check="ip",
            remote_ip=request.remote_ip,
            proxy_ips=request.proxy_ips,
        )
        return Rejected(403, IP_REJECTED_MESSAGE)

    if options.ignore_bots:
        flagged = bot_predicate(request.header("user-agent"))
        if inspect.isawaitable(flagged):
            flagged = await flagged
        if flagged:
            logger.info("gatekeeper.rejected", check="bot", user_agent=request.header("user-agent"))
            return Rejected(403, DEFAULT_AUTH_FAILURE_MESSAGE, dict(AUTH_CHALLENGE_HEADERS))

    failure = await authenticate(authentication, request.headers, credential_lookup)
    if failure is not None:
        logger.warning("gatekeeper.rejected", check="auth", status=failure.code)
        return Rejected(failure.code, failure.message, dict(AUTH_CHALLENGE_HEADERS))

    return Admitted()
