"""Header authentication for the inbound webhook."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass

import structlog

from hookgate.config import HEADER_AUTH_CREDENTIAL_TYPE, AuthenticationMode, HeaderAuthCredential

logger = structlog.get_logger()

DEFAULT_AUTH_FAILURE_MESSAGE = "Authorization data is wrong!"

CredentialLookup = Callable[[], Awaitable[HeaderAuthCredential] | HeaderAuthCredential]


class CredentialLookupError(Exception):
    """A stored credential could not be loaded."""


@dataclass(frozen=True)
class AuthFailure:
    """Why a request was not authenticated; ``code`` becomes the HTTP status."""

    code: int
    message: str = DEFAULT_AUTH_FAILURE_MESSAGE


class ConfigCredentialStore:
    """Resolves credentials declared under ``credentials:`` in the configuration."""

    def __init__(self, credentials: Mapping[str, HeaderAuthCredential]) -> None:
        self._credentials = dict(credentials)

    def get(self, credential_type: str) -> HeaderAuthCredential:
        credential = self._credentials.get(credential_type)
        if credential is None:
            raise CredentialLookupError(f"No credential stored for '{credential_type}'")
        return credential

    def lookup_for(self, credential_type: str = HEADER_AUTH_CREDENTIAL_TYPE) -> CredentialLookup:
        return lambda: self.get(credential_type)


async def authenticate(
    mode: AuthenticationMode,
    headers: Mapping[str, str],
    credential_lookup: CredentialLookup,
) -> AuthFailure | None:
    """Check the request headers; returns ``None`` when the request is authenticated.

    ``headers`` must be keyed by lower-cased header names. Failures are reported
    in a fixed order: credential load error, malformed credential, missing
    header, mismatched value.
    """
    if mode == "none":
        return None

    try:
        credential = credential_lookup()
        if inspect.isawaitable(credential):
            credential = await credential
    except CredentialLookupError as exc:
        logger.error("auth.credentials.load_failed", error=str(exc))
        return AuthFailure(500, "Failed to load webhook authentication credentials.")

    if credential is None or not credential.header_name or not credential.api_key:
        logger.error("auth.credentials.invalid")
        return AuthFailure(500, "Webhook authentication data is missing or invalid.")

    header_name = credential.header_name.lower()
    if header_name not in headers:
        logger.warning("auth.header.missing", header=header_name)
        return AuthFailure(403, "Missing authentication header.")

    if headers[header_name] != credential.api_key:
        logger.warning("auth.header.invalid", header=header_name)
        return AuthFailure(403, "Invalid authentication header value.")

    return None
