import asyncio

import pytest

from hookgate.auth import AuthFailure, ConfigCredentialStore, CredentialLookupError, authenticate
from hookgate.config import HeaderAuthCredential


def _lookup(header_name: str = "X-Api-Key", api_key: str = "s3cret"):
    return lambda: HeaderAuthCredential(header_name=header_name, api_key=api_key)


def test_none_mode_never_calls_lookup() -> None:
    def explode():
        raise AssertionError("lookup must not be called")

    assert asyncio.run(authenticate("none", {}, explode)) is None


def test_header_auth_accepts_matching_header() -> None:
    result = asyncio.run(authenticate("headerAuth", {"x-api-key": "s3cret"}, _lookup()))
    assert result is None


def test_header_name_is_case_insensitive_but_value_is_not() -> None:
    ok = asyncio.run(authenticate("headerAuth", {"x-api-key": "s3cret"}, _lookup(header_name="X-API-KEY")))
    wrong_case = asyncio.run(authenticate("headerAuth", {"x-api-key": "S3CRET"}, _lookup()))

    assert ok is None
    assert wrong_case == AuthFailure(403, "Invalid authentication header value.")


def test_missing_header_is_rejected() -> None:
    result = asyncio.run(authenticate("headerAuth", {"authorization": "s3cret"}, _lookup()))
    assert result == AuthFailure(403, "Missing authentication header.")


def test_lookup_failure_is_a_server_error() -> None:
    store = ConfigCredentialStore({})

    result = asyncio.run(authenticate("headerAuth", {"x-api-key": "s3cret"}, store.lookup_for()))

    assert result is not None
    assert result.code == 500
    assert result.message.startswith("Failed to load")


def test_malformed_credential_is_a_server_error() -> None:
    result = asyncio.run(authenticate("headerAuth", {"x-api-key": ""}, _lookup(api_key="")))

    assert result is not None
    assert result.code == 500
    assert "missing or invalid" in result.message


def test_unexpected_lookup_errors_propagate() -> None:
    def outage():
        raise ConnectionError("store down")

    with pytest.raises(ConnectionError):
        asyncio.run(authenticate("headerAuth", {}, outage))


@pytest.mark.asyncio
async def test_async_credential_lookup_is_awaited() -> None:
    async def lookup() -> HeaderAuthCredential:
        return HeaderAuthCredential(header_name="Authorization", api_key="Bearer abc")

    assert await authenticate("headerAuth", {"authorization": "Bearer abc"}, lookup) is None


def test_config_store_raises_for_unknown_type() -> None:
    store = ConfigCredentialStore({"hookgateApiKey": HeaderAuthCredential(api_key="x")})

    assert store.get("hookgateApiKey").header_name == "Authorization"
    with pytest.raises(CredentialLookupError):
        store.get("otherApiKey")
