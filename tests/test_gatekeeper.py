import pytest

from hookgate.config import HeaderAuthCredential, TriggerOptions
from hookgate.gatekeeper import (
    AUTH_CHALLENGE_HEADERS,
    IP_REJECTED_MESSAGE,
    Admitted,
    IncomingRequest,
    Rejected,
    admit,
    is_bot,
)

GOOGLEBOT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _request(**headers: str) -> IncomingRequest:
    return IncomingRequest(
        headers={key.replace("_", "-"): value for key, value in headers.items()},
        remote_ip="127.0.0.1",
        proxy_ips=[],
        body={"event": "message"},
    )


def _credential() -> HeaderAuthCredential:
    return HeaderAuthCredential(header_name="X-Api-Key", api_key="s3cret")


class _Calls:
    def __init__(self) -> None:
        self.lookups = 0
        self.bot_checks = 0

    def lookup(self) -> HeaderAuthCredential:
        self.lookups += 1
        return _credential()

    def bot(self, user_agent: str | None) -> bool:
        self.bot_checks += 1
        return True


@pytest.mark.asyncio
async def test_domain_rejection_has_no_auth_challenge() -> None:
    calls = _Calls()
    options = TriggerOptions(domain_whitelist="example.com", ignore_bots=True)

    result = await admit(_request(host="evil.test"), options, "headerAuth", calls.lookup, calls.bot)

    assert isinstance(result, Rejected)
    assert result.status == 403
    assert "Domain is not whitelisted" in result.body
    assert result.headers == {}
    assert calls.bot_checks == 0
    assert calls.lookups == 0


@pytest.mark.asyncio
async def test_origin_header_can_satisfy_domain_whitelist() -> None:
    options = TriggerOptions(domain_whitelist="example.com")

    result = await admit(
        _request(host="10.0.0.2:8000", origin="https://hooks.example.com"),
        options,
        "none",
        _credential,
    )

    assert result == Admitted()


@pytest.mark.asyncio
async def test_ip_rejection_runs_after_domain_check() -> None:
    calls = _Calls()
    options = TriggerOptions(ip_whitelist="1.2.3.4", ignore_bots=True)

    result = await admit(_request(host="waha.local"), options, "headerAuth", calls.lookup, calls.bot)

    assert result == Rejected(403, IP_REJECTED_MESSAGE)
    assert calls.bot_checks == 0


@pytest.mark.asyncio
async def test_ip_whitelist_matches_proxy_chain() -> None:
    request = _request(host="waha.local")
    request.proxy_ips = ["203.0.113.7", "10.0.0.1"]

    result = await admit(request, TriggerOptions(ip_whitelist="203.0.113."), "none", _credential)

    assert result == Admitted()


@pytest.mark.asyncio
async def test_bot_rejection_looks_like_auth_challenge() -> None:
    calls = _Calls()

    result = await admit(
        _request(user_agent="Googlebot"),
        TriggerOptions(ignore_bots=True),
        "headerAuth",
        calls.lookup,
        calls.bot,
    )

    assert result == Rejected(403, "Authorization data is wrong!", AUTH_CHALLENGE_HEADERS)
    assert result.headers["WWW-Authenticate"] == 'Basic realm="Webhook"'
    assert calls.lookups == 0


@pytest.mark.asyncio
async def test_bot_predicate_skipped_unless_ignore_bots() -> None:
    calls = _Calls()

    result = await admit(_request(user_agent="Googlebot"), TriggerOptions(), "none", calls.lookup, calls.bot)

    assert result == Admitted()
    assert calls.bot_checks == 0


@pytest.mark.asyncio
async def test_async_bot_predicate_is_awaited() -> None:
    async def never_bot(user_agent: str | None) -> bool:
        return False

    result = await admit(_request(user_agent="curl/8"), TriggerOptions(ignore_bots=True), "none", _credential, never_bot)

    assert result == Admitted()


@pytest.mark.asyncio
async def test_auth_failures_become_rejections() -> None:
    options = TriggerOptions()

    admitted = await admit(_request(x_api_key="s3cret"), options, "headerAuth", _credential)
    missing = await admit(_request(), options, "headerAuth", _credential)
    wrong = await admit(_request(x_api_key="nope"), options, "headerAuth", _credential)
    broken = await admit(
        _request(x_api_key="s3cret"),
        options,
        "headerAuth",
        lambda: HeaderAuthCredential(header_name="", api_key="s3cret"),
    )

    assert admitted == Admitted()
    assert missing == Rejected(403, "Missing authentication header.", AUTH_CHALLENGE_HEADERS)
    assert wrong == Rejected(403, "Invalid authentication header value.", AUTH_CHALLENGE_HEADERS)
    assert isinstance(broken, Rejected)
    assert broken.status == 500
    assert "missing or invalid" in broken.body


def test_default_bot_predicate() -> None:
    assert is_bot(GOOGLEBOT) is True
    assert is_bot(CHROME) is False
    assert is_bot(None) is False
    assert is_bot("") is False
