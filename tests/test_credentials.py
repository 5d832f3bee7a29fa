import base64
import json
from urllib.parse import parse_qs

import httpx
import jwt
import pytest

from opsdash.config import AnalyticsSettings
from opsdash.credentials import (
    AnalyticsClientProvider,
    ApiKeyProvider,
    RefreshTokenProvider,
    ServiceAccountProvider,
    TokenCache,
    build_assertion,
    parse_service_account,
    select_provider,
)
from opsdash.credentials.service_account import JWT_BEARER_GRANT
from opsdash.errors import ConfigurationError, UpstreamAuthError

from tests.utils.upstream import FROZEN_NOW

TOKEN_URL = "https://oauth2.googleapis.com/token"


def _segment(token: str, index: int) -> dict:
    part = token.split(".")[index]
    padded = part + "=" * (-len(part) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


def _form(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


@pytest.mark.asyncio
async def test_api_key_is_returned_without_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        credential = await ApiKeyProvider("static-key").acquire(http)

    assert credential.kind == "api_key"
    assert credential.query_params() == {"key": "static-key"}
    assert credential.request_headers() == {}


@pytest.mark.asyncio
async def test_api_key_missing_raises_configuration_error() -> None:
    async with httpx.AsyncClient() as http:
        with pytest.raises(ConfigurationError):
            await ApiKeyProvider(None).acquire(http)


@pytest.mark.asyncio
async def test_blank_api_key_is_rejected_on_acquire() -> None:
    async with httpx.AsyncClient() as http:
        with pytest.raises(ConfigurationError, match="GA4_API_KEY"):
            await ApiKeyProvider("").acquire(http)


@pytest.mark.asyncio
async def test_refresh_token_exchange_posts_client_credentials_in_body() -> None:
    seen: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(_form(request))
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"access_token": "abc123", "expires_in": 3600})

    provider = RefreshTokenProvider(
        token_url=TOKEN_URL,
        client_id="client",
        client_secret="secret",
        refresh_token="refresh",
        clock=lambda: FROZEN_NOW,
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        credential = await provider.acquire(http)

    assert seen == [
        {
            "grant_type": "refresh_token",
            "refresh_token": "refresh",
            "client_id": "client",
            "client_secret": "secret",
        }
    ]
    assert credential.request_headers() == {"Authorization": "Bearer abc123"}
    assert credential.expires_at == FROZEN_NOW + 3600


@pytest.mark.asyncio
async def test_refresh_token_basic_client_auth() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        expected = base64.b64encode(b"client:secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert "client_secret" not in _form(request)
        return httpx.Response(200, json={"access_token": "xyz"})

    provider = RefreshTokenProvider(
        token_url="https://identity.example.com/connect/token",
        client_id="client",
        client_secret="secret",
        refresh_token="refresh",
        client_auth="basic",
        tenant_id="tenant-1",
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        credential = await provider.acquire(http)

    assert credential.token == "xyz"
    assert credential.request_headers("xero-tenant-id") == {
        "Authorization": "Bearer xyz",
        "xero-tenant-id": "tenant-1",
    }


@pytest.mark.asyncio
async def test_refresh_token_rejection_surfaces_status_and_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    provider = RefreshTokenProvider(
        token_url=TOKEN_URL, client_id="c", client_secret="s", refresh_token="r"
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(UpstreamAuthError) as excinfo:
            await provider.acquire(http)

    assert excinfo.value.status_code == 400
    assert "invalid_grant" in str(excinfo.value)


@pytest.mark.asyncio
async def test_refresh_token_missing_access_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token_type": "Bearer"})

    provider = RefreshTokenProvider(
        token_url=TOKEN_URL, client_id="c", client_secret="s", refresh_token="r"
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(UpstreamAuthError):
            await provider.acquire(http)


def test_refresh_token_check_names_missing_settings() -> None:
    provider = RefreshTokenProvider(
        token_url=TOKEN_URL, client_id="c", client_secret=None, refresh_token=None
    )

    with pytest.raises(ConfigurationError, match="GA4_CLIENT_SECRET, GA4_REFRESH_TOKEN"):
        provider.check()


def test_assertion_header_and_lifetime(service_account_json: str, public_key_pem: str) -> None:
    info = parse_service_account(service_account_json)

    assertion = build_assertion(info, now=int(FROZEN_NOW))

    assert _segment(assertion, 0) == {"alg": "RS256", "typ": "JWT"}
    payload = _segment(assertion, 1)
    assert payload["exp"] - payload["iat"] == 3600
    assert payload["iat"] == int(FROZEN_NOW)
    assert payload["iss"] == "reporter@ops-dashboard.iam.gserviceaccount.com"
    assert payload["aud"] == TOKEN_URL
    assert payload["scope"] == "https://www.googleapis.com/auth/analytics.readonly"
    assert "=" not in assertion

    verified = jwt.decode(
        assertion,
        public_key_pem,
        algorithms=["RS256"],
        audience=TOKEN_URL,
        options={"verify_exp": False, "verify_iat": False},
    )
    assert verified == payload


def test_bad_private_key_is_a_configuration_error() -> None:
    info = parse_service_account(
        json.dumps({"client_email": "a@example.com", "private_key": "not a key"})
    )

    with pytest.raises(ConfigurationError):
        build_assertion(info, now=0)


@pytest.mark.parametrize("raw", [None, "", "{not json", json.dumps({"client_email": "x"})])
def test_invalid_service_account_json(raw) -> None:
    with pytest.raises(ConfigurationError):
        parse_service_account(raw)


@pytest.mark.asyncio
async def test_service_account_exchanges_fresh_assertion_each_time(
    service_account_json: str, frozen_clock
) -> None:
    assertions: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        form = _form(request)
        assert form["grant_type"] == JWT_BEARER_GRANT
        assertions.append(form["assertion"])
        return httpx.Response(200, json={"access_token": f"token-{len(assertions)}", "expires_in": 3600})

    provider = ServiceAccountProvider(service_account_json, clock=frozen_clock)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        first = await provider.acquire(http)
        second = await provider.acquire(http)

    assert len(assertions) == 2
    assert first.token == "token-1"
    assert second.token == "token-2"


@pytest.mark.asyncio
async def test_token_cache_reuses_until_expiry_margin(service_account_json: str) -> None:
    now = [FROZEN_NOW]
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={"access_token": f"token-{len(calls)}", "expires_in": 3600})

    clock = lambda: now[0]  # noqa: E731
    provider = ServiceAccountProvider(
        service_account_json, cache=TokenCache(clock=clock), clock=clock
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        first = await provider.acquire(http)
        now[0] += 3000
        cached = await provider.acquire(http)
        now[0] += 541
        refreshed = await provider.acquire(http)

    assert first.token == cached.token == "token-1"
    assert refreshed.token == "token-2"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_client_strategy_builds_managed_client(service_account_json: str) -> None:
    received: list[dict] = []
    sentinel = object()

    def factory(info):
        received.append(dict(info))
        return sentinel

    provider = AnalyticsClientProvider(service_account_json, client_factory=factory)
    async with httpx.AsyncClient() as http:
        credential = await provider.acquire(http)

    assert credential.kind == "client"
    assert credential.client is sentinel
    assert received[0]["client_email"] == "reporter@ops-dashboard.iam.gserviceaccount.com"


def test_select_prefers_service_account(service_account_json: str) -> None:
    settings = AnalyticsSettings(
        property_id="1",
        api_key="key",
        client_id="c",
        client_secret="s",
        refresh_token="r",
        service_account_json=service_account_json,
    )

    assert select_provider(settings).name == "service_account"


def test_select_refresh_token_before_api_key() -> None:
    settings = AnalyticsSettings(api_key="key", client_id="c", client_secret="s", refresh_token="r")

    assert select_provider(settings).name == "refresh_token"


def test_select_api_key_when_oauth_incomplete() -> None:
    settings = AnalyticsSettings(api_key="key", client_id="c")

    assert select_provider(settings).name == "api_key"


def test_explicit_strategy_wins(service_account_json: str) -> None:
    settings = AnalyticsSettings(
        service_account_json=service_account_json, auth_strategy="client"
    )

    assert select_provider(settings).name == "client"


def test_explicit_strategy_is_validated_eagerly() -> None:
    settings = AnalyticsSettings(api_key="key", auth_strategy="refresh_token")

    with pytest.raises(ConfigurationError, match="GA4_CLIENT_ID"):
        select_provider(settings)


def test_unknown_strategy_name() -> None:
    with pytest.raises(ConfigurationError, match="Unknown GA4_AUTH_STRATEGY"):
        select_provider(AnalyticsSettings(auth_strategy="magic"))


def test_nothing_configured() -> None:
    with pytest.raises(ConfigurationError, match="No analytics credentials configured"):
        select_provider(AnalyticsSettings())
