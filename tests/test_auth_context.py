import json

import httpx
import pytest

from aletheia.apps.client.context import SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED, AuthClient
from aletheia.apps.client.errors import GatewayError, SessionStateError


def token_payload(access="a1", refresh="r1"):
    return {"access_token": access, "refresh_token": refresh, "user": {"id": "u-42", "email": "sam@example.com"}}


def make_auth(handler):
    return AuthClient(base_url="https://auth.test/", anon_key="anon", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_sign_in_adopts_session_and_notifies():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers["apikey"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=token_payload())

    auth = make_auth(handler)
    events = []
    auth.on_change(lambda event, ctx: events.append((event, ctx and ctx.user_id)))

    with pytest.raises(SessionStateError):
        auth.require_session()
    context = await auth.sign_in("sam@example.com", "pw")

    assert seen["url"] == "https://auth.test/auth/v1/token?grant_type=password"
    assert seen["apikey"] == "anon"
    assert seen["body"] == {"email": "sam@example.com", "password": "pw"}
    assert context.user_id == "u-42"
    assert auth.require_session() is context
    assert events == [(SIGNED_IN, "u-42")]


@pytest.mark.asyncio
async def test_failed_sign_in_uses_error_description():
    auth = make_auth(lambda request: httpx.Response(400, json={"error_description": "Invalid login credentials"}))
    with pytest.raises(GatewayError, match="Invalid login credentials"):
        await auth.sign_in("sam@example.com", "wrong")
    assert auth.session is None


@pytest.mark.asyncio
async def test_refresh_and_async_listener():
    responses = iter([token_payload(), token_payload(access="a2", refresh="r2")])
    auth = make_auth(lambda request: httpx.Response(200, json=next(responses)))
    events = []

    async def listener(event, ctx):
        events.append(event)

    auth.on_change(listener)
    await auth.sign_in("sam@example.com", "pw")
    refreshed = await auth.refresh()

    assert refreshed.access_token == "a2"
    assert events == [SIGNED_IN, TOKEN_REFRESHED]


@pytest.mark.asyncio
async def test_restore_resolves_user_from_token():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["authorization"]
        return httpx.Response(200, json={"id": "u-7", "email": "kai@example.com"})

    context = await make_auth(handler).restore("existing-token")
    assert seen["auth"] == "Bearer existing-token"
    assert context.user_id == "u-7"
    assert context.access_token == "existing-token"


@pytest.mark.asyncio
async def test_sign_out_clears_session_even_if_remote_fails():
    def handler(request):
        if request.url.path.endswith("/logout"):
            return httpx.Response(500, json={"msg": "down"})
        return httpx.Response(200, json=token_payload())

    auth = make_auth(handler)
    events = []
    unsubscribe = auth.on_change(lambda event, ctx: events.append(event))
    await auth.sign_in("sam@example.com", "pw")
    await auth.sign_out()
    unsubscribe()
    await auth.sign_out()

    assert auth.session is None
    assert events == [SIGNED_IN, SIGNED_OUT]
