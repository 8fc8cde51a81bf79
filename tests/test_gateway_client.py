import json

import httpx
import pytest

from aletheia.apps.client.errors import AnalysisFailedError, GatewayError, InputValidationError
from aletheia.apps.client.gateway import GatewayClient
from aletheia.libs.schemas.records import EmotionLabel, MeditationType


def make_client(handler, context=None):
    return GatewayClient(
        "https://fn.test/functions/v1",
        context=context,
        anon_key="anon",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_blank_text_never_reaches_the_network():
    requests = []
    client = make_client(lambda request: requests.append(request) or httpx.Response(200, json={}))
    with pytest.raises(InputValidationError, match="Please enter some text to analyze"):
        await client.analyze("   ")
    assert requests == []


@pytest.mark.asyncio
async def test_analyze_sends_credentials_and_normalizes(context):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"emotion": "furious", "intensity": 0.9, "summary": "Upset."})

    result = await make_client(handler, context).analyze("so mad")

    assert seen["url"] == "https://fn.test/functions/v1/analyze-emotion"
    assert seen["headers"]["authorization"] == "Bearer token-1"
    assert seen["headers"]["apikey"] == "anon"
    assert seen["body"] == {"text": "so mad"}
    assert result.emotion is EmotionLabel.CALM
    assert result.intensity == 0.9


@pytest.mark.asyncio
async def test_error_body_message_is_surfaced():
    client = make_client(lambda request: httpx.Response(429, json={"error": "Rate limited"}))
    with pytest.raises(GatewayError) as excinfo:
        await client.chat("hi", [])
    assert str(excinfo.value) == "Rate limited"
    assert excinfo.value.status_code == 429


@pytest.mark.asyncio
async def test_error_without_body_uses_status():
    client = make_client(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(GatewayError, match="502"):
        await client.meditation_script(MeditationType.CALM, 5)


@pytest.mark.asyncio
async def test_non_json_analysis_is_analysis_failure():
    client = make_client(lambda request: httpx.Response(200, text="oops"))
    with pytest.raises(AnalysisFailedError, match="analysis failed"):
        await client.analyze("hello")


@pytest.mark.asyncio
async def test_unreachable_server_is_gateway_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GatewayError):
        await make_client(handler).recommend_meditation(["sad"])


@pytest.mark.asyncio
async def test_chat_sends_history_turns():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "I'm listening."})

    reply = await make_client(handler).chat("hello", [{"role": "user", "content": "earlier", "id": "x"}])
    assert reply == "I'm listening."
    assert seen["body"] == {"message": "hello", "history": [{"role": "user", "content": "earlier"}]}


@pytest.mark.asyncio
async def test_meditation_helpers_use_camel_case_keys():
    bodies = []

    def handler(request):
        body = json.loads(request.content)
        bodies.append(body)
        if body["type"] == "summary":
            return httpx.Response(200, json={"summary": None})
        return httpx.Response(200, json={"recommendation": "Try sleep."})

    client = make_client(handler)
    assert await client.meditation_summary(None, "peaceful") is None
    assert await client.recommend_meditation(["sad", "tired"]) == "Try sleep."
    assert bodies[0] == {"type": "summary", "emotionBefore": None, "emotionAfter": "peaceful"}
    assert bodies[1] == {"type": "recommendation", "recentEmotions": ["sad", "tired"]}


@pytest.mark.asyncio
async def test_summary_with_bad_shape_is_gateway_error():
    client = make_client(lambda request: httpx.Response(200, json={"key_topics": []}))
    with pytest.raises(GatewayError, match="Failed to parse summary"):
        await client.summarize([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_with_context_swaps_bearer_token(context):
    tokens = []

    def handler(request):
        tokens.append(request.headers.get("authorization"))
        return httpx.Response(200, json={"script": "Rest."})

    client = make_client(handler)
    await client.meditation_script("calm", 5)
    client.with_context(context)
    await client.meditation_script("calm", 5)
    assert tokens == [None, "Bearer token-1"]
