import json

import httpx
import pytest

from relay_api.config import Settings
from relay_api.errors import UpstreamError
from relay_api.llm import generate_context_reply, parse_chat_completions_output
from relay_api.schemas import NormalizedPayload

SETTINGS = Settings(llm_api_key="sk-test", llm_base_url="https://llm.test/v1/", llm_timeout_s=30.0)
PAYLOAD = NormalizedPayload(image="QUJDRA==", text="translate this")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_generate_context_reply_sends_chat_completion_request():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "Bonjour"}}]})

    async with _client(handler) as client:
        result = await generate_context_reply(SETTINGS, "You translate.", PAYLOAD, client=client)

    assert result == "Bonjour"
    request = seen[0]
    assert str(request.url) == "https://llm.test/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-test"

    body = json.loads(request.content)
    assert body["model"] == "gpt-4o"
    assert body["messages"][0] == {"role": "system", "content": "You translate."}
    user_content = body["messages"][1]["content"]
    assert user_content[0] == {"type": "text", "text": "translate this"}
    assert user_content[1]["image_url"] == {
        "url": "data:image/jpeg;base64,QUJDRA==",
        "detail": "low",
    }


@pytest.mark.asyncio
async def test_generate_context_reply_maps_timeout_to_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    async with _client(handler) as client:
        with pytest.raises(UpstreamError, match="timed out after 30s"):
            await generate_context_reply(SETTINGS, "p", PAYLOAD, client=client)


@pytest.mark.asyncio
async def test_generate_context_reply_maps_connect_error_to_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(UpstreamError, match="connection refused"):
            await generate_context_reply(SETTINGS, "p", PAYLOAD, client=client)


@pytest.mark.asyncio
async def test_generate_context_reply_surfaces_upstream_status_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Incorrect API key provided"}})

    async with _client(handler) as client:
        with pytest.raises(UpstreamError) as excinfo:
            await generate_context_reply(SETTINGS, "p", PAYLOAD, client=client)

    assert excinfo.value.status_code == 500
    assert "401" in excinfo.value.message
    assert "Incorrect API key provided" in excinfo.value.message


@pytest.mark.asyncio
async def test_generate_context_reply_rejects_non_json_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    async with _client(handler) as client:
        with pytest.raises(UpstreamError, match="non-JSON"):
            await generate_context_reply(SETTINGS, "p", PAYLOAD, client=client)


def test_parse_chat_completions_output_defaults_to_empty_string():
    assert parse_chat_completions_output({}) == ""
    assert parse_chat_completions_output({"choices": []}) == ""
    assert parse_chat_completions_output({"choices": [{"message": {"content": None}}]}) == ""


def test_parse_chat_completions_output_joins_text_parts():
    data = {
        "choices": [
            {"message": {"content": [{"type": "text", "text": "Bon"}, {"type": "text", "text": "jour"}]}}
        ]
    }
    assert parse_chat_completions_output(data) == "Bonjour"
