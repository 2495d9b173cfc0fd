import logging
from typing import Any

import httpx

from relay_api.config import Settings
from relay_api.errors import UpstreamError
from relay_api.schemas import NormalizedPayload

logger = logging.getLogger(__name__)


def build_chat_body(settings: Settings, system_prompt: str, payload: NormalizedPayload) -> dict:
    return {
        "model": settings.llm_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": payload.text},
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:{settings.llm_image_mime};base64,{payload.image}",
                            "detail": settings.llm_image_detail,
                        },
                    },
                ],
            },
        ],
    }


async def generate_context_reply(
    settings: Settings,
    system_prompt: str,
    payload: NormalizedPayload,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Send one chat-completion request and return the first choice's text.

    Raises ``UpstreamError`` for timeouts, transport failures, non-2xx
    statuses and bodies that are not a chat-completion JSON object.
    """
    headers = {
        "Authorization": f"Bearer {settings.llm_api_key}",
        "Content-Type": "application/json",
    }
    chat_url = f"{settings.llm_base_url.rstrip('/')}/chat/completions"
    chat_body = build_chat_body(settings, system_prompt, payload)

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.llm_timeout_s) as owned_client:
                response = await owned_client.post(chat_url, headers=headers, json=chat_body)
        else:
            response = await client.post(
                chat_url,
                headers=headers,
                json=chat_body,
                timeout=settings.llm_timeout_s,
            )
    except httpx.TimeoutException as exc:
        raise UpstreamError(
            f"Upstream model call timed out after {settings.llm_timeout_s:g}s"
        ) from exc
    except httpx.HTTPError as exc:
        raise UpstreamError(f"Upstream model call failed: {exc}") from exc

    if not response.is_success:
        raise UpstreamError(
            f"Upstream model returned {response.status_code}: {_error_detail(response)}"
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise UpstreamError("Upstream model returned a non-JSON response") from exc
    if not isinstance(data, dict):
        raise UpstreamError("Upstream model returned an unexpected response shape")

    logger.debug("upstream_complete", extra={"status_code": response.status_code})
    return parse_chat_completions_output(data)


def parse_chat_completions_output(data: dict) -> str:
    choices = data.get("choices") or []
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message") or {}
    if not isinstance(message, dict):
        return ""
    return _extract_text(message.get("content"))


def _extract_text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict):
                text = item.get("text")
                if isinstance(text, str):
                    parts.append(text)
        return "".join(parts)
    return ""


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str):
        return error
    return response.reason_phrase
