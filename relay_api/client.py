"""Async client for the ``/api/process-context`` endpoint.

Usage::

    reply = await process_context("https://relay.example.com", screenshot_png, "Translate this to English")
"""

import base64

import httpx


class RelayClientError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


async def process_context(
    base_url: str,
    image: bytes | str,
    text: str,
    *,
    timeout_s: float = 30.0,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Send a screenshot and the spoken text, return the generated reply.

    ``image`` may be raw bytes (PNG/JPEG) or an already base64-encoded string.
    """
    encoded = base64.b64encode(image).decode("ascii") if isinstance(image, bytes) else image
    url = f"{base_url.rstrip('/')}/api/process-context"
    body = {"image": encoded, "text": text}

    if client is None:
        async with httpx.AsyncClient(timeout=timeout_s) as owned_client:
            response = await owned_client.post(url, json=body)
    else:
        response = await client.post(url, json=body, timeout=timeout_s)

    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    if response.status_code != 200:
        raise RelayClientError(response.status_code, data.get("error") or "Unknown error")

    result = data.get("result")
    if result is None:
        raise RelayClientError(response.status_code, "Empty result from server")
    return result
