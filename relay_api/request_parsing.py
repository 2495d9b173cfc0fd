"""Turn an inbound relay request into a canonical ``{image, text}`` payload.

Clients send the same two fields in three shapes: JSON from the native app,
``multipart/form-data`` from Apple Shortcuts, and
``application/x-www-form-urlencoded`` from the Shortcuts "Form" mode. The body
format is decided once from the ``Content-Type`` header and each format has its
own extractor with a shared output shape.
"""

import base64
import json
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from relay_api.errors import ValidationError
from relay_api.schemas import NormalizedPayload

DATA_URI_PATTERN = re.compile(r"^data:image/[^;]+;base64,(.*)$", re.DOTALL)


class BodyFormat(str, Enum):
    JSON = "json"
    MULTIPART = "multipart"
    URL_ENCODED = "url-encoded"


def detect_body_format(content_type: str | None) -> BodyFormat:
    normalized = (content_type or "").lower()
    if "multipart/form-data" in normalized:
        return BodyFormat.MULTIPART
    if "application/x-www-form-urlencoded" in normalized:
        return BodyFormat.URL_ENCODED
    # Anything else, including a missing header, is read as JSON.
    return BodyFormat.JSON


def normalize_base64(image: str) -> str:
    match = DATA_URI_PATTERN.match(image)
    return match.group(1) if match else image


def require_fields(payload: NormalizedPayload) -> NormalizedPayload:
    if not payload.image or not payload.text:
        raise ValidationError("Both 'image' and 'text' fields are required")
    return payload


async def parse_request(request: Request, max_part_size: int) -> NormalizedPayload:
    body_format = detect_body_format(request.headers.get("content-type"))
    request.state.body_format = body_format.value
    extracted = await _EXTRACTORS[body_format](request, max_part_size)
    # Validation runs on the stripped image so a bare data-URI prefix counts as empty.
    payload = NormalizedPayload(image=normalize_base64(extracted.image), text=extracted.text)
    return require_fields(payload)


async def extract_json(request: Request, max_part_size: int) -> NormalizedPayload:
    raw = await request.body()
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError(f"Request body is not valid JSON: {exc}") from exc

    if not isinstance(body, dict):
        return NormalizedPayload(image="", text="")

    image = body.get("image")
    text = body.get("text")
    if image is None:
        image = ""
    if text is None:
        text = ""
    if not isinstance(image, str) or not isinstance(text, str):
        raise ValidationError("'image' and 'text' must be strings")
    return NormalizedPayload(image=image, text=text)


async def extract_multipart(request: Request, max_part_size: int) -> NormalizedPayload:
    async with _open_form(request, max_part_size) as form:
        image_field = _first(form, "image")
        text_field = _first(form, "text")

        if isinstance(image_field, UploadFile):
            content = await image_field.read()
            image = base64.b64encode(content).decode("ascii")
        else:
            image = image_field or ""

        if isinstance(text_field, UploadFile):
            text = await _read_text_part(text_field)
        else:
            text = text_field or ""
    return NormalizedPayload(image=image, text=text)


async def extract_url_encoded(request: Request, max_part_size: int) -> NormalizedPayload:
    async with _open_form(request, max_part_size) as form:
        image = _first(form, "image")
        text = _first(form, "text")
    return NormalizedPayload(
        image=image if isinstance(image, str) else "",
        text=text if isinstance(text, str) else "",
    )


@asynccontextmanager
async def _open_form(request: Request, max_part_size: int) -> AsyncIterator[FormData]:
    try:
        form = await request.form(max_part_size=max_part_size)
    except StarletteHTTPException as exc:
        raise ValidationError(f"Malformed form body: {exc.detail}") from exc
    try:
        yield form
    finally:
        await form.close()


async def _read_text_part(part: UploadFile) -> str:
    content = await part.read()
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError("'text' part must be UTF-8 text") from exc


def _first(form: FormData, key: str) -> Any:
    # Repeated fields: the first occurrence wins.
    values = form.getlist(key)
    return values[0] if values else None


_EXTRACTORS: dict[BodyFormat, Callable[[Request, int], Awaitable[NormalizedPayload]]] = {
    BodyFormat.JSON: extract_json,
    BodyFormat.MULTIPART: extract_multipart,
    BodyFormat.URL_ENCODED: extract_url_encoded,
}
