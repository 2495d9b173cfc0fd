import logging

import httpx
from starlette.requests import Request

from relay_api.config import Settings
from relay_api.errors import ConfigurationError, RelayError
from relay_api.llm import generate_context_reply
from relay_api.prompt_config import load_system_prompt
from relay_api.request_parsing import parse_request
from relay_api.schemas import RelayResult

logger = logging.getLogger(__name__)


async def handle(
    request: Request,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> RelayResult:
    """Relay one ``{image, text}`` request to the model and shape the reply.

    Every failure ends here as a ``RelayResult`` with an error message and a
    status code; nothing is retried.
    """
    try:
        if not settings.llm_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

        system_prompt = load_system_prompt(settings.prompt_config_path)
        payload = await parse_request(request, settings.max_form_part_bytes)
        result = await generate_context_reply(settings, system_prompt, payload, client=client)
    except RelayError as exc:
        request.state.relay_error = type(exc).__name__
        _log_failure(exc.status_code, exc.message, exc)
        return RelayResult(status_code=exc.status_code, error=exc.message)
    except Exception as exc:  # noqa: BLE001
        request.state.relay_error = type(exc).__name__
        message = str(exc) or "Internal server error"
        _log_failure(500, message, exc)
        return RelayResult(status_code=500, error=message)

    return RelayResult(status_code=200, result=result)


def _log_failure(status_code: int, message: str, exc: Exception) -> None:
    extra = {"status_code": status_code}
    if status_code >= 500:
        logger.error("process_context_failed: %s", message, exc_info=exc, extra=extra)
    else:
        logger.warning("process_context_rejected: %s", message, extra=extra)
