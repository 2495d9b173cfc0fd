from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from relay_api.config import Settings, settings as default_settings
from relay_api.observability import RequestLoggingMiddleware, configure_logging
from relay_api.schemas import ErrorResponse, ProcessContextResponse
from relay_api.services.relay_service import handle


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)

    app = FastAPI(title="Context Relay API", version="0.1.0")
    app.state.settings = settings
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/health")
    def health(current: Settings = Depends(get_settings)) -> dict[str, str]:
        return {"status": "ok", "model": current.llm_model}

    @app.post(
        "/api/process-context",
        response_model=ProcessContextResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def process_context(
        request: Request,
        current: Settings = Depends(get_settings),
    ) -> JSONResponse:
        outcome = await handle(request, current)
        return JSONResponse(status_code=outcome.status_code, content=outcome.body())

    return app


app = create_app()
