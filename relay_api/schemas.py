from dataclasses import dataclass

from pydantic import BaseModel


class NormalizedPayload(BaseModel):
    image: str
    text: str


class PromptConfig(BaseModel):
    system_prompt: str


class ProcessContextResponse(BaseModel):
    result: str


class ErrorResponse(BaseModel):
    error: str


@dataclass(frozen=True)
class RelayResult:
    status_code: int
    result: str | None = None
    error: str | None = None

    def body(self) -> dict[str, str]:
        if self.error is not None:
            return ErrorResponse(error=self.error).model_dump()
        return ProcessContextResponse(result=self.result or "").model_dump()
