import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Keep tests deterministic and offline-safe.
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOG_JSON"] = "false"

from relay_api.config import Settings  # noqa: E402
from relay_api.main import create_app  # noqa: E402


@pytest.fixture
def prompt_path(tmp_path: Path) -> Path:
    path = tmp_path / "prompt.yaml"
    path.write_text("system_prompt: Translate the user's request.\n", encoding="utf-8")
    return path


@pytest.fixture
def relay_settings(prompt_path: Path) -> Settings:
    return Settings(
        llm_api_key="sk-test",
        llm_model="gpt-4o",
        llm_base_url="https://llm.test/v1",
        prompt_config_path=str(prompt_path),
        log_json=False,
    )


@pytest.fixture
def client(relay_settings: Settings) -> TestClient:
    return TestClient(create_app(relay_settings))


@pytest.fixture
def captured_calls(monkeypatch) -> list[dict]:
    """Replace the upstream model call and record what it was asked."""
    calls: list[dict] = []

    async def _fake_generate(settings, system_prompt, payload, client=None):
        calls.append({"system_prompt": system_prompt, "payload": payload})
        return "Bonjour"

    monkeypatch.setattr(
        "relay_api.services.relay_service.generate_context_reply",
        _fake_generate,
    )
    return calls
