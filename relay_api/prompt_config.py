from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from relay_api.errors import ConfigurationError
from relay_api.schemas import PromptConfig

ROOT_DIR = Path(__file__).resolve().parent.parent


def resolve_prompt_path(path: str | Path) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return ROOT_DIR / candidate


def load_prompt_config(path: str | Path) -> PromptConfig:
    prompt_path = resolve_prompt_path(path)
    try:
        raw = prompt_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Failed to load prompt config: {exc}") from exc

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to load prompt config: {exc}") from exc

    if not isinstance(data, dict) or not data.get("system_prompt"):
        raise ConfigurationError(
            f"Failed to load prompt config: system_prompt field is missing in {prompt_path.name}"
        )

    try:
        config = PromptConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Failed to load prompt config: {exc}") from exc

    if not config.system_prompt.strip():
        raise ConfigurationError(
            f"Failed to load prompt config: system_prompt field is empty in {prompt_path.name}"
        )
    return config


def load_system_prompt(path: str | Path) -> str:
    return load_prompt_config(path).system_prompt
