import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    llm_api_key: str = ""
    llm_model: str = "gpt-4o"
    llm_base_url: str = "https://api.openai.com/v1"
    llm_timeout_s: float = 30.0
    llm_image_detail: str = "low"
    llm_image_mime: str = "image/jpeg"
    prompt_config_path: str = "config/prompt.yaml"
    max_form_part_bytes: int = 32 * 1024 * 1024
    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            llm_api_key=os.getenv("OPENAI_API_KEY", ""),
            llm_model=os.getenv("LLM_MODEL", "gpt-4o"),
            llm_base_url=os.getenv("LLM_BASE_URL", "https://api.openai.com/v1"),
            llm_timeout_s=float(os.getenv("LLM_TIMEOUT_S", "30")),
            llm_image_detail=os.getenv("LLM_IMAGE_DETAIL", "low"),
            llm_image_mime=os.getenv("LLM_IMAGE_MIME", "image/jpeg"),
            prompt_config_path=os.getenv("PROMPT_CONFIG_PATH", "config/prompt.yaml"),
            max_form_part_bytes=int(os.getenv("MAX_FORM_PART_BYTES", str(32 * 1024 * 1024))),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON", "true"),
        )


settings = Settings.from_env()
