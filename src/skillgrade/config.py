"""Settings loaded from the environment and an optional .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Judge endpoint (OpenAI-compatible chat completions)
    open_ai_llm_url: str = ""
    llm_api_key: str = ""
    llm_model: str = "openai/gpt-oss-20b"
    llm_max_tokens: int = 2048
    llm_temperature: float = 0.3
    llm_timeout: float | None = None  # seconds; unset waits indefinitely

    # Skills
    skills_dir: str = "skills"

    # Logs raw judge responses at DEBUG level
    debug_llm: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}
