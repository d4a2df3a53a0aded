"""Configuration management for flashchat."""

import json
import os
import shutil
from dataclasses import dataclass, asdict

from dotenv import load_dotenv

from .paths import DATA_DIR, CONFIG_FILE, atomic_json_write

PROVIDERS = ["anthropic", "openai", "openrouter", "ollama", "custom"]

# Default model per provider
DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o-mini",
    "openrouter": "anthropic/claude-sonnet-4.5",
    "ollama": "llama3.1",
    "custom": "",
}

# Environment variable holding the API key for each provider
API_KEY_ENV: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "custom": "OPENAI_API_KEY",
}


@dataclass
class Config:
    """Application configuration."""

    provider: str = "anthropic"
    model: str = DEFAULT_MODELS["anthropic"]
    base_url: str = ""
    max_tokens: int = 4096
    max_tool_rounds: int = 6
    request_timeout: float = 90.0


def load_config() -> Config:
    """Load config from disk, creating defaults if needed."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)

    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE) as f:
                data = json.load(f)
            return Config(
                **{k: v for k, v in data.items() if k in Config.__dataclass_fields__}
            )
        except (json.JSONDecodeError, TypeError):
            # Back up corrupted config before overwriting with defaults
            backup_path = CONFIG_FILE.with_suffix(".json.bak")
            try:
                shutil.copy2(CONFIG_FILE, backup_path)
            except OSError:
                pass

    config = Config()
    save_config(config)
    return config


def save_config(config: Config) -> None:
    """Save config to disk."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    atomic_json_write(CONFIG_FILE, asdict(config))


def set_provider(config: Config, provider: str, model: str | None = None) -> None:
    """Switch provider (and model, defaulting to the provider's default) and save."""
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown provider '{provider}'. Choose one of: {', '.join(PROVIDERS)}")
    config.provider = provider
    config.model = model or DEFAULT_MODELS[provider]
    save_config(config)


def get_api_key(provider: str) -> str | None:
    """API key for a provider from the environment (or a .env file)."""
    load_dotenv()
    env_var = API_KEY_ENV.get(provider)
    if env_var is None:
        return None
    return os.environ.get(env_var) or None


def format_config_display(config: Config) -> str:
    """Format config for display."""
    key_env = API_KEY_ENV.get(config.provider)
    if key_env is None:
        key_status = "not needed"
    elif get_api_key(config.provider):
        key_status = f"set ({key_env})"
    else:
        key_status = f"missing ({key_env})"

    lines = [
        "LLM Configuration",
        "=" * 50,
        f"  Provider:     {config.provider}",
        f"  Model:        {config.model or '(not set)'}",
        f"  Base URL:     {config.base_url or '(provider default)'}",
        f"  API key:      {key_status}",
        f"  Max tokens:   {config.max_tokens}",
        f"  Tool rounds:  {config.max_tool_rounds}",
        f"  Timeout:      {config.request_timeout:g}s",
        "=" * 50,
    ]
    return "\n".join(lines)
