"""Configuration management for yt2anki."""

import json
import shutil
from dataclasses import dataclass, asdict, fields

from .paths import DATA_DIR, CONFIG_FILE, atomic_json_write

# Archive compression modes accepted by the packager
COMPRESSION_MODES = ("deflated", "stored")


@dataclass
class Config:
    """Application configuration."""

    default_output: str = "deck.apkg"
    deck_description: str = "Vocabulary deck created by yt2anki"
    compression: str = "deflated"


def load_config() -> Config:
    """Load config from disk, creating defaults if needed."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)

    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE, encoding="utf-8") as f:
                data = json.load(f)
            config = Config(
                **{k: v for k, v in data.items() if k in Config.__dataclass_fields__}
            )
            if config.compression not in COMPRESSION_MODES:
                config.compression = Config.compression
            return config
        except (json.JSONDecodeError, TypeError, AttributeError):
            # Back up corrupted config before overwriting with defaults
            backup_path = CONFIG_FILE.with_suffix(".json.bak")
            try:
                shutil.copy2(CONFIG_FILE, backup_path)
            except OSError:
                pass

    # Return defaults and save them
    config = Config()
    save_config(config)
    return config


def save_config(config: Config) -> None:
    """Save config to disk."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    atomic_json_write(CONFIG_FILE, asdict(config))


def set_config_value(config: Config, key: str, value: str) -> None:
    """Set a config value from its string form and save config.

    Raises:
        KeyError: if ``key`` is not a config field.
        ValueError: if ``value`` is not valid for ``key``.
    """
    names = [f.name for f in fields(Config)]
    if key not in names:
        raise KeyError(key)
    if key == "compression" and value not in COMPRESSION_MODES:
        raise ValueError(
            f"compression must be one of: {', '.join(COMPRESSION_MODES)}"
        )
    if key == "default_output" and not value.strip():
        raise ValueError("default_output cannot be empty")
    setattr(config, key, value)
    save_config(config)


def format_config_display(config: Config) -> str:
    """Format config values for display."""
    lines = []
    lines.append("yt2anki configuration")
    lines.append("=" * 50)
    for name, value in asdict(config).items():
        lines.append(f"  {name:<18} {value}")
    lines.append("")
    lines.append(f"  file: {CONFIG_FILE}")
    return "\n".join(lines)
