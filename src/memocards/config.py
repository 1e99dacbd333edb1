"""Application configuration: settings schema, config.yaml loader, and log setup"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "config.yaml"
LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


class Settings(BaseModel):
    db_url:                str = Field(default="sqlite:///memocards.db", description="Card state cache database")
    memos_tag:             str = Field(default="memos", min_length=1, description="Tag that switches a document to card view")
    use_frontmatter_title: bool = Field(default=True, description="Show frontmatter title instead of file name")
    show_debug_log:        bool = Field(default=False, description="Emit debug logging")
    timestamp_format:      str = Field(default="YYYY-MM-DD HH:mm", description="Heading pattern for new sections")
    autosave_delay:        float = Field(default=1.0, ge=0, description="Seconds of input inactivity before a draft is saved")
    parser_config:         str = Field(default="gfm-like", description="MarkdownIt preset for card rendering")

    @field_validator("memos_tag")
    @classmethod
    def _strip_hash(cls, v: str) -> str:
        """Accept '#memos' as 'memos'."""
        cleaned = v.lstrip("#").strip()
        if not cleaned:
            raise ValueError("memos_tag must not be empty")
        return cleaned


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MEMOCARDS_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"MEMOCARDS_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)


def configure_logging(debug: bool = False) -> None:
    """Route package logs to stderr; DEBUG when debug is set, INFO otherwise."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT, force=True)
