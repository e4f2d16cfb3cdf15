"""
Content repository configuration.

Settings are passed explicitly to each repo; objects read them through
``repo.settings``.

Usage:
    from content_plane.settings import load_settings
    settings = load_settings("content.yaml")
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger("content_plane.settings")


class ContentSettings(BaseModel):
    default_mime: str = "text/plain"
    # None disables the cap
    history_limit: int | None = Field(default=30, ge=1)
    empty_commit_message: str = "(Empty commit message)"
    root_label: str = "Root"
    committer_name: str = "Content Plane"
    committer_email: str = "content-plane@localhost"


def load_settings(path: str | Path | None = None) -> ContentSettings:
    """Load settings from a YAML file. Missing file or no path gives defaults."""
    if path is None:
        return ContentSettings()

    path = Path(path)
    if not path.exists():
        logger.debug(f"Settings file {path} not found, using defaults")
        return ContentSettings()

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    return ContentSettings.model_validate(data)
