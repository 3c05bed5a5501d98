"""Contains utility functions for loading link definitions from YAML or JSON files."""

from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from upstream_sync.schemas.link import Link

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

yaml = YAML(typ="safe")


def load_yaml_file(path: Path) -> Any:
    """Loads a YAML (or JSON, which is a subset of YAML) file."""
    with open(path, encoding="utf-8") as f:
        return yaml.load(f)


def load_link_file(path: Path) -> Link:
    """Load and validate a link definition from a YAML or JSON file.

    The file may contain the link at the top level or nested under a ``link``
    key, matching the body shape the route layer receives.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be parsed or does not describe a link.
    """
    if not path.exists():
        raise FileNotFoundError(f"Link file not found: {path.absolute()}")
    try:
        content = load_yaml_file(path)
    except YAMLError as exc:
        raise ValueError(f"Failed to parse link file '{path}': {exc}") from exc

    if isinstance(content, dict) and isinstance(content.get("link"), dict):
        content = content["link"]
    if not isinstance(content, dict):
        raise ValueError(f"Link file '{path}' must contain a mapping, got {type(content).__name__}")

    try:
        link = Link.model_validate(content)
    except ValidationError as exc:
        raise ValueError(f"Invalid link definition in '{path}': {exc}") from exc
    logger.debug("Loaded link definition", path=str(path), link_name=link.name, enabled=link.enabled)
    return link
