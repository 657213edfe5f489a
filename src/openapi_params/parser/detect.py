"""Load API documents and detect their format."""

import json
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def load_document(file_path: Path) -> dict:
    """Read a YAML or JSON API document into a dict."""
    text = file_path.read_text(encoding="utf-8")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        # some valid JSON (e.g. with tab indentation) is not valid YAML
        logger.debug("%s is not YAML, trying JSON", file_path)
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"{file_path} does not contain an API document")
    return data


def detect_format(document: dict) -> str:
    """Detect the format of a loaded API document.

    Returns: 'openapi3', 'swagger2', or 'unknown'.
    """
    if str(document.get("openapi", "")).startswith("3"):
        return "openapi3"
    if str(document.get("swagger", "")).startswith("2"):
        return "swagger2"
    return "unknown"
