"""Debug tracing utilities for generation requests."""

from __future__ import annotations

import json
import logging
from typing import Any

from google.genai import types

log = logging.getLogger(__name__)


def _format_value(value: Any, max_length: int | None = 300) -> str:
    """Format a value for display, truncating if needed."""
    if isinstance(value, str):
        s = value
    elif isinstance(value, bytes):
        s = f"<bytes {len(value)} bytes>"
    elif isinstance(value, dict):
        s = json.dumps(value, indent=2, default=str)
    else:
        s = str(value)

    if max_length is not None and len(s) > max_length:
        return s[:max_length] + f"\n... (truncated {len(s) - max_length} chars)"
    return s


def trace_system_prompt(system_prompt: str) -> None:
    """Log the system instruction."""
    log.debug("=" * 80)
    log.debug("SYSTEM INSTRUCTION")
    log.debug("=" * 80)
    log.debug(_format_value(system_prompt, max_length=None))
    log.debug("=" * 80)


def trace_request_config(model_name: str, config: types.GenerateContentConfig) -> None:
    """Log the model and the output/tool directives of a request."""
    log.debug("=" * 80)
    log.debug("REQUEST CONFIGURATION")
    log.debug("=" * 80)
    log.debug(f"Model: {model_name}")
    log.debug(f"Response MIME type: {config.response_mime_type or '<free-form>'}")
    log.debug(f"Response schema: {'yes' if config.response_schema else 'no'}")
    log.debug(f"Tools: {len(config.tools or [])}")
    if config.image_config is not None:
        log.debug(f"Aspect ratio: {config.image_config.aspect_ratio}")
    log.debug("=" * 80)


def trace_grounding(sources: list[Any]) -> None:
    log.debug("=" * 80)
    log.debug(f"GROUNDING SOURCES: {len(sources)}")
    log.debug("=" * 80)
    for i, source in enumerate(sources):
        log.debug(f"  [{i}] {source}")


def trace_final_output(output: Any) -> None:
    """Log the raw model output."""
    log.debug("=" * 80)
    log.debug("FINAL OUTPUT")
    log.debug("=" * 80)
    log.debug(_format_value(output, max_length=None))
    log.debug("=" * 80)
