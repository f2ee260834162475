"""Coerce loosely-shaped model output into a canonical SongData.

The text model is asked for a fixed JSON schema, but nothing guarantees the
shape it returns (schema enforcement is off entirely when search grounding is
enabled). Everything that leaves this module is a valid SongData.
"""

from __future__ import annotations

import logging
from typing import Any

from songcraft.models.song import SongData

log = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Masterpiece"
MAX_STYLES = 3


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, list):
        # one line per item
        return "\n".join(_to_str(item) for item in value)
    return str(value)


def _coerce_lyrics(lyrics: Any) -> str:
    """Flatten a {section_name: text} mapping into bracket-headed sections."""
    if isinstance(lyrics, dict):
        blocks = [
            f"[{str(key).replace('_', ' ').upper()}]\n{_to_str(value)}"
            for key, value in lyrics.items()
        ]
        lyrics = "\n\n".join(blocks)
    if isinstance(lyrics, str):
        return lyrics
    return _to_str(lyrics) if lyrics else ""


def _coerce_styles(styles: Any) -> list[str]:
    if isinstance(styles, list):
        items = styles
    elif isinstance(styles, dict):
        items = list(styles.values())
    elif isinstance(styles, str):
        items = [styles]
    else:
        items = []
    return [_to_str(s) for s in items[:MAX_STYLES]]


def _scalar(data: dict, *keys: str, default: str = "") -> str:
    """First truthy value among ``keys``, stringified, else ``default``."""
    for key in keys:
        value = data.get(key)
        if value:
            return _to_str(value)
    return default


def normalize_song_data(raw: dict) -> SongData:
    """Build a total SongData from a decoded JSON object.

    Missing or oddly-typed fields degrade to defaults; this never raises for
    a dict input.
    """
    song = SongData(
        title=_scalar(raw, "title", default=DEFAULT_TITLE),
        lyrics=_coerce_lyrics(raw.get("lyrics")),
        styles=_coerce_styles(raw.get("styles")),
        image_prompt=_scalar(raw, "imagePrompt"),
        mood_description=_scalar(raw, "moodDescription", "description"),
    )
    log.debug(
        "Normalized song '%s': %d lyric chars, styles=%s",
        song.title,
        len(song.lyrics),
        song.styles,
    )
    return song
