"""Lyrics rendering helpers."""

from __future__ import annotations

import re

from songcraft.models.session import LyricSection

SECTION_BREAK = re.compile(r"\n\n+")
DEFAULT_COVER_NAME = "song-cover"
# whitespace and path separators
FILENAME_BREAK = re.compile(r"[\s/\\]+")


def split_lyric_sections(lyrics: str) -> list[LyricSection]:
    """Split lyrics into displayable sections.

    Sections are separated by runs of two or more newlines. A first line
    wrapped in ``[`` and ``]`` becomes the section header (brackets stripped)
    and is excluded from the body.
    """
    if not lyrics:
        return []

    sections: list[LyricSection] = []
    for block in SECTION_BREAK.split(lyrics):
        lines = block.split("\n")
        first = lines[0].strip()
        if first.startswith("[") and first.endswith("]"):
            header = first.replace("[", "").replace("]", "")
            sections.append(LyricSection(header=header, lines=lines[1:]))
        else:
            sections.append(LyricSection(header=None, lines=lines))
    return sections


def cover_filename(title: str | None) -> str:
    """Download filename for a cover: lower-cased title, whitespace runs as hyphens.

    Slashes are folded into hyphens too, so the name never leaves the target
    directory.
    """
    stem = FILENAME_BREAK.sub("-", title).lower() if title else ""
    return f"{stem or DEFAULT_COVER_NAME}.png"
