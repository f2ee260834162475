"""Canonical song and asset records shared by every layer."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Languages lyrics can be written in."""

    ARABIC = "Arabic"
    ENGLISH = "English"
    SPANISH = "Spanish"
    FRENCH = "French"
    GERMAN = "German"
    JAPANESE = "Japanese"

    @property
    def text_direction(self) -> str:
        return "rtl" if self is Language.ARABIC else "ltr"


DEFAULT_LANGUAGE = Language.ARABIC


class GroundingSource(BaseModel):
    """A web citation attached to a search-grounded song."""

    uri: str | None = Field(default=None, description="Source URL")
    title: str | None = Field(default=None, description="Source page title")


class SongData(BaseModel):
    """A normalized generated song."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(description="Display title of the song")
    lyrics: str = Field(
        description="Flat lyrics string; sections separated by a blank line, "
        "each optionally headed by a [SECTION] line"
    )
    styles: list[str] = Field(
        default_factory=list,
        max_length=3,
        description="Up to three genre/style labels",
    )
    image_prompt: str = Field(
        default="", alias="imagePrompt", description="Prompt for the cover art"
    )
    mood_description: str = Field(
        default="",
        alias="moodDescription",
        description="Narrative describing the emotional depth of the song",
    )
    grounding_sources: list[GroundingSource] | None = Field(
        default=None,
        alias="groundingSources",
        description="Web sources cited when the song was search-grounded",
    )


class GeneratedAsset(BaseModel):
    """A visual artifact together with its loading/error state."""

    type: Literal["image", "video"] = "image"
    url: str = Field(default="", description="data: URI once populated")
    loading: bool = False
    error: str | None = None
