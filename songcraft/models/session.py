"""Studio session state models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from songcraft.models.song import GeneratedAsset, Language, SongData


class SessionPhase(str, Enum):
    """Observable phase of a studio session.

    Derived from the session state rather than stored, so a phase such as
    ``editing`` cannot exist without a populated cover.
    """

    IDLE = "idle"
    COMPOSING = "composing"
    COVER_PENDING = "cover_pending"
    COVER_READY = "cover_ready"
    COVER_FAILED = "cover_failed"
    EDITING = "editing"


class LyricSection(BaseModel):
    """One displayed block of lyrics."""

    header: str | None = Field(default=None, description="Header text without brackets")
    lines: list[str] = Field(default_factory=list)


class SessionSnapshot(BaseModel):
    """Serializable view of a studio session."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = None
    phase: SessionPhase
    topic: str = ""
    language: Language
    use_search: bool = False
    loading: bool = False
    song: SongData | None = None
    cover: GeneratedAsset | None = None
    edit_mode: bool = False
    edit_prompt: str = ""
    notice: str | None = None
    sections: list[LyricSection] = Field(default_factory=list)
    text_direction: str = "ltr"
