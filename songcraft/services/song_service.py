from __future__ import annotations

from typing import Protocol, runtime_checkable

from songcraft.models.song import Language, SongData


@runtime_checkable
class SongGenerator(Protocol):
    """Interface for song and cover generation backends.

    Implementations return normalized SongData and ``data:image/png;base64``
    URIs, and raise GenerationFailed / ImageGenerationFailed / ImageEditFailed.
    """

    async def generate_song(
        self, topic: str, language: Language, use_search: bool
    ) -> SongData: ...

    async def generate_cover_image(self, image_prompt: str) -> str: ...

    async def edit_image(self, current_image: str, edit_instruction: str) -> str: ...
