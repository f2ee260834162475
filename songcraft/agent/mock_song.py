"""Offline song generator for development and testing."""

from __future__ import annotations

import logging

from songcraft.models.song import Language, SongData
from songcraft.preprocessing.image import solid_cover_png, to_data_uri
from songcraft.services.normalizer import normalize_song_data

log = logging.getLogger(__name__)

MOCK_LYRICS = {
    "verse_1": "Streetlights hum a tune I used to know\nFootsteps fading where the rivers go",
    "chorus": "Carry me home on a paper moon\nSing me the end of an old lagoon",
    "verse_2": "Letters folded in a winter coat\nEvery promise that we never wrote",
    "bridge": "And if the night forgets my name\nI'll hum it back the same",
    "outro": "Paper moon, paper moon\nCarry me home soon",
}


def get_mock_song(topic: str, language: Language) -> SongData:
    """Return a canned song shaped like a real (mapping-lyrics) model response."""
    return normalize_song_data(
        {
            "title": f"Paper Moon ({topic})" if topic else "Paper Moon",
            "lyrics": MOCK_LYRICS,
            "styles": {"primary": "dream pop", "secondary": "indie folk", "texture": "lo-fi"},
            "imagePrompt": f"A paper moon over a quiet harbour at dusk, themed on {topic}",
            "description": f"A lullaby in {language.value} about finding the way home.",
        }
    )


class MockSongGenerator:
    """Implements SongGenerator without touching the network."""

    async def generate_song(
        self, topic: str, language: Language, use_search: bool
    ) -> SongData:
        log.info("Using mock song for topic '%s'", topic)
        return get_mock_song(topic, language)

    async def generate_cover_image(self, image_prompt: str) -> str:
        return to_data_uri(solid_cover_png())

    async def edit_image(self, current_image: str, edit_instruction: str) -> str:
        # a different tint so callers can tell the edit happened
        return to_data_uri(solid_cover_png(color=(30, 64, 175)))
