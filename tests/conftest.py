import asyncio
from types import SimpleNamespace

import pytest

from songcraft.errors import GenerationFailed, ImageEditFailed, ImageGenerationFailed
from songcraft.models.song import Language, SongData
from songcraft.preprocessing.image import solid_cover_png, to_data_uri

COVER_URL = to_data_uri(solid_cover_png(size=(32, 18)))
EDITED_URL = to_data_uri(solid_cover_png(color=(200, 10, 10), size=(32, 18)))


class FakeModels:
    """Stands in for ``client.aio.models``; replays canned responses in order."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses):
    models = FakeModels(responses)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


def text_response(text, chunks=None):
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=[SimpleNamespace(text=text, inline_data=None)]),
        grounding_metadata=SimpleNamespace(grounding_chunks=chunks),
    )
    return SimpleNamespace(text=text, candidates=[candidate])


def image_response(data=None):
    parts = [SimpleNamespace(text="Here is your cover", inline_data=None)]
    if data is not None:
        parts.append(
            SimpleNamespace(
                text=None,
                inline_data=SimpleNamespace(data=data, mime_type="image/png"),
            )
        )
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts), grounding_metadata=None)
    return SimpleNamespace(text=None, candidates=[candidate])


class ScriptedGenerator:
    """SongGenerator whose results, failures and timing are set by the test."""

    def __init__(
        self,
        song_error=False,
        cover_error=False,
        edit_error=False,
    ):
        self.song_error = song_error
        self.cover_error = cover_error
        self.edit_error = edit_error
        self.song_gates: dict[str, asyncio.Event] = {}
        self.cover_gate: asyncio.Event | None = None
        self.edit_gate: asyncio.Event | None = None
        self.cover_prompts: list[str] = []
        self.edits: list[tuple[str, str]] = []

    async def generate_song(self, topic: str, language: Language, use_search: bool) -> SongData:
        gate = self.song_gates.get(topic)
        if gate is not None:
            await gate.wait()
        if self.song_error:
            raise GenerationFailed()
        return SongData(
            title=topic.title(),
            lyrics="[VERSE 1]\nline a\nline b\n\n[CHORUS]\nline c",
            styles=["pop"],
            image_prompt=f"cover for {topic}",
            mood_description="calm",
        )

    async def generate_cover_image(self, image_prompt: str) -> str:
        self.cover_prompts.append(image_prompt)
        if self.cover_gate is not None:
            await self.cover_gate.wait()
        if self.cover_error:
            raise ImageGenerationFailed()
        return COVER_URL

    async def edit_image(self, current_image: str, edit_instruction: str) -> str:
        self.edits.append((current_image, edit_instruction))
        if self.edit_gate is not None:
            await self.edit_gate.wait()
        if self.edit_error:
            raise ImageEditFailed()
        return EDITED_URL


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run up to their next await."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def no_api_key_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"):
        monkeypatch.delenv(name, raising=False)
