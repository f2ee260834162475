import asyncio

import pytest

from conftest import COVER_URL, EDITED_URL, ScriptedGenerator, settle
from songcraft.errors import AuthenticationRequired, InvalidTransition
from songcraft.models.session import SessionPhase
from songcraft.models.song import Language
from songcraft.services.auth import ApiKeySelector
from songcraft.services.studio import (
    EDIT_FAILURE_MESSAGE,
    GENERIC_FAILURE_NOTICE,
    StudioSession,
)


async def ready_session(generator=None) -> StudioSession:
    session = StudioSession(generator or ScriptedGenerator())
    assert await session.generate("rainy city", Language.ENGLISH, False)
    return session


class TestGenerate:
    @pytest.mark.asyncio
    async def test_happy_path(self):
        generator = ScriptedGenerator()
        session = StudioSession(generator)

        assert await session.generate("rainy city", Language.ENGLISH, False)

        assert session.phase is SessionPhase.COVER_READY
        assert session.song.title == "Rainy City"
        assert session.cover.url == COVER_URL
        assert session.cover.loading is False
        assert session.loading is False
        assert generator.cover_prompts == ["cover for rainy city"]

    @pytest.mark.asyncio
    async def test_cover_pending_before_image_resolves(self):
        """The cover exists with loading=True and no URL while the image call runs."""
        generator = ScriptedGenerator()
        generator.cover_gate = asyncio.Event()
        session = StudioSession(generator)

        task = asyncio.create_task(session.generate("rainy city"))
        await settle()

        assert session.loading is False
        assert session.song is not None
        assert session.cover.loading is True
        assert session.cover.url == ""
        assert session.phase is SessionPhase.COVER_PENDING

        generator.cover_gate.set()
        assert await task
        assert session.cover.loading is False
        assert session.cover.url.startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_composing_phase(self):
        generator = ScriptedGenerator()
        generator.song_gates["slow"] = asyncio.Event()
        session = StudioSession(generator)

        task = asyncio.create_task(session.generate("slow"))
        await settle()
        assert session.phase is SessionPhase.COMPOSING
        assert session.loading is True

        generator.song_gates["slow"].set()
        await task
        assert session.phase is SessionPhase.COVER_READY

    @pytest.mark.asyncio
    async def test_blank_topic_is_noop(self):
        session = StudioSession(ScriptedGenerator())
        assert await session.generate("   ") is False
        assert session.phase is SessionPhase.IDLE
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_song_failure(self):
        session = StudioSession(ScriptedGenerator(song_error=True))

        assert await session.generate("x") is False

        assert session.song is None
        assert session.cover is None
        assert session.loading is False
        assert session.notice == GENERIC_FAILURE_NOTICE
        assert session.phase is SessionPhase.IDLE

    @pytest.mark.asyncio
    async def test_cover_failure_keeps_song(self):
        session = StudioSession(ScriptedGenerator(cover_error=True))

        assert await session.generate("x") is False

        assert session.song is not None
        assert session.cover.loading is False
        assert session.cover.url == ""
        assert session.cover.error
        assert session.notice == GENERIC_FAILURE_NOTICE
        assert session.phase is SessionPhase.COVER_FAILED

    @pytest.mark.asyncio
    async def test_new_generation_discards_previous(self):
        session = await ready_session()
        session.start_refine()
        session.edit_prompt = "brighter"

        generator = ScriptedGenerator()
        generator.song_gates["next"] = asyncio.Event()
        session.generator = generator
        task = asyncio.create_task(session.generate("next"))
        await settle()

        assert session.song is None
        assert session.cover is None
        assert session.edit_mode is False
        assert session.edit_prompt == ""

        generator.song_gates["next"].set()
        await task

    @pytest.mark.asyncio
    async def test_last_generation_wins(self):
        """A slower, older request cannot overwrite a newer one."""
        generator = ScriptedGenerator()
        generator.song_gates["first"] = asyncio.Event()
        session = StudioSession(generator)

        first = asyncio.create_task(session.generate("first"))
        await settle()
        assert await session.generate("second")

        generator.song_gates["first"].set()
        assert await first is False

        assert session.song.title == "Second"
        assert session.phase is SessionPhase.COVER_READY
        assert generator.cover_prompts == ["cover for second"]

    @pytest.mark.asyncio
    async def test_requires_api_key(self, no_api_key_env):
        session = StudioSession(ScriptedGenerator(), key_selector=ApiKeySelector())
        with pytest.raises(AuthenticationRequired):
            await session.generate("x")
        assert session.loading is False
        assert session.phase is SessionPhase.IDLE


class TestRefine:
    @pytest.mark.asyncio
    async def test_successful_edit(self):
        generator = ScriptedGenerator()
        session = await ready_session(generator)

        session.start_refine()
        assert session.phase is SessionPhase.EDITING
        assert await session.submit_refine("add stars")

        assert generator.edits == [(COVER_URL, "add stars")]
        assert session.cover.url == EDITED_URL
        assert session.cover.loading is False
        assert session.edit_mode is False
        assert session.edit_prompt == ""
        assert session.phase is SessionPhase.COVER_READY

    @pytest.mark.asyncio
    async def test_loading_keeps_previous_url(self):
        generator = ScriptedGenerator()
        session = await ready_session(generator)
        generator.edit_gate = asyncio.Event()

        session.start_refine()
        task = asyncio.create_task(session.submit_refine("add stars"))
        await settle()
        assert session.cover.loading is True
        assert session.cover.url == COVER_URL

        with pytest.raises(InvalidTransition):
            session.begin_refine("again")

        generator.edit_gate.set()
        assert await task

    @pytest.mark.asyncio
    async def test_failed_edit(self):
        """A failed edit keeps the old URL, sets an error and stays in edit mode."""
        generator = ScriptedGenerator(edit_error=True)
        session = await ready_session(generator)

        session.start_refine()
        assert await session.submit_refine("add stars") is False

        assert session.cover.url == COVER_URL
        assert session.cover.loading is False
        assert session.cover.error == EDIT_FAILURE_MESSAGE
        assert session.edit_mode is True
        assert session.edit_prompt == "add stars"
        assert session.phase is SessionPhase.EDITING

    @pytest.mark.asyncio
    async def test_blank_prompt_is_noop(self):
        generator = ScriptedGenerator()
        session = await ready_session(generator)
        session.start_refine()

        assert await session.submit_refine("  ") is False
        assert generator.edits == []
        assert session.cover.loading is False

    @pytest.mark.asyncio
    async def test_cancel(self):
        generator = ScriptedGenerator()
        session = await ready_session(generator)
        session.start_refine()
        session.cancel_refine()

        assert session.edit_mode is False
        assert session.phase is SessionPhase.COVER_READY
        assert generator.edits == []

    @pytest.mark.asyncio
    async def test_refine_requires_cover(self):
        session = StudioSession(ScriptedGenerator(cover_error=True))
        with pytest.raises(InvalidTransition):
            session.start_refine()

        await session.generate("x")
        with pytest.raises(InvalidTransition):
            session.start_refine()

    @pytest.mark.asyncio
    async def test_submit_outside_edit_mode(self):
        session = await ready_session()
        with pytest.raises(InvalidTransition):
            await session.submit_refine("add stars")


class TestSnapshot:
    @pytest.mark.asyncio
    async def test_snapshot_contents(self):
        session = StudioSession(ScriptedGenerator(), language=Language.ARABIC)
        await session.generate("desert")

        snap = session.snapshot()
        assert snap.phase is SessionPhase.COVER_READY
        assert snap.text_direction == "rtl"
        assert [s.header for s in snap.sections] == ["VERSE 1", "CHORUS"]
        assert snap.sections[0].lines == ["line a", "line b"]

        dumped = snap.model_dump(mode="json", by_alias=True)
        assert dumped["song"]["imagePrompt"] == "cover for desert"
        assert dumped["language"] == "Arabic"
