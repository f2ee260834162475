"""Studio session controller: sequences song, cover and cover-edit requests.

A session moves through the phases in ``SessionPhase``::

    idle -> composing -> cover_pending -> cover_ready | cover_failed
                                          cover_ready -> editing -> cover_ready

Every generate or edit request takes a new epoch token. A result that comes
back carrying an older token is dropped, so the last request wins even if two
generations overlap.
"""

from __future__ import annotations

import itertools
import logging
from uuid import uuid4

from songcraft.errors import InvalidTransition
from songcraft.models.session import LyricSection, SessionPhase, SessionSnapshot
from songcraft.models.song import DEFAULT_LANGUAGE, GeneratedAsset, Language, SongData
from songcraft.services.auth import ApiKeySelector
from songcraft.services.lyrics import split_lyric_sections
from songcraft.services.song_service import SongGenerator

log = logging.getLogger(__name__)

GENERIC_FAILURE_NOTICE = "Something went wrong. Please check your topic or try again later."
EDIT_FAILURE_MESSAGE = "Failed to edit image"


class StudioSession:
    """State of one user's song/cover workspace."""

    def __init__(
        self,
        generator: SongGenerator,
        key_selector: ApiKeySelector | None = None,
        language: Language = DEFAULT_LANGUAGE,
        session_id: str | None = None,
    ):
        self.session_id = session_id or str(uuid4())
        self.generator = generator
        self.key_selector = key_selector

        self.topic = ""
        self.language = language
        self.use_search = False

        self.loading = False
        self.song: SongData | None = None
        self.cover: GeneratedAsset | None = None
        self.edit_mode = False
        self.edit_prompt = ""
        self.notice: str | None = None

        self._epochs = itertools.count(1)
        self._epoch = 0

    # ── derived state ───────────────────────────────────

    @property
    def phase(self) -> SessionPhase:
        if self.loading:
            return SessionPhase.COMPOSING
        if self.song is None:
            return SessionPhase.IDLE
        if self.edit_mode:
            return SessionPhase.EDITING
        if self.cover is None or self.cover.loading:
            return SessionPhase.COVER_PENDING
        if self.cover.url:
            return SessionPhase.COVER_READY
        return SessionPhase.COVER_FAILED

    @property
    def sections(self) -> list[LyricSection]:
        return split_lyric_sections(self.song.lyrics) if self.song else []

    @property
    def text_direction(self) -> str:
        return self.language.text_direction

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            phase=self.phase,
            topic=self.topic,
            language=self.language,
            use_search=self.use_search,
            loading=self.loading,
            song=self.song,
            cover=self.cover,
            edit_mode=self.edit_mode,
            edit_prompt=self.edit_prompt,
            notice=self.notice,
            sections=self.sections,
            text_direction=self.text_direction,
        )

    def _next_epoch(self) -> int:
        self._epoch = next(self._epochs)
        return self._epoch

    def _is_stale(self, token: int) -> bool:
        if token != self._epoch:
            log.info("[%s] Discarding result of superseded request %d", self.session_id, token)
            return True
        return False

    def _require_key(self) -> None:
        if self.key_selector is not None:
            self.key_selector.require_api_key()

    # ── generate ────────────────────────────────────────

    def begin_generate(
        self,
        topic: str | None = None,
        language: Language | None = None,
        use_search: bool | None = None,
    ) -> int | None:
        """Apply inputs and enter the composing phase.

        Returns the epoch token for ``run_generate``, or None when the topic
        is blank (nothing changes in that case).

        Raises:
            AuthenticationRequired: no API key selected.
        """
        if topic is not None:
            self.topic = topic
        if not self.topic.strip():
            return None
        self._require_key()

        if language is not None:
            self.language = language
        if use_search is not None:
            self.use_search = use_search

        self.song = None
        self.cover = None
        self.edit_mode = False
        self.edit_prompt = ""
        self.notice = None
        self.loading = True
        return self._next_epoch()

    async def run_generate(self, token: int) -> bool:
        """Generate the song, then its cover. Returns True if both succeeded."""
        log.info(
            "[%s] Composing '%s' in %s (search=%s)",
            self.session_id,
            self.topic,
            self.language.value,
            self.use_search,
        )
        try:
            song = await self.generator.generate_song(
                self.topic, self.language, self.use_search
            )
        except Exception as e:
            if self._is_stale(token):
                return False
            log.error("[%s] Song generation failed: %s", self.session_id, e, exc_info=True)
            self.loading = False
            self.notice = GENERIC_FAILURE_NOTICE
            return False

        if self._is_stale(token):
            return False
        self.song = song
        self.loading = False
        self.cover = GeneratedAsset(type="image", url="", loading=True)

        try:
            url = await self.generator.generate_cover_image(song.image_prompt)
        except Exception as e:
            if self._is_stale(token):
                return False
            log.error("[%s] Cover generation failed: %s", self.session_id, e, exc_info=True)
            self.cover = GeneratedAsset(type="image", url="", loading=False, error=str(e))
            self.notice = GENERIC_FAILURE_NOTICE
            return False

        if self._is_stale(token):
            return False
        self.cover = GeneratedAsset(type="image", url=url, loading=False)
        log.info("[%s] Song '%s' and cover ready", self.session_id, song.title)
        return True

    async def generate(
        self,
        topic: str | None = None,
        language: Language | None = None,
        use_search: bool | None = None,
    ) -> bool:
        token = self.begin_generate(topic, language, use_search)
        if token is None:
            return False
        return await self.run_generate(token)

    # ── refine image ────────────────────────────────────

    def start_refine(self) -> None:
        if self.cover is None or not self.cover.url or self.cover.loading:
            raise InvalidTransition("There is no finished cover to refine.")
        self.edit_mode = True

    def cancel_refine(self) -> None:
        self.edit_mode = False

    def begin_refine(self, edit_prompt: str | None = None) -> int | None:
        """Mark the cover as loading for an edit, keeping its current URL.

        Returns the epoch token for ``run_refine``, or None when the prompt
        is blank.
        """
        if not self.edit_mode or self.cover is None or not self.cover.url:
            raise InvalidTransition("Refining is only possible in edit mode.")
        if self.cover.loading:
            raise InvalidTransition("An edit is already in progress.")
        if edit_prompt is not None:
            self.edit_prompt = edit_prompt
        if not self.edit_prompt.strip():
            return None
        self._require_key()

        self.cover = self.cover.model_copy(update={"loading": True, "error": None})
        return self._next_epoch()

    async def run_refine(self, token: int) -> bool:
        previous = self.cover
        log.info("[%s] Refining cover: %s", self.session_id, self.edit_prompt)
        try:
            url = await self.generator.edit_image(previous.url, self.edit_prompt)
        except Exception as e:
            if self._is_stale(token):
                return False
            log.error("[%s] Cover edit failed: %s", self.session_id, e, exc_info=True)
            self.cover = previous.model_copy(
                update={"loading": False, "error": EDIT_FAILURE_MESSAGE}
            )
            return False

        if self._is_stale(token):
            return False
        self.cover = GeneratedAsset(type="image", url=url, loading=False)
        self.edit_mode = False
        self.edit_prompt = ""
        return True

    async def submit_refine(self, edit_prompt: str | None = None) -> bool:
        token = self.begin_refine(edit_prompt)
        if token is None:
            return False
        return await self.run_refine(token)
