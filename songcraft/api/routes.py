"""REST API routes for the song studio."""

from __future__ import annotations

import logging
from typing import Callable, Optional
from urllib.parse import quote

from fastapi import BackgroundTasks, FastAPI, Form, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from songcraft.agent.mock_song import MockSongGenerator
from songcraft.agent.song_agent import GeminiSongGenerator
from songcraft.errors import AuthenticationRequired, InvalidTransition
from songcraft.models.song import DEFAULT_LANGUAGE, Language
from songcraft.preprocessing.image import decode_data_uri
from songcraft.services.auth import ApiKeySelector
from songcraft.services.lyrics import cover_filename
from songcraft.services.session_store import SessionStore
from songcraft.services.song_service import SongGenerator
from songcraft.services.studio import StudioSession

log = logging.getLogger(__name__)

GeneratorFactory = Callable[[Optional[str], bool], SongGenerator]


def default_generator_factory(api_key: str | None, use_mock: bool) -> SongGenerator:
    if use_mock:
        return MockSongGenerator()
    return GeminiSongGenerator(api_key=api_key)


def _snapshot(session: StudioSession) -> dict:
    return session.snapshot().model_dump(mode="json", by_alias=True)


def create_app(
    key_selector: ApiKeySelector | None = None,
    generator_factory: GeneratorFactory | None = None,
    store: SessionStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    key_selector = key_selector or ApiKeySelector()
    generator_factory = generator_factory or default_generator_factory
    store = store or SessionStore()

    app = FastAPI(
        title="SongCraft API",
        description="Song, lyrics and cover art generation",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _get_session(session_id: str) -> StudioSession:
        session = store.get_session(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    @app.get("/api/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/languages")
    async def list_languages() -> dict:
        return {
            "languages": [lang.value for lang in Language],
            "default": DEFAULT_LANGUAGE.value,
        }

    @app.get("/api/key")
    async def key_status() -> dict:
        """Whether an API key has been selected."""
        return {"has_api_key": key_selector.has_selected_api_key()}

    @app.post("/api/key")
    async def select_key(api_key: str = Form(...)) -> dict:
        try:
            key_selector.select_api_key(api_key)
        except AuthenticationRequired as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"has_api_key": True}

    @app.post("/api/sessions")
    async def create_session() -> dict:
        session = store.create_session(
            generator_factory(None, False), key_selector=key_selector
        )
        return _snapshot(session)

    @app.get("/api/sessions/{session_id}")
    async def get_session(session_id: str) -> dict:
        return _snapshot(_get_session(session_id))

    @app.delete("/api/sessions/{session_id}")
    async def delete_session(session_id: str) -> dict:
        if not store.delete_session(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return {"deleted": session_id}

    @app.post("/api/sessions/{session_id}/generate")
    async def generate_song(
        session_id: str,
        background_tasks: BackgroundTasks,
        topic: str = Form(...),
        language: str = Form(DEFAULT_LANGUAGE.value),
        use_search: bool = Form(False),
        use_mock: bool = Form(False),
    ) -> dict:
        """Start composing a song and its cover.

        Returns the session in the composing phase; poll the session for the
        song and cover as they arrive.
        """
        session = _get_session(session_id)
        try:
            lang = Language(language)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unsupported language: {language}")
        if not topic.strip():
            raise HTTPException(status_code=400, detail="Topic must not be empty")
        if session.loading:
            raise HTTPException(status_code=409, detail="A song is already being composed")

        session.key_selector = None if use_mock else key_selector
        try:
            api_key = None if use_mock else key_selector.require_api_key()
            session.generator = generator_factory(api_key, use_mock)
            token = session.begin_generate(topic, lang, use_search)
        except AuthenticationRequired as e:
            raise HTTPException(status_code=401, detail=str(e))

        log.info(f"[{session_id}] Queued generation (epoch {token})")
        background_tasks.add_task(session.run_generate, token)
        return _snapshot(session)

    @app.post("/api/sessions/{session_id}/refine")
    async def start_refine(session_id: str) -> dict:
        session = _get_session(session_id)
        try:
            session.start_refine()
        except InvalidTransition as e:
            raise HTTPException(status_code=409, detail=str(e))
        return _snapshot(session)

    @app.post("/api/sessions/{session_id}/refine/submit")
    async def submit_refine(
        session_id: str,
        background_tasks: BackgroundTasks,
        edit_prompt: str = Form(...),
    ) -> dict:
        session = _get_session(session_id)
        try:
            token = session.begin_refine(edit_prompt)
            if token is not None and session.key_selector is not None:
                # pick up a key selected after the song was generated
                session.generator = generator_factory(key_selector.require_api_key(), False)
        except InvalidTransition as e:
            raise HTTPException(status_code=409, detail=str(e))
        except AuthenticationRequired as e:
            raise HTTPException(status_code=401, detail=str(e))
        if token is None:
            raise HTTPException(status_code=400, detail="Edit prompt must not be empty")

        background_tasks.add_task(session.run_refine, token)
        return _snapshot(session)

    @app.post("/api/sessions/{session_id}/refine/cancel")
    async def cancel_refine(session_id: str) -> dict:
        session = _get_session(session_id)
        session.cancel_refine()
        return _snapshot(session)

    @app.get("/api/sessions/{session_id}/cover")
    async def download_cover(session_id: str) -> Response:
        """Download the current cover as a PNG attachment."""
        session = _get_session(session_id)
        if session.cover is None or not session.cover.url:
            raise HTTPException(status_code=404, detail="Cover not found")
        filename = cover_filename(session.song.title if session.song else None)
        return Response(
            content=decode_data_uri(session.cover.url),
            media_type="image/png",
            headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
        )

    return app
